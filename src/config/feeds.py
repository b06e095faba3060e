from dataclasses import dataclass


@dataclass(frozen=True)
class FeedSource:
    name: str
    url: str
    weight: float = 0.0


NEWS_FEEDS: list[FeedSource] = [
    # Canada trucking / logistics
    FeedSource("TruckNews", "https://www.trucknews.com/rss/"),
    FeedSource("The Loadstar", "https://theloadstar.com/feed/"),
    FeedSource("FreightWaves", "https://www.freightwaves.com/feed"),
    # Regional broadcasters
    FeedSource("Global Halifax", "https://globalnews.ca/halifax/feed/"),
    FeedSource("Global New Brunswick", "https://globalnews.ca/new-brunswick/feed/"),
    FeedSource("CBC Nova Scotia", "https://rss.cbc.ca/lineup/canada-novascotia.xml"),
    FeedSource("CBC New Brunswick", "https://rss.cbc.ca/lineup/canada-newbrunswick.xml"),
    FeedSource("CBC PEI", "https://rss.cbc.ca/lineup/canada-pei.xml"),
    FeedSource("CBC Newfoundland", "https://rss.cbc.ca/lineup/canada-newfoundland.xml"),
    # NL local + Canadian logistics
    FeedSource("VOCM", "https://vocm.com/feed/"),
    FeedSource("Inside Logistics", "https://www.insidelogistics.ca/feed/"),
]

TRAFFIC_FEEDS: list[FeedSource] = [
    FeedSource("NS Traffic Advisories", "https://novascotia.ca/news/rss/traffic.asp"),
    # Environment Canada CAP alerts
    FeedSource("Weather Alerts NS", "https://alerts.weather.gc.ca/rss/cap/ns.xml"),
    FeedSource("Weather Alerts NB", "https://alerts.weather.gc.ca/rss/cap/nb.xml"),
    FeedSource("Weather Alerts PE", "https://alerts.weather.gc.ca/rss/cap/pe.xml"),
    FeedSource("Weather Alerts NL", "https://alerts.weather.gc.ca/rss/cap/nl.xml"),
]

INDUSTRY_FEEDS: list[FeedSource] = [
    FeedSource("TruckNews", "https://www.trucknews.com/feed/?post_type=blog", weight=2),
    FeedSource(
        "CTV Atlantic",
        "https://atlantic.ctvnews.ca/rss/ctv-news-atlantic-public-rss-1.822315",
        weight=2,
    ),
    FeedSource("Global Halifax", "https://globalnews.ca/halifax/feed/", weight=2),
    FeedSource("CBC Nova Scotia", "https://rss.cbc.ca/lineup/canada-novascotia.xml", weight=3),
    FeedSource("NS Traffic Advisories", "https://novascotia.ca/news/rss/traffic.asp", weight=1),
]

TRUCK_FEEDS: list[FeedSource] = [
    FeedSource("TruckNews", "https://www.trucknews.com/feed/"),
    FeedSource("Global Halifax", "https://globalnews.ca/halifax/feed/"),
    FeedSource(
        "CTV Atlantic",
        "https://atlantic.ctvnews.ca/rss/ctv-news-atlantic-top-stories-1.1073369",
    ),
    FeedSource("CBC Nova Scotia", "https://www.cbc.ca/webfeed/rss/rss-ns"),
    FeedSource("NS Gov – All News", "https://news-feeds.novascotia.ca/en"),
    FeedSource("NS Gov – Traffic Advisories", "https://novascotia.ca/news/rss/"),
]

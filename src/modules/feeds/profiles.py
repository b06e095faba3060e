from dataclasses import dataclass

from src.config.feeds import (
    INDUSTRY_FEEDS,
    NEWS_FEEDS,
    TRAFFIC_FEEDS,
    TRUCK_FEEDS,
    FeedSource,
)
from src.config.settings import settings
from src.modules.aggregator.filters import NEWS_EXCLUSIONS, ExclusionRule
from src.modules.aggregator.schemas import RelevanceTerm


@dataclass(frozen=True)
class FeedProfile:
    """Everything one endpoint's pipeline needs: sources, rules and bounds."""

    name: str
    sources: tuple[FeedSource, ...]
    exclusions: tuple[ExclusionRule, ...] = ()
    relevance: tuple[RelevanceTerm, ...] = ()
    per_feed: int = 10
    max_per_host: int | None = None
    default_limit: int = 10
    min_limit: int = 1
    max_limit: int = 50
    placeholder_title: str = "Untitled"
    long_excerpt: bool = False
    enrich_images: bool = False
    cache_control: str = "public, max-age=180, s-maxage=900"

    def clamp_limit(self, value: int | None) -> int:
        if value is None:
            return self.default_limit
        return max(self.min_limit, min(self.max_limit, value))


ATLANTIC_TERMS = (
    "cape breton", "sydney", "nova scotia", "halifax", "dartmouth", "antigonish",
    "newfoundland", "new brunswick", "pei", "prince edward island", "atlantic canada",
    "cbrm", "port hawkesbury", "glace bay", "stellarton", "truro", "bridgewater",
    "yarmouth",
)

REGION_PATTERNS = (
    r"cape\s*breton",
    r"sydney\b",
    r"\bnova scotia\b|\bns\b",
    r"halifax",
    r"antigonish",
    r"port hawkesbury",
    r"atlantic canada|new brunswick|pei|newfoundland",
)

TRUCKING_PATTERN = r"truck|trucking|transport|tow|highway|semi|18[- ]?wheeler|fleet"


NEWS = FeedProfile(
    name="news",
    sources=tuple(NEWS_FEEDS),
    exclusions=NEWS_EXCLUSIONS,
    per_feed=settings.news_per_feed,
    max_per_host=settings.news_max_per_host,
    default_limit=settings.news_limit,
    max_limit=max(settings.news_limit, 50),
)

TRAFFIC = FeedProfile(
    name="traffic",
    sources=tuple(TRAFFIC_FEEDS),
    per_feed=settings.traffic_per_feed,
    default_limit=100,
    max_limit=100,
    placeholder_title="Traffic advisory",
)

INDUSTRY = FeedProfile(
    name="industry",
    sources=tuple(INDUSTRY_FEEDS),
    relevance=tuple(RelevanceTerm.phrase(term, 10) for term in ATLANTIC_TERMS),
    per_feed=50,
    default_limit=10,
    max_limit=20,
    placeholder_title="(untitled)",
    long_excerpt=True,
    enrich_images=True,
    cache_control="public, max-age=300",
)

TRUCK = FeedProfile(
    name="truck",
    sources=tuple(TRUCK_FEEDS),
    relevance=(
        *(RelevanceTerm.regex(expr, 5) for expr in REGION_PATTERNS),
        RelevanceTerm.regex(TRUCKING_PATTERN, 3),
    ),
    per_feed=50,
    default_limit=10,
    max_limit=10,
    enrich_images=True,
    cache_control="public, max-age=600",
)

PROFILES: dict[str, FeedProfile] = {p.name: p for p in (NEWS, TRAFFIC, INDUSTRY, TRUCK)}

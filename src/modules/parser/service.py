import json
import logging
import re
from collections.abc import Callable

from bs4 import BeautifulSoup, Tag

from src.modules.parser.markup import (
    collapse_whitespace,
    decode_entities,
    inline_image_sources,
    strip_markup,
)
from src.modules.parser.schemas import (
    AtomEntry,
    JSONFeedEntry,
    MediaHint,
    ParsedFeed,
    RSSEntry,
)

logger = logging.getLogger(__name__)

_RSS_RE = re.compile(r"<rss\b|<channel\b", re.IGNORECASE)
_ATOM_RE = re.compile(r"<feed\b", re.IGNORECASE)

TITLE_TAGS = ("title",)
DATE_TAGS = ("pubDate", "published", "updated", "dc:date")
BODY_TAGS = ("content:encoded", "content", "description", "summary")
MEDIA_TAGS = ("enclosure", "media:content", "media:thumbnail")


def _named(qname: str) -> Callable[[Tag], bool]:
    """Match a tag by qualified name; an unprefixed name never matches a prefixed tag."""
    prefix, _, local = qname.rpartition(":")

    def match(tag: Tag) -> bool:
        if tag.name == qname:
            return True
        return tag.name == local and (tag.prefix or "") == prefix

    return match


def _any_named(*qnames: str) -> Callable[[Tag], bool]:
    matchers = [_named(q) for q in qnames]
    return lambda tag: any(m(tag) for m in matchers)


def _tag_text(tag: Tag | None) -> str:
    if tag is None:
        return ""
    # Inline XHTML content keeps its markup; escaped/CDATA content is already text
    if tag.find(True) is not None:
        raw = tag.decode_contents()
    else:
        raw = tag.get_text()
    return decode_entities(raw.strip())


def _first_text(block: Tag, qnames: tuple[str, ...]) -> str:
    for qname in qnames:
        text = _tag_text(block.find(_named(qname)))
        if text:
            return text
    return ""


def _int_attr(tag: Tag, name: str) -> int | None:
    try:
        return int(tag.get(name, ""))
    except (TypeError, ValueError):
        return None


def _media_hints(block: Tag, body_html: str) -> tuple[MediaHint, ...]:
    hints: list[MediaHint] = []
    for tag in block.find_all(_any_named(*MEDIA_TAGS)):
        url = decode_entities(tag.get("url", "").strip())
        if not url:
            continue
        hints.append(
            MediaHint(
                url=url,
                width=_int_attr(tag, "width"),
                height=_int_attr(tag, "height"),
                mime_type=(tag.get("type") or "").lower() or None,
            )
        )
    for src in inline_image_sources(body_html):
        hints.append(MediaHint(url=src))
    return tuple(hints)


def detect_format(text: str) -> str | None:
    if not text:
        return None
    if _RSS_RE.search(text):
        return "rss"
    if _ATOM_RE.search(text):
        return "atom"
    if text.lstrip().startswith("{"):
        try:
            data = json.loads(text)
        except ValueError:
            return None
        if isinstance(data, dict) and isinstance(data.get("items"), list):
            return "json"
    return None


class FeedParserService:
    """Turns a raw feed payload into format-tagged entries."""

    # ── RSS ─────────────────────────────────────────────────────

    @staticmethod
    def _parse_rss_item(item: Tag, feed_url: str) -> RSSEntry:
        body = _first_text(item, BODY_TAGS)
        guid_tag = item.find(_named("guid"))
        guid = _tag_text(guid_tag)
        link = _first_text(item, ("link",))
        if not link:
            # RSS carrying an atom:link instead of a text <link>
            atom_link = item.find(_named("atom:link"), href=True)
            link = decode_entities(atom_link["href"].strip()) if atom_link else ""
        if not link and guid_tag is not None and guid_tag.get("isPermaLink") != "false":
            link = guid
        return RSSEntry(
            title=strip_markup(_first_text(item, TITLE_TAGS)),
            link=link,
            guid=guid,
            published_raw=_first_text(item, DATE_TAGS),
            body_html=body,
            media_hints=_media_hints(item, body),
            source_feed_url=feed_url,
        )

    # ── Atom ────────────────────────────────────────────────────

    @staticmethod
    def _atom_link(entry: Tag) -> str:
        links = entry.find_all(_named("link"), href=True)
        for link in links:
            if link.get("rel", "alternate") == "alternate":
                return decode_entities(link["href"].strip())
        return decode_entities(links[0]["href"].strip()) if links else ""

    @staticmethod
    def _atom_title(entry: Tag) -> str:
        title = entry.find(_named("title"))
        if title is None:
            return ""
        if title.get("type") in ("html", "xhtml"):
            return strip_markup(_tag_text(title))
        return collapse_whitespace(_tag_text(title))

    def _parse_atom_entry(self, entry: Tag, feed_url: str) -> AtomEntry:
        body = _first_text(entry, BODY_TAGS)
        return AtomEntry(
            title=self._atom_title(entry),
            link=self._atom_link(entry),
            published_raw=_first_text(entry, DATE_TAGS),
            body_html=body,
            media_hints=_media_hints(entry, body),
            source_feed_url=feed_url,
        )

    # ── JSON feed ───────────────────────────────────────────────

    @staticmethod
    def _parse_json_item(item: dict, feed_url: str) -> JSONFeedEntry:
        def first(*keys: str) -> str:
            for key in keys:
                value = item.get(key)
                if isinstance(value, str) and value.strip():
                    return value.strip()
            return ""

        body = first("content_html", "summary", "content_text")
        hints = [MediaHint(url=url) for url in (first("image"), first("banner_image")) if url]
        hints.extend(MediaHint(url=src) for src in inline_image_sources(body))
        return JSONFeedEntry(
            title=strip_markup(first("title")),
            link=first("url"),
            external_url=first("external_url"),
            published_raw=first("date_published", "published", "date_modified", "updated"),
            body_html=body,
            media_hints=tuple(hints),
            source_feed_url=feed_url,
        )

    # ── Entry point ─────────────────────────────────────────────

    def parse(self, text: str, feed_url: str) -> ParsedFeed:
        fmt = detect_format(text)
        if fmt is None:
            logger.warning("Unrecognised feed format for %s", feed_url)
            return ParsedFeed()

        if fmt == "json":
            data = json.loads(text)
            entries = [
                self._parse_json_item(item, feed_url)
                for item in data["items"]
                if isinstance(item, dict)
            ]
            title = data.get("title") if isinstance(data.get("title"), str) else ""
            feed = ParsedFeed(format=fmt, title=strip_markup(title), entries=entries)
        else:
            soup = BeautifulSoup(text, "lxml-xml")
            title = strip_markup(_tag_text(soup.find(_named("title"))))
            if fmt == "rss":
                entries = [
                    self._parse_rss_item(item, feed_url)
                    for item in soup.find_all(_named("item"))
                ]
            else:
                entries = [
                    self._parse_atom_entry(entry, feed_url)
                    for entry in soup.find_all(_named("entry"))
                ]
            feed = ParsedFeed(format=fmt, title=title, entries=entries)

        kept = [e for e in feed.entries if e.title or e.link]
        if len(kept) < len(feed.entries):
            logger.info(
                "Discarded %d entries without title or link from %s",
                len(feed.entries) - len(kept), feed_url,
            )
        feed.entries = kept
        logger.info("Parsed %s feed %s: %d entries", fmt, feed_url, len(kept))
        return feed


feed_parser_service = FeedParserService()

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime

from dateutil import parser as date_parser

from src.modules.images.service import prefer_unscaled, select_image
from src.modules.normalizer.excerpt import first_paragraphs, truncate_summary
from src.modules.normalizer.schemas import CanonicalItem
from src.modules.normalizer.urls import absolutize, is_absolute
from src.modules.parser.markup import collapse_whitespace, strip_markup
from src.modules.parser.schemas import (
    AtomEntry,
    JSONFeedEntry,
    MediaHint,
    RawEntry,
    RSSEntry,
)

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Untitled"
LINK_SENTINEL = "#"


@dataclass(frozen=True)
class _Fields:
    title: str
    link: str
    published_raw: str
    body_html: str
    media_hints: tuple[MediaHint, ...]


def _from_rss(entry: RSSEntry) -> _Fields:
    link = entry.link
    if not link and is_absolute(entry.guid):
        link = entry.guid
    return _Fields(entry.title, link, entry.published_raw, entry.body_html, entry.media_hints)


def _from_atom(entry: AtomEntry) -> _Fields:
    return _Fields(
        entry.title, entry.link, entry.published_raw, entry.body_html, entry.media_hints
    )


def _from_json(entry: JSONFeedEntry) -> _Fields:
    return _Fields(
        entry.title,
        entry.link or entry.external_url,
        entry.published_raw,
        entry.body_html,
        entry.media_hints,
    )


_MAPPERS: dict[str, Callable[..., _Fields]] = {
    "rss": _from_rss,
    "atom": _from_atom,
    "json": _from_json,
}


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_date(raw: str, now: datetime) -> datetime:
    """Parse RFC 822, ISO 8601 or anything dateutil accepts; ``now`` on failure."""
    raw = (raw or "").strip()
    if not raw:
        return now
    try:
        return _as_utc(parsedate_to_datetime(raw))
    except (TypeError, ValueError, IndexError):
        pass
    try:
        return _as_utc(datetime.fromisoformat(raw.replace("Z", "+00:00")))
    except ValueError:
        pass
    try:
        return _as_utc(date_parser.parse(raw))
    except (ValueError, OverflowError):
        logger.debug("Unparseable date %r, using now", raw)
        return now


class NormalizerService:
    """Maps raw entries of any format onto CanonicalItem."""

    def normalize(
        self,
        entry: RawEntry,
        source_label: str,
        now: datetime,
        *,
        placeholder_title: str = DEFAULT_TITLE,
        long_excerpt: bool = False,
        source_weight: float = 0.0,
    ) -> CanonicalItem | None:
        fields = _MAPPERS[entry.kind](entry)
        title = collapse_whitespace(fields.title)
        if not title and not fields.link:
            return None

        link = absolutize(fields.link, entry.source_feed_url) or LINK_SENTINEL
        image = absolutize(
            select_image(fields.media_hints), link, entry.source_feed_url
        )

        return CanonicalItem(
            source=source_label,
            title=title or placeholder_title,
            link=link,
            published_at=parse_date(fields.published_raw, now),
            image=prefer_unscaled(image),
            summary=truncate_summary(strip_markup(fields.body_html)),
            excerpt_html=first_paragraphs(fields.body_html) if long_excerpt else "",
            source_weight=source_weight,
        )


normalizer_service = NormalizerService()

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field


class MediaHint(BaseModel):
    """An image reference declared by the feed (enclosure, media tag or inline <img>)."""

    model_config = ConfigDict(frozen=True)

    url: str
    width: int | None = None
    height: int | None = None
    mime_type: str | None = None


class _EntryBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str = ""
    link: str = ""  # may be relative
    published_raw: str = ""
    body_html: str = ""
    media_hints: tuple[MediaHint, ...] = ()
    source_feed_url: str


class RSSEntry(_EntryBase):
    kind: Literal["rss"] = "rss"
    guid: str = ""


class AtomEntry(_EntryBase):
    kind: Literal["atom"] = "atom"


class JSONFeedEntry(_EntryBase):
    kind: Literal["json"] = "json"
    external_url: str = ""


RawEntry = Annotated[RSSEntry | AtomEntry | JSONFeedEntry, Field(discriminator="kind")]


class ParsedFeed(BaseModel):
    format: Literal["rss", "atom", "json"] | None = None
    title: str = ""
    entries: list[RawEntry] = []

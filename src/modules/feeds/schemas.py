from datetime import datetime

from pydantic import BaseModel, Field

from src.modules.aggregator.schemas import SourceReport
from src.modules.normalizer.schemas import CanonicalItem


class FeedItemResponse(BaseModel):
    source: str
    title: str
    link: str
    date: datetime
    image: str = ""
    summary: str = ""
    excerpt_html: str | None = Field(default=None, serialization_alias="excerptHtml")

    @classmethod
    def from_item(cls, item: CanonicalItem, long_excerpt: bool = False) -> "FeedItemResponse":
        return cls(
            source=item.source,
            title=item.title,
            link=item.link,
            date=item.published_at,
            image=item.image,
            summary=item.summary,
            excerpt_html=item.excerpt_html if long_excerpt else None,
        )


class FeedResponse(BaseModel):
    items: list[FeedItemResponse]
    empty: bool = False
    debug: list[SourceReport] | None = None


class NewsImageResponse(BaseModel):
    image: str = ""
    debug: dict | None = None

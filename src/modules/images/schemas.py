from pydantic import BaseModel

from src.modules.fetcher.schemas import FetchResult


class PageImage(BaseModel):
    """Result of scraping one article page for its representative image."""

    image: str = ""
    fetch: FetchResult | None = None


class ArticlePage(BaseModel):
    image: str = ""
    paragraphs_html: str = ""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone

import httpx
import pytest

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def rss(title: str, items: list[str]) -> str:
    return f"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0"
     xmlns:content="http://purl.org/rss/1.0/modules/content/"
     xmlns:media="http://search.yahoo.com/mrss/">
  <channel>
    <title>{title}</title>
    {''.join(items)}
  </channel>
</rss>"""


def rss_item(
    title: str,
    link: str,
    description: str = "",
    pub_date: str = "Sat, 01 Jun 2024 10:00:00 GMT",
    extra: str = "",
) -> str:
    return f"""
    <item>
      <title>{title}</title>
      <link>{link}</link>
      <pubDate>{pub_date}</pubDate>
      <description>{description}</description>
      {extra}
    </item>"""


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def rss_feed() -> Callable[[str, list[str]], str]:
    return rss


@pytest.fixture
def rss_entry() -> Callable[..., str]:
    return rss_item


@pytest.fixture
def make_client() -> Callable[..., httpx.AsyncClient]:
    """Build an AsyncClient whose requests are answered by ``handler``."""

    def factory(handler) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return factory

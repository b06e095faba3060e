import asyncio
import json
import logging
import re
from collections.abc import Iterable
from typing import Any
from urllib.parse import urlsplit

import httpx
from bs4 import BeautifulSoup

from src.config.settings import settings
from src.modules.fetcher.service import HTML_ACCEPT, fetcher_service
from src.modules.images.schemas import ArticlePage, PageImage
from src.modules.normalizer.excerpt import first_paragraphs
from src.modules.normalizer.schemas import CanonicalItem
from src.modules.normalizer.urls import absolutize
from src.modules.parser.markup import strip_markup
from src.modules.parser.schemas import MediaHint

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = (".png", ".jpg", ".jpeg", ".webp", ".gif", ".avif")
_MEDIA_PATH_RE = re.compile(r"wp-content|uploads|cdn|images?|media", re.IGNORECASE)
_SCALED_RE = re.compile(r"^(.*)-\d+x\d+(\.[A-Za-z0-9]+)(\?.*)?$")
_SRCSET_ENTRY_RE = re.compile(r"(\S+)\s+(\d+)w")

META_IMAGE_KEYS = ("og:image", "og:image:secure_url", "twitter:image", "parsely-image")

SHORT_EXCERPT_CHARS = 140


# ── Candidate scoring ───────────────────────────────────────────


def _area(hint: MediaHint) -> int:
    return (hint.width or 0) * (hint.height or 0)


def score_candidate(hint: MediaHint) -> int:
    score = 0
    if (hint.mime_type or "").startswith("image/"):
        score += 50
    try:
        path = urlsplit(hint.url).path.lower()
    except ValueError:
        path = ""
    if path.endswith(IMAGE_EXTENSIONS):
        score += 40
    if _MEDIA_PATH_RE.search(hint.url):
        score += 15
    area = _area(hint)
    if area >= 800 * 450:
        score += 15
    elif area >= 400 * 225:
        score += 8
    return score


def select_image(candidates: Iterable[MediaHint]) -> str:
    """Best candidate URL, or '' when there are none.

    Highest score wins, then larger declared area; remaining ties keep
    document order (sorted() is stable).
    """
    ranked = sorted(candidates, key=lambda h: (-score_candidate(h), -_area(h)))
    return ranked[0].url if ranked else ""


def prefer_unscaled(url: str) -> str:
    """Rewrite CMS thumbnails ``name-300x200.jpg`` to the original ``name.jpg``."""
    if not url:
        return url
    match = _SCALED_RE.match(url)
    if match:
        return match.group(1) + match.group(2) + (match.group(3) or "")
    return url


# ── Article page scraping ───────────────────────────────────────


def _meta_image(soup: BeautifulSoup, key: str) -> str:
    for attr in ("property", "name"):
        tag = soup.find("meta", attrs={attr: key}, content=True)
        if tag and tag["content"].strip():
            return tag["content"].strip()
    return ""


def _image_value(value: Any) -> str:
    """URL held by a JSON-LD image property: a string, ``{url}``, or a list of those."""
    if isinstance(value, list):
        value = value[0] if value else None
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, dict) and isinstance(value.get("url"), str):
        return value["url"].strip()
    return ""


def _json_ld_image(node: Any) -> str:
    if isinstance(node, list):
        for value in node:
            found = _json_ld_image(value)
            if found:
                return found
        return ""
    if not isinstance(node, dict):
        return ""
    found = _image_value(node.get("image")) or _image_value(node.get("thumbnailUrl"))
    if found:
        return found
    for value in node.values():
        if isinstance(value, (dict, list)):
            found = _json_ld_image(value)
            if found:
                return found
    return ""


def _best_srcset(soup: BeautifulSoup) -> str:
    img = soup.find("img", srcset=True)
    if img is None:
        return ""
    best_url, best_width = "", -1
    for part in img["srcset"].split(","):
        part = part.strip()
        if not part:
            continue
        match = _SRCSET_ENTRY_RE.match(part)
        url, width = (match.group(1), int(match.group(2))) if match else (part.split()[0], 0)
        if width > best_width:
            best_url, best_width = url, width
    return best_url


def extract_page_image(html: str, page_url: str) -> str:
    if not html:
        return ""
    soup = BeautifulSoup(html, "lxml")

    image = ""
    for key in META_IMAGE_KEYS:
        image = _meta_image(soup, key)
        if image:
            break
    if not image:
        link = soup.find("link", rel="image_src", href=True)
        image = link["href"].strip() if link else ""
    if not image:
        for script in soup.find_all("script", type="application/ld+json"):
            try:
                image = _json_ld_image(json.loads(script.string or script.get_text()))
            except (ValueError, RecursionError):
                logger.debug("Skipping unreadable JSON-LD on %s", page_url)
                continue
            if image:
                break
    if not image:
        image = _best_srcset(soup)
    if not image:
        img = soup.find("img", src=True)
        image = img["src"].strip() if img else ""

    return absolutize(image, page_url)


def article_paragraphs(html: str) -> str:
    soup = BeautifulSoup(html, "lxml")
    content_area = soup.select_one("article") or soup.select_one("main") or soup
    return first_paragraphs(str(content_area), 2, 4)


# ── Orchestration ───────────────────────────────────────────────


class ImageResolverService:
    """Article-page image lookups, bounded in count and time."""

    async def lookup(self, url: str, client: httpx.AsyncClient | None = None) -> PageImage:
        if client is None:
            async with httpx.AsyncClient() as own_client:
                return await self.lookup(url, own_client)

        fetched = await fetcher_service.fetch_with_timeout(
            client, url, settings.image_fetch_timeout_ms, accept=HTML_ACCEPT
        )
        fetch = fetched.model_copy(update={"body": ""})
        if not fetched.ok:
            return PageImage(fetch=fetch)
        try:
            image = prefer_unscaled(extract_page_image(fetched.body, url))
        except Exception:
            logger.exception("Image extraction failed for %s", url)
            return PageImage(fetch=fetch)
        return PageImage(image=image, fetch=fetch)

    async def fetch_article(self, client: httpx.AsyncClient, url: str) -> ArticlePage | None:
        fetched = await fetcher_service.fetch_with_timeout(
            client, url, settings.image_fetch_timeout_ms, accept=HTML_ACCEPT
        )
        if not fetched.ok:
            return None
        return ArticlePage(
            image=prefer_unscaled(extract_page_image(fetched.body, url)),
            paragraphs_html=article_paragraphs(fetched.body),
        )

    @staticmethod
    def _needs_enrichment(item: CanonicalItem, long_excerpt: bool) -> bool:
        if item.link == "#":
            return False
        if not item.image:
            return True
        return long_excerpt and len(strip_markup(item.excerpt_html)) < SHORT_EXCERPT_CHARS

    async def enrich(
        self,
        items: list[CanonicalItem],
        client: httpx.AsyncClient,
        cap: int | None = None,
        long_excerpt: bool = False,
    ) -> list[CanonicalItem]:
        """Fill missing images (and short excerpts) from the linked article pages.

        Only the first ``cap`` qualifying items are fetched; the rest are
        returned unchanged.
        """
        cap = settings.image_enrichment_cap if cap is None else cap
        targets = [
            i for i, item in enumerate(items) if self._needs_enrichment(item, long_excerpt)
        ][:cap]
        if not targets:
            return items

        semaphore = asyncio.Semaphore(settings.enrichment_concurrency)

        async def enrich_one(item: CanonicalItem) -> CanonicalItem:
            async with semaphore:
                try:
                    page = await self.fetch_article(client, item.link)
                except Exception:
                    logger.exception("Enrichment failed for %s", item.link)
                    return item
            if page is None:
                return item
            update: dict[str, str] = {}
            if not item.image and page.image:
                update["image"] = page.image
            if (
                long_excerpt
                and page.paragraphs_html
                and len(strip_markup(item.excerpt_html)) < SHORT_EXCERPT_CHARS
            ):
                update["excerpt_html"] = page.paragraphs_html
            return item.model_copy(update=update) if update else item

        logger.info("Enriching %d of %d items from article pages", len(targets), len(items))
        enriched = await asyncio.gather(*(enrich_one(items[i]) for i in targets))

        result = list(items)
        for index, item in zip(targets, enriched):
            result[index] = item
        return result


image_resolver_service = ImageResolverService()

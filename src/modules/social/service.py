import asyncio
import logging
from datetime import datetime, timezone

import httpx

from src.config.settings import settings
from src.modules.feeds.exceptions import AllSourcesFailed, ConfigurationMissing
from src.modules.fetcher.service import fetcher_service
from src.modules.normalizer.service import parse_date
from src.modules.normalizer.urls import canonical_url
from src.modules.social.schemas import Photo, Post

logger = logging.getLogger(__name__)

GRAPH_API = "https://graph.facebook.com"
POST_FIELDS = ",".join([
    "id",
    "message",
    "story",
    "created_time",
    "permalink_url",
    "full_picture",
    "attachments{media_type,description,media,target,url,subattachments}",
])
PHOTO_FIELDS = "id,permalink_url,created_time,name,images,full_picture,link,album"
PHOTO_POST_FIELDS = ",".join([
    "id",
    "permalink_url",
    "created_time",
    "message",
    "full_picture",
    "attachments{media_type,media,target,subattachments}",
])
PHOTO_FALLBACK_POSTS = 25
MAX_PHOTOS = 50
MAX_POSTS = 100

_GRAPH_ERRORS = (httpx.HTTPError, asyncio.TimeoutError, ValueError)


def _attachment_images(post: dict) -> list[str]:
    """Image sources from a post's attachments, subattachments after their parent."""
    images: list[str] = []
    for attachment in (post.get("attachments") or {}).get("data") or []:
        src = ((attachment.get("media") or {}).get("image") or {}).get("src")
        if src:
            images.append(src)
        for sub in (attachment.get("subattachments") or {}).get("data") or []:
            sub_src = ((sub.get("media") or {}).get("image") or {}).get("src")
            if sub_src:
                images.append(sub_src)
    return images


def post_image(post: dict) -> str:
    if post.get("full_picture"):
        return post["full_picture"]
    attachments = (post.get("attachments") or {}).get("data") or []
    if not attachments:
        return ""
    first = attachments[0]
    src = ((first.get("media") or {}).get("image") or {}).get("src")
    if src:
        return src
    for sub in (first.get("subattachments") or {}).get("data") or []:
        sub_src = ((sub.get("media") or {}).get("image") or {}).get("src")
        if sub_src:
            return sub_src
    return ""


def map_post(post: dict, now: datetime) -> Post | None:
    message = (post.get("message") or post.get("story") or "").strip()
    image = post_image(post)
    if not message and not image:
        return None
    return Post(
        id=str(post.get("id", "")),
        message=message,
        created_at=parse_date(post.get("created_time", ""), now),
        image=image,
        link=post.get("permalink_url") or "#",
    )


class _PhotoCollector:
    """Accumulates photos, skipping repeats by id or by canonical image URL."""

    def __init__(self, now: datetime) -> None:
        self.photos: list[Photo] = []
        self._seen: set[str] = set()
        self._now = now

    def add(self, raw: dict) -> None:
        images = raw.get("images") or []
        src = raw.get("full_picture") or raw.get("source") or (images[0].get("source") if images else None)
        if not src:
            return
        keys = {f"url:{canonical_url(src)}"}
        if raw.get("id"):
            keys.add(f"id:{raw['id']}")
        if keys & self._seen:
            return
        self._seen |= keys
        created = raw.get("created_time")
        self.photos.append(
            Photo(
                id=str(raw.get("id") or f"url:{canonical_url(src)}"),
                image=src,
                permalink=raw.get("permalink_url") or raw.get("link") or "",
                created_at=parse_date(created, self._now) if created else None,
                album_id=(raw.get("album") or {}).get("id"),
            )
        )


class SocialService:
    """Graph API client for a business page's posts and photos."""

    @staticmethod
    def _credentials() -> tuple[str, str]:
        if not settings.fb_page_id or not settings.fb_access_token:
            raise ConfigurationMissing("Missing FB_PAGE_ID or FB_ACCESS_TOKEN")
        return settings.fb_page_id, settings.fb_access_token

    @staticmethod
    def _edge_url(page_id: str, edge: str) -> str:
        return f"{GRAPH_API}/{settings.fb_graph_version}/{page_id}/{edge}"

    async def posts(
        self, limit: int | None = None, client: httpx.AsyncClient | None = None
    ) -> list[Post]:
        page_id, token = self._credentials()
        if client is None:
            async with httpx.AsyncClient() as own_client:
                return await self.posts(limit, own_client)

        limit = limit or settings.fb_posts_limit
        try:
            data = await fetcher_service.fetch_json(
                client,
                self._edge_url(page_id, "posts"),
                params={"fields": POST_FIELDS, "limit": str(limit), "access_token": token},
            )
        except _GRAPH_ERRORS as exc:
            logger.warning("Graph API posts request failed: %s", exc)
            raise AllSourcesFailed(f"Facebook API error: {exc}") from exc

        now = datetime.now(timezone.utc)
        posts = [p for p in (map_post(raw, now) for raw in data.get("data") or []) if p]
        logger.info("Fetched %d posts", len(posts))
        return posts

    async def photos(
        self, limit: int = 30, client: httpx.AsyncClient | None = None
    ) -> list[Photo]:
        page_id, token = self._credentials()
        if client is None:
            async with httpx.AsyncClient() as own_client:
                return await self.photos(limit, own_client)

        limit = max(1, min(MAX_PHOTOS, limit))
        collector = _PhotoCollector(datetime.now(timezone.utc))
        failures = 0

        # 1) Uploaded photos
        try:
            data = await fetcher_service.fetch_json(
                client,
                self._edge_url(page_id, "photos"),
                params={
                    "type": "uploaded",
                    "fields": PHOTO_FIELDS,
                    "limit": str(limit),
                    "access_token": token,
                },
            )
            for raw in data.get("data") or []:
                collector.add(raw)
        except _GRAPH_ERRORS as exc:
            failures += 1
            logger.warning("Uploaded photos fetch failed: %s", exc)

        # 2) Images from recent posts when uploads fall short
        if len(collector.photos) < limit:
            try:
                data = await fetcher_service.fetch_json(
                    client,
                    self._edge_url(page_id, "posts"),
                    params={
                        "fields": PHOTO_POST_FIELDS,
                        "limit": str(PHOTO_FALLBACK_POSTS),
                        "access_token": token,
                    },
                )
                for post in data.get("data") or []:
                    if post.get("full_picture"):
                        collector.add(post)
                    for index, src in enumerate(_attachment_images(post)):
                        collector.add({
                            "id": f"{post.get('id')}-{index}",
                            "permalink_url": post.get("permalink_url"),
                            "created_time": post.get("created_time"),
                            "full_picture": src,
                        })
            except _GRAPH_ERRORS as exc:
                failures += 1
                logger.warning("Posts fallback for photos failed: %s", exc)

            if failures == 2:
                raise AllSourcesFailed("Facebook API error: photos and posts unavailable")

        epoch = datetime.min.replace(tzinfo=timezone.utc)
        photos = sorted(collector.photos, key=lambda p: p.created_at or epoch, reverse=True)
        logger.info("Collected %d photos", len(photos))
        return photos[:limit]


social_service = SocialService()

import logging

from fastapi import APIRouter, HTTPException, Query, Response

from src.modules.feeds.exceptions import AllSourcesFailed
from src.modules.feeds.profiles import INDUSTRY, NEWS, TRAFFIC, TRUCK, FeedProfile
from src.modules.feeds.schemas import FeedItemResponse, FeedResponse, NewsImageResponse
from src.modules.feeds.service import feed_service
from src.modules.images.service import image_resolver_service

logger = logging.getLogger(__name__)

router = APIRouter()


async def _run_profile(
    profile: FeedProfile, response: Response, limit: int | None, debug: str | None
) -> FeedResponse:
    show_debug = (debug or "").lower() == "1"
    try:
        result = await feed_service.run(profile, limit)
    except AllSourcesFailed as exc:
        logger.warning("%s pipeline failed: %s", profile.name, exc)
        detail: dict = {"items": [], "error": str(exc)}
        if show_debug:
            detail["debug"] = [s.model_dump() for s in exc.sources]
        raise HTTPException(status_code=502, detail=detail) from exc

    response.headers["Cache-Control"] = profile.cache_control
    return FeedResponse(
        items=[FeedItemResponse.from_item(i, profile.long_excerpt) for i in result.items],
        empty=result.empty,
        debug=result.sources if show_debug else None,
    )


@router.get("/news", response_model=FeedResponse, response_model_exclude_none=True)
async def news(response: Response, limit: int | None = None, debug: str | None = None):
    return await _run_profile(NEWS, response, limit, debug)


@router.get("/traffic", response_model=FeedResponse, response_model_exclude_none=True)
async def traffic(response: Response, limit: int | None = None, debug: str | None = None):
    return await _run_profile(TRAFFIC, response, limit, debug)


@router.get("/industry-news", response_model=FeedResponse, response_model_exclude_none=True)
async def industry_news(
    response: Response, limit: int | None = None, debug: str | None = None
):
    return await _run_profile(INDUSTRY, response, limit, debug)


@router.get("/truck-news", response_model=FeedResponse, response_model_exclude_none=True)
async def truck_news(response: Response, limit: int | None = None, debug: str | None = None):
    return await _run_profile(TRUCK, response, limit, debug)


@router.get("/news-image", response_model=NewsImageResponse, response_model_exclude_none=True)
async def news_image(
    response: Response,
    u: str | None = Query(default=None),
    debug: str | None = None,
):
    if not u:
        raise HTTPException(status_code=400, detail="Missing u")
    page = await image_resolver_service.lookup(u)
    response.headers["Cache-Control"] = "public, max-age=86400, s-maxage=86400"
    show_debug = (debug or "").lower() == "1"
    return NewsImageResponse(
        image=page.image,
        debug=page.fetch.model_dump(exclude={"body"}) if show_debug and page.fetch else None,
    )

from fastapi import APIRouter, HTTPException, Query, Response

from src.modules.feeds.exceptions import AllSourcesFailed, ConfigurationMissing
from src.modules.social.schemas import PhotosResponse, PostsResponse
from src.modules.social.service import MAX_PHOTOS, MAX_POSTS, social_service

router = APIRouter()

CACHE_CONTROL = "public, max-age=600, s-maxage=900"


@router.get("/posts", response_model=PostsResponse)
async def list_posts(
    response: Response, limit: int | None = Query(default=None, ge=1, le=MAX_POSTS)
):
    try:
        posts = await social_service.posts(limit)
    except ConfigurationMissing as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    except AllSourcesFailed as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    response.headers["Cache-Control"] = CACHE_CONTROL
    return PostsResponse(items=posts)


@router.get("/photos", response_model=PhotosResponse)
async def list_photos(
    response: Response, limit: int = Query(default=30, ge=1, le=MAX_PHOTOS)
):
    try:
        photos = await social_service.photos(limit)
    except ConfigurationMissing as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    except AllSourcesFailed as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    response.headers["Cache-Control"] = CACHE_CONTROL
    return PhotosResponse(items=photos)

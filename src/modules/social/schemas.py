from datetime import datetime

from pydantic import BaseModel


class Post(BaseModel):
    id: str
    message: str = ""
    created_at: datetime
    image: str = ""
    link: str = "#"


class Photo(BaseModel):
    id: str
    image: str
    permalink: str = ""
    created_at: datetime | None = None
    album_id: str | None = None


class PostsResponse(BaseModel):
    items: list[Post]


class PhotosResponse(BaseModel):
    items: list[Photo]

from pydantic import Field, field_validator
from typing import Optional, List
from datetime import datetime

from alumnet.models.post import PostType
from alumnet.schemas.common import CamelModel
from alumnet.schemas.community import CommentResponse
from alumnet.schemas.connection import UserSummary
from alumnet.schemas.profile import dedupe

MAX_MEDIA = 10


class EventDetails(CamelModel):
    date: Optional[datetime] = None
    location: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = Field(None, max_length=5000)
    registration_link: Optional[str] = None


class FeedPostCreate(CamelModel):
    type: PostType = PostType.POST
    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1, max_length=5000)
    media: List[str] = Field(default=[], max_length=MAX_MEDIA)
    event: Optional[EventDetails] = None

    @field_validator("type", mode="before")
    @classmethod
    def general_is_post(cls, v):
        # "general" is what older clients send for a plain post
        return PostType.POST if v == "general" else v

    @field_validator("title", "content")
    @classmethod
    def not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @field_validator("media")
    @classmethod
    def unique_media(cls, v):
        return dedupe(v)


class FeedPostUpdate(CamelModel):
    type: Optional[PostType] = None
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    content: Optional[str] = Field(None, min_length=1, max_length=5000)
    media: Optional[List[str]] = Field(None, max_length=MAX_MEDIA)
    event: Optional[EventDetails] = None

    @field_validator("type", mode="before")
    @classmethod
    def general_is_post(cls, v):
        # "general" is what older clients send for a plain post
        return PostType.POST if v == "general" else v

    @field_validator("title", "content")
    @classmethod
    def not_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @field_validator("media")
    @classmethod
    def unique_media(cls, v):
        return dedupe(v)


class FeedPostResponse(CamelModel):
    id: str
    author: UserSummary
    type: PostType
    title: str
    content: str
    media: List[str] = []
    event: Optional[EventDetails] = None
    like_count: int = 0
    liked_by_me: bool = False
    comments: List[CommentResponse] = []
    created_at: datetime
    updated_at: Optional[datetime] = None

from pydantic import Field, field_validator
from typing import Optional, List
from datetime import datetime

from alumnet.models.community import CommunityCategory, CommunityVisibility, MemberRole, MemberStatus
from alumnet.schemas.common import CamelModel
from alumnet.schemas.connection import UserSummary
from alumnet.schemas.profile import dedupe


class CommunityCreate(CamelModel):
    name: str = Field(..., min_length=3, max_length=100)
    description: str = Field(..., min_length=1, max_length=500)
    category: CommunityCategory = CommunityCategory.OTHER
    tags: List[str] = []
    visibility: CommunityVisibility = CommunityVisibility.PUBLIC
    icon: Optional[str] = None
    cover_image: Optional[str] = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 3:
            raise ValueError("Community name must be at least 3 characters")
        return v

    @field_validator("tags")
    @classmethod
    def unique_tags(cls, v):
        return dedupe(v)


class CommunityUpdate(CamelModel):
    description: Optional[str] = Field(None, min_length=1, max_length=500)
    category: Optional[CommunityCategory] = None
    tags: Optional[List[str]] = None
    visibility: Optional[CommunityVisibility] = None
    icon: Optional[str] = None
    cover_image: Optional[str] = None

    @field_validator("tags")
    @classmethod
    def unique_tags(cls, v):
        return dedupe(v)


class CommunityResponse(CamelModel):
    id: str
    name: str
    description: str
    category: CommunityCategory
    tags: List[str] = []
    visibility: CommunityVisibility
    icon: Optional[str] = None
    cover_image: Optional[str] = None
    post_count: int
    member_count: int = 0
    created_by: Optional[str] = None
    created_at: datetime
    my_role: Optional[MemberRole] = None
    my_status: Optional[MemberStatus] = None


class CommunityMemberResponse(CamelModel):
    user: UserSummary
    role: MemberRole
    status: MemberStatus
    joined_at: datetime


class MembershipResult(CamelModel):
    community_id: str
    user_id: str
    status: Optional[MemberStatus] = None
    role: Optional[MemberRole] = None


class PostCreate(CamelModel):
    content: str = Field(..., min_length=1, max_length=5000)
    media: List[str] = []


class PostUpdate(CamelModel):
    content: Optional[str] = Field(None, min_length=1, max_length=5000)
    media: Optional[List[str]] = None


class CommentCreate(CamelModel):
    content: str = Field(..., min_length=1, max_length=1000)


class CommentResponse(CamelModel):
    id: str
    post_id: str
    author: UserSummary
    content: str
    created_at: datetime


class PostResponse(CamelModel):
    id: str
    community_id: str
    author: UserSummary
    content: str
    media: List[str] = []
    is_pinned: bool
    like_count: int = 0
    liked_by_me: bool = False
    comments: List[CommentResponse] = []
    created_at: datetime
    updated_at: Optional[datetime] = None


class LikeResult(CamelModel):
    post_id: str
    liked: bool
    like_count: int

from pydantic import Field, field_validator
from typing import Optional, List, Dict
from datetime import datetime

from alumnet.models.user import UserRole
from alumnet.schemas.common import CamelModel


def dedupe(values: Optional[List[str]]) -> Optional[List[str]]:
    """Strip, drop blanks and duplicates, keep first-seen order"""
    if values is None:
        return None
    seen = []
    for value in values:
        value = value.strip()
        if value and value not in seen:
            seen.append(value)
    return seen


class ProfileUpdate(CamelModel):
    bio: Optional[str] = Field(None, max_length=2000)
    phone: Optional[str] = Field(None, max_length=20)
    branch: Optional[str] = Field(None, max_length=100)
    course: Optional[str] = Field(None, max_length=100)
    year_of_joining: Optional[int] = Field(None, ge=1950, le=2100)
    year_of_passing: Optional[int] = Field(None, ge=1950, le=2100)
    current_company: Optional[str] = Field(None, max_length=255)
    current_designation: Optional[str] = Field(None, max_length=255)
    current_location: Optional[str] = Field(None, max_length=255)
    achievements: Optional[str] = None
    department: Optional[str] = Field(None, max_length=255)
    designation: Optional[str] = Field(None, max_length=255)
    subjects: Optional[List[str]] = None
    skills: Optional[List[str]] = None
    interests: Optional[List[str]] = None
    social_links: Optional[Dict[str, str]] = None

    @field_validator("subjects", "skills", "interests")
    @classmethod
    def unique_strings(cls, v):
        return dedupe(v)


class ProfileResponse(CamelModel):
    id: str
    user_id: str
    bio: Optional[str] = None
    phone: Optional[str] = None
    branch: Optional[str] = None
    course: Optional[str] = None
    year_of_joining: Optional[int] = None
    year_of_passing: Optional[int] = None
    current_company: Optional[str] = None
    current_designation: Optional[str] = None
    current_location: Optional[str] = None
    achievements: Optional[str] = None
    department: Optional[str] = None
    designation: Optional[str] = None
    subjects: List[str] = []
    skills: List[str] = []
    interests: List[str] = []
    social_links: Dict[str, str] = {}
    profile_picture: Optional[str] = None
    is_verified: bool = False
    updated_at: Optional[datetime] = None

    @field_validator("subjects", "skills", "interests", "social_links", mode="before")
    @classmethod
    def none_to_empty(cls, v, info):
        if v is None:
            return {} if info.field_name == "social_links" else []
        return v


class MemberResponse(CamelModel):
    """A user together with their profile"""
    id: str
    username: str
    name: Optional[str] = None
    email: str
    role: UserRole
    is_verified: bool
    created_at: datetime
    profile: Optional[ProfileResponse] = None
    is_connected: Optional[bool] = None


class ProfileImageResponse(CamelModel):
    profile_picture: str

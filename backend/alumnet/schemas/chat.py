from pydantic import Field, field_validator
from typing import Optional, List, Dict
from datetime import datetime

from alumnet.schemas.common import CamelModel
from alumnet.schemas.connection import UserSummary


class MessageCreate(CamelModel):
    content: str = Field(..., min_length=1, max_length=5000)
    reply_to: Optional[str] = None

    @field_validator("content")
    @classmethod
    def not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class ReactionToggle(CamelModel):
    reaction: str = Field(..., min_length=1, max_length=32)

    @field_validator("reaction")
    @classmethod
    def not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Reaction is required")
        return v


class ReplyPreview(CamelModel):
    id: str
    sender_id: str
    content: str


class MessageResponse(CamelModel):
    id: str
    chat_id: str
    sender: Optional[UserSummary] = None
    content: str
    reply_to: Optional[ReplyPreview] = None
    reactions: Dict[str, List[str]] = {}
    read_by: List[str] = []
    created_at: datetime


class ChatResponse(CamelModel):
    id: str
    participants: List[UserSummary]
    messages: Optional[List[MessageResponse]] = None
    last_message: Optional[MessageResponse] = None
    unread_count: int = 0
    created_at: datetime
    updated_at: datetime


class UnreadCount(CamelModel):
    unread_count: int
    unread_per_user: Dict[str, int] = {}


class ReactionResult(CamelModel):
    message_id: str
    reactions: Dict[str, List[str]]

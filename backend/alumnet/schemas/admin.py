from pydantic import Field, field_validator
from typing import Optional, List, Dict, Any
from datetime import datetime

from alumnet.models.user import UserRole
from alumnet.models.user_activity import ActivityAction
from alumnet.models.audit_log import AuditAction
from alumnet.schemas.common import CamelModel


# ==================== Dashboard Schemas ====================

class RecentActivity(CamelModel):
    """Recent signup shown on the dashboard feed"""
    id: str
    username: str
    email: str
    role: UserRole
    created_at: datetime


class DashboardStats(CamelModel):
    total_users: int
    total_students: int
    total_alumni: int
    total_faculty: int
    verified_users: int
    total_enrollments: int
    total_communities: int
    total_posts: int
    logins_today: int
    recent_activities: List[RecentActivity] = []


# ==================== Log Schemas ====================

class UserActivityResponse(CamelModel):
    id: str
    action: ActivityAction
    user_id: Optional[str] = None
    user_email: str
    user_role: str
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    timestamp: datetime


class AuditLogResponse(CamelModel):
    id: str
    action: AuditAction
    collection: str
    document_id: Optional[str] = None
    user_id: Optional[str] = None
    user_email: Optional[str] = None
    user_role: Optional[str] = None
    changes: Optional[Dict[str, Any]] = None
    ip_address: Optional[str] = None
    timestamp: datetime


class PurgeConfirmation(CamelModel):
    confirmation_token: str
    expires_in_seconds: int


class PurgeResult(CamelModel):
    deleted_count: int


# ==================== Broadcast Schemas ====================

class BroadcastRequest(CamelModel):
    user_ids: List[str] = Field(..., min_length=1)
    subject: str = Field(..., max_length=200)
    message: str = Field(..., max_length=10000)

    @field_validator("user_ids")
    @classmethod
    def selected_ids(cls, v: List[str]) -> List[str]:
        """Strip and de-duplicate, keeping the selection order"""
        ids = list(dict.fromkeys(user_id.strip() for user_id in v if user_id and user_id.strip()))
        if not ids:
            raise ValueError("select at least one user")
        return ids

    @field_validator("subject", "message")
    @classmethod
    def not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class BroadcastRecipient(CamelModel):
    id: str
    name: str
    email: str


class BroadcastResult(CamelModel):
    recipient_count: int
    emails_sent: int
    emails_failed: int
    recipients: List[BroadcastRecipient]
    subject: str
    sent_at: datetime

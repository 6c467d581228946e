from typing import Optional, Literal
from datetime import datetime

from alumnet.models.connection import ConnectionStatus, NotificationType
from alumnet.models.user import UserRole
from alumnet.schemas.common import CamelModel


class UserSummary(CamelModel):
    id: str
    username: str
    name: Optional[str] = None
    email: str
    role: UserRole
    branch: Optional[str] = None
    year_of_passing: Optional[int] = None
    current_company: Optional[str] = None
    current_designation: Optional[str] = None
    profile_picture: Optional[str] = None


class ConnectionRequestResponse(CamelModel):
    id: str
    requester: UserSummary
    status: ConnectionStatus
    created_at: datetime


class ConnectResult(CamelModel):
    request_id: str
    target_id: str
    status: ConnectionStatus


class RespondRequest(CamelModel):
    action: Literal["accept", "reject"]


class RemoveConnectionResult(CamelModel):
    user_id: str
    removed: bool


class NotificationResponse(CamelModel):
    id: str
    sender_id: str
    sender_name: Optional[str] = None
    message: str
    type: NotificationType
    created_at: datetime

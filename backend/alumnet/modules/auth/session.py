from dataclasses import dataclass
from typing import Optional, Tuple

from fastapi import Request

from alumnet.models.user import User, UserRole


def client_info(request: Optional[Request]) -> Tuple[Optional[str], Optional[str]]:
    """Return (ip_address, user_agent) for a request, honouring X-Forwarded-For"""
    if request is None:
        return None, None
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        ip_address = forwarded.split(",")[0].strip()
    else:
        ip_address = request.client.host if request.client else None
    return ip_address, request.headers.get("user-agent")


@dataclass(frozen=True)
class RequestSession:
    """
    Authenticated caller of the current request.

    Built once per request by the auth dependency and passed explicitly to
    handlers and services instead of living in global state.
    """
    user: User
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None

    @property
    def user_id(self) -> str:
        return str(self.user.id)

    @property
    def role(self) -> UserRole:
        return self.user.role

    @property
    def is_admin(self) -> bool:
        return self.user.role == UserRole.ADMIN

    def has_role(self, *roles: UserRole) -> bool:
        return self.user.role in roles

    def can_edit(self, owner_id: str) -> bool:
        """Owners and admins may change a user's data"""
        return self.is_admin or self.user_id == str(owner_id)

    @classmethod
    def from_request(cls, user: User, request: Optional[Request]) -> "RequestSession":
        ip_address, user_agent = client_info(request)
        return cls(user=user, ip_address=ip_address, user_agent=user_agent)

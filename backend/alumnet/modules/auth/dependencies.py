from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import Optional, Callable

from alumnet.core.database import get_db
from alumnet.core.logging_config import set_user_id
from alumnet.core.security import decode_token, ACCESS_TOKEN_TYPE
from alumnet.core.types import is_valid_uuid
from alumnet.models.user import User, UserRole
from alumnet.modules.auth.session import RequestSession

# auto_error=False so a missing header is a 401, not a 403
security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> User:
    """Get current authenticated user"""
    if credentials is None or not credentials.credentials:
        raise _unauthorized("Not authenticated")

    payload = decode_token(credentials.credentials)

    if payload.get("type") != ACCESS_TOKEN_TYPE:
        raise _unauthorized("Invalid token type")

    user_id = payload.get("sub")
    if not user_id:
        raise _unauthorized("Invalid token payload")

    if not is_valid_uuid(user_id):
        raise _unauthorized("Invalid user ID format")

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if not user:
        raise _unauthorized("User not found")

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is inactive"
        )

    request.state.user_id = str(user.id)
    set_user_id(str(user.id))
    return user


async def get_request_session(
    request: Request,
    current_user: User = Depends(get_current_user)
) -> RequestSession:
    """Authenticated session for the current request"""
    return RequestSession.from_request(current_user, request)


def require_roles(*roles: UserRole) -> Callable:
    """
    Dependency factory restricting an endpoint to the given roles.

    Usage:
        @router.post("")
        async def create(session: RequestSession = Depends(require_roles(UserRole.ALUMNI))):
            ...
    """
    allowed = ", ".join(role.value for role in roles)

    async def dependency(session: RequestSession = Depends(get_request_session)) -> RequestSession:
        if not session.has_role(*roles):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access restricted to: {allowed}"
            )
        return session

    return dependency


async def get_admin_session(
    session: RequestSession = Depends(get_request_session)
) -> RequestSession:
    """Session of an admin user"""
    if not session.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required"
        )
    return session

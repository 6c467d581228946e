"""
Admin User Management endpoints.
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_, and_
from typing import Optional

from alumnet.core.database import get_db
from alumnet.core.exceptions import UserNotFoundError
from alumnet.models.audit_log import AuditAction
from alumnet.models.user import User, UserRole
from alumnet.modules.auth.dependencies import get_admin_session
from alumnet.modules.auth.session import RequestSession
from alumnet.schemas.auth import UserResponse
from alumnet.schemas.common import APIResponse, Page
from alumnet.services.audit_service import record_audit
from alumnet.services.user_service import get_user
from alumnet.utils.pagination import paginate

router = APIRouter()


@router.get("", response_model=APIResponse[Page[UserResponse]])
async def list_users(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    search: Optional[str] = None,
    role: Optional[UserRole] = None,
    is_verified: Optional[bool] = None,
    session: RequestSession = Depends(get_admin_session),
    db: AsyncSession = Depends(get_db)
):
    """List all users with filtering and pagination, newest first"""

    # Build base query
    query = select(User)

    # Apply filters
    conditions = []
    if search:
        search_term = f"%{search.strip()}%"
        conditions.append(or_(
            User.email.ilike(search_term),
            User.name.ilike(search_term),
            User.username.ilike(search_term),
            User.enrollment_id.ilike(search_term)
        ))

    if role:
        conditions.append(User.role == role)

    if is_verified is not None:
        conditions.append(User.is_verified == is_verified)

    if conditions:
        query = query.where(and_(*conditions))

    query = query.order_by(User.created_at.desc(), User.id)
    data = await paginate(db, query, page, page_size)
    data["items"] = [UserResponse.model_validate(user) for user in data["items"]]

    return APIResponse[Page[UserResponse]](data=Page[UserResponse](**data), count=data["total"])


@router.patch("/{user_id}/verify", response_model=APIResponse[UserResponse])
async def verify_user(
    user_id: str,
    session: RequestSession = Depends(get_admin_session),
    db: AsyncSession = Depends(get_db)
):
    """Mark a user as verified without the OTP step"""
    user = await get_user(db, user_id)
    if user is None:
        raise UserNotFoundError(user_id)

    if not user.is_verified:
        user.is_verified = True
        record_audit(
            db,
            AuditAction.UPDATE,
            "User",
            user.id,
            session=session,
            changes={"is_verified": {"old": False, "new": True}},
        )
        await db.commit()

    return APIResponse[UserResponse](
        message="User verified successfully",
        data=UserResponse.model_validate(user),
    )

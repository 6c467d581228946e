"""
User activity (login/logout) trail.

Writes are best-effort: a failure to record activity is logged and never
propagates into the login or logout that triggered it.
"""
from typing import Optional

from fastapi import Request
from sqlalchemy import select, delete, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from alumnet.core.logging_config import logger
from alumnet.models.user import User
from alumnet.models.user_activity import UserActivity, ActivityAction
from alumnet.modules.auth.session import client_info
from alumnet.utils.pagination import paginate


async def record_activity(
    db: AsyncSession,
    user: User,
    action: ActivityAction,
    request: Optional[Request] = None
) -> Optional[UserActivity]:
    """Append a LOGIN/LOGOUT entry, snapshotting the user's email and role"""
    ip_address, user_agent = client_info(request)
    # Read before the write: a rollback expires `user` and reloading it needs IO
    user_id, user_email, user_role = str(user.id), user.email, user.role.value
    try:
        activity = UserActivity(
            action=action,
            user_id=user_id,
            user_email=user_email,
            user_role=user_role,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        db.add(activity)
        await db.commit()
        return activity
    except Exception as e:
        await db.rollback()
        logger.log_error_with_context(
            e,
            context="record_activity",
            activity_action=action.value,
            user_email=user_email,
        )
        return None


def activity_query(
    action: Optional[ActivityAction] = None,
    user_id: Optional[str] = None,
    search: Optional[str] = None
):
    """Filtered activity query, newest first"""
    query = select(UserActivity)
    if action:
        query = query.where(UserActivity.action == action)
    if user_id:
        query = query.where(UserActivity.user_id == user_id)
    if search:
        term = f"%{search.lower()}%"
        query = query.where(or_(
            func.lower(UserActivity.user_email).like(term),
            func.lower(UserActivity.user_role).like(term),
        ))
    return query.order_by(UserActivity.timestamp.desc(), UserActivity.id.desc())


async def list_activity(
    db: AsyncSession,
    action: Optional[ActivityAction] = None,
    user_id: Optional[str] = None,
    search: Optional[str] = None,
    page: int = 1,
    page_size: int = 100
) -> dict:
    return await paginate(db, activity_query(action, user_id, search), page, page_size)


async def purge_activity(db: AsyncSession) -> int:
    """Delete every activity record. Returns the number removed."""
    total = await db.scalar(select(func.count(UserActivity.id))) or 0
    await db.execute(delete(UserActivity))
    return total

"""
Admin Dashboard endpoints - overview statistics.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from datetime import datetime

from alumnet.core.database import get_db
from alumnet.models.community import Community, CommunityPost
from alumnet.models.enrollment import Enrollment
from alumnet.models.user import User, UserRole
from alumnet.models.user_activity import UserActivity, ActivityAction
from alumnet.modules.auth.dependencies import get_admin_session
from alumnet.modules.auth.session import RequestSession
from alumnet.schemas.admin import DashboardStats, RecentActivity
from alumnet.schemas.common import APIResponse

router = APIRouter()

RECENT_SIGNUPS = 5


@router.get("/dashboard-stats", response_model=APIResponse[DashboardStats])
async def get_dashboard_stats(
    session: RequestSession = Depends(get_admin_session),
    db: AsyncSession = Depends(get_db)
):
    """Get dashboard overview statistics"""
    today_start = datetime.utcnow().replace(hour=0, minute=0, second=0, microsecond=0)

    # Users per role
    role_rows = await db.execute(
        select(User.role, func.count(User.id)).group_by(User.role)
    )
    per_role = {role: count for role, count in role_rows.all()}

    verified_users = await db.scalar(
        select(func.count(User.id)).where(User.is_verified.is_(True))
    ) or 0
    total_enrollments = await db.scalar(select(func.count(Enrollment.id))) or 0
    total_communities = await db.scalar(
        select(func.count(Community.id)).where(Community.is_active.is_(True))
    ) or 0
    total_posts = await db.scalar(select(func.count(CommunityPost.id))) or 0
    logins_today = await db.scalar(
        select(func.count(UserActivity.id)).where(
            UserActivity.action == ActivityAction.LOGIN,
            UserActivity.timestamp >= today_start
        )
    ) or 0

    # Latest signups
    recent = await db.execute(
        select(User).order_by(User.created_at.desc(), User.id).limit(RECENT_SIGNUPS)
    )
    recent_activities = [RecentActivity.model_validate(user) for user in recent.scalars().all()]

    stats = DashboardStats(
        total_users=sum(per_role.values()),
        total_students=per_role.get(UserRole.STUDENT, 0),
        total_alumni=per_role.get(UserRole.ALUMNI, 0),
        total_faculty=per_role.get(UserRole.FACULTY, 0),
        verified_users=verified_users,
        total_enrollments=total_enrollments,
        total_communities=total_communities,
        total_posts=total_posts,
        logins_today=logins_today,
        recent_activities=recent_activities,
    )
    return APIResponse[DashboardStats](data=stats)

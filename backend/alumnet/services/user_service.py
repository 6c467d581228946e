"""
Helpers shared by the profile, connection and admin endpoints for loading
users together with their profiles.
"""
from typing import Dict, Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from alumnet.models.profile import Profile
from alumnet.models.user import User
from alumnet.schemas.connection import UserSummary
from alumnet.schemas.profile import MemberResponse, ProfileResponse


async def get_user(db: AsyncSession, user_id: str) -> Optional[User]:
    result = await db.execute(select(User).where(User.id == str(user_id)))
    return result.scalar_one_or_none()


async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    result = await db.execute(select(User).where(User.email == email.strip().lower()))
    return result.scalar_one_or_none()


async def get_profile(db: AsyncSession, user_id: str) -> Optional[Profile]:
    result = await db.execute(select(Profile).where(Profile.user_id == str(user_id)))
    return result.scalar_one_or_none()


async def load_profiles(db: AsyncSession, user_ids: Iterable[str]) -> Dict[str, Profile]:
    """Profiles keyed by user id, for the users that have one"""
    ids = {str(user_id) for user_id in user_ids}
    if not ids:
        return {}
    result = await db.execute(select(Profile).where(Profile.user_id.in_(ids)))
    return {str(profile.user_id): profile for profile in result.scalars().all()}


async def load_users(db: AsyncSession, user_ids: Iterable[str]) -> Dict[str, User]:
    ids = {str(user_id) for user_id in user_ids}
    if not ids:
        return {}
    result = await db.execute(select(User).where(User.id.in_(ids)))
    return {str(user.id): user for user in result.scalars().all()}


def to_summary(user: User, profile: Optional[Profile] = None) -> UserSummary:
    return UserSummary(
        id=str(user.id),
        username=user.username,
        name=user.name,
        email=user.email,
        role=user.role,
        branch=profile.branch if profile else None,
        year_of_passing=profile.year_of_passing if profile else None,
        current_company=profile.current_company if profile else None,
        current_designation=profile.current_designation if profile else None,
        profile_picture=profile.profile_picture if profile else None,
    )


def to_member(user: User, profile: Optional[Profile] = None) -> MemberResponse:
    return MemberResponse(
        id=str(user.id),
        username=user.username,
        name=user.name,
        email=user.email,
        role=user.role,
        is_verified=user.is_verified,
        created_at=user.created_at,
        profile=ProfileResponse.model_validate(profile) if profile else None,
    )


async def summaries(db: AsyncSession, users: List[User]) -> List[UserSummary]:
    profiles = await load_profiles(db, [user.id for user in users])
    return [to_summary(user, profiles.get(str(user.id))) for user in users]


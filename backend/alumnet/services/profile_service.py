"""
Profile directory and upsert logic shared by the student, alumni and faculty
endpoints. Every role keeps its profile in the same table.
"""
from typing import Optional

from fastapi import UploadFile
from sqlalchemy import select, or_, func
from sqlalchemy.ext.asyncio import AsyncSession

from alumnet.core.exceptions import AuthorizationError, ResourceNotFoundError
from alumnet.models.audit_log import AuditAction
from alumnet.models.profile import Profile, default_social_links
from alumnet.models.user import User, UserRole
from alumnet.modules.auth.session import RequestSession
from alumnet.schemas.profile import MemberResponse, ProfileUpdate
from alumnet.services.audit_service import record_audit, diff_fields
from alumnet.services.connection_service import are_connected
from alumnet.services.storage_service import storage_service
from alumnet.services.user_service import get_user, get_profile, to_member
from alumnet.utils.pagination import paginate

ROLE_LABELS = {
    UserRole.STUDENT: "Student",
    UserRole.ALUMNI: "Alumni",
    UserRole.FACULTY: "Faculty",
    UserRole.ADMIN: "Admin",
}


async def directory(
    db: AsyncSession,
    role: UserRole,
    branch: Optional[str] = None,
    year_of_passing: Optional[int] = None,
    company: Optional[str] = None,
    search: Optional[str] = None,
    verified_only: bool = False,
    page: int = 1,
    page_size: int = 20
) -> dict:
    """Active users of one role with their profiles, newest first"""
    query = (
        select(User, Profile)
        .outerjoin(Profile, Profile.user_id == User.id)
        .where(User.role == role, User.is_active.is_(True))
    )
    if verified_only:
        query = query.where(User.is_verified.is_(True))
    if branch:
        query = query.where(func.lower(Profile.branch) == branch.strip().lower())
    if year_of_passing:
        query = query.where(Profile.year_of_passing == year_of_passing)
    if company:
        query = query.where(Profile.current_company.ilike(f"%{company.strip()}%"))
    if search:
        term = f"%{search.strip()}%"
        query = query.where(or_(
            User.name.ilike(term),
            User.username.ilike(term),
            User.email.ilike(term),
        ))
    query = query.order_by(User.created_at.desc(), User.id)

    page_data = await paginate(db, query, page, page_size, scalars=False)
    page_data["items"] = [to_member(user, profile) for user, profile in page_data["items"]]
    return page_data


async def get_member(db: AsyncSession, user_id: str, role: UserRole,
                     viewer_id: Optional[str] = None) -> MemberResponse:
    """
    A user of the given role with their profile, or 404.

    With a viewer, is_connected tells whether the two are connected.
    """
    user = await get_user(db, user_id)
    if user is None or user.role != role or not user.is_active:
        raise ResourceNotFoundError(ROLE_LABELS[role], user_id)
    member = to_member(user, await get_profile(db, user.id))
    if viewer_id and str(viewer_id) != str(user.id):
        member.is_connected = await are_connected(db, viewer_id, user.id)
    return member


async def _editable_user(db: AsyncSession, session: RequestSession, user_id: str,
                         role: UserRole) -> User:
    user = await get_user(db, user_id)
    if user is None or user.role != role:
        raise ResourceNotFoundError(ROLE_LABELS[role], user_id)
    if not session.can_edit(user.id):
        raise AuthorizationError("You can only edit your own profile")
    return user


async def upsert_profile(
    db: AsyncSession,
    session: RequestSession,
    user_id: str,
    role: UserRole,
    payload: ProfileUpdate
) -> MemberResponse:
    """
    Create or update a profile.

    Only fields present in the payload change. Social links are merged over
    the existing ones so a partial update keeps the other platforms.
    """
    user = await _editable_user(db, session, user_id, role)
    profile = await get_profile(db, user.id)
    created = profile is None
    if created:
        profile = Profile(user_id=str(user.id), social_links=default_social_links())
        db.add(profile)

    updates = payload.model_dump(exclude_unset=True)
    if "social_links" in updates:
        links = dict(profile.social_links or default_social_links())
        for platform, url in (updates["social_links"] or {}).items():
            links[platform.strip().lower()] = (url or "").strip()
        updates["social_links"] = links
    updates["is_verified"] = True

    changes = diff_fields(profile, updates) if not created else updates
    for field, value in updates.items():
        setattr(profile, field, value)
    await db.flush()

    record_audit(
        db,
        AuditAction.UPDATE,
        "Profile",
        profile.id,
        session=session,
        changes=changes,
    )
    await db.commit()
    return to_member(user, profile)


async def update_profile_image(
    db: AsyncSession,
    session: RequestSession,
    user_id: str,
    role: UserRole,
    upload: UploadFile
) -> str:
    """Store a new profile picture and return its URL. The old file is removed."""
    user = await _editable_user(db, session, user_id, role)
    url = await storage_service.save_profile_image(str(user.id), upload)

    profile = await get_profile(db, user.id)
    if profile is None:
        profile = Profile(user_id=str(user.id), social_links=default_social_links())
        db.add(profile)
    previous = profile.profile_picture
    profile.profile_picture = url
    await db.flush()

    record_audit(
        db,
        AuditAction.UPDATE,
        "Profile",
        profile.id,
        session=session,
        changes={"profile_picture": {"old": previous, "new": url}},
    )
    await db.commit()

    if previous:
        await storage_service.delete(previous)
    return url

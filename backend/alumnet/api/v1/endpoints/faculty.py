from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from alumnet.core.database import get_db
from alumnet.models.user import UserRole
from alumnet.modules.auth.dependencies import get_request_session
from alumnet.modules.auth.session import RequestSession
from alumnet.schemas.common import APIResponse
from alumnet.schemas.profile import MemberResponse, ProfileUpdate
from alumnet.services import profile_service

router = APIRouter()


@router.get("/{user_id}", response_model=APIResponse[MemberResponse])
async def get_faculty(
    user_id: str,
    session: RequestSession = Depends(get_request_session),
    db: AsyncSession = Depends(get_db)
):
    member = await profile_service.get_member(db, user_id, UserRole.FACULTY, viewer_id=session.user_id)
    return APIResponse[MemberResponse](data=member)


@router.put("/profile/{user_id}", response_model=APIResponse[MemberResponse])
async def update_faculty_profile(
    user_id: str,
    profile_data: ProfileUpdate,
    session: RequestSession = Depends(get_request_session),
    db: AsyncSession = Depends(get_db)
):
    member = await profile_service.upsert_profile(db, session, user_id, UserRole.FACULTY, profile_data)
    return APIResponse[MemberResponse](message="Profile updated successfully", data=member)

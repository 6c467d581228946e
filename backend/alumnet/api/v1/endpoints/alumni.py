"""
Alumni directory and profile endpoints.
"""
from fastapi import APIRouter, Depends, File, Query, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from alumnet.core.database import get_db
from alumnet.models.user import UserRole
from alumnet.modules.auth.dependencies import get_request_session
from alumnet.modules.auth.session import RequestSession
from alumnet.schemas.common import APIResponse, Page
from alumnet.schemas.profile import MemberResponse, ProfileImageResponse, ProfileUpdate
from alumnet.services import profile_service

router = APIRouter()


@router.get("", response_model=APIResponse[Page[MemberResponse]])
async def list_alumni(
    branch: Optional[str] = None,
    year_of_passing: Optional[int] = None,
    company: Optional[str] = None,
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    session: RequestSession = Depends(get_request_session),
    db: AsyncSession = Depends(get_db)
):
    """List verified alumni"""
    data = await profile_service.directory(
        db,
        UserRole.ALUMNI,
        branch=branch,
        year_of_passing=year_of_passing,
        company=company,
        search=search,
        verified_only=True,
        page=page,
        page_size=page_size,
    )
    return APIResponse[Page[MemberResponse]](data=Page[MemberResponse](**data), count=data["total"])


@router.get("/{user_id}", response_model=APIResponse[MemberResponse])
async def get_alumni(
    user_id: str,
    session: RequestSession = Depends(get_request_session),
    db: AsyncSession = Depends(get_db)
):
    member = await profile_service.get_member(db, user_id, UserRole.ALUMNI, viewer_id=session.user_id)
    return APIResponse[MemberResponse](data=member)


@router.put("/profile/{user_id}", response_model=APIResponse[MemberResponse])
async def update_alumni_profile(
    user_id: str,
    profile_data: ProfileUpdate,
    session: RequestSession = Depends(get_request_session),
    db: AsyncSession = Depends(get_db)
):
    member = await profile_service.upsert_profile(db, session, user_id, UserRole.ALUMNI, profile_data)
    return APIResponse[MemberResponse](message="Profile updated successfully", data=member)


@router.post("/profile/{user_id}/image", response_model=APIResponse[ProfileImageResponse])
async def upload_alumni_image(
    user_id: str,
    image: UploadFile = File(...),
    session: RequestSession = Depends(get_request_session),
    db: AsyncSession = Depends(get_db)
):
    url = await profile_service.update_profile_image(db, session, user_id, UserRole.ALUMNI, image)
    return APIResponse[ProfileImageResponse](
        message="Profile image updated",
        data=ProfileImageResponse(profile_picture=url),
    )

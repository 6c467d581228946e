"""
Student directory and profile endpoints.
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
async def list_students(
    branch: Optional[str] = None,
    year_of_passing: Optional[int] = None,
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    session: RequestSession = Depends(get_request_session),
    db: AsyncSession = Depends(get_db)
):
    """List students, optionally filtered by branch, passing year or a name search"""
    data = await profile_service.directory(
        db,
        UserRole.STUDENT,
        branch=branch,
        year_of_passing=year_of_passing,
        search=search,
        page=page,
        page_size=page_size,
    )
    return APIResponse[Page[MemberResponse]](data=Page[MemberResponse](**data), count=data["total"])


@router.get("/{user_id}", response_model=APIResponse[MemberResponse])
async def get_student(
    user_id: str,
    session: RequestSession = Depends(get_request_session),
    db: AsyncSession = Depends(get_db)
):
    member = await profile_service.get_member(db, user_id, UserRole.STUDENT, viewer_id=session.user_id)
    return APIResponse[MemberResponse](data=member)


@router.put("/profile/{user_id}", response_model=APIResponse[MemberResponse])
async def update_student_profile(
    user_id: str,
    profile_data: ProfileUpdate,
    session: RequestSession = Depends(get_request_session),
    db: AsyncSession = Depends(get_db)
):
    """Create or update a student profile (owner or admin)"""
    member = await profile_service.upsert_profile(db, session, user_id, UserRole.STUDENT, profile_data)
    return APIResponse[MemberResponse](message="Profile updated successfully", data=member)


@router.post("/profile/{user_id}/image", response_model=APIResponse[ProfileImageResponse])
async def upload_student_image(
    user_id: str,
    image: UploadFile = File(...),
    session: RequestSession = Depends(get_request_session),
    db: AsyncSession = Depends(get_db)
):
    """Upload a profile picture (image/*, up to 5MB)"""
    url = await profile_service.update_profile_image(db, session, user_id, UserRole.STUDENT, image)
    return APIResponse[ProfileImageResponse](
        message="Profile image updated",
        data=ProfileImageResponse(profile_picture=url),
    )

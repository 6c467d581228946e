"""
Enrollment allow-list management (admin only).

An enrollment binds an institutional ID to the role its holder signs up as.
IDs are matched exactly, so "CS-01" and "cs-01" are different records.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import List

from alumnet.core.database import get_db
from alumnet.core.exceptions import ConflictError, ResourceNotFoundError
from alumnet.models.audit_log import AuditAction
from alumnet.models.enrollment import Enrollment
from alumnet.modules.auth.dependencies import get_admin_session
from alumnet.modules.auth.session import RequestSession
from alumnet.schemas.common import APIResponse
from alumnet.schemas.enrollment import EnrollmentCreate, EnrollmentResponse
from alumnet.services.audit_service import record_audit

router = APIRouter()


@router.get("", response_model=APIResponse[List[EnrollmentResponse]])
async def list_enrollments(
    session: RequestSession = Depends(get_admin_session),
    db: AsyncSession = Depends(get_db)
):
    """All enrollment records, newest first"""
    result = await db.execute(
        select(Enrollment).order_by(Enrollment.created_at.desc(), Enrollment.id)
    )
    enrollments = [EnrollmentResponse.model_validate(e) for e in result.scalars().all()]
    return APIResponse[List[EnrollmentResponse]](data=enrollments, count=len(enrollments))


@router.post("", response_model=APIResponse[EnrollmentResponse], status_code=status.HTTP_201_CREATED)
async def create_enrollment(
    enrollment_data: EnrollmentCreate,
    session: RequestSession = Depends(get_admin_session),
    db: AsyncSession = Depends(get_db)
):
    result = await db.execute(
        select(Enrollment.id).where(Enrollment.enrollment_id == enrollment_data.enrollment_id)
    )
    if result.first() is not None:
        raise ConflictError("Enrollment ID already exists", code="ENROLLMENT_EXISTS")

    enrollment = Enrollment(
        enrollment_id=enrollment_data.enrollment_id,
        role=enrollment_data.role,
    )
    db.add(enrollment)
    await db.flush()

    record_audit(
        db,
        AuditAction.CREATE,
        "Enrollment",
        enrollment.id,
        session=session,
        changes={"enrollment_id": enrollment.enrollment_id, "role": enrollment.role.value},
    )
    await db.commit()

    return APIResponse[EnrollmentResponse](
        message="Enrollment added successfully",
        data=EnrollmentResponse.model_validate(enrollment),
    )


@router.delete("/{enrollment_id}", response_model=APIResponse[None])
async def delete_enrollment(
    enrollment_id: str,
    session: RequestSession = Depends(get_admin_session),
    db: AsyncSession = Depends(get_db)
):
    """
    Delete an enrollment by its institutional ID or record id.

    Users who already signed up with it keep their accounts.
    """
    result = await db.execute(
        select(Enrollment).where(Enrollment.enrollment_id == enrollment_id)
    )
    enrollment = result.scalar_one_or_none()
    if enrollment is None:
        result = await db.execute(select(Enrollment).where(Enrollment.id == enrollment_id))
        enrollment = result.scalar_one_or_none()
    if enrollment is None:
        raise ResourceNotFoundError("Enrollment", enrollment_id)

    record_audit(
        db,
        AuditAction.DELETE,
        "Enrollment",
        enrollment.id,
        session=session,
        changes={"enrollment_id": enrollment.enrollment_id, "role": enrollment.role.value},
    )
    await db.delete(enrollment)
    await db.commit()

    return APIResponse[None](message="Enrollment deleted successfully")

from pydantic import Field, field_validator
from datetime import datetime

from alumnet.models.user import UserRole
from alumnet.schemas.common import CamelModel


class EnrollmentCreate(CamelModel):
    enrollment_id: str = Field(..., min_length=1, max_length=100)
    role: UserRole

    @field_validator("enrollment_id")
    @classmethod
    def strip_enrollment_id(cls, v: str) -> str:
        # Surrounding whitespace only; case is significant
        v = v.strip()
        if not v:
            raise ValueError("Enrollment ID is required")
        return v

    @field_validator("role")
    @classmethod
    def no_admin_enrollments(cls, v: UserRole) -> UserRole:
        if v == UserRole.ADMIN:
            raise ValueError("Role must be one of: student, alumni, faculty")
        return v


class EnrollmentResponse(CamelModel):
    id: str
    enrollment_id: str
    role: UserRole
    created_at: datetime

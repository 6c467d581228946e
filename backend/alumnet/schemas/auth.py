from pydantic import EmailStr, Field, field_validator
from typing import Optional
from datetime import datetime

from alumnet.models.user import UserRole
from alumnet.schemas.common import CamelModel


class _EmailNormalized(CamelModel):
    email: EmailStr

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.strip().lower()


class SignupRequest(_EmailNormalized):
    username: str = Field(..., min_length=3, max_length=50)
    name: Optional[str] = Field(None, max_length=255)
    password: str = Field(..., min_length=6)
    enrollment_id: str = Field(..., min_length=1, max_length=100)

    @field_validator("username", "enrollment_id")
    @classmethod
    def strip_value(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class LoginRequest(_EmailNormalized):
    password: str = Field(..., min_length=1)


class EmailRequest(_EmailNormalized):
    pass


class VerifyOtpRequest(_EmailNormalized):
    otp: str = Field(..., min_length=4, max_length=8)


class ResetPasswordRequest(_EmailNormalized):
    otp: str = Field(..., min_length=4, max_length=8)
    password: str = Field(..., min_length=6)


class ChangePasswordRequest(CamelModel):
    current_password: str
    new_password: str = Field(..., min_length=6)


class UpdateUsernameRequest(CamelModel):
    username: str = Field(..., min_length=3, max_length=50)

    @field_validator("username")
    @classmethod
    def strip_username(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 3:
            raise ValueError("Username must be at least 3 characters")
        return v


class UserResponse(CamelModel):
    id: str
    username: str
    name: Optional[str] = None
    email: str
    role: UserRole
    enrollment_id: Optional[str] = None
    is_verified: bool
    is_active: bool
    created_at: datetime
    last_login: Optional[datetime] = None


class LoginData(CamelModel):
    token: str
    token_type: str = "bearer"
    user: UserResponse


class SignupData(CamelModel):
    user: UserResponse
    otp_sent: bool

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from datetime import datetime

from alumnet.core.database import get_db
from alumnet.core.exceptions import (
    AccountNotVerifiedError,
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    InvalidOTPError,
    UserNotFoundError,
    ValidationError,
)
from alumnet.core.logging_config import logger, set_user_id
from alumnet.core.rate_limiter import auth_rate_limit, strict_rate_limit
from alumnet.core.security import create_access_token, get_password_hash, verify_password
from alumnet.models.audit_log import AuditAction
from alumnet.models.enrollment import Enrollment
from alumnet.models.otp import OtpPurpose
from alumnet.models.user import User
from alumnet.models.user_activity import ActivityAction
from alumnet.modules.auth.dependencies import get_request_session
from alumnet.modules.auth.session import RequestSession, client_info
from alumnet.schemas.auth import (
    ChangePasswordRequest,
    EmailRequest,
    LoginData,
    LoginRequest,
    ResetPasswordRequest,
    SignupData,
    SignupRequest,
    UpdateUsernameRequest,
    UserResponse,
    VerifyOtpRequest,
)
from alumnet.schemas.common import APIResponse
from alumnet.services.activity_service import record_activity
from alumnet.services.audit_service import record_audit
from alumnet.services.email_service import email_service
from alumnet.services.otp_service import issue_otp, consume_otp
from alumnet.services.user_service import get_user_by_email

router = APIRouter()


def issue_token(user: User) -> str:
    return create_access_token({
        "sub": str(user.id),
        "email": user.email,
        "role": user.role.value,
    })


@router.post("/signup", response_model=APIResponse[SignupData], status_code=status.HTTP_201_CREATED)
@strict_rate_limit()
async def signup(
    request: Request,
    signup_data: SignupRequest,
    db: AsyncSession = Depends(get_db)
):
    """Register against an enrollment record (rate limited: 3/min)"""
    client_ip, _ = client_info(request)

    if await get_user_by_email(db, signup_data.email):
        logger.log_auth_event(
            event="signup",
            success=False,
            user_email=signup_data.email,
            reason="Email already registered",
            client_ip=client_ip
        )
        raise ConflictError("Email already registered", code="EMAIL_TAKEN")

    result = await db.execute(select(User.id).where(User.username == signup_data.username))
    if result.first() is not None:
        raise ConflictError("Username already taken", code="USERNAME_TAKEN")

    result = await db.execute(
        select(Enrollment).where(Enrollment.enrollment_id == signup_data.enrollment_id)
    )
    enrollment = result.scalar_one_or_none()
    if enrollment is None:
        logger.log_auth_event(
            event="signup",
            success=False,
            user_email=signup_data.email,
            reason="Unknown enrollment ID",
            client_ip=client_ip
        )
        raise ValidationError("Invalid enrollment ID", field="enrollmentId")

    result = await db.execute(select(User.id).where(User.enrollment_id == enrollment.enrollment_id))
    if result.first() is not None:
        raise ConflictError("Enrollment ID is already registered", code="ENROLLMENT_TAKEN")

    user = User(
        username=signup_data.username,
        name=signup_data.name,
        email=signup_data.email,
        hashed_password=get_password_hash(signup_data.password),
        enrollment_id=enrollment.enrollment_id,
        role=enrollment.role,
        is_verified=False,
    )
    db.add(user)
    await db.flush()

    record_audit(
        db,
        AuditAction.CREATE,
        "User",
        user.id,
        session=RequestSession.from_request(user, request),
        changes={"email": user.email, "role": user.role.value, "enrollmentId": user.enrollment_id},
    )
    otp = await issue_otp(db, user, OtpPurpose.VERIFY_EMAIL)
    await db.commit()

    logger.log_auth_event(
        event="signup",
        success=True,
        user_email=user.email,
        client_ip=client_ip,
        user_role=user.role.value
    )

    # Signup succeeds even when the email cannot be delivered; resend-otp covers it
    otp_sent = await email_service.send_otp_email(user.email, user.display_name, otp)
    if not otp_sent:
        logger.warning(f"[Auth] Verification OTP could not be emailed to {user.email}")

    return APIResponse[SignupData](
        message="Signup successful. Check your email for the verification code.",
        data=SignupData(user=UserResponse.model_validate(user), otp_sent=otp_sent),
    )


@router.post("/verify-otp", response_model=APIResponse[UserResponse])
async def verify_otp(
    otp_data: VerifyOtpRequest,
    db: AsyncSession = Depends(get_db)
):
    """Verify a new account with the emailed OTP"""
    user = await get_user_by_email(db, otp_data.email)
    if user is None:
        raise UserNotFoundError()

    if user.is_verified:
        return APIResponse[UserResponse](
            message="Account already verified",
            data=UserResponse.model_validate(user),
        )

    await consume_otp(db, user, OtpPurpose.VERIFY_EMAIL, otp_data.otp)
    user.is_verified = True
    await db.commit()

    logger.log_auth_event(event="verify_otp", success=True, user_email=user.email)

    return APIResponse[UserResponse](
        message="Account verified successfully. You can now log in.",
        data=UserResponse.model_validate(user),
    )


@router.post("/resend-otp", response_model=APIResponse[dict])
@strict_rate_limit()
async def resend_otp(
    request: Request,
    email_data: EmailRequest,
    db: AsyncSession = Depends(get_db)
):
    """Send a new verification OTP (rate limited: 3/min)"""
    user = await get_user_by_email(db, email_data.email)
    if user is None:
        raise UserNotFoundError()
    if user.is_verified:
        raise ValidationError("Account is already verified")

    otp = await issue_otp(db, user, OtpPurpose.VERIFY_EMAIL)
    await db.commit()

    otp_sent = await email_service.send_otp_email(user.email, user.display_name, otp)
    return APIResponse[dict](
        message="A new verification code has been sent" if otp_sent else "Verification code could not be emailed",
        data={"otpSent": otp_sent},
    )


@router.post("/login", response_model=APIResponse[LoginData])
@auth_rate_limit()
async def login(
    request: Request,
    credentials: LoginRequest,
    db: AsyncSession = Depends(get_db)
):
    """Login and receive a bearer token (rate limited: 5/min)"""
    client_ip, _ = client_info(request)

    user = await get_user_by_email(db, credentials.email)

    if not user or not verify_password(credentials.password, user.hashed_password):
        logger.log_auth_event(
            event="login",
            success=False,
            user_email=credentials.email,
            reason="Invalid credentials",
            client_ip=client_ip
        )
        raise AuthenticationError("Invalid email or password")

    if not user.is_active:
        logger.log_auth_event(
            event="login",
            success=False,
            user_email=credentials.email,
            reason="Account inactive",
            client_ip=client_ip
        )
        raise AuthorizationError("User account is inactive")

    if not user.is_verified:
        logger.log_auth_event(
            event="login",
            success=False,
            user_email=credentials.email,
            reason="Account not verified",
            client_ip=client_ip
        )
        raise AccountNotVerifiedError()

    user.last_login = datetime.utcnow()
    await db.commit()

    set_user_id(str(user.id))
    logger.log_auth_event(
        event="login",
        success=True,
        user_email=user.email,
        client_ip=client_ip,
        user_role=user.role.value
    )

    response = APIResponse[LoginData](
        message="Login successful",
        data=LoginData(token=issue_token(user), user=UserResponse.model_validate(user)),
    )
    await record_activity(db, user, ActivityAction.LOGIN, request)
    return response


@router.post("/logout", response_model=APIResponse[None])
async def logout(
    request: Request,
    session: RequestSession = Depends(get_request_session),
    db: AsyncSession = Depends(get_db)
):
    """Record the logout; the client discards its token"""
    logger.log_auth_event(event="logout", success=True, user_email=session.user.email)
    await record_activity(db, session.user, ActivityAction.LOGOUT, request)
    return APIResponse[None](message="Logged out successfully")


@router.post("/forgot-password", response_model=APIResponse[None])
@strict_rate_limit()
async def forgot_password(
    request: Request,
    email_data: EmailRequest,
    db: AsyncSession = Depends(get_db)
):
    """
    Email a password reset OTP.

    The response is the same whether or not the account exists.
    """
    user = await get_user_by_email(db, email_data.email)

    if user and user.is_active:
        otp = await issue_otp(db, user, OtpPurpose.RESET_PASSWORD)
        await db.commit()
        sent = await email_service.send_password_reset_otp(user.email, user.display_name, otp)
        logger.log_auth_event(event="forgot_password", success=sent, user_email=user.email)
    else:
        logger.log_auth_event(
            event="forgot_password",
            success=False,
            user_email=email_data.email,
            reason="Unknown or inactive account"
        )

    return APIResponse[None](
        message="If an account exists for this email, a reset code has been sent"
    )


@router.post("/reset-password", response_model=APIResponse[None])
async def reset_password(
    reset_data: ResetPasswordRequest,
    db: AsyncSession = Depends(get_db)
):
    """Set a new password using the emailed reset OTP"""
    user = await get_user_by_email(db, reset_data.email)
    if user is None:
        raise InvalidOTPError()

    await consume_otp(db, user, OtpPurpose.RESET_PASSWORD, reset_data.otp)
    user.hashed_password = get_password_hash(reset_data.password)
    await db.commit()

    logger.log_auth_event(event="reset_password", success=True, user_email=user.email)
    return APIResponse[None](message="Password reset successfully. You can now log in.")


@router.get("/me", response_model=APIResponse[UserResponse])
async def get_me(session: RequestSession = Depends(get_request_session)):
    """Get current user info"""
    return APIResponse[UserResponse](data=UserResponse.model_validate(session.user))


@router.post("/change-password", response_model=APIResponse[None])
async def change_password(
    password_data: ChangePasswordRequest,
    session: RequestSession = Depends(get_request_session),
    db: AsyncSession = Depends(get_db)
):
    """Change password for the logged-in user"""
    user = session.user
    if not verify_password(password_data.current_password, user.hashed_password):
        logger.log_auth_event(
            event="change_password",
            success=False,
            user_email=user.email,
            reason="Wrong current password"
        )
        raise ValidationError("Current password is incorrect", field="currentPassword")

    user.hashed_password = get_password_hash(password_data.new_password)
    await db.commit()

    logger.log_auth_event(event="change_password", success=True, user_email=user.email)
    return APIResponse[None](message="Password changed successfully")


@router.put("/username", response_model=APIResponse[UserResponse])
async def update_username(
    username_data: UpdateUsernameRequest,
    session: RequestSession = Depends(get_request_session),
    db: AsyncSession = Depends(get_db)
):
    """Change the logged-in user's username"""
    user = session.user
    result = await db.execute(
        select(User.id).where(User.username == username_data.username, User.id != user.id)
    )
    if result.first() is not None:
        raise ConflictError("Username already taken", code="USERNAME_TAKEN")

    user.username = username_data.username
    await db.commit()

    return APIResponse[UserResponse](
        message="Username updated successfully",
        data=UserResponse.model_validate(user),
    )

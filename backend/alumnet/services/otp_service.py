from datetime import datetime, timedelta

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from alumnet.core.config import settings
from alumnet.core.exceptions import InvalidOTPError, OTPExpiredError
from alumnet.core.security import generate_otp, get_password_hash, verify_password
from alumnet.models.otp import OtpVerification, OtpPurpose
from alumnet.models.user import User


async def issue_otp(db: AsyncSession, user: User, purpose: OtpPurpose) -> str:
    """
    Create a fresh OTP for the user, replacing any previous one for the same
    purpose. Returns the plain code; only its hash is stored.
    """
    await db.execute(
        delete(OtpVerification).where(
            OtpVerification.user_id == str(user.id),
            OtpVerification.purpose == purpose,
        )
    )
    code = generate_otp()
    db.add(OtpVerification(
        user_id=str(user.id),
        purpose=purpose,
        otp_hash=get_password_hash(code),
        expires_at=datetime.utcnow() + timedelta(minutes=settings.OTP_EXPIRE_MINUTES),
    ))
    await db.flush()
    return code


async def consume_otp(db: AsyncSession, user: User, purpose: OtpPurpose, code: str) -> None:
    """Check a code and delete it on success. Raises InvalidOTPError / OTPExpiredError."""
    result = await db.execute(
        select(OtpVerification).where(
            OtpVerification.user_id == str(user.id),
            OtpVerification.purpose == purpose,
        )
    )
    record = result.scalar_one_or_none()

    if record is None or not verify_password(code.strip(), record.otp_hash):
        raise InvalidOTPError()

    if record.is_expired:
        raise OTPExpiredError()

    await db.delete(record)

from sqlalchemy import Column, String, DateTime, ForeignKey, UniqueConstraint, Enum as SQLEnum
from datetime import datetime
import enum

from alumnet.core.database import Base
from alumnet.core.types import GUID, generate_uuid


class OtpPurpose(str, enum.Enum):
    VERIFY_EMAIL = "verify_email"
    RESET_PASSWORD = "reset_password"


class OtpVerification(Base):
    """Hashed one-time password. At most one live code per user and purpose."""
    __tablename__ = "otp_verifications"
    __table_args__ = (
        UniqueConstraint("user_id", "purpose", name="uq_otp_user_purpose"),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    purpose = Column(SQLEnum(OtpPurpose), nullable=False)
    otp_hash = Column(String(255), nullable=False)
    expires_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    @property
    def is_expired(self) -> bool:
        return datetime.utcnow() > self.expires_at

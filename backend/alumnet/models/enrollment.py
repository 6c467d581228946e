from sqlalchemy import Column, String, DateTime, Enum as SQLEnum
from datetime import datetime

from alumnet.core.database import Base
from alumnet.core.types import GUID, generate_uuid
from alumnet.models.user import UserRole


class Enrollment(Base):
    """Pre-registration record: who may sign up, and as which role"""
    __tablename__ = "enrollments"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    # Case-sensitive institutional ID
    enrollment_id = Column(String(100), unique=True, nullable=False, index=True)
    role = Column(SQLEnum(UserRole), nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<Enrollment {self.enrollment_id} ({self.role})>"

from sqlalchemy import Column, String, DateTime, Text, ForeignKey, Enum as SQLEnum
from datetime import datetime
import enum

from alumnet.core.database import Base
from alumnet.core.types import GUID, generate_uuid


class ActivityAction(str, enum.Enum):
    LOGIN = "LOGIN"
    LOGOUT = "LOGOUT"


class UserActivity(Base):
    """
    Login/logout record.

    user_email and user_role are copied from the user when the row is written
    and are never updated afterwards.
    """
    __tablename__ = "user_activities"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    action = Column(SQLEnum(ActivityAction), nullable=False, index=True)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    user_email = Column(String(255), nullable=False)
    user_role = Column(String(20), nullable=False)

    ip_address = Column(String(45), nullable=True)
    user_agent = Column(Text, nullable=True)

    timestamp = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    def __repr__(self):
        return f"<UserActivity {self.action} {self.user_email}>"

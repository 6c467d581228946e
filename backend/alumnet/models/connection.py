from sqlalchemy import Column, String, DateTime, ForeignKey, UniqueConstraint, Text, Enum as SQLEnum
from datetime import datetime
import enum

from alumnet.core.database import Base
from alumnet.core.types import GUID, generate_uuid


class ConnectionStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class ConnectionRequest(Base):
    """
    Directed connect request. The (requester_id, target_id) pair is unique;
    two users are connected when an accepted row exists in either direction.
    """
    __tablename__ = "connection_requests"
    __table_args__ = (
        UniqueConstraint("requester_id", "target_id", name="uq_connection_pair"),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    requester_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    target_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(SQLEnum(ConnectionStatus), default=ConnectionStatus.PENDING, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<ConnectionRequest {self.requester_id} -> {self.target_id} ({self.status})>"


class NotificationType(str, enum.Enum):
    CONNECTION_REQUEST = "connection_request"
    CONNECTION_ACCEPTED = "connection_accepted"
    CONNECTION_REJECTED = "connection_rejected"
    MESSAGE = "message"


class Notification(Base):
    """In-app notification. Reading a notification deletes it."""
    __tablename__ = "notifications"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    sender_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    receiver_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    message = Column(Text, nullable=False)
    type = Column(SQLEnum(NotificationType), nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

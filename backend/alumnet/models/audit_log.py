from sqlalchemy import Column, String, DateTime, Text, ForeignKey, JSON, Enum as SQLEnum
from datetime import datetime
import enum

from alumnet.core.database import Base
from alumnet.core.types import GUID, generate_uuid


class AuditAction(str, enum.Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class AuditLog(Base):
    """Audit trail of data mutations (who changed what, and from where)"""
    __tablename__ = "audit_logs"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    action = Column(SQLEnum(AuditAction), nullable=False, index=True)

    # Affected entity, e.g. collection='Enrollment', document_id=<enrollment id>
    collection = Column(String(50), nullable=False, index=True)
    document_id = Column(String(36), nullable=True)

    # Actor snapshot
    user_id = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    user_email = Column(String(255), nullable=True)
    user_role = Column(String(20), nullable=True)

    # Changed fields, old/new values, etc.
    changes = Column(JSON, nullable=True)

    # Request metadata
    ip_address = Column(String(45), nullable=True)
    user_agent = Column(Text, nullable=True)

    timestamp = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    def __repr__(self):
        return f"<AuditLog {self.action} {self.collection}:{self.document_id}>"

from sqlalchemy import Column, String, DateTime, ForeignKey
from datetime import datetime

from alumnet.core.database import Base
from alumnet.core.types import GUID


class ConsumedToken(Base):
    """Single-use confirmation tokens that have already been spent, keyed by their jti"""
    __tablename__ = "consumed_tokens"

    jti = Column(String(64), primary_key=True)
    token_type = Column(String(50), nullable=False)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    consumed_at = Column(DateTime, default=datetime.utcnow, nullable=False)

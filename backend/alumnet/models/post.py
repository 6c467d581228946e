from sqlalchemy import Column, String, DateTime, Text, ForeignKey, JSON, UniqueConstraint, Enum as SQLEnum
from datetime import datetime
import enum

from alumnet.core.database import Base
from alumnet.core.types import GUID, generate_uuid


class PostType(str, enum.Enum):
    POST = "post"
    EVENT = "event"


class FeedPost(Base):
    """Post on the global feed. Events carry a date, location and registration link."""
    __tablename__ = "feed_posts"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(SQLEnum(PostType), default=PostType.POST, nullable=False)
    title = Column(String(200), nullable=False)
    content = Column(Text, nullable=False)
    media = Column(JSON, default=list)

    # Event details (type == event)
    event_date = Column(DateTime, nullable=True)
    event_location = Column(String(200), nullable=True)
    event_description = Column(Text, nullable=True)
    registration_link = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<FeedPost {self.type.value if self.type else 'post'}: {self.title}>"


class FeedLike(Base):
    __tablename__ = "feed_post_likes"
    __table_args__ = (
        UniqueConstraint("post_id", "user_id", name="uq_feed_post_like"),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    post_id = Column(GUID, ForeignKey("feed_posts.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class FeedComment(Base):
    __tablename__ = "feed_post_comments"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    post_id = Column(GUID, ForeignKey("feed_posts.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

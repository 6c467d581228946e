from sqlalchemy import (
    Column, String, Boolean, DateTime, Integer, Text, ForeignKey, JSON,
    UniqueConstraint, Enum as SQLEnum,
)
from datetime import datetime
import enum

from alumnet.core.database import Base
from alumnet.core.types import GUID, generate_uuid


class CommunityCategory(str, enum.Enum):
    CAREER = "Career"
    TECHNICAL = "Technical"
    COLLEGE_BACKGROUND = "College Background"
    INDUSTRY = "Industry"
    SKILLS = "Skills"
    OTHER = "Other"


class CommunityVisibility(str, enum.Enum):
    PUBLIC = "public"      # anyone may join
    PRIVATE = "private"    # join requests need moderator approval
    HIDDEN = "hidden"      # invisible to non-members, no join requests


class MemberRole(str, enum.Enum):
    CREATOR = "creator"
    MODERATOR = "moderator"
    MEMBER = "member"


class MemberStatus(str, enum.Enum):
    ACTIVE = "active"
    PENDING = "pending"


class Community(Base):
    __tablename__ = "communities"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    name = Column(String(100), unique=True, nullable=False, index=True)
    description = Column(Text, nullable=False)
    category = Column(SQLEnum(CommunityCategory), default=CommunityCategory.OTHER, nullable=False)
    tags = Column(JSON, default=list)
    visibility = Column(SQLEnum(CommunityVisibility), default=CommunityVisibility.PUBLIC, nullable=False)
    icon = Column(Text, nullable=True)
    cover_image = Column(Text, nullable=True)
    post_count = Column(Integer, default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_by = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<Community {self.name}>"


class CommunityMember(Base):
    __tablename__ = "community_members"
    __table_args__ = (
        UniqueConstraint("community_id", "user_id", name="uq_community_member"),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    community_id = Column(GUID, ForeignKey("communities.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(SQLEnum(MemberRole), default=MemberRole.MEMBER, nullable=False)
    status = Column(SQLEnum(MemberStatus), default=MemberStatus.ACTIVE, nullable=False)
    joined_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    @property
    def is_moderator(self) -> bool:
        return self.status == MemberStatus.ACTIVE and self.role in (MemberRole.CREATOR, MemberRole.MODERATOR)


class CommunityPost(Base):
    __tablename__ = "community_posts"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    community_id = Column(GUID, ForeignKey("communities.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    content = Column(Text, nullable=False)
    media = Column(JSON, default=list)
    is_pinned = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class PostLike(Base):
    __tablename__ = "post_likes"
    __table_args__ = (
        UniqueConstraint("post_id", "user_id", name="uq_post_like"),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    post_id = Column(GUID, ForeignKey("community_posts.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class PostComment(Base):
    __tablename__ = "post_comments"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    post_id = Column(GUID, ForeignKey("community_posts.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

from sqlalchemy import Column, String, Boolean, DateTime, Integer, Text, ForeignKey, JSON
from datetime import datetime

from alumnet.core.database import Base
from alumnet.core.types import GUID, generate_uuid


SOCIAL_PLATFORMS = ("linkedin", "github", "twitter", "instagram", "facebook")


def default_social_links() -> dict:
    return {platform: "" for platform in SOCIAL_PLATFORMS}


class Profile(Base):
    """
    Role-specific profile, one per user.

    Students fill the academic fields, alumni the employment fields and
    faculty the department fields; the remaining columns stay null.
    """
    __tablename__ = "profiles"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False, index=True)

    bio = Column(Text, nullable=True)
    phone = Column(String(20), nullable=True)

    # Academic
    branch = Column(String(100), nullable=True, index=True)
    course = Column(String(100), nullable=True)
    year_of_joining = Column(Integer, nullable=True)
    year_of_passing = Column(Integer, nullable=True, index=True)

    # Employment (alumni)
    current_company = Column(String(255), nullable=True)
    current_designation = Column(String(255), nullable=True)
    current_location = Column(String(255), nullable=True)
    achievements = Column(Text, nullable=True)

    # Faculty
    department = Column(String(255), nullable=True)
    designation = Column(String(255), nullable=True)
    subjects = Column(JSON, default=list)

    skills = Column(JSON, default=list)
    interests = Column(JSON, default=list)
    social_links = Column(JSON, default=default_social_links)
    profile_picture = Column(Text, nullable=True)
    is_verified = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<Profile {self.user_id}>"

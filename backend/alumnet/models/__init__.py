# Re-export all models for convenient imports
from alumnet.models.user import User, UserRole
from alumnet.models.profile import Profile, SOCIAL_PLATFORMS, default_social_links
from alumnet.models.enrollment import Enrollment
from alumnet.models.user_activity import UserActivity, ActivityAction
from alumnet.models.audit_log import AuditLog, AuditAction
from alumnet.models.otp import OtpVerification, OtpPurpose
from alumnet.models.consumed_token import ConsumedToken
from alumnet.models.connection import (
    ConnectionRequest,
    ConnectionStatus,
    Notification,
    NotificationType,
)
from alumnet.models.community import (
    Community,
    CommunityCategory,
    CommunityVisibility,
    CommunityMember,
    MemberRole,
    MemberStatus,
    CommunityPost,
    PostLike,
    PostComment,
)
from alumnet.models.chat import (
    Chat,
    ChatParticipant,
    ChatMessage,
    MessageRead,
    MessageReaction,
)
from alumnet.models.post import FeedPost, FeedLike, FeedComment, PostType

__all__ = [
    # User
    "User",
    "UserRole",
    "Profile",
    "SOCIAL_PLATFORMS",
    "default_social_links",
    "Enrollment",
    "OtpVerification",
    "OtpPurpose",
    "ConsumedToken",
    # Logs
    "UserActivity",
    "ActivityAction",
    "AuditLog",
    "AuditAction",
    # Network
    "ConnectionRequest",
    "ConnectionStatus",
    "Notification",
    "NotificationType",
    # Communities
    "Community",
    "CommunityCategory",
    "CommunityVisibility",
    "CommunityMember",
    "MemberRole",
    "MemberStatus",
    "CommunityPost",
    "PostLike",
    "PostComment",
    # Chat
    "Chat",
    "ChatParticipant",
    "ChatMessage",
    "MessageRead",
    "MessageReaction",
    # Feed
    "FeedPost",
    "FeedLike",
    "FeedComment",
    "PostType",
]

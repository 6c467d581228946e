from sqlalchemy import Column, String, DateTime, Text, ForeignKey, UniqueConstraint
from datetime import datetime

from alumnet.core.database import Base
from alumnet.core.types import GUID, generate_uuid


class Chat(Base):
    """
    Direct conversation between two users.

    A participant who leaves is removed from the chat; the chat is deleted once
    nobody is left. `updated_at` moves forward with every new message.
    """
    __tablename__ = "chats"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)


class ChatParticipant(Base):
    __tablename__ = "chat_participants"
    __table_args__ = (
        UniqueConstraint("chat_id", "user_id", name="uq_chat_participant"),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    chat_id = Column(GUID, ForeignKey("chats.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    joined_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class ChatMessage(Base):
    __tablename__ = "chat_messages"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    chat_id = Column(GUID, ForeignKey("chats.id", ondelete="CASCADE"), nullable=False, index=True)
    sender_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    content = Column(Text, nullable=False)
    reply_to_id = Column(GUID, ForeignKey("chat_messages.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)


class MessageRead(Base):
    """Read receipt: one row per (message, reader)"""
    __tablename__ = "message_reads"
    __table_args__ = (
        UniqueConstraint("message_id", "user_id", name="uq_message_read"),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    message_id = Column(GUID, ForeignKey("chat_messages.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    read_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class MessageReaction(Base):
    __tablename__ = "message_reactions"
    __table_args__ = (
        UniqueConstraint("message_id", "user_id", "reaction", name="uq_message_reaction"),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    message_id = Column(GUID, ForeignKey("chat_messages.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    reaction = Column(String(32), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

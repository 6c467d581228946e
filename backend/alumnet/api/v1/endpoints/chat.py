"""
Direct messages between two users.
"""
from datetime import datetime

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete
from typing import List

from alumnet.core.database import get_db
from alumnet.core.exceptions import (
    AuthorizationError,
    UserNotFoundError,
    ValidationError,
)
from alumnet.core.logging_config import logger
from alumnet.models.chat import Chat, ChatMessage, ChatParticipant, MessageReaction
from alumnet.modules.auth.dependencies import get_request_session
from alumnet.modules.auth.session import RequestSession
from alumnet.schemas.chat import (
    ChatResponse,
    MessageCreate,
    MessageResponse,
    ReactionResult,
    ReactionToggle,
    UnreadCount,
)
from alumnet.schemas.common import APIResponse
from alumnet.services import chat_service
from alumnet.services.user_service import get_user

router = APIRouter()


@router.get("", response_model=APIResponse[List[ChatResponse]])
async def list_chats(
    session: RequestSession = Depends(get_request_session),
    db: AsyncSession = Depends(get_db)
):
    """The caller's chats, most recently active first"""
    result = await db.execute(
        select(Chat)
        .join(ChatParticipant, ChatParticipant.chat_id == Chat.id)
        .where(ChatParticipant.user_id == session.user_id)
        .order_by(Chat.updated_at.desc(), Chat.id)
    )
    chats = list(result.scalars().all())
    data = await chat_service.build_chats(db, chats, session.user_id)
    return APIResponse[List[ChatResponse]](data=data, count=len(data))


@router.get("/unread-count", response_model=APIResponse[UnreadCount])
async def unread_count(
    session: RequestSession = Depends(get_request_session),
    db: AsyncSession = Depends(get_db)
):
    """Unread messages in total and per conversation partner"""
    by_chat = await chat_service.unread_by_chat(db, session.user_id)

    per_user = {}
    for chat_id, count in by_chat.items():
        for user_id in await chat_service.participant_ids(db, chat_id):
            if user_id != session.user_id:
                per_user[user_id] = per_user.get(user_id, 0) + count

    return APIResponse[UnreadCount](
        data=UnreadCount(unread_count=sum(by_chat.values()), unread_per_user=per_user)
    )


@router.get("/with/{user_id}", response_model=APIResponse[ChatResponse])
async def chat_with(
    user_id: str,
    session: RequestSession = Depends(get_request_session),
    db: AsyncSession = Depends(get_db)
):
    """Open the conversation with another user, starting one if needed"""
    if user_id == session.user_id:
        raise ValidationError("You cannot start a chat with yourself", field="userId")
    other = await get_user(db, user_id)
    if other is None or not other.is_active:
        raise UserNotFoundError(user_id)

    chat = await chat_service.find_direct_chat(db, session.user_id, user_id)
    if chat is None:
        chat = await chat_service.create_direct_chat(db, session.user_id, user_id)
        logger.info(f"[Chat] {session.user_id} started chat {chat.id} with {user_id}")
    await chat_service.mark_read(db, chat, session.user_id)
    await db.commit()

    data = await chat_service.build_chats(db, [chat], session.user_id, with_messages=True)
    return APIResponse[ChatResponse](data=data[0])


@router.get("/{chat_id}", response_model=APIResponse[ChatResponse])
async def get_chat(
    chat_id: str,
    session: RequestSession = Depends(get_request_session),
    db: AsyncSession = Depends(get_db)
):
    """Whole conversation, oldest first. Opening it marks everything as read."""
    chat, _ = await chat_service.participant_chat(db, chat_id, session.user_id)
    if await chat_service.mark_read(db, chat, session.user_id):
        await db.commit()

    data = await chat_service.build_chats(db, [chat], session.user_id, with_messages=True)
    return APIResponse[ChatResponse](data=data[0])


@router.post("/{chat_id}/messages", response_model=APIResponse[MessageResponse],
             status_code=status.HTTP_201_CREATED)
async def send_message(
    chat_id: str,
    message_data: MessageCreate,
    session: RequestSession = Depends(get_request_session),
    db: AsyncSession = Depends(get_db)
):
    chat, _ = await chat_service.participant_chat(db, chat_id, session.user_id)
    if message_data.reply_to:
        await chat_service.get_message(db, chat, message_data.reply_to)

    message = ChatMessage(
        chat_id=str(chat.id),
        sender_id=session.user_id,
        content=message_data.content,
        reply_to_id=message_data.reply_to,
    )
    db.add(message)
    chat.updated_at = datetime.utcnow()
    await db.commit()

    data = await chat_service.build_messages(db, [message])
    return APIResponse[MessageResponse](message="Message sent", data=data[0])


@router.delete("/{chat_id}/messages/{message_id}", response_model=APIResponse[None])
async def delete_message(
    chat_id: str,
    message_id: str,
    session: RequestSession = Depends(get_request_session),
    db: AsyncSession = Depends(get_db)
):
    """Delete one of your own messages"""
    chat, _ = await chat_service.participant_chat(db, chat_id, session.user_id)
    message = await chat_service.get_message(db, chat, message_id)
    if str(message.sender_id) != session.user_id:
        raise AuthorizationError("You can only delete your own messages")

    await chat_service.delete_messages(db, [str(message.id)])
    await db.commit()
    return APIResponse[None](message="Message deleted")


@router.post("/{chat_id}/messages/{message_id}/reactions", response_model=APIResponse[ReactionResult])
async def toggle_reaction(
    chat_id: str,
    message_id: str,
    reaction_data: ReactionToggle,
    session: RequestSession = Depends(get_request_session),
    db: AsyncSession = Depends(get_db)
):
    """Add the reaction, or take it back if the caller already reacted with it"""
    chat, _ = await chat_service.participant_chat(db, chat_id, session.user_id)
    message = await chat_service.get_message(db, chat, message_id)

    result = await db.execute(
        select(MessageReaction).where(
            MessageReaction.message_id == str(message.id),
            MessageReaction.user_id == session.user_id,
            MessageReaction.reaction == reaction_data.reaction,
        )
    )
    reaction = result.scalar_one_or_none()
    if reaction is None:
        db.add(MessageReaction(
            message_id=str(message.id), user_id=session.user_id, reaction=reaction_data.reaction
        ))
    else:
        await db.delete(reaction)
    await db.commit()

    reactions = await chat_service.reactions_for(db, [str(message.id)])
    return APIResponse[ReactionResult](
        data=ReactionResult(message_id=str(message.id), reactions=reactions.get(str(message.id), {}))
    )


@router.post("/{chat_id}/leave", response_model=APIResponse[None])
async def leave_chat(
    chat_id: str,
    session: RequestSession = Depends(get_request_session),
    db: AsyncSession = Depends(get_db)
):
    """Leave a chat; the last one out deletes it"""
    chat, participants = await chat_service.participant_chat(db, chat_id, session.user_id)
    await db.execute(
        delete(ChatParticipant).where(
            ChatParticipant.chat_id == str(chat.id), ChatParticipant.user_id == session.user_id
        )
    )
    if len(participants) <= 1:
        await chat_service.delete_chat(db, chat)
    await db.commit()
    return APIResponse[None](message="Left chat")


@router.delete("/{chat_id}", response_model=APIResponse[None])
async def delete_chat(
    chat_id: str,
    session: RequestSession = Depends(get_request_session),
    db: AsyncSession = Depends(get_db)
):
    """Delete a chat and its messages for both participants"""
    chat, _ = await chat_service.participant_chat(db, chat_id, session.user_id)
    await chat_service.delete_chat(db, chat)
    await db.commit()
    logger.info(f"[Chat] {session.user_id} deleted chat {chat_id}")
    return APIResponse[None](message="Chat deleted")

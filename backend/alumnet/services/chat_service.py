"""
Direct chats between two users: lookup, read receipts, unread counts and
response assembly.
"""
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy import select, delete, update, func, and_, exists
from sqlalchemy.ext.asyncio import AsyncSession

from alumnet.core.exceptions import AuthorizationError, ResourceNotFoundError
from alumnet.models.chat import Chat, ChatMessage, ChatParticipant, MessageReaction, MessageRead
from alumnet.schemas.chat import ChatResponse, MessageResponse, ReplyPreview
from alumnet.services.user_service import load_profiles, load_users, to_summary


async def get_chat(db: AsyncSession, chat_id: str) -> Chat:
    result = await db.execute(select(Chat).where(Chat.id == chat_id))
    chat = result.scalar_one_or_none()
    if chat is None:
        raise ResourceNotFoundError("Chat", chat_id)
    return chat


async def participant_ids(db: AsyncSession, chat_id: str) -> List[str]:
    result = await db.execute(
        select(ChatParticipant.user_id)
        .where(ChatParticipant.chat_id == str(chat_id))
        .order_by(ChatParticipant.joined_at, ChatParticipant.id)
    )
    return [str(row[0]) for row in result.all()]


async def participant_chat(db: AsyncSession, chat_id: str, user_id: str) -> Tuple[Chat, List[str]]:
    """Chat and its participant ids; 403 unless `user_id` takes part in it"""
    chat = await get_chat(db, chat_id)
    participants = await participant_ids(db, chat.id)
    if str(user_id) not in participants:
        raise AuthorizationError("You are not a participant of this chat")
    return chat, participants


async def find_direct_chat(db: AsyncSession, user_id: str, other_id: str) -> Optional[Chat]:
    """Chat both users still take part in, if any"""
    shared = (
        select(ChatParticipant.chat_id)
        .where(ChatParticipant.user_id.in_([str(user_id), str(other_id)]))
        .group_by(ChatParticipant.chat_id)
        .having(func.count(func.distinct(ChatParticipant.user_id)) == 2)
    )
    result = await db.execute(
        select(Chat).where(Chat.id.in_(shared)).order_by(Chat.updated_at.desc()).limit(1)
    )
    return result.scalar_one_or_none()


async def create_direct_chat(db: AsyncSession, user_id: str, other_id: str) -> Chat:
    chat = Chat()
    db.add(chat)
    await db.flush()
    db.add_all([
        ChatParticipant(chat_id=str(chat.id), user_id=str(user_id)),
        ChatParticipant(chat_id=str(chat.id), user_id=str(other_id)),
    ])
    await db.flush()
    return chat


async def get_message(db: AsyncSession, chat: Chat, message_id: str) -> ChatMessage:
    result = await db.execute(
        select(ChatMessage).where(ChatMessage.id == message_id, ChatMessage.chat_id == str(chat.id))
    )
    message = result.scalar_one_or_none()
    if message is None:
        raise ResourceNotFoundError("Message", message_id)
    return message


def _unread_clause(user_id: str):
    """Messages from someone else that `user_id` has not read yet"""
    return and_(
        ChatMessage.sender_id != str(user_id),
        ~exists().where(
            MessageRead.message_id == ChatMessage.id,
            MessageRead.user_id == str(user_id),
        ),
    )


async def mark_read(db: AsyncSession, chat: Chat, user_id: str) -> int:
    """Record read receipts for every unread message in the chat. Returns how many."""
    result = await db.execute(
        select(ChatMessage.id).where(ChatMessage.chat_id == str(chat.id), _unread_clause(user_id))
    )
    message_ids = [str(row[0]) for row in result.all()]
    db.add_all([MessageRead(message_id=message_id, user_id=str(user_id)) for message_id in message_ids])
    if message_ids:
        await db.flush()
    return len(message_ids)


async def unread_by_chat(db: AsyncSession, user_id: str) -> Dict[str, int]:
    """Unread message counts for the user's chats, keyed by chat id"""
    result = await db.execute(
        select(ChatMessage.chat_id, func.count(ChatMessage.id))
        .join(ChatParticipant, and_(
            ChatParticipant.chat_id == ChatMessage.chat_id,
            ChatParticipant.user_id == str(user_id),
        ))
        .where(_unread_clause(user_id))
        .group_by(ChatMessage.chat_id)
    )
    return {str(chat_id): count for chat_id, count in result.all()}


async def reactions_for(db: AsyncSession, message_ids: Iterable[str]) -> Dict[str, Dict[str, List[str]]]:
    """{message_id: {reaction: [user ids in reaction order]}}"""
    ids = [str(message_id) for message_id in message_ids]
    if not ids:
        return {}
    result = await db.execute(
        select(MessageReaction)
        .where(MessageReaction.message_id.in_(ids))
        .order_by(MessageReaction.created_at, MessageReaction.id)
    )
    reactions: Dict[str, Dict[str, List[str]]] = {}
    for reaction in result.scalars().all():
        by_emoji = reactions.setdefault(str(reaction.message_id), {})
        by_emoji.setdefault(reaction.reaction, []).append(str(reaction.user_id))
    return reactions


async def build_messages(db: AsyncSession, messages: List[ChatMessage]) -> List[MessageResponse]:
    """Messages with senders, reply previews, reactions and read receipts"""
    if not messages:
        return []
    message_ids = [str(message.id) for message in messages]

    reply_ids = {str(m.reply_to_id) for m in messages if m.reply_to_id}
    replies: Dict[str, ChatMessage] = {}
    if reply_ids:
        result = await db.execute(select(ChatMessage).where(ChatMessage.id.in_(reply_ids)))
        replies = {str(m.id): m for m in result.scalars().all()}

    reads: Dict[str, List[str]] = {}
    result = await db.execute(
        select(MessageRead.message_id, MessageRead.user_id)
        .where(MessageRead.message_id.in_(message_ids))
        .order_by(MessageRead.read_at, MessageRead.id)
    )
    for message_id, reader_id in result.all():
        reads.setdefault(str(message_id), []).append(str(reader_id))

    reactions = await reactions_for(db, message_ids)

    sender_ids = {str(m.sender_id) for m in messages}
    users = await load_users(db, sender_ids)
    profiles = await load_profiles(db, sender_ids)

    responses = []
    for message in messages:
        sender = users.get(str(message.sender_id))
        reply = replies.get(str(message.reply_to_id)) if message.reply_to_id else None
        responses.append(MessageResponse(
            id=str(message.id),
            chat_id=str(message.chat_id),
            sender=to_summary(sender, profiles.get(str(sender.id))) if sender else None,
            content=message.content,
            reply_to=ReplyPreview(
                id=str(reply.id), sender_id=str(reply.sender_id), content=reply.content
            ) if reply else None,
            reactions=reactions.get(str(message.id), {}),
            read_by=reads.get(str(message.id), []),
            created_at=message.created_at,
        ))
    return responses


async def chat_messages(db: AsyncSession, chat: Chat) -> List[ChatMessage]:
    result = await db.execute(
        select(ChatMessage)
        .where(ChatMessage.chat_id == str(chat.id))
        .order_by(ChatMessage.created_at, ChatMessage.id)
    )
    return list(result.scalars().all())


async def build_chats(db: AsyncSession, chats: List[Chat], viewer_id: str,
                      with_messages: bool = False) -> List[ChatResponse]:
    """
    Chat responses in the given order.

    Listings carry the last message and the viewer's unread count; a single
    chat view (`with_messages`) carries the whole conversation, oldest first.
    """
    if not chats:
        return []
    chat_ids = [str(chat.id) for chat in chats]

    result = await db.execute(
        select(ChatParticipant.chat_id, ChatParticipant.user_id)
        .where(ChatParticipant.chat_id.in_(chat_ids))
        .order_by(ChatParticipant.joined_at, ChatParticipant.id)
    )
    members: Dict[str, List[str]] = {}
    for chat_id, user_id in result.all():
        members.setdefault(str(chat_id), []).append(str(user_id))

    user_ids = {user_id for ids in members.values() for user_id in ids}
    users = await load_users(db, user_ids)
    profiles = await load_profiles(db, user_ids)
    unread = await unread_by_chat(db, viewer_id)

    responses = []
    for chat in chats:
        if with_messages:
            built = await build_messages(db, await chat_messages(db, chat))
            last = built[-1] if built else None
        else:
            result = await db.execute(
                select(ChatMessage)
                .where(ChatMessage.chat_id == str(chat.id))
                .order_by(ChatMessage.created_at.desc(), ChatMessage.id.desc())
                .limit(1)
            )
            latest = result.scalar_one_or_none()
            built = None
            last = (await build_messages(db, [latest]))[0] if latest else None

        responses.append(ChatResponse(
            id=str(chat.id),
            participants=[
                to_summary(users[user_id], profiles.get(user_id))
                for user_id in members.get(str(chat.id), []) if user_id in users
            ],
            messages=built,
            last_message=last,
            unread_count=unread.get(str(chat.id), 0),
            created_at=chat.created_at,
            updated_at=chat.updated_at,
        ))
    return responses


async def delete_messages(db: AsyncSession, message_ids: List[str]) -> None:
    """Remove messages with their receipts and reactions; replies keep existing without a preview"""
    if not message_ids:
        return
    await db.execute(
        update(ChatMessage).where(ChatMessage.reply_to_id.in_(message_ids)).values(reply_to_id=None)
    )
    await db.execute(delete(MessageRead).where(MessageRead.message_id.in_(message_ids)))
    await db.execute(delete(MessageReaction).where(MessageReaction.message_id.in_(message_ids)))
    await db.execute(delete(ChatMessage).where(ChatMessage.id.in_(message_ids)))


async def delete_chat(db: AsyncSession, chat: Chat) -> None:
    result = await db.execute(select(ChatMessage.id).where(ChatMessage.chat_id == str(chat.id)))
    await delete_messages(db, [str(row[0]) for row in result.all()])
    await db.execute(delete(ChatParticipant).where(ChatParticipant.chat_id == str(chat.id)))
    await db.execute(delete(Chat).where(Chat.id == str(chat.id)))

"""
Connection graph.

Every edge is a ConnectionRequest keyed by the unique (requester_id,
target_id) pair. Two users are connected when an accepted request exists in
either direction, so the relation is symmetric.
"""
from typing import List, Optional, Tuple

from sqlalchemy import select, delete, or_, and_
from sqlalchemy.ext.asyncio import AsyncSession

from alumnet.core.exceptions import (
    AuthorizationError,
    ConflictError,
    ResourceNotFoundError,
    UserNotFoundError,
    ValidationError,
)
from alumnet.core.logging_config import logger
from alumnet.models.connection import (
    ConnectionRequest,
    ConnectionStatus,
    Notification,
    NotificationType,
)
from alumnet.models.user import User
from alumnet.services.user_service import get_user


def _between(user_a: str, user_b: str):
    """Condition matching requests between two users in either direction"""
    return or_(
        and_(ConnectionRequest.requester_id == user_a, ConnectionRequest.target_id == user_b),
        and_(ConnectionRequest.requester_id == user_b, ConnectionRequest.target_id == user_a),
    )


async def _get_request(db: AsyncSession, requester_id: str, target_id: str) -> Optional[ConnectionRequest]:
    result = await db.execute(
        select(ConnectionRequest).where(
            ConnectionRequest.requester_id == requester_id,
            ConnectionRequest.target_id == target_id,
        )
    )
    return result.scalar_one_or_none()


def notify(db: AsyncSession, sender: User, receiver_id: str,
           type_: NotificationType, message: str) -> Notification:
    notification = Notification(
        sender_id=str(sender.id),
        receiver_id=str(receiver_id),
        type=type_,
        message=message,
    )
    db.add(notification)
    return notification


async def send_request(db: AsyncSession, sender: User, target_id: str) -> ConnectionRequest:
    """
    Ask `target_id` to connect.

    A pending request from the target to the sender is accepted instead, and a
    previously rejected request is re-opened.
    """
    sender_id = str(sender.id)
    target_id = str(target_id)

    if sender_id == target_id:
        raise ValidationError("You cannot connect with yourself")

    target = await get_user(db, target_id)
    if target is None or not target.is_active:
        raise UserNotFoundError(target_id)

    reverse = await _get_request(db, target_id, sender_id)
    if reverse is not None and reverse.status == ConnectionStatus.ACCEPTED:
        raise ConflictError("You are already connected", code="ALREADY_CONNECTED")
    if reverse is not None and reverse.status == ConnectionStatus.PENDING:
        reverse.status = ConnectionStatus.ACCEPTED
        notify(db, sender, target_id, NotificationType.CONNECTION_ACCEPTED,
               f"{sender.display_name} accepted your connection request")
        await db.commit()
        logger.info(f"[Connections] {sender_id} accepted pending request from {target_id}")
        return reverse

    existing = await _get_request(db, sender_id, target_id)
    if existing is not None:
        if existing.status == ConnectionStatus.ACCEPTED:
            raise ConflictError("You are already connected", code="ALREADY_CONNECTED")
        if existing.status == ConnectionStatus.PENDING:
            raise ConflictError("Connection request already sent", code="REQUEST_PENDING")
        existing.status = ConnectionStatus.PENDING
        request = existing
    else:
        request = ConnectionRequest(requester_id=sender_id, target_id=target_id)
        db.add(request)

    notify(db, sender, target_id, NotificationType.CONNECTION_REQUEST,
           f"{sender.display_name} sent you a connection request")
    await db.commit()
    logger.info(f"[Connections] {sender_id} requested connection with {target_id}")
    return request


async def respond(db: AsyncSession, responder: User, request_id: str, accept: bool) -> ConnectionRequest:
    """Accept or reject a pending request addressed to `responder`"""
    result = await db.execute(select(ConnectionRequest).where(ConnectionRequest.id == request_id))
    request = result.scalar_one_or_none()
    if request is None:
        raise ResourceNotFoundError("Connection request", request_id)
    if str(request.target_id) != str(responder.id):
        raise AuthorizationError("Only the recipient can respond to this request")
    if request.status != ConnectionStatus.PENDING:
        raise ValidationError(f"Request is already {request.status.value}")

    if accept:
        request.status = ConnectionStatus.ACCEPTED
        notify(db, responder, request.requester_id, NotificationType.CONNECTION_ACCEPTED,
               f"{responder.display_name} accepted your connection request")
    else:
        request.status = ConnectionStatus.REJECTED
        notify(db, responder, request.requester_id, NotificationType.CONNECTION_REJECTED,
               f"{responder.display_name} declined your connection request")
    await db.commit()
    return request


async def incoming_requests(db: AsyncSession, user_id: str) -> List[Tuple[ConnectionRequest, User]]:
    result = await db.execute(
        select(ConnectionRequest, User)
        .join(User, User.id == ConnectionRequest.requester_id)
        .where(
            ConnectionRequest.target_id == str(user_id),
            ConnectionRequest.status == ConnectionStatus.PENDING,
        )
        .order_by(ConnectionRequest.created_at.desc())
    )
    return [(request, requester) for request, requester in result.all()]


async def connected_users(db: AsyncSession, user_id: str) -> List[User]:
    """Users connected to `user_id`, in either direction"""
    user_id = str(user_id)
    result = await db.execute(
        select(ConnectionRequest).where(
            ConnectionRequest.status == ConnectionStatus.ACCEPTED,
            or_(ConnectionRequest.requester_id == user_id, ConnectionRequest.target_id == user_id),
        )
    )
    other_ids = {
        str(edge.target_id) if str(edge.requester_id) == user_id else str(edge.requester_id)
        for edge in result.scalars().all()
    }
    if not other_ids:
        return []
    users = await db.execute(
        select(User).where(User.id.in_(other_ids), User.is_active.is_(True)).order_by(User.username)
    )
    return list(users.scalars().all())


async def are_connected(db: AsyncSession, user_a: str, user_b: str) -> bool:
    result = await db.execute(
        select(ConnectionRequest.id).where(
            _between(str(user_a), str(user_b)),
            ConnectionRequest.status == ConnectionStatus.ACCEPTED,
        )
    )
    return result.first() is not None


async def remove(db: AsyncSession, user_id: str, other_id: str) -> bool:
    """
    Drop every request between the two users. Idempotent: returns False when
    there was nothing to remove.
    """
    result = await db.execute(
        select(ConnectionRequest.id).where(_between(str(user_id), str(other_id)))
    )
    ids = [row[0] for row in result.all()]
    if not ids:
        return False
    await db.execute(delete(ConnectionRequest).where(ConnectionRequest.id.in_(ids)))
    await db.commit()
    logger.info(f"[Connections] {user_id} removed connection with {other_id}")
    return True

"""
Notifications and the connection graph.

Connections are symmetric: once a request is accepted both users see each
other under /connections. Removing a connection is idempotent.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete
from typing import List

from alumnet.core.database import get_db
from alumnet.core.exceptions import ResourceNotFoundError
from alumnet.models.connection import ConnectionStatus, Notification
from alumnet.models.user import User
from alumnet.modules.auth.dependencies import get_request_session
from alumnet.modules.auth.session import RequestSession
from alumnet.schemas.common import APIResponse
from alumnet.schemas.connection import (
    ConnectionRequestResponse,
    ConnectResult,
    NotificationResponse,
    RemoveConnectionResult,
    RespondRequest,
    UserSummary,
)
from alumnet.services import connection_service
from alumnet.services.user_service import load_profiles, summaries, to_summary

router = APIRouter()

NOTIFICATION_LIMIT = 20


@router.get("", response_model=APIResponse[List[NotificationResponse]])
async def list_notifications(
    session: RequestSession = Depends(get_request_session),
    db: AsyncSession = Depends(get_db)
):
    """Latest notifications for the current user"""
    result = await db.execute(
        select(Notification, User)
        .outerjoin(User, User.id == Notification.sender_id)
        .where(Notification.receiver_id == session.user_id)
        .order_by(Notification.created_at.desc(), Notification.id)
        .limit(NOTIFICATION_LIMIT)
    )
    notifications = [
        NotificationResponse(
            id=str(notification.id),
            sender_id=str(notification.sender_id),
            sender_name=sender.display_name if sender else None,
            message=notification.message,
            type=notification.type,
            created_at=notification.created_at,
        )
        for notification, sender in result.all()
    ]
    return APIResponse[List[NotificationResponse]](data=notifications, count=len(notifications))


@router.delete("/{notification_id}", response_model=APIResponse[None])
async def delete_notification(
    notification_id: str,
    session: RequestSession = Depends(get_request_session),
    db: AsyncSession = Depends(get_db)
):
    """Dismiss one notification. Only the receiver can see it, so others get 404."""
    result = await db.execute(
        select(Notification).where(
            Notification.id == notification_id,
            Notification.receiver_id == session.user_id,
        )
    )
    notification = result.scalar_one_or_none()
    if notification is None:
        raise ResourceNotFoundError("Notification", notification_id)

    await db.delete(notification)
    await db.commit()
    return APIResponse[None](message="Notification deleted")


@router.delete("", response_model=APIResponse[dict])
async def clear_notifications(
    session: RequestSession = Depends(get_request_session),
    db: AsyncSession = Depends(get_db)
):
    result = await db.execute(
        delete(Notification).where(Notification.receiver_id == session.user_id)
    )
    await db.commit()
    return APIResponse[dict](message="All notifications cleared", data={"deletedCount": result.rowcount})


# ==================== Connections ====================

@router.get("/connections", response_model=APIResponse[List[UserSummary]])
async def list_connections(
    session: RequestSession = Depends(get_request_session),
    db: AsyncSession = Depends(get_db)
):
    """Everyone the current user is connected with"""
    users = await connection_service.connected_users(db, session.user_id)
    connections = await summaries(db, users)
    return APIResponse[List[UserSummary]](data=connections, count=len(connections))


@router.post("/connect/{user_id}", response_model=APIResponse[ConnectResult])
async def connect(
    user_id: str,
    session: RequestSession = Depends(get_request_session),
    db: AsyncSession = Depends(get_db)
):
    """Send a connection request, or accept the target's pending one"""
    request = await connection_service.send_request(db, session.user, user_id)
    message = (
        "Connection request accepted"
        if request.status == ConnectionStatus.ACCEPTED
        else "Connection request sent"
    )
    return APIResponse[ConnectResult](
        message=message,
        data=ConnectResult(request_id=str(request.id), target_id=user_id, status=request.status),
    )


@router.get("/connection-requests", response_model=APIResponse[List[ConnectionRequestResponse]])
async def list_connection_requests(
    session: RequestSession = Depends(get_request_session),
    db: AsyncSession = Depends(get_db)
):
    """Pending requests addressed to the current user"""
    rows = await connection_service.incoming_requests(db, session.user_id)
    profiles = await load_profiles(db, [requester.id for _, requester in rows])
    requests = [
        ConnectionRequestResponse(
            id=str(request.id),
            requester=to_summary(requester, profiles.get(str(requester.id))),
            status=request.status,
            created_at=request.created_at,
        )
        for request, requester in rows
    ]
    return APIResponse[List[ConnectionRequestResponse]](data=requests, count=len(requests))


@router.post("/connection-requests/{request_id}/respond", response_model=APIResponse[ConnectResult])
async def respond_to_request(
    request_id: str,
    response_data: RespondRequest,
    session: RequestSession = Depends(get_request_session),
    db: AsyncSession = Depends(get_db)
):
    request = await connection_service.respond(
        db, session.user, request_id, accept=response_data.action == "accept"
    )
    return APIResponse[ConnectResult](
        message=f"Connection request {request.status.value}",
        data=ConnectResult(
            request_id=str(request.id),
            target_id=str(request.requester_id),
            status=request.status,
        ),
    )


@router.delete("/connections/{user_id}", response_model=APIResponse[RemoveConnectionResult])
async def remove_connection(
    user_id: str,
    session: RequestSession = Depends(get_request_session),
    db: AsyncSession = Depends(get_db)
):
    """Remove a connection. Removing one that does not exist succeeds with removed=false."""
    removed = await connection_service.remove(db, session.user_id, user_id)
    return APIResponse[RemoveConnectionResult](
        message="Connection removed" if removed else "No connection to remove",
        data=RemoveConnectionResult(user_id=user_id, removed=removed),
    )

"""
Admin broadcast email.

Every requested user is counted exactly once: as sent, or as failed when the
id does not resolve to an active user or delivery fails.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from datetime import datetime

from alumnet.core.database import get_db
from alumnet.core.exceptions import ResourceNotFoundError
from alumnet.core.logging_config import logger
from alumnet.modules.auth.dependencies import get_admin_session
from alumnet.modules.auth.session import RequestSession
from alumnet.schemas.admin import BroadcastRecipient, BroadcastRequest, BroadcastResult
from alumnet.schemas.common import APIResponse
from alumnet.services.email_service import email_service
from alumnet.services.user_service import load_users

router = APIRouter()


@router.post("/broadcast", response_model=APIResponse[BroadcastResult])
async def send_broadcast(
    broadcast: BroadcastRequest,
    session: RequestSession = Depends(get_admin_session),
    db: AsyncSession = Depends(get_db)
):
    """Email a subject/message to the selected users"""
    requested = broadcast.user_ids
    users = await load_users(db, requested)
    recipients = [
        users[user_id] for user_id in requested
        if user_id in users and users[user_id].is_active
    ]
    if not recipients:
        raise ResourceNotFoundError("Recipients")

    result = await email_service.send_broadcast(
        [{"email": user.email, "name": user.display_name} for user in recipients],
        broadcast.subject,
        broadcast.message,
    )

    unresolved = len(requested) - len(recipients)
    emails_sent = result["success_count"]
    emails_failed = result["failed_count"] + unresolved

    logger.info(
        f"[Broadcast] {session.user.email} sent '{broadcast.subject}': "
        f"{emails_sent} sent, {emails_failed} failed"
    )
    return APIResponse[BroadcastResult](
        message=f"Broadcast sent to {emails_sent} users ({emails_failed} failed)",
        data=BroadcastResult(
            recipient_count=len(requested),
            emails_sent=emails_sent,
            emails_failed=emails_failed,
            recipients=[
                BroadcastRecipient(id=str(user.id), name=user.display_name, email=user.email)
                for user in recipients
            ],
            subject=broadcast.subject,
            sent_at=datetime.utcnow(),
        ),
    )

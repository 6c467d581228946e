"""
Admin access to the login/logout trail and the audit log.

Purging the activity trail is irreversible, so it takes two calls: the admin
first asks for a short-lived confirmation token, then sends it back in the
X-Confirmation-Token header of the DELETE.
"""
from fastapi import APIRouter, Depends, Header, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from alumnet.core.config import settings
from alumnet.core.database import get_db
from alumnet.core.exceptions import ValidationError
from alumnet.core.logging_config import logger
from alumnet.core.security import (
    LOG_PURGE_TOKEN_TYPE,
    create_log_purge_token,
    decode_log_purge_token,
)
from alumnet.models.audit_log import AuditAction
from alumnet.models.consumed_token import ConsumedToken
from alumnet.models.user_activity import ActivityAction
from alumnet.modules.auth.dependencies import get_admin_session
from alumnet.modules.auth.session import RequestSession
from alumnet.schemas.admin import (
    AuditLogResponse,
    PurgeConfirmation,
    PurgeResult,
    UserActivityResponse,
)
from alumnet.schemas.common import APIResponse, Page
from alumnet.services.activity_service import list_activity, purge_activity
from alumnet.services.audit_service import list_audit_logs, record_audit

router = APIRouter()


@router.get("/login-logs", response_model=APIResponse[Page[UserActivityResponse]])
async def get_login_logs(
    action: Optional[ActivityAction] = None,
    user_id: Optional[str] = None,
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(100, ge=1, le=100),
    session: RequestSession = Depends(get_admin_session),
    db: AsyncSession = Depends(get_db)
):
    """Login/logout events, newest first"""
    data = await list_activity(db, action, user_id, search, page, page_size)
    data["items"] = [UserActivityResponse.model_validate(a) for a in data["items"]]
    return APIResponse[Page[UserActivityResponse]](
        data=Page[UserActivityResponse](**data), count=data["total"]
    )


@router.get("/audit-logs", response_model=APIResponse[Page[AuditLogResponse]])
async def get_audit_logs(
    action: Optional[AuditAction] = None,
    collection: Optional[str] = None,
    user_id: Optional[str] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=100),
    session: RequestSession = Depends(get_admin_session),
    db: AsyncSession = Depends(get_db)
):
    """Create/update/delete audit entries, newest first"""
    data = await list_audit_logs(db, action, collection, user_id, page, page_size)
    data["items"] = [AuditLogResponse.model_validate(entry) for entry in data["items"]]
    return APIResponse[Page[AuditLogResponse]](
        data=Page[AuditLogResponse](**data), count=data["total"]
    )


@router.post("/logs/confirmation", response_model=APIResponse[PurgeConfirmation])
async def request_purge_confirmation(
    session: RequestSession = Depends(get_admin_session)
):
    """Issue the token required by DELETE /admin/logs"""
    expires_in = settings.LOG_PURGE_TOKEN_EXPIRE_MINUTES * 60
    logger.warning(f"[Logs] Purge confirmation requested by {session.user.email}")
    return APIResponse[PurgeConfirmation](
        message="Send this token in the X-Confirmation-Token header to delete all logs",
        data=PurgeConfirmation(
            confirmation_token=create_log_purge_token(session.user_id),
            expires_in_seconds=expires_in,
        ),
    )


@router.delete("/logs", response_model=APIResponse[PurgeResult])
async def delete_all_logs(
    confirmation_token: Optional[str] = Header(None, alias="X-Confirmation-Token"),
    session: RequestSession = Depends(get_admin_session),
    db: AsyncSession = Depends(get_db)
):
    """Delete every login/logout record. The purge itself is audited."""
    token_id = decode_log_purge_token(confirmation_token, session.user_id)
    if token_id is None or await db.get(ConsumedToken, token_id) is not None:
        raise ValidationError(
            "A valid confirmation token is required. Request one from POST /admin/logs/confirmation.",
            field="X-Confirmation-Token",
        )

    db.add(ConsumedToken(jti=token_id, token_type=LOG_PURGE_TOKEN_TYPE, user_id=session.user_id))
    deleted_count = await purge_activity(db)
    record_audit(
        db,
        AuditAction.DELETE,
        "UserActivity",
        None,
        session=session,
        changes={"deleted_count": deleted_count},
    )
    await db.commit()

    logger.warning(f"[Logs] {session.user.email} deleted {deleted_count} activity records")
    return APIResponse[PurgeResult](
        message=f"Deleted {deleted_count} activity logs",
        data=PurgeResult(deleted_count=deleted_count),
    )

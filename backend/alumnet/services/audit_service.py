"""
Audit trail of CREATE/UPDATE/DELETE operations.

Entries are added to the caller's session; the caller commits them together
with the change they describe.
"""
from typing import Optional, Dict, Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from alumnet.core.logging_config import logger
from alumnet.models.audit_log import AuditLog, AuditAction
from alumnet.models.user import User
from alumnet.modules.auth.session import RequestSession
from alumnet.utils.pagination import paginate


def record_audit(
    db: AsyncSession,
    action: AuditAction,
    collection: str,
    document_id: Optional[str],
    actor: Optional[User] = None,
    session: Optional[RequestSession] = None,
    changes: Optional[Dict[str, Any]] = None,
) -> AuditLog:
    """
    Queue an audit entry.

    The actor is taken from the request session when there is one, otherwise
    from `actor` (e.g. self-signup, where nobody is logged in yet).
    """
    user = session.user if session else actor
    entry = AuditLog(
        action=action,
        collection=collection,
        document_id=str(document_id) if document_id else None,
        user_id=str(user.id) if user else None,
        user_email=user.email if user else None,
        user_role=user.role.value if user else None,
        changes=changes,
        ip_address=session.ip_address if session else None,
        user_agent=session.user_agent if session else None,
    )
    db.add(entry)
    logger.log_audit_event(
        action.value,
        collection,
        document_id=entry.document_id,
        actor_email=entry.user_email,
    )
    return entry


async def list_audit_logs(
    db: AsyncSession,
    action: Optional[AuditAction] = None,
    collection: Optional[str] = None,
    user_id: Optional[str] = None,
    page: int = 1,
    page_size: int = 50
) -> dict:
    query = select(AuditLog)
    if action:
        query = query.where(AuditLog.action == action)
    if collection:
        query = query.where(AuditLog.collection == collection)
    if user_id:
        query = query.where(AuditLog.user_id == user_id)
    query = query.order_by(AuditLog.timestamp.desc(), AuditLog.id.desc())
    return await paginate(db, query, page, page_size)


def diff_fields(obj: Any, updates: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
    """Old/new pairs for every field in `updates` whose value actually changes"""
    changes = {}
    for field, new_value in updates.items():
        old_value = getattr(obj, field, None)
        if old_value != new_value:
            changes[field] = {"old": old_value, "new": new_value}
    return changes

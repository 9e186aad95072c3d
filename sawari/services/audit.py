import logging
from typing import Any, Dict, Optional

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from sawari.models.models import AuditLog, User

logger = logging.getLogger("sawari.audit")


def client_ip(request: Optional[Request]) -> Optional[str]:
    if request is None:
        return None
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


async def record_admin_action(
    db: AsyncSession,
    actor: Optional[User],
    action: str,
    object_type: str,
    object_id: Optional[str] = None,
    detail: Optional[Dict[str, Any]] = None,
    request: Optional[Request] = None,
) -> AuditLog:
    """Stage an audit row in the caller's transaction; the caller commits."""
    entry = AuditLog(
        actor_id=actor.id if actor else None,
        action=action,
        object_type=object_type,
        object_id=object_id,
        detail=detail,
        ip_address=client_ip(request),
    )
    db.add(entry)
    logger.info(action, extra={"actor_id": entry.actor_id, "object_type": object_type, "object_id": object_id})
    return entry

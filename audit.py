"""Audit trail for admin changes, stored in the ``auditlog`` collection."""

from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import Request
from pymongo.database import Database
from pymongo.errors import PyMongoError

from logging_config import get_logger
from rate_limit import client_address
from schemas import AuditLog

logger = get_logger("audit")


def record_audit(
    db: Database,
    request: Request,
    action: str,
    entity_type: str,
    entity_id: Optional[str] = None,
    before: Any = None,
    after: Any = None,
    actor: Optional[str] = None,
) -> None:
    """Write one audit entry. A failed write is logged and never fails the request."""
    entry = AuditLog(
        actor=actor,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        before=before,
        after=after,
        ip=client_address(request),
        user_agent=request.headers.get("user-agent"),
    ).model_dump()
    entry["created_at"] = datetime.now(timezone.utc)
    try:
        db["auditlog"].insert_one(entry)
    except PyMongoError:
        logger.exception("Failed to write audit log for %s %s", action, entity_id)

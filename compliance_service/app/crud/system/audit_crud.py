import logging
from typing import Any, Dict, Optional

from fastapi.encoders import jsonable_encoder
from sqlalchemy.orm import Session

from ...enum.system_enum import AuditAction
from ...models.system.audit_logs import AuditLog

logger = logging.getLogger(__name__)

MASKED_FIELDS = ("contact_email", "contact_phone")
MASK = "***"


def mask_details(details: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if not details:
        return details
    masked = dict(details)
    for field in MASKED_FIELDS:
        if masked.get(field):
            masked[field] = MASK
    return masked


def record_audit(
    db: Session,
    action: AuditAction,
    entity: str,
    entity_id: Any = None,
    user_id: Any = None,
    details: Optional[Dict[str, Any]] = None,
) -> Optional[AuditLog]:
    """Stage an audit entry on the caller's session. Never raises."""
    try:
        entry = AuditLog(
            action=AuditAction(action).value,
            entity=entity,
            entity_id=str(entity_id) if entity_id is not None else None,
            user_id=user_id,
            details=jsonable_encoder(mask_details(details)),
        )
        db.add(entry)
        return entry
    except Exception:
        logger.exception("Failed to record audit %s on %s %s",
                         action, entity, entity_id)
        return None

"""
Shared audit trail service.
Used by every mutating operation in case_lifecycle_service, fee_ledger_service
and fee_schedule_service.
"""

import enum
from datetime import datetime
from typing import Optional
from sqlalchemy.orm import Session
from app.models.audit_event import AuditEvent
from app.models.enums import AuditEventType
from app.utils.logger import get_logger

logger = get_logger(__name__)


def _json_safe(value):
    if isinstance(value, dict):
        return {k: _json_safe(v) for k, v in value.items()}
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    return str(value)  # Decimal


def record_audit_event(db: Session, event_type: AuditEventType, entity_type: str,
                       entity_id: str, actor_id: str, changes: Optional[dict] = None,
                       details: Optional[dict] = None, actor_type: str = "USER") -> AuditEvent:
    """
    Add an audit record to the session. Does NOT commit: the caller's
    transaction commits the change and its audit record together.
    """
    event = AuditEvent(
        event_type=event_type.value,
        entity_type=entity_type,
        entity_id=entity_id,
        actor_id=actor_id,
        actor_type=actor_type,
        changes=_json_safe(changes) if changes else None,
        details=_json_safe(details) if details else None,
    )
    db.add(event)
    logger.debug(f"[AUDIT] {event_type.value} {entity_type}:{entity_id} by {actor_id}")
    return event


def list_audit_events(db: Session, entity_id: str, limit: int = 100) -> list[AuditEvent]:
    return (
        db.query(AuditEvent)
        .filter(AuditEvent.entity_id == entity_id)
        .order_by(AuditEvent.created_at.desc())
        .limit(limit)
        .all()
    )

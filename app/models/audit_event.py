"""
Audit trail: append-only record of every mutating operation.
`changes` maps field name to {"old": ..., "new": ...}.
"""

from datetime import datetime

from sqlalchemy import Column, String, DateTime, JSON
from app.database import Base
from app.models.vehicle_case import new_uuid


class AuditEvent(Base):
    __tablename__ = "audit_events"

    id = Column(String(36), primary_key=True, default=new_uuid)
    event_type = Column(String(50), nullable=False, index=True)
    entity_type = Column(String(50), nullable=False)
    entity_id = Column(String(36), nullable=False, index=True)
    actor_id = Column(String(100), nullable=False)
    actor_type = Column(String(20), nullable=False, default="USER")  # USER | SYSTEM
    changes = Column(JSON)
    details = Column(JSON)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)

    def __repr__(self):
        return f"<AuditEvent {self.event_type} {self.entity_type}:{self.entity_id}>"

"""Yard dashboard: status counts, today's revenue, recent case activity."""

from datetime import date, datetime, time
from typing import Optional
from sqlalchemy import func
from sqlalchemy.orm import Session
from app.models.audit_event import AuditEvent
from app.models.enums import AuditEventType, CaseStatus, FeeType
from app.models.fee_ledger_entry import FeeLedgerEntry
from app.models.vehicle_case import VehicleCase
from app.services.fee_ledger_service import summarize

IN_YARD_STATUSES = (CaseStatus.STORED, CaseStatus.HOLD, CaseStatus.RELEASE_ELIGIBLE)
ACTIVITY_EVENT_TYPES = (AuditEventType.CREATE, AuditEventType.STATUS_CHANGE,
                        AuditEventType.PAYMENT_RECEIVED, AuditEventType.RELEASE)


def _count_by_status(db: Session) -> dict[str, int]:
    rows = db.query(VehicleCase.status, func.count(VehicleCase.id)).group_by(VehicleCase.status).all()
    return {status: count for status, count in rows}


def get_stats(db: Session, today: Optional[date] = None) -> dict:
    counts = _count_by_status(db)
    start_of_day = datetime.combine(today or datetime.utcnow().date(), time.min)

    payments = (
        db.query(FeeLedgerEntry.amount)
        .filter(FeeLedgerEntry.fee_type == FeeType.PAYMENT.value,
                FeeLedgerEntry.created_at >= start_of_day,
                FeeLedgerEntry.voided_at == None)  # noqa: E711
        .all()
    )

    return {
        "total_stored": sum(counts.get(s.value, 0) for s in IN_YARD_STATUSES),
        "ready_to_release": counts.get(CaseStatus.RELEASE_ELIGIBLE.value, 0),
        "on_hold": counts.get(CaseStatus.HOLD.value, 0),
        "pending_intake": counts.get(CaseStatus.PENDING_INTAKE.value, 0),
        "auction_eligible": counts.get(CaseStatus.AUCTION_ELIGIBLE.value, 0),
        "today_revenue": summarize(row.amount for row in payments).total_payments,
    }


def recent_activity(db: Session, limit: int = 10) -> list[dict]:
    events = (
        db.query(AuditEvent)
        .filter(AuditEvent.entity_type == "VehicleCase",
                AuditEvent.event_type.in_([t.value for t in ACTIVITY_EVENT_TYPES]))
        .order_by(AuditEvent.created_at.desc())
        .limit(limit)
        .all()
    )

    case_ids = list({e.entity_id for e in events})
    cases = {c.id: c for c in db.query(VehicleCase).filter(VehicleCase.id.in_(case_ids)).all()} if case_ids else {}

    activity = []
    for event in events:
        vehicle_case = cases.get(event.entity_id)
        description = None
        if vehicle_case:
            description = f"{vehicle_case.make or ''} {vehicle_case.model or ''}".strip() or None
        activity.append({
            "id": event.id,
            "event_type": event.event_type,
            "case_number": vehicle_case.case_number if vehicle_case else None,
            "vehicle_description": description,
            "created_at": event.created_at,
            "details": event.details,
        })
    return activity

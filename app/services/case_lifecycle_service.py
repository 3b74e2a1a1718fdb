"""
Vehicle case lifecycle.

    PENDING_INTAKE ──intake──▶ STORED | HOLD
    STORED ──balance paid──▶ RELEASE_ELIGIBLE        (fee_ledger_service)
    STORED | RELEASE_ELIGIBLE ──release──▶ RELEASED  (never under police hold)
    HOLD ──lift hold──▶ STORED, or RELEASE_ELIGIBLE if already paid off
    any ──admin override──▶ any

Every operation runs inside conflict_guard: it loads the case FOR UPDATE,
checks its guard, mutates, writes the audit record and commits once. A failed
guard raises before anything is written and the transaction is rolled back.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from sqlalchemy import or_
from sqlalchemy.orm import Session
from app.config import settings
from app.database import conflict_guard
from app.exceptions import InvalidStateError, NotFoundError, ValidationError
from app.models.agency import Agency
from app.models.enums import AuditEventType, CaseStatus, FeeType, VehicleClass
from app.models.vehicle_case import VehicleCase
from app.schemas.vehicle_case import CaseCreate
from app.services import fee_ledger_service
from app.services.audit_service import record_audit_event
from app.services.case_number_service import next_case_number
from app.services.fee_schedule_service import get_fee_amount
from app.services.vehicle_service import get_case
from app.utils.logger import get_logger

logger = get_logger(__name__)

RELEASABLE_STATUSES = {CaseStatus.STORED, CaseStatus.RELEASE_ELIGIBLE}

# Charges created when a vehicle is checked into the yard
INTAKE_FEES = (
    (FeeType.TOW, "Standard tow fee"),
    (FeeType.ADMIN, "Administrative fee"),
)


async def create_case(db: Session, data: CaseCreate, actor_id: str) -> VehicleCase:
    """Issue a case number and persist a new case in PENDING_INTAKE."""
    agency_id = str(data.towing_agency_id) if data.towing_agency_id else None

    with conflict_guard(db, "New case"):
        if agency_id and not db.query(Agency).filter(Agency.id == agency_id).first():
            raise NotFoundError(f"Agency {agency_id} not found")

        case_number = next_case_number(db)
        vehicle_case = VehicleCase(
            case_number=case_number,
            status=CaseStatus.PENDING_INTAKE.value,
            vin=data.vin.upper() if data.vin else None,
            plate_number=data.plate_number,
            plate_state=data.plate_state.upper() if data.plate_state else None,
            year=data.year,
            make=data.make,
            model=data.model,
            color=data.color,
            vehicle_type=data.vehicle_type.value,
            vehicle_class=data.vehicle_class.value,
            tow_date=data.tow_date,
            tow_reason=data.tow_reason.value,
            tow_location=data.tow_location,
            towing_agency_id=agency_id,
            police_hold=data.police_hold,
            police_case_number=data.police_case_number,
            hold_expires_at=data.hold_expires_at,
            owner_name=data.owner_name,
            owner_address=data.owner_address,
            owner_phone=data.owner_phone,
            created_by_id=actor_id,
            updated_by_id=actor_id,
        )
        db.add(vehicle_case)
        db.flush()

        record_audit_event(
            db, AuditEventType.CREATE, "VehicleCase", vehicle_case.id, actor_id,
            details={"case_number": case_number, "police_hold": data.police_hold},
        )
        db.commit()
    logger.info(f"[LIFECYCLE] Created case {case_number} (hold={data.police_hold})")
    return vehicle_case


def get_case_detail(db: Session, case_id: str) -> dict:
    """Case fields plus its non-voided entries and ledger summary."""
    vehicle_case = get_case(db, case_id)
    entries = fee_ledger_service.list_entries(db, vehicle_case.id, include_voided=False)
    summary = fee_ledger_service.summarize(e.amount for e in entries)
    return {
        "case": vehicle_case,
        "entries": entries,
        "summary": summary,
    }


def search_cases(db: Session, query: Optional[str] = None, status: Optional[CaseStatus] = None,
                 limit: Optional[int] = None, offset: int = 0):
    """
    Returns (rows, total, has_more). Each row is (case, balance).
    `query` matches case number, VIN, plate, owner name, make or model.
    """
    limit = settings.SEARCH_DEFAULT_LIMIT if limit is None else limit
    if not 1 <= limit <= settings.SEARCH_MAX_LIMIT:
        raise ValidationError(f"limit must be between 1 and {settings.SEARCH_MAX_LIMIT}")
    if offset < 0:
        raise ValidationError("offset cannot be negative")

    q = db.query(VehicleCase)
    if status:
        q = q.filter(VehicleCase.status == status.value)
    if query:
        pattern = f"%{query.strip()}%"
        q = q.filter(or_(
            VehicleCase.case_number.ilike(pattern),
            VehicleCase.vin.ilike(pattern),
            VehicleCase.plate_number.ilike(pattern),
            VehicleCase.owner_name.ilike(pattern),
            VehicleCase.make.ilike(pattern),
            VehicleCase.model.ilike(pattern),
        ))

    total = q.count()
    cases = (
        q.order_by(VehicleCase.created_at.desc(), VehicleCase.case_number.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    balances = fee_ledger_service.get_balances(db, [c.id for c in cases])
    rows = [(c, balances[c.id]) for c in cases]
    return rows, total, offset + limit < total


async def complete_intake(db: Session, case_id: str, yard_location: str, actor_id: str,
                          notes: Optional[str] = None) -> VehicleCase:
    """
    Check a vehicle into the yard and post the initial tow and admin charges.
    A fee waived in the schedule (0.00) is still posted, as a zero entry.
    """
    if not yard_location or not yard_location.strip():
        raise ValidationError("Yard location is required")

    with conflict_guard(db, f"Case {case_id}"):
        vehicle_case = get_case(db, case_id, lock=True)
        if vehicle_case.status_enum != CaseStatus.PENDING_INTAKE:
            logger.warning(f"[LIFECYCLE] Intake rejected for {vehicle_case.case_number}: status {vehicle_case.status}")
            raise InvalidStateError(
                f"Case {vehicle_case.case_number} is not in pending intake status (status {vehicle_case.status})"
            )

        old_status = vehicle_case.status
        next_status = CaseStatus.HOLD if vehicle_case.police_hold else CaseStatus.STORED
        vehicle_class = VehicleClass(vehicle_case.vehicle_class)

        for fee_type, description in INTAKE_FEES:
            amount = get_fee_amount(db, fee_type, vehicle_class)
            db.add(fee_ledger_service.new_charge(
                vehicle_case, fee_type, amount, description, vehicle_case.tow_date, actor_id,
                allow_zero=True,
            ))

        vehicle_case.status = next_status.value
        vehicle_case.yard_location = yard_location.strip()
        vehicle_case.intake_date = datetime.utcnow()
        vehicle_case.intake_notes = notes
        vehicle_case.updated_by_id = actor_id

        record_audit_event(
            db, AuditEventType.STATUS_CHANGE, "VehicleCase", vehicle_case.id, actor_id,
            changes={
                "status": {"old": old_status, "new": next_status.value},
                "yard_location": {"old": None, "new": vehicle_case.yard_location},
            },
        )
        db.commit()
    logger.info(f"[LIFECYCLE] {vehicle_case.case_number}: {old_status} → {next_status.value} "
                f"at {vehicle_case.yard_location}")
    return vehicle_case


async def release_case(db: Session, case_id: str, released_to: str,
                       actor_id: str) -> tuple[VehicleCase, Decimal]:
    """
    Release a vehicle. Blocked by a police hold regardless of balance; an
    outstanding balance does not block release and is returned to the caller.
    """
    if not released_to or not released_to.strip():
        raise ValidationError("released_to is required")

    with conflict_guard(db, f"Case {case_id}"):
        vehicle_case = get_case(db, case_id, lock=True)
        if vehicle_case.police_hold:
            logger.warning(f"[LIFECYCLE] Release rejected for {vehicle_case.case_number}: police hold")
            raise InvalidStateError(f"Cannot release case {vehicle_case.case_number}: vehicle is under police hold")
        if vehicle_case.status_enum not in RELEASABLE_STATUSES:
            logger.warning(f"[LIFECYCLE] Release rejected for {vehicle_case.case_number}: status {vehicle_case.status}")
            raise InvalidStateError(
                f"Cannot release case {vehicle_case.case_number} from status {vehicle_case.status}"
            )

        balance = fee_ledger_service.get_balance(db, vehicle_case.id)
        if balance > 0:
            logger.warning(f"[LIFECYCLE] {vehicle_case.case_number} released with outstanding balance {balance}")

        old_status = vehicle_case.status
        vehicle_case.status = CaseStatus.RELEASED.value
        vehicle_case.released_at = datetime.utcnow()
        vehicle_case.released_to = released_to.strip()
        vehicle_case.updated_by_id = actor_id

        record_audit_event(
            db, AuditEventType.RELEASE, "VehicleCase", vehicle_case.id, actor_id,
            changes={
                "status": {"old": old_status, "new": CaseStatus.RELEASED.value},
                "released_to": {"old": None, "new": vehicle_case.released_to},
            },
            details={"outstanding_balance": balance},
        )
        db.commit()
    logger.info(f"[LIFECYCLE] {vehicle_case.case_number}: {old_status} → RELEASED to {vehicle_case.released_to}")
    return vehicle_case, balance


async def update_status(db: Session, case_id: str, status: CaseStatus, actor_id: str) -> VehicleCase:
    """Admin correction: any status to any status, audited."""
    with conflict_guard(db, f"Case {case_id}"):
        vehicle_case = get_case(db, case_id, lock=True)
        old_status = vehicle_case.status
        vehicle_case.status = status.value
        vehicle_case.updated_by_id = actor_id

        record_audit_event(
            db, AuditEventType.STATUS_CHANGE, "VehicleCase", vehicle_case.id, actor_id,
            changes={"status": {"old": old_status, "new": status.value}},
            details={"reason": "admin override"},
        )
        db.commit()
    logger.info(f"[LIFECYCLE] {vehicle_case.case_number}: {old_status} → {status.value} (override)")
    return vehicle_case


async def lift_police_hold(db: Session, case_id: str, actor_id: str) -> VehicleCase:
    """
    Clear a police hold. A case sitting in HOLD moves to STORED, and then on to
    RELEASE_ELIGIBLE if its balance was paid off while the hold was in place.
    """
    with conflict_guard(db, f"Case {case_id}"):
        vehicle_case = get_case(db, case_id, lock=True)
        if not vehicle_case.police_hold:
            raise InvalidStateError(f"Case {vehicle_case.case_number} has no police hold")

        old_status = vehicle_case.status
        changes = {"police_hold": {"old": True, "new": False}}
        vehicle_case.police_hold = False
        vehicle_case.hold_expires_at = None
        if vehicle_case.status_enum == CaseStatus.HOLD:
            vehicle_case.status = CaseStatus.STORED.value
            changes["status"] = {"old": old_status, "new": vehicle_case.status}
        vehicle_case.updated_by_id = actor_id

        record_audit_event(
            db, AuditEventType.HOLD_LIFTED, "VehicleCase", vehicle_case.id, actor_id,
            changes=changes,
            details={"police_case_number": vehicle_case.police_case_number},
        )
        balance = fee_ledger_service.get_balance(db, vehicle_case.id)
        fee_ledger_service.mark_release_eligible_if_paid(
            db, vehicle_case, balance, actor_id, datetime.utcnow(), reason="hold lifted, balance paid",
        )
        db.commit()
    logger.info(f"[LIFECYCLE] {vehicle_case.case_number}: police hold lifted ({old_status} → {vehicle_case.status})")
    return vehicle_case

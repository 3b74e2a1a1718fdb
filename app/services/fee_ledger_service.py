"""
Fee ledger: charges and payments per vehicle case.

Charges are stored with a positive amount, payments with a negative amount,
and balance = sum of all non-voided amounts. The balance is always derived
from the entries, never stored on the case. All arithmetic is Decimal.

A payment that brings the balance to zero or below on a STORED case without
a police hold moves the case to RELEASE_ELIGIBLE. The check runs after the
payment entry is flushed, with the case row locked, in the same transaction.
"""

from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Optional
from sqlalchemy.orm import Session
from app.database import conflict_guard
from app.exceptions import InvalidStateError, NotFoundError, ValidationError
from app.models.enums import AuditEventType, CaseStatus, CLOSED_STATUSES, FeeType
from app.models.fee_ledger_entry import FeeLedgerEntry
from app.models.vehicle_case import VehicleCase
from app.services.audit_service import record_audit_event
from app.services.vehicle_service import get_case
from app.utils.logger import get_logger

logger = get_logger(__name__)

CENTS = Decimal("0.01")
ZERO = Decimal("0.00")


@dataclass
class LedgerSummary:
    total_charges: Decimal
    total_payments: Decimal
    balance: Decimal


def _to_decimal(amount) -> Decimal:
    if isinstance(amount, Decimal):
        return amount
    return Decimal(str(amount))


def summarize(amounts: Iterable) -> LedgerSummary:
    """Totals for a set of non-voided amounts. Positive = charge, negative = payment."""
    charges = ZERO
    payments = ZERO
    for raw in amounts:
        amount = _to_decimal(raw)
        if amount > 0:
            charges += amount
        elif amount < 0:
            payments += -amount
    charges = charges.quantize(CENTS)
    payments = payments.quantize(CENTS)
    return LedgerSummary(total_charges=charges, total_payments=payments,
                         balance=(charges - payments).quantize(CENTS))


def _active_amounts(db: Session, case_id: str) -> list:
    rows = (
        db.query(FeeLedgerEntry.amount)
        .filter(FeeLedgerEntry.vehicle_case_id == str(case_id),
                FeeLedgerEntry.voided_at == None)  # noqa: E711
        .all()
    )
    return [row.amount for row in rows]


def get_summary(db: Session, case_id: str) -> LedgerSummary:
    return summarize(_active_amounts(db, case_id))


def get_balance(db: Session, case_id: str) -> Decimal:
    return get_summary(db, case_id).balance


def get_balances(db: Session, case_ids: list[str]) -> dict[str, Decimal]:
    """Balance for each case id in one query. Cases without entries get 0.00."""
    if not case_ids:
        return {}
    rows = (
        db.query(FeeLedgerEntry.vehicle_case_id, FeeLedgerEntry.amount)
        .filter(FeeLedgerEntry.vehicle_case_id.in_(case_ids),
                FeeLedgerEntry.voided_at == None)  # noqa: E711
        .all()
    )
    by_case = defaultdict(list)
    for case_id, amount in rows:
        by_case[case_id].append(amount)
    return {case_id: summarize(by_case.get(case_id, [])).balance for case_id in case_ids}


def list_entries(db: Session, case_id: str, include_voided: bool = True) -> list[FeeLedgerEntry]:
    """Entries for a case, newest accrual first."""
    q = db.query(FeeLedgerEntry).filter(FeeLedgerEntry.vehicle_case_id == str(case_id))
    if not include_voided:
        q = q.filter(FeeLedgerEntry.voided_at == None)  # noqa: E711
    return q.order_by(FeeLedgerEntry.accrual_date.desc(), FeeLedgerEntry.created_at.desc()).all()


def _ensure_open(vehicle_case: VehicleCase, action: str):
    if vehicle_case.status_enum in CLOSED_STATUSES:
        logger.warning(f"[LEDGER] Rejected {action} on {vehicle_case.case_number}: status {vehicle_case.status}")
        raise InvalidStateError(
            f"Cannot record {action} for case {vehicle_case.case_number} in status {vehicle_case.status}"
        )


def new_charge(vehicle_case: VehicleCase, fee_type: FeeType, amount: Decimal, description: str,
               accrual_date: datetime, actor_id: str, allow_zero: bool = False) -> FeeLedgerEntry:
    """
    Build a charge entry for a case. The caller adds it to the session.
    allow_zero is for scheduled fees that have been waived (configured as 0.00).
    """
    amount = _to_decimal(amount).quantize(CENTS)
    if amount < 0 or (amount == 0 and not allow_zero):
        raise ValidationError("Charge amount must be greater than zero")
    if fee_type == FeeType.PAYMENT:
        raise ValidationError("Use a payment, not a charge, to record money received")
    return FeeLedgerEntry(
        vehicle_case_id=vehicle_case.id,
        fee_type=fee_type.value,
        description=description,
        amount=amount,
        accrual_date=accrual_date,
        created_by_id=actor_id,
    )


async def add_charge(db: Session, case_id: str, fee_type: FeeType, amount: Decimal,
                     description: str, actor_id: str,
                     accrual_date: Optional[datetime] = None) -> FeeLedgerEntry:
    with conflict_guard(db, f"Case {case_id}"):
        vehicle_case = get_case(db, case_id, lock=True)
        _ensure_open(vehicle_case, "a charge")

        entry = new_charge(vehicle_case, fee_type, amount, description,
                           accrual_date or datetime.utcnow(), actor_id)
        db.add(entry)
        db.flush()

        record_audit_event(
            db, AuditEventType.CHARGE_ADDED, "VehicleCase", vehicle_case.id, actor_id,
            details={"entry_id": entry.id, "fee_type": fee_type.value, "amount": entry.amount},
        )
        db.commit()
    logger.info(f"[LEDGER] {vehicle_case.case_number}: charge {fee_type.value} {entry.amount}")
    return entry


async def add_payment(db: Session, case_id: str, amount: Decimal, method: str, actor_id: str,
                      description: Optional[str] = None) -> tuple[FeeLedgerEntry, Decimal, VehicleCase]:
    """
    Record a payment and apply the release-eligible rule.
    Returns (entry, new_balance, case).
    """
    amount = _to_decimal(amount).quantize(CENTS)
    if amount <= 0:
        raise ValidationError("Payment amount must be greater than zero")

    with conflict_guard(db, f"Case {case_id}"):
        vehicle_case = get_case(db, case_id, lock=True)
        _ensure_open(vehicle_case, "a payment")

        now = datetime.utcnow()
        entry = FeeLedgerEntry(
            vehicle_case_id=vehicle_case.id,
            fee_type=FeeType.PAYMENT.value,
            description=description or f"Payment ({method})",
            amount=-amount,
            accrual_date=now,
            paid_at=now,
            payment_method=method,
            created_by_id=actor_id,
        )
        db.add(entry)
        db.flush()

        # Evaluated against the entry set as it stands after this payment
        balance = get_balance(db, vehicle_case.id)
        record_audit_event(
            db, AuditEventType.PAYMENT_RECEIVED, "VehicleCase", vehicle_case.id, actor_id,
            details={"entry_id": entry.id, "amount": amount, "method": method, "balance": balance},
        )

        old_status = vehicle_case.status
        mark_release_eligible_if_paid(db, vehicle_case, balance, actor_id, now, reason="balance paid")
        db.commit()

    logger.info(f"[LEDGER] {vehicle_case.case_number}: payment {amount} ({method}), balance {balance}")
    if vehicle_case.status != old_status:
        logger.info(f"[LIFECYCLE] {vehicle_case.case_number}: {old_status} → {vehicle_case.status}")
    return entry, balance, vehicle_case


def mark_release_eligible_if_paid(db: Session, vehicle_case: VehicleCase, balance: Decimal,
                                  actor_id: str, now: datetime, reason: str) -> bool:
    """
    STORED case, no police hold, balance <= 0 → RELEASE_ELIGIBLE.
    Caller holds the case row lock and commits. Returns True if the status moved.
    """
    if balance > 0 or vehicle_case.status_enum != CaseStatus.STORED or vehicle_case.police_hold:
        return False

    old_status = vehicle_case.status
    vehicle_case.status = CaseStatus.RELEASE_ELIGIBLE.value
    vehicle_case.release_eligible_at = now
    vehicle_case.updated_by_id = actor_id
    record_audit_event(
        db, AuditEventType.STATUS_CHANGE, "VehicleCase", vehicle_case.id, actor_id,
        changes={"status": {"old": old_status, "new": vehicle_case.status}},
        details={"reason": reason},
    )
    return True


async def void_entry(db: Session, entry_id: str, actor_id: str,
                     reason: Optional[str] = None) -> FeeLedgerEntry:
    """Soft-delete an entry. It stays listed but no longer counts toward the balance."""
    with conflict_guard(db, f"Ledger entry {entry_id}"):
        entry = db.query(FeeLedgerEntry).filter(FeeLedgerEntry.id == str(entry_id)).first()
        if not entry:
            raise NotFoundError(f"Ledger entry {entry_id} not found")

        # Serialize with other ledger writes on the same case
        vehicle_case = get_case(db, entry.vehicle_case_id, lock=True)
        db.refresh(entry)
        if entry.voided_at is not None:
            raise InvalidStateError(f"Ledger entry {entry_id} is already voided")

        entry.voided_at = datetime.utcnow()
        entry.void_reason = reason
        record_audit_event(
            db, AuditEventType.ENTRY_VOIDED, "VehicleCase", vehicle_case.id, actor_id,
            changes={"voided_at": {"old": None, "new": entry.voided_at}},
            details={"entry_id": entry.id, "fee_type": entry.fee_type,
                     "amount": entry.amount, "reason": reason},
        )
        db.commit()
    logger.info(f"[LEDGER] {vehicle_case.case_number}: voided {entry.fee_type} {entry.amount}")
    return entry

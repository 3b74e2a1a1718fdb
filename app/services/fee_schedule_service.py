"""
Fee schedule: the configured charge amount per fee type, optionally
overridden per vehicle class. Falls back to DEFAULT_FEE_AMOUNTS when a fee
type has never been configured.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from sqlalchemy.orm import Session
from app.database import conflict_guard
from app.exceptions import ValidationError
from app.models.enums import AuditEventType, FeeType, VehicleClass
from app.models.fee_schedule import FeeScheduleConfig
from app.services.audit_service import record_audit_event
from app.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_FEE_AMOUNTS = {
    FeeType.TOW: Decimal("150.00"),
    FeeType.ADMIN: Decimal("50.00"),
    FeeType.STORAGE_DAILY: Decimal("45.00"),
    FeeType.GATE: Decimal("75.00"),
    FeeType.LIEN_PROCESSING: Decimal("100.00"),
    FeeType.TITLE_SEARCH: Decimal("50.00"),
    FeeType.NOTICE: Decimal("25.00"),
    FeeType.DOLLY: Decimal("75.00"),
    FeeType.WINCH: Decimal("100.00"),
    FeeType.MILEAGE: Decimal("5.00"),
}

FEE_TYPE_LABELS = {
    FeeType.TOW: ("Tow Fee", "Standard tow service charge"),
    FeeType.ADMIN: ("Administrative Fee", "Processing and paperwork fee"),
    FeeType.STORAGE_DAILY: ("Daily Storage", "Per-day storage charge"),
    FeeType.GATE: ("Gate Fee", "After-hours release fee"),
    FeeType.LIEN_PROCESSING: ("Lien Processing", "Title/lien processing fee"),
    FeeType.TITLE_SEARCH: ("Title Search", "Vehicle title search fee"),
    FeeType.NOTICE: ("Notice Fee", "Compliance notice mailing fee"),
    FeeType.DOLLY: ("Dolly Service", "Dolly/wheel-lift service"),
    FeeType.WINCH: ("Winch Service", "Winch recovery service"),
    FeeType.MILEAGE: ("Mileage", "Per-mile tow charge"),
}

CENTS = Decimal("0.01")


def _current_config(db: Session, fee_type: FeeType) -> Optional[FeeScheduleConfig]:
    return (
        db.query(FeeScheduleConfig)
        .filter(FeeScheduleConfig.fee_type == fee_type.value,
                FeeScheduleConfig.effective_to == None)  # noqa: E711
        .order_by(FeeScheduleConfig.effective_from.desc())
        .first()
    )


def _class_amounts(config: FeeScheduleConfig) -> dict:
    return {VehicleClass(k): Decimal(str(v)).quantize(CENTS)
            for k, v in (config.vehicle_class_amounts or {}).items()}


def get_fee_amount(db: Session, fee_type: FeeType, vehicle_class: VehicleClass) -> Decimal:
    """Amount to charge for fee_type on a vehicle of the given class."""
    config = _current_config(db, fee_type)
    if config is None:
        return DEFAULT_FEE_AMOUNTS.get(fee_type, Decimal("0.00"))
    override = _class_amounts(config).get(vehicle_class)
    if override is not None:
        return override
    return Decimal(config.base_amount).quantize(CENTS)


def list_fee_schedule(db: Session) -> list[dict]:
    items = []
    for fee_type, (label, description) in FEE_TYPE_LABELS.items():
        config = _current_config(db, fee_type)
        items.append({
            "fee_type": fee_type,
            "label": label,
            "description": description,
            "base_amount": (Decimal(config.base_amount).quantize(CENTS) if config
                            else DEFAULT_FEE_AMOUNTS[fee_type]),
            "vehicle_class_amounts": _class_amounts(config) if config else {},
        })
    return items


async def update_fee_schedule(db: Session, fee_type: FeeType, base_amount: Decimal,
                              vehicle_class_amounts: dict, actor_id: str) -> FeeScheduleConfig:
    """Close the current config for fee_type and make a new one effective now."""
    if fee_type not in FEE_TYPE_LABELS:
        raise ValidationError(f"Fee type {fee_type.value} is not configurable")
    if base_amount < 0 or any(Decimal(a) < 0 for a in vehicle_class_amounts.values()):
        raise ValidationError("Fee amounts cannot be negative")

    with conflict_guard(db, f"Fee schedule {fee_type.value}"):
        now = datetime.utcnow()
        existing = _current_config(db, fee_type)
        old_amount = DEFAULT_FEE_AMOUNTS[fee_type]
        if existing:
            existing.effective_to = now
            old_amount = existing.base_amount

        config = FeeScheduleConfig(
            fee_type=fee_type.value,
            base_amount=base_amount,
            vehicle_class_amounts={VehicleClass(k).value: str(Decimal(v).quantize(CENTS))
                                   for k, v in vehicle_class_amounts.items()},
            effective_from=now,
            created_by_id=actor_id,
        )
        db.add(config)
        db.flush()

        record_audit_event(
            db, AuditEventType.FEE_SCHEDULE_UPDATED, "FeeSchedule", config.id, actor_id,
            changes={"base_amount": {"old": old_amount, "new": base_amount}},
            details={"fee_type": fee_type.value,
                     "vehicle_class_amounts": config.vehicle_class_amounts},
        )
        db.commit()
    logger.info(f"[FEES] {fee_type.value} base amount {old_amount} → {base_amount}")
    return config

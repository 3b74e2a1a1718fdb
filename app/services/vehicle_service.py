# app/services/vehicle_service.py
"""
Vehicle case lookup helpers.
Used by case_lifecycle_service, fee_ledger_service and the cases router.
"""

from typing import Optional
from sqlalchemy.orm import Session
from app.exceptions import NotFoundError
from app.models.vehicle_case import VehicleCase
from app.utils.logger import get_logger

logger = get_logger(__name__)


def get_case(db: Session, case_id: str, lock: bool = False) -> VehicleCase:
    """
    Fetch a case or raise NotFoundError. With lock=True the row is read
    FOR UPDATE and stays locked until the caller's transaction ends.
    """
    q = db.query(VehicleCase).filter(VehicleCase.id == str(case_id))
    if lock:
        # Re-read under the lock even if the object is already in the session
        q = q.with_for_update().populate_existing()
    vehicle_case = q.first()
    if not vehicle_case:
        raise NotFoundError(f"Case {case_id} not found")
    return vehicle_case


def lookup_case_by_number(db: Session, case_number: str) -> Optional[VehicleCase]:
    """Find a case by its YY-NNNNN number. Returns None if not found."""
    return db.query(VehicleCase).filter(VehicleCase.case_number == case_number).first()

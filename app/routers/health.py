"""
Liveness + database readiness for load balancers and the yard SPA.
"""

from datetime import datetime

from fastapi import APIRouter, Depends
from sqlalchemy import func, inspect
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from app.database import get_db
from app.models.vehicle_case import VehicleCase
from app.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()

REQUIRED_TABLES = {"vehicle_cases", "fee_ledger_entries", "case_number_sequences", "audit_events"}


@router.get("/health", summary="System health check")
def health_check(db: Session = Depends(get_db)):
    """Reports "degraded" when the database is unreachable or missing tables."""
    result = {
        "status": "ok",
        "timestamp": datetime.utcnow().isoformat(),
        "database": "unknown",
        "case_count": None,
    }

    try:
        missing = REQUIRED_TABLES - set(inspect(db.get_bind()).get_table_names())
        if missing:
            result["database"] = f"missing tables: {', '.join(sorted(missing))}"
            result["status"] = "degraded"
        else:
            result["case_count"] = db.query(func.count(VehicleCase.id)).scalar()
            result["database"] = "ok"
    except SQLAlchemyError as e:
        logger.error(f"Health check DB error: {e}")
        result["database"] = f"error: {e}"
        result["status"] = "degraded"

    return result

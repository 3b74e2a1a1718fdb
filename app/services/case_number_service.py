"""
Case number generation: "{YY}-{NNNNN}", strictly increasing within a year.

The counter row is incremented with a single INSERT ... ON CONFLICT DO UPDATE
... RETURNING statement, so two concurrent requests can never read the same
pre-increment value, including the very first case of a new year. The
statement runs in the caller's transaction: if the case insert that follows
fails, the increment rolls back with it.
"""

from datetime import datetime
from typing import Optional
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session
from app.models.case_number_sequence import CaseNumberSequence
from app.utils.logger import get_logger

logger = get_logger(__name__)

_UPSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def format_case_number(year: int, number: int) -> str:
    return f"{year % 100:02d}-{number:05d}"


def _insert_for(db: Session):
    dialect = db.get_bind().dialect.name
    try:
        return _UPSERT_DIALECTS[dialect]
    except KeyError:
        raise RuntimeError(f"Atomic case number upsert not supported on dialect '{dialect}'")


def next_case_number(db: Session, now: Optional[datetime] = None) -> str:
    """Atomically bump this year's counter and return the formatted number."""
    now = now or datetime.utcnow()
    year = now.year % 100

    insert = _insert_for(db)
    stmt = (
        insert(CaseNumberSequence)
        .values(year=year, last_number=1, updated_at=now)
        .on_conflict_do_update(
            index_elements=[CaseNumberSequence.year],
            set_={
                "last_number": CaseNumberSequence.last_number + 1,
                "updated_at": now,
            },
        )
        .returning(CaseNumberSequence.last_number)
    )
    last_number = db.execute(stmt).scalar_one()

    case_number = format_case_number(year, last_number)
    logger.debug(f"Issued case number {case_number}")
    return case_number

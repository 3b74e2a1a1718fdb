"""
Database connection, session management, and table creation.
Uses SQLAlchemy with PostgreSQL (SQLite for local runs and tests). All models
are auto-imported here so create_tables() creates every table in one call.
"""

from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.orm.exc import StaleDataError
from app.config import settings
from app.exceptions import ConflictError

# serialization_failure, deadlock_detected, lock_not_available
_CONFLICT_PGCODES = {"40001", "40P01", "55P03"}


def _engine_kwargs(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_pre_ping": True,   # Auto-reconnect if DB connection drops
        "pool_size": 10,
        "max_overflow": 20,
    }


engine = create_engine(
    settings.DATABASE_URL,
    echo=False,                  # Set True to log all SQL queries (debug only)
    **_engine_kwargs(settings.DATABASE_URL),
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """FastAPI dependency: yields a DB session and closes it after request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def conflict_guard(db, what: str):
    """
    Wrap one unit of work, from the locked read through commit. On any error
    the transaction is rolled back. Lost optimistic-lock races and
    lock/serialization failures (raised by SELECT ... FOR UPDATE, a flush or
    the commit itself) become ConflictError; anything else propagates.
    """
    try:
        yield
    except StaleDataError as e:
        db.rollback()
        raise ConflictError(f"{what} was modified concurrently; retry the request") from e
    except OperationalError as e:
        db.rollback()
        pgcode = getattr(e.orig, "pgcode", None)
        if pgcode in _CONFLICT_PGCODES or "database is locked" in str(e.orig):
            raise ConflictError(f"{what} is locked by another request; retry the request") from e
        raise
    except Exception:
        db.rollback()
        raise


def create_tables(bind=None):
    """
    Creates all DB tables on startup. Safe to call multiple times.
    Import all models here so SQLAlchemy knows about them.
    """
    from app.models.agency import Agency                              # noqa
    from app.models.vehicle_case import VehicleCase                   # noqa
    from app.models.fee_ledger_entry import FeeLedgerEntry            # noqa
    from app.models.case_number_sequence import CaseNumberSequence    # noqa
    from app.models.audit_event import AuditEvent                     # noqa
    from app.models.fee_schedule import FeeScheduleConfig             # noqa

    Base.metadata.create_all(bind=bind or engine)

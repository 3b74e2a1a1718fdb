"""Shared fixtures: in-memory SQLite database, sessions, API client."""

import os
import sys

# Must be set before anything imports app.config
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["LOG_TO_FILE"] = "false"
os.environ["API_KEY"] = ""
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from datetime import datetime

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import create_tables, get_db
from app.schemas.vehicle_case import CaseCreate

TOW_DATE = datetime(2026, 3, 14, 9, 30)
ACTOR = "tester"


def case_payload(**overrides) -> dict:
    payload = {
        "tow_date": TOW_DATE,
        "tow_reason": "ILLEGALLY_PARKED",
        "tow_location": "400 Main St",
        "police_hold": False,
        "plate_number": "ABC1234",
        "plate_state": "MI",
        "make": "Honda",
        "model": "Civic",
        "color": "Blue",
        "year": 2017,
        "owner_name": "Pat Owner",
    }
    payload.update(overrides)
    return payload


def case_create(**overrides) -> CaseCreate:
    return CaseCreate(**case_payload(**overrides))


async def intake_case(db, yard_location="A-1", **overrides):
    """Create a case and complete intake: STORED, or HOLD with police_hold=True."""
    from app.services import case_lifecycle_service

    vehicle_case = await case_lifecycle_service.create_case(db, case_create(**overrides), ACTOR)
    return await case_lifecycle_service.complete_intake(db, vehicle_case.id, yard_location, ACTOR)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_tables(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def file_session_factory(tmp_path):
    """Separate connections per session, for tests that need two live transactions."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'impound.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    create_tables(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    from fastapi.testclient import TestClient
    from app.main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()

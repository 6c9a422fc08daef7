# backend/tests/conftest.py
"""
Pytest configuration for the tutor booking service.

Every test runs against a fresh in-memory SQLite database. Environment
variables are set BEFORE any tutorbook import so the settings singleton and
the engine pick them up.

Shared world:
- a verified tutor (user ``tutor-user-1``) offering Mathematics
- Monday availability: 09:00-11:00 and 13:00-14:00
- online enabled at 500/hour, home-visit and group disabled
- a fixed clock at Monday 2026-03-02 08:00 UTC
"""

import os

# CRITICAL: Set test configuration BEFORE any tutorbook imports!
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["ENVIRONMENT"] = "test"
os.environ["SESSION_TIMEZONE"] = "UTC"
os.environ.pop("REDIS_URL", None)

from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from tutorbook.api.dependencies.database import get_db
from tutorbook.api.dependencies.services import get_booking_service
from tutorbook.database import Base, SessionLocal, engine
from tutorbook.main import app
from tutorbook.models import SubjectOffering, TutorProfile
from tutorbook.services.base import BaseService
from tutorbook.services.booking_service import BookingService

TUTOR_USER_ID = "tutor-user-1"
OTHER_TUTOR_USER_ID = "tutor-user-2"
STUDENT_ID = "student-1"
OTHER_STUDENT_ID = "student-2"

# Monday, before the first window of the day.
FIXED_NOW = datetime(2026, 3, 2, 8, 0, tzinfo=timezone.utc)

MONDAY_AVAILABILITY: List[Dict[str, Any]] = [
    {
        "day": "Monday",
        "slots": [{"start": "09:00", "end": "11:00"}, {"start": "13:00", "end": "14:00"}],
    }
]

ONLINE_ONLY_RATES: List[Dict[str, Any]] = [
    {"type": "online", "rate": 500, "enabled": True},
    {"type": "home-visit", "rate": 0, "enabled": False},
    {"type": "group", "rate": 0, "enabled": False},
]

TOPICS: List[Dict[str, str]] = [
    {"id": "algebra", "name": "Algebra"},
    {"id": "geometry", "name": "Geometry"},
]


def fixed_clock() -> datetime:
    return FIXED_NOW


@pytest.fixture(scope="function")
def db() -> Iterator[Session]:
    """Fresh schema and session for each test."""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()

    yield session

    session.rollback()
    session.close()
    Base.metadata.drop_all(bind=engine)
    BaseService._class_metrics.clear()


@pytest.fixture
def tutor(db: Session) -> TutorProfile:
    profile = TutorProfile(user_id=TUTOR_USER_ID, display_name="Asha Rao", is_verified=True)
    db.add(profile)
    db.commit()
    return profile


@pytest.fixture
def other_tutor(db: Session) -> TutorProfile:
    profile = TutorProfile(user_id=OTHER_TUTOR_USER_ID, display_name="Ben Okafor", is_verified=True)
    db.add(profile)
    db.commit()
    return profile


@pytest.fixture
def offering(db: Session, tutor: TutorProfile) -> SubjectOffering:
    subject_offering = SubjectOffering(
        tutor_profile_id=tutor.id,
        subject_id="math",
        subject_name="Mathematics",
        selected_topics=TOPICS,
        mode_rates=ONLINE_ONLY_RATES,
        availability=MONDAY_AVAILABILITY,
    )
    db.add(subject_offering)
    db.commit()
    return subject_offering


@pytest.fixture
def booking_service(db: Session) -> BookingService:
    return BookingService(db, clock=fixed_clock)


@pytest.fixture
def client(db: Session) -> Iterator[TestClient]:
    """Test client bound to the test session and the fixed clock."""

    def override_get_db() -> Iterator[Session]:
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_booking_service] = lambda: BookingService(db, clock=fixed_clock)

    test_client = TestClient(app)

    yield test_client

    app.dependency_overrides.clear()
    test_client.close()


@pytest.fixture
def student_headers() -> Dict[str, str]:
    return {"X-User-Id": STUDENT_ID}


@pytest.fixture
def other_student_headers() -> Dict[str, str]:
    return {"X-User-Id": OTHER_STUDENT_ID}


@pytest.fixture
def tutor_headers() -> Dict[str, str]:
    return {"X-User-Id": TUTOR_USER_ID}

# backend/tests/services/test_booking_creation_service.py
"""
BookingService.create_booking against a real SQLite database: in-memory, or
file-backed where two threads race for the same slot.

Covers the happy path, eligibility failures surfacing unchanged, and the
three layers that keep two active bookings off the same tutor slot: the
slot lock, the in-transaction overlap check and the unique index.
"""

from datetime import date, datetime, time, timezone
from decimal import Decimal
import logging
import threading

import pytest
from sqlalchemy.orm import sessionmaker

from tutorbook.core.booking_lock import slot_lock_key, slot_lock_sync
from tutorbook.core.config import settings
from tutorbook.core.enums import TeachingMode, WeekDay
from tutorbook.core.exceptions import (
    InvalidSlotException,
    ModeUnavailableException,
    NoAvailabilityException,
    NotFoundException,
    SlotConflictException,
    TutorNotVerifiedException,
)
from tutorbook.database import Base, build_engine
from tutorbook.domain.booking_lifecycle import BookingStatus
from tutorbook.domain.booking_validation import BookingRequest
from tutorbook.domain.time_window import TimeWindow
from tutorbook.models import Booking, SubjectOffering, TutorProfile
from tutorbook.services.base import BaseService
from tutorbook.services.booking_service import BookingService

STUDENT_ID = "student-1"
OTHER_STUDENT_ID = "student-2"
NOW = datetime(2026, 3, 2, 8, 0, tzinfo=timezone.utc)


def make_request(offering_id, slot="09:00 - 11:00", duration=2, **overrides):
    fields = dict(
        subject_offering_id=offering_id,
        day=WeekDay.MONDAY,
        window=TimeWindow.parse(slot),
        duration_hours=duration,
        mode=TeachingMode.ONLINE,
        contact_number="9876543210",
        topic_ids=frozenset({"algebra"}),
    )
    fields.update(overrides)
    return BookingRequest(**fields)


class TestCreateBooking:
    def test_creates_pending_booking_with_server_price(self, db, booking_service, offering):
        booking = booking_service.create_booking(STUDENT_ID, make_request(offering.id))

        assert booking.id
        assert booking.status == BookingStatus.PENDING.value
        assert booking.student_id == STUDENT_ID
        assert booking.tutor_profile_id == offering.tutor_profile_id
        assert booking.session_date == date(2026, 3, 2)
        assert (booking.start_time, booking.end_time) == (time(9, 0), time(11, 0))
        assert booking.hourly_rate == Decimal("500")
        assert booking.total_price == Decimal("1000")
        assert booking.rate_source == "mode_rate"
        assert booking.topic_ids == ["algebra"]

        stored = db.query(Booking).filter(Booking.id == booking.id).one()
        assert stored.status == "pending"

    def test_client_price_mismatch_is_logged_not_trusted(self, booking_service, offering, caplog):
        with caplog.at_level(logging.WARNING):
            booking = booking_service.create_booking(
                STUDENT_ID, make_request(offering.id), client_total_price=Decimal("1")
            )
        assert booking.total_price == Decimal("1000")
        assert "booking_client_total_mismatch" in caplog.text

    def test_matching_client_price_is_quiet(self, booking_service, offering, caplog):
        with caplog.at_level(logging.WARNING):
            booking_service.create_booking(
                STUDENT_ID, make_request(offering.id), client_total_price=Decimal("1000.00")
            )
        assert "booking_client_total_mismatch" not in caplog.text

    def test_unknown_offering(self, booking_service, offering):
        with pytest.raises(NotFoundException):
            booking_service.create_booking(STUDENT_ID, make_request("01MISSINGOFFERING00000000"))

    def test_unknown_offering_with_bad_duration_is_not_found(self, booking_service, offering):
        with pytest.raises(NotFoundException) as exc_info:
            booking_service.create_booking(
                STUDENT_ID, make_request("01MISSINGOFFERING00000000", duration=4)
            )
        assert exc_info.value.code == "SUBJECT_OFFERING_NOT_FOUND"

    def test_unverified_tutor(self, db, booking_service, offering, tutor):
        tutor.is_verified = False
        db.commit()
        with pytest.raises(TutorNotVerifiedException):
            booking_service.create_booking(STUDENT_ID, make_request(offering.id))

    def test_eligibility_failures_are_not_persisted(self, db, booking_service, offering):
        with pytest.raises(ModeUnavailableException):
            booking_service.create_booking(
                STUDENT_ID, make_request(offering.id, mode=TeachingMode.GROUP)
            )
        with pytest.raises(NoAvailabilityException):
            booking_service.create_booking(
                STUDENT_ID, make_request(offering.id, day=WeekDay.TUESDAY)
            )
        with pytest.raises(InvalidSlotException):
            booking_service.create_booking(STUDENT_ID, make_request(offering.id, slot="13:00 - 14:00"))
        assert db.query(Booking).count() == 0

    def test_records_metrics(self, booking_service, offering):
        booking_service.create_booking(STUDENT_ID, make_request(offering.id))
        metrics = booking_service.get_metrics()
        assert metrics["create_booking"]["success_count"] == 1
        assert metrics["validate_booking_request"]["count"] == 2


class TestSlotConflicts:
    def test_second_booking_for_same_slot_conflicts(self, db, booking_service, offering):
        first = booking_service.create_booking(STUDENT_ID, make_request(offering.id))

        with pytest.raises(SlotConflictException) as exc_info:
            booking_service.create_booking(OTHER_STUDENT_ID, make_request(offering.id))

        details = exc_info.value.details
        assert details["conflicting_booking_ids"] == [first.id]
        assert details["session_date"] == "2026-03-02"
        assert details["retryable_with_other_slot"] is True
        assert db.query(Booking).count() == 1

    def test_other_window_same_day_is_free(self, booking_service, offering):
        booking_service.create_booking(STUDENT_ID, make_request(offering.id))
        other = booking_service.create_booking(
            OTHER_STUDENT_ID, make_request(offering.id, slot="13:00 - 14:00", duration=1)
        )
        assert other.window == TimeWindow.of("13:00", "14:00")

    def test_cancelled_booking_frees_the_slot(self, db, booking_service, offering):
        first = booking_service.create_booking(STUDENT_ID, make_request(offering.id))
        first.cancel(STUDENT_ID, "Change of plans")
        db.commit()

        second = booking_service.create_booking(OTHER_STUDENT_ID, make_request(offering.id))
        assert second.status == "pending"

    def test_unique_index_catches_what_the_overlap_check_missed(
        self, db, booking_service, offering, monkeypatch
    ):
        booking_service.create_booking(STUDENT_ID, make_request(offering.id))
        monkeypatch.setattr(
            booking_service.repository, "get_active_overlapping", lambda *args, **kwargs: []
        )

        with pytest.raises(SlotConflictException):
            booking_service.create_booking(OTHER_STUDENT_ID, make_request(offering.id))

        assert db.query(Booking).count() == 1

    def test_held_slot_lock_rejects_request(self, booking_service, offering, monkeypatch):
        monkeypatch.setattr(settings, "slot_lock_ttl_seconds", 1)
        key = slot_lock_key(offering.tutor_profile_id, "2026-03-02", "09:00 - 11:00")

        with slot_lock_sync(key) as acquired:
            assert acquired
            with pytest.raises(SlotConflictException):
                booking_service.create_booking(STUDENT_ID, make_request(offering.id))


@pytest.fixture
def file_sessions(tmp_path):
    """Session factory on a file-backed database, one connection per session."""
    file_engine = build_engine(f"sqlite:///{tmp_path / 'bookings.db'}")
    Base.metadata.create_all(bind=file_engine)

    yield sessionmaker(bind=file_engine, autoflush=False, expire_on_commit=False)

    file_engine.dispose()
    BaseService._class_metrics.clear()


@pytest.fixture
def file_offering_id(file_sessions):
    session = file_sessions()
    try:
        profile = TutorProfile(user_id="tutor-user-1", display_name="Asha Rao", is_verified=True)
        session.add(profile)
        session.flush()
        subject_offering = SubjectOffering(
            tutor_profile_id=profile.id,
            subject_id="math",
            subject_name="Mathematics",
            selected_topics=[{"id": "algebra", "name": "Algebra"}],
            mode_rates=[{"type": "online", "rate": 500, "enabled": True}],
            availability=[{"day": "Monday", "slots": [{"start": "09:00", "end": "11:00"}]}],
        )
        session.add(subject_offering)
        session.commit()
        return subject_offering.id
    finally:
        session.close()


class TestConcurrentCreation:
    def test_simultaneous_requests_for_one_slot(self, file_sessions, file_offering_id):
        start = threading.Barrier(2)
        outcomes = []

        def book(student_id):
            session = file_sessions()
            try:
                service = BookingService(session, clock=lambda: NOW)
                start.wait(timeout=5)
                booking = service.create_booking(student_id, make_request(file_offering_id))
                outcomes.append(("booked", booking.id))
            except SlotConflictException:
                outcomes.append(("conflict", None))
            finally:
                session.close()

        threads = [
            threading.Thread(target=book, args=(student_id,))
            for student_id in (STUDENT_ID, OTHER_STUDENT_ID)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=30)

        assert sorted(kind for kind, _ in outcomes) == ["booked", "conflict"]
        session = file_sessions()
        try:
            stored_ids = [b.id for b in session.query(Booking).all()]
        finally:
            session.close()
        assert stored_ids == [booking_id for kind, booking_id in outcomes if kind == "booked"]

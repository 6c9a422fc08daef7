# backend/tests/repositories/test_booking_queries.py
"""BookingRepository queries and the active-slot unique index."""

from datetime import date, time
from decimal import Decimal

import pytest
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from tutorbook.models import Booking
from tutorbook.repositories.factory import RepositoryFactory

SESSION_DATE = date(2026, 3, 2)


@pytest.fixture
def repository(db):
    return RepositoryFactory.create_booking_repository(db)


@pytest.fixture
def make_booking(db, repository, offering):
    def _make(student_id="student-1", start=time(9, 0), end=time(11, 0), status="pending"):
        booking = repository.create(
            student_id=student_id,
            tutor_profile_id=offering.tutor_profile_id,
            subject_offering_id=offering.id,
            topic_ids=[],
            day="Monday",
            session_date=SESSION_DATE,
            start_time=start,
            end_time=end,
            duration_hours=1,
            mode="online",
            hourly_rate=Decimal("500"),
            rate_source="mode_rate",
            total_price=Decimal("500"),
            contact_number="9876543210",
            status=status,
        )
        db.commit()
        return booking

    return _make


class TestOverlapQuery:
    def test_finds_intersecting_active_booking(self, repository, make_booking, offering):
        existing = make_booking()
        found = repository.get_active_overlapping(
            offering.tutor_profile_id, SESSION_DATE, time(10, 0), time(12, 0)
        )
        assert [b.id for b in found] == [existing.id]

    def test_touching_edges_do_not_overlap(self, repository, make_booking, offering):
        make_booking()
        assert (
            repository.get_active_overlapping(
                offering.tutor_profile_id, SESSION_DATE, time(11, 0), time(12, 0)
            )
            == []
        )

    def test_terminal_bookings_are_ignored(self, repository, make_booking, offering):
        make_booking(status="cancelled")
        make_booking(student_id="student-2", status="completed")
        assert (
            repository.get_active_overlapping(
                offering.tutor_profile_id, SESSION_DATE, time(9, 0), time(11, 0)
            )
            == []
        )

    def test_excluded_booking_is_skipped(self, repository, make_booking, offering):
        existing = make_booking()
        assert (
            repository.get_active_overlapping(
                offering.tutor_profile_id,
                SESSION_DATE,
                time(9, 0),
                time(11, 0),
                exclude_booking_id=existing.id,
            )
            == []
        )



class TestLockingRead:
    def test_get_for_update_overwrites_stale_identity_map(self, db, repository, make_booking):
        booking = make_booking()
        db.execute(
            update(Booking)
            .where(Booking.id == booking.id)
            .values(status="cancelled")
            .execution_options(synchronize_session=False)
        )
        db.commit()
        assert booking.status == "pending"

        reloaded = repository.get_for_update(booking.id)

        assert reloaded is booking
        assert reloaded.status == "cancelled"

    def test_get_for_update_missing_row(self, repository):
        assert repository.get_for_update("01MISSINGBOOKING000000000") is None


class TestListing:
    def test_lists_student_and_tutor_bookings(self, repository, make_booking, offering):
        morning = make_booking(student_id="student-1")
        afternoon = make_booking(student_id="student-2", start=time(13, 0), end=time(14, 0))

        assert [b.id for b in repository.list_for_user("student-1")] == [morning.id]
        tutor_view = repository.list_for_user(
            "tutor-user-1", tutor_profile_id=offering.tutor_profile_id
        )
        assert [b.id for b in tutor_view] == [afternoon.id, morning.id]

    def test_status_filter(self, repository, make_booking):
        make_booking(status="confirmed")
        assert repository.list_for_user("student-1", status="pending") == []
        assert len(repository.list_for_user("student-1", status="confirmed")) == 1


class TestActiveSlotIndex:
    def test_second_active_booking_violates_index(self, make_booking):
        make_booking()
        with pytest.raises(IntegrityError):
            make_booking(student_id="student-2", status="confirmed")

    def test_cancelled_bookings_do_not_hold_the_slot(self, make_booking):
        make_booking(status="cancelled")
        make_booking(student_id="student-2", status="cancelled")
        assert make_booking(student_id="student-3").status == "pending"

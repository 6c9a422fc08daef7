# backend/tests/services/test_availability_schedule_service.py
"""AvailabilityService: schedule edits persisted wholesale, plus eligible-slot queries."""

import pytest

from tutorbook.core.enums import WeekDay
from tutorbook.core.exceptions import (
    CapacityExceededException,
    ForbiddenException,
    InvalidWindowException,
    NotFoundException,
    WindowNotFoundException,
)
from tutorbook.domain.time_window import TimeWindow
from tutorbook.models import SubjectOffering
from tutorbook.services.availability_service import AvailabilityService

TUTOR_USER_ID = "tutor-user-1"
OTHER_TUTOR_USER_ID = "tutor-user-2"


@pytest.fixture
def service(db):
    return AvailabilityService(db)


def stored_monday(db, offering_id):
    db.expire_all()
    offering = db.get(SubjectOffering, offering_id)
    monday = next(entry for entry in offering.availability if entry["day"] == "Monday")
    return monday["slots"]


class TestReads:
    def test_get_availability_lists_every_day(self, service, offering):
        days = service.get_availability(offering.id)
        assert [d.day for d in days] == WeekDay.ordered()
        assert len(days[0].windows) == 2

    def test_eligible_slots_for_two_hours(self, service, offering):
        assert service.get_eligible_slots(offering.id, WeekDay.MONDAY, 2) == [
            TimeWindow.of("09:00", "11:00")
        ]

    def test_eligible_slots_empty_day(self, service, offering):
        assert service.get_eligible_slots(offering.id, "Saturday", 1) == []

    def test_unknown_offering(self, service, offering):
        with pytest.raises(NotFoundException):
            service.get_availability("01MISSINGOFFERING00000000")


class TestEdits:
    def test_add_default_window(self, db, service, offering):
        result = service.add_window(TUTOR_USER_ID, offering.id, WeekDay.TUESDAY)
        assert result.day is WeekDay.TUESDAY
        assert result.windows == (TimeWindow.of("09:00", "10:00"),)

    def test_add_window_persists(self, db, service, offering):
        service.add_window(TUTOR_USER_ID, offering.id, "Monday", TimeWindow.of("15:00", "16:00"))
        assert stored_monday(db, offering.id)[-1] == {"start": "15:00", "end": "16:00"}

    def test_fourth_window_exceeds_capacity(self, db, service, offering):
        service.add_window(TUTOR_USER_ID, offering.id, WeekDay.MONDAY, TimeWindow.of("15:00", "16:00"))
        with pytest.raises(CapacityExceededException):
            service.add_window(
                TUTOR_USER_ID, offering.id, WeekDay.MONDAY, TimeWindow.of("17:00", "18:00")
            )
        assert len(stored_monday(db, offering.id)) == 3

    def test_default_window_overlapping_existing_is_rejected(self, service, offering):
        with pytest.raises(InvalidWindowException):
            service.add_window(TUTOR_USER_ID, offering.id, WeekDay.MONDAY)

    def test_update_window(self, db, service, offering):
        result = service.update_window(
            TUTOR_USER_ID, offering.id, WeekDay.MONDAY, 1, new_start="12:00", new_end="14:30"
        )
        assert result.windows[1] == TimeWindow.of("12:00", "14:30")
        assert stored_monday(db, offering.id)[1] == {"start": "12:00", "end": "14:30"}

    def test_failed_update_leaves_schedule_untouched(self, db, service, offering):
        with pytest.raises(InvalidWindowException):
            service.update_window(TUTOR_USER_ID, offering.id, WeekDay.MONDAY, 1, new_start="10:00")
        assert stored_monday(db, offering.id) == [
            {"start": "09:00", "end": "11:00"},
            {"start": "13:00", "end": "14:00"},
        ]

    def test_remove_missing_index(self, service, offering):
        with pytest.raises(WindowNotFoundException):
            service.remove_window(TUTOR_USER_ID, offering.id, WeekDay.MONDAY, 5)

    def test_remove_all_windows_keeps_day(self, db, service, offering):
        service.remove_window(TUTOR_USER_ID, offering.id, WeekDay.MONDAY, 0)
        result = service.remove_window(TUTOR_USER_ID, offering.id, WeekDay.MONDAY, 0)
        assert result.windows == ()
        assert stored_monday(db, offering.id) == []

    def test_replace_availability(self, db, service, offering):
        days = service.replace_availability(
            TUTOR_USER_ID,
            offering.id,
            [{"day": "Wednesday", "slots": [{"start": "17:00", "end": "19:00"}]}],
        )
        by_day = {d.day: d.windows for d in days}
        assert by_day[WeekDay.MONDAY] == ()
        assert by_day[WeekDay.WEDNESDAY] == (TimeWindow.of("17:00", "19:00"),)
        assert stored_monday(db, offering.id) == []

    def test_replace_rejects_overlaps(self, service, offering):
        with pytest.raises(InvalidWindowException):
            service.replace_availability(
                TUTOR_USER_ID,
                offering.id,
                [
                    {
                        "day": "Friday",
                        "slots": [{"start": "09:00", "end": "11:00"}, {"start": "10:00", "end": "12:00"}],
                    }
                ],
            )

    def test_only_owner_may_edit(self, service, offering, other_tutor):
        with pytest.raises(ForbiddenException) as exc_info:
            service.add_window(OTHER_TUTOR_USER_ID, offering.id, WeekDay.TUESDAY)
        assert exc_info.value.code == "NOT_OFFERING_OWNER"


class TestLegacySchedules:
    @pytest.fixture
    def crowded(self, db, offering):
        offering.availability = [
            {
                "day": "Thursday",
                "slots": [
                    {"start": "08:00", "end": "09:00"},
                    {"start": "08:30", "end": "10:00"},
                    {"start": "11:00", "end": "12:00"},
                    {"start": "13:00", "end": "14:00"},
                ],
            }
        ]
        db.commit()
        return offering

    def test_crowded_day_is_still_readable(self, service, crowded):
        assert len(service.get_eligible_slots(crowded.id, WeekDay.THURSDAY, 1)) == 4

    def test_crowded_day_can_shrink(self, service, crowded):
        result = service.remove_window(TUTOR_USER_ID, crowded.id, WeekDay.THURSDAY, 1)
        assert len(result.windows) == 3

    def test_crowded_day_cannot_grow(self, service, crowded):
        with pytest.raises(CapacityExceededException):
            service.add_window(
                TUTOR_USER_ID, crowded.id, WeekDay.THURSDAY, TimeWindow.of("18:00", "19:00")
            )

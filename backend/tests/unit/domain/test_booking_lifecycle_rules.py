"""Unit tests for the booking status state machine and session timing."""

from datetime import date, datetime, time

import pytest
import pytz

from tutorbook.core.enums import ActorRole, SessionStatus, WeekDay
from tutorbook.core.exceptions import ForbiddenException, InvalidTransitionException
from tutorbook.domain.booking_lifecycle import (
    BookingStatus,
    can_transition,
    completion_allowed,
    ensure_actor_may_transition,
    ensure_transition,
    format_duration,
    next_session_date,
    session_bounds,
    session_status,
)
from tutorbook.domain.time_window import TimeWindow

UTC = pytz.utc
MORNING = TimeWindow.of("09:00", "11:00")


class TestTransitions:
    @pytest.mark.parametrize(
        "current,target",
        [
            (BookingStatus.PENDING, BookingStatus.CONFIRMED),
            (BookingStatus.PENDING, BookingStatus.CANCELLED),
            (BookingStatus.CONFIRMED, BookingStatus.COMPLETED),
            (BookingStatus.CONFIRMED, BookingStatus.CANCELLED),
        ],
    )
    def test_allowed(self, current, target):
        assert can_transition(current, target)
        ensure_transition(current, target)

    @pytest.mark.parametrize(
        "current,target",
        [
            (BookingStatus.PENDING, BookingStatus.COMPLETED),
            (BookingStatus.PENDING, BookingStatus.PENDING),
            (BookingStatus.COMPLETED, BookingStatus.CANCELLED),
            (BookingStatus.CANCELLED, BookingStatus.CONFIRMED),
            (BookingStatus.CANCELLED, BookingStatus.PENDING),
        ],
    )
    def test_rejected(self, current, target):
        with pytest.raises(InvalidTransitionException) as exc_info:
            ensure_transition(current, target)
        assert exc_info.value.details == {
            "current_status": current.value,
            "requested_status": target.value,
        }

    def test_accepts_raw_strings(self):
        ensure_transition("pending", "confirmed")


class TestActors:
    def test_student_may_cancel(self):
        ensure_actor_may_transition(ActorRole.STUDENT, BookingStatus.CANCELLED)

    @pytest.mark.parametrize("target", [BookingStatus.CONFIRMED, BookingStatus.COMPLETED])
    def test_student_may_not_confirm_or_complete(self, target):
        with pytest.raises(ForbiddenException) as exc_info:
            ensure_actor_may_transition(ActorRole.STUDENT, target)
        assert exc_info.value.code == "TUTOR_ONLY_TRANSITION"

    @pytest.mark.parametrize("target", list(BookingStatus))
    def test_tutor_may_do_anything_the_state_machine_allows(self, target):
        ensure_actor_may_transition(ActorRole.TUTOR, target)


class TestNextSessionDate:
    # 2026-03-02 is a Monday
    def test_same_day_before_window(self):
        now = UTC.localize(datetime(2026, 3, 2, 8, 0))
        assert next_session_date(WeekDay.MONDAY, MORNING, now) == date(2026, 3, 2)

    def test_same_day_once_window_started(self):
        now = UTC.localize(datetime(2026, 3, 2, 9, 0))
        assert next_session_date(WeekDay.MONDAY, MORNING, now) == date(2026, 3, 9)

    def test_later_in_week(self):
        now = UTC.localize(datetime(2026, 3, 2, 20, 0))
        assert next_session_date(WeekDay.WEDNESDAY, MORNING, now) == date(2026, 3, 4)

    def test_earlier_weekday_rolls_to_next_week(self):
        now = UTC.localize(datetime(2026, 3, 4, 8, 0))
        assert next_session_date(WeekDay.MONDAY, MORNING, now) == date(2026, 3, 9)


class TestSessionStatus:
    def test_bounds_are_localized(self):
        tz = pytz.timezone("Asia/Kolkata")
        start, end = session_bounds(date(2026, 3, 2), MORNING, tz)
        assert start.utcoffset().total_seconds() == 5.5 * 3600
        assert start.time() == time(9, 0)
        assert end.time() == time(11, 0)

    def test_upcoming_ongoing_ended(self):
        start, end = session_bounds(date(2026, 3, 2), MORNING, UTC)
        assert session_status(UTC.localize(datetime(2026, 3, 2, 8, 59)), start, end) is SessionStatus.UPCOMING
        assert session_status(start, start, end) is SessionStatus.ONGOING
        assert session_status(UTC.localize(datetime(2026, 3, 2, 10, 59)), start, end) is SessionStatus.ONGOING
        assert session_status(end, start, end) is SessionStatus.ENDED

    def test_completion_allowed_only_for_confirmed_ended(self):
        assert completion_allowed(BookingStatus.CONFIRMED, SessionStatus.ENDED)
        assert not completion_allowed(BookingStatus.CONFIRMED, SessionStatus.ONGOING)
        assert not completion_allowed(BookingStatus.PENDING, SessionStatus.ENDED)


@pytest.mark.parametrize("hours,label", [(1, "1 hour"), (2, "2 hours"), (3, "3 hours")])
def test_format_duration(hours, label):
    assert format_duration(hours) == label

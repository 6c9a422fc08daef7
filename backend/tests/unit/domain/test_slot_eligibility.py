"""Unit tests for filter_eligible_windows."""

import pytest

from tutorbook.core.exceptions import ValidationException
from tutorbook.domain.slot_eligibility import filter_eligible_windows
from tutorbook.domain.time_window import TimeWindow

MONDAY = [TimeWindow.of("09:00", "11:00"), TimeWindow.of("13:00", "14:00")]


def test_one_hour_fits_both_windows():
    assert filter_eligible_windows(MONDAY, 1) == MONDAY


def test_two_hours_fits_only_the_long_window():
    assert filter_eligible_windows(MONDAY, 2) == [TimeWindow.of("09:00", "11:00")]


def test_three_hours_fits_nothing():
    assert filter_eligible_windows(MONDAY, 3) == []


def test_order_is_preserved():
    windows = [TimeWindow.of("15:00", "18:00"), TimeWindow.of("08:00", "11:00")]
    assert filter_eligible_windows(windows, 3) == windows


def test_windows_are_not_split():
    eligible = filter_eligible_windows([TimeWindow.of("09:00", "12:00")], 1)
    assert eligible == [TimeWindow.of("09:00", "12:00")]


def test_empty_day():
    assert filter_eligible_windows([], 1) == []


@pytest.mark.parametrize("duration", [0, -1])
def test_non_positive_duration_is_rejected(duration):
    with pytest.raises(ValidationException) as exc_info:
        filter_eligible_windows(MONDAY, duration)
    assert exc_info.value.code == "INVALID_DURATION"

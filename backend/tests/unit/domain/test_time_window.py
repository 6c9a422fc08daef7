"""Unit tests for TimeWindow and the slot string codec."""

from datetime import time
from decimal import Decimal

import pytest

from tutorbook.core.exceptions import InvalidWindowException
from tutorbook.domain.time_window import TimeWindow, parse_clock


class TestParsing:
    def test_parse_slot_string(self):
        window = TimeWindow.parse("09:00 - 11:00")
        assert window.start == time(9, 0)
        assert window.end == time(11, 0)

    def test_parse_tolerates_missing_spaces(self):
        assert TimeWindow.parse("09:30-10:45") == TimeWindow.of("09:30", "10:45")

    @pytest.mark.parametrize(
        "slot", ["", "09:00", "9am - 10am", "09:00 to 10:00", "25:00 - 26:00", "9:00 - 10:00"]
    )
    def test_parse_rejects_malformed_slots(self, slot):
        with pytest.raises(InvalidWindowException) as exc_info:
            TimeWindow.parse(slot)
        assert exc_info.value.code == "INVALID_WINDOW"

    def test_parse_clock_rejects_out_of_range_minutes(self):
        with pytest.raises(InvalidWindowException):
            parse_clock("10:75")

    @pytest.mark.parametrize("value", ["9:00", "009:00", "9:5"])
    def test_parse_clock_requires_two_digit_fields(self, value):
        with pytest.raises(InvalidWindowException):
            parse_clock(value)

    def test_from_dict_requires_both_bounds(self):
        with pytest.raises(InvalidWindowException) as exc_info:
            TimeWindow.from_dict({"start": "09:00"})
        assert "missing" in exc_info.value.details


class TestInvariants:
    def test_zero_length_window_is_rejected(self):
        with pytest.raises(InvalidWindowException):
            TimeWindow.of("10:00", "10:00")

    def test_inverted_window_is_rejected(self):
        with pytest.raises(InvalidWindowException) as exc_info:
            TimeWindow.of("11:00", "10:00")
        assert exc_info.value.details == {"start": "11:00", "end": "10:00"}


class TestMeasurements:
    def test_duration(self):
        window = TimeWindow.of("09:00", "10:30")
        assert window.duration_minutes == 90
        assert window.duration_hours == Decimal("1.5")

    def test_covers_is_inclusive(self):
        window = TimeWindow.of("09:00", "11:00")
        assert window.covers(2)
        assert window.covers(1)
        assert not window.covers(3)

    def test_covers_fractional_hours(self):
        window = TimeWindow.of("09:00", "10:30")
        assert window.covers("1.5")
        assert not window.covers(Decimal("1.51"))

    def test_touching_windows_do_not_overlap(self):
        first = TimeWindow.of("10:00", "11:00")
        second = TimeWindow.of("11:00", "12:00")
        assert not first.overlaps(second)
        assert not second.overlaps(first)

    def test_nested_windows_overlap(self):
        assert TimeWindow.of("09:00", "12:00").overlaps(TimeWindow.of("10:00", "11:00"))


class TestFormatting:
    def test_slot_string_uses_canonical_spacing(self):
        window = TimeWindow.parse("09:00-11:00")
        assert window.to_slot_string() == "09:00 - 11:00"
        assert str(window) == "09:00 - 11:00"

    def test_to_dict(self):
        assert TimeWindow.of("13:00", "14:00").to_dict() == {"start": "13:00", "end": "14:00"}

    def test_with_bounds_keeps_unchanged_side(self):
        window = TimeWindow.of("09:00", "10:00")
        assert window.with_bounds(end=time(12, 0)) == TimeWindow.of("09:00", "12:00")
        assert window.with_bounds(start=time(8, 0)) == TimeWindow.of("08:00", "10:00")

    def test_with_bounds_revalidates(self):
        with pytest.raises(InvalidWindowException):
            TimeWindow.of("09:00", "10:00").with_bounds(start=time(10, 30))

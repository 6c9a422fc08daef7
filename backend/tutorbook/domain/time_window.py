"""Time-of-day windows and the ``"HH:MM - HH:MM"`` slot string codec."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import time
from decimal import Decimal
import re
from typing import Any, Mapping, Union

from ..core.exceptions import InvalidWindowException

_CLOCK_RE = re.compile(r"^\s*(\d{2}):(\d{2})\s*$")
_SLOT_RE = re.compile(r"^\s*(\d{2}:\d{2})\s*-\s*(\d{2}:\d{2})\s*$")

MINUTES_PER_HOUR = 60

HoursLike = Union[int, float, str, Decimal]


def parse_clock(value: Union[str, time]) -> time:
    """Parse ``HH:MM`` (24h) into a ``time``; ``time`` instances pass through."""
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0, tzinfo=None)
    match = _CLOCK_RE.match(value or "")
    if not match:
        raise InvalidWindowException(
            f"Invalid time of day '{value}'. Expected HH:MM",
            details={"value": value},
        )
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        raise InvalidWindowException(
            f"Invalid time of day '{value}'. Expected HH:MM",
            details={"value": value},
        )
    return time(hour, minute)


def format_clock(value: time) -> str:
    return value.strftime("%H:%M")


def minutes_of_day(value: time) -> int:
    return value.hour * MINUTES_PER_HOUR + value.minute


def hours_to_minutes(hours: HoursLike) -> Decimal:
    """Convert a (possibly fractional) hour count to minutes without float drift."""
    return Decimal(str(hours)) * MINUTES_PER_HOUR


@dataclass(frozen=True, order=True)
class TimeWindow:
    """
    A contiguous time-of-day interval during which a tutor is bookable.

    Invariant: ``start < end``. Windows never wrap past midnight.
    """

    start: time
    end: time

    def __post_init__(self) -> None:
        if self.start >= self.end:
            raise InvalidWindowException(
                "Window start must be before its end",
                details={"start": format_clock(self.start), "end": format_clock(self.end)},
            )

    @classmethod
    def of(cls, start: Union[str, time], end: Union[str, time]) -> "TimeWindow":
        return cls(parse_clock(start), parse_clock(end))

    @classmethod
    def parse(cls, slot: str) -> "TimeWindow":
        """Parse the wire form ``"HH:MM - HH:MM"``."""
        match = _SLOT_RE.match(slot or "")
        if not match:
            raise InvalidWindowException(
                f"Invalid time slot '{slot}'. Expected 'HH:MM - HH:MM'",
                details={"time_slot": slot},
            )
        return cls.of(match.group(1), match.group(2))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TimeWindow":
        try:
            return cls.of(data["start"], data["end"])
        except KeyError as exc:
            raise InvalidWindowException(
                "Window requires both 'start' and 'end'",
                details={"missing": str(exc)},
            ) from exc

    @property
    def duration_minutes(self) -> int:
        return minutes_of_day(self.end) - minutes_of_day(self.start)

    @property
    def duration_hours(self) -> Decimal:
        return Decimal(self.duration_minutes) / MINUTES_PER_HOUR

    def covers(self, duration_hours: HoursLike) -> bool:
        """True when this window is at least ``duration_hours`` long (inclusive)."""
        return Decimal(self.duration_minutes) >= hours_to_minutes(duration_hours)

    def overlaps(self, other: "TimeWindow") -> bool:
        """Touching edges (10:00-11:00 vs 11:00-12:00) do not overlap."""
        return self.start < other.end and other.start < self.end

    def with_bounds(self, start: time | None = None, end: time | None = None) -> "TimeWindow":
        return TimeWindow(
            start if start is not None else self.start,
            end if end is not None else self.end,
        )

    def to_slot_string(self) -> str:
        return f"{format_clock(self.start)} - {format_clock(self.end)}"

    def to_dict(self) -> dict[str, str]:
        return {"start": format_clock(self.start), "end": format_clock(self.end)}

    def __str__(self) -> str:
        return self.to_slot_string()

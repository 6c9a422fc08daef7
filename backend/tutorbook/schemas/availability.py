# backend/tutorbook/schemas/availability.py
"""
Availability schemas.

Wire shape matches what the schedule editor sends and stores:
``[{"day": "Monday", "slots": [{"start": "09:00", "end": "11:00"}]}]``.
Time-of-day strings are checked for shape here; ordering, capacity and
overlap rules are enforced by ``AvailabilityStore``.
"""

from typing import Any, Dict, List, Optional

from pydantic import Field

from ..core.enums import WeekDay
from ..domain.availability import DayAvailability
from ..domain.time_window import TimeWindow
from ._strict_base import StrictModel, StrictRequestModel

CLOCK_PATTERN = r"^\d{2}:\d{2}$"


class TimeWindowIn(StrictRequestModel):
    start: str = Field(..., pattern=CLOCK_PATTERN, examples=["09:00"])
    end: str = Field(..., pattern=CLOCK_PATTERN, examples=["10:00"])

    def to_domain(self) -> TimeWindow:
        return TimeWindow.of(self.start, self.end)


class DayAvailabilityIn(StrictRequestModel):
    day: WeekDay
    slots: List[TimeWindowIn] = Field(default_factory=list)


class AvailabilityReplace(StrictRequestModel):
    """Full weekly schedule; days left out become empty."""

    availability: List[DayAvailabilityIn]

    def to_payload(self) -> List[Dict[str, Any]]:
        return [
            {"day": entry.day.value, "slots": [slot.model_dump() for slot in entry.slots]}
            for entry in self.availability
        ]


class WindowCreate(StrictRequestModel):
    """Omit both bounds to add the default 09:00-10:00 window."""

    start: Optional[str] = Field(default=None, pattern=CLOCK_PATTERN)
    end: Optional[str] = Field(default=None, pattern=CLOCK_PATTERN)

    def to_domain(self) -> Optional[TimeWindow]:
        if self.start is None and self.end is None:
            return None
        return TimeWindow.of(self.start or "09:00", self.end or "10:00")


class WindowUpdate(StrictRequestModel):
    start: Optional[str] = Field(default=None, pattern=CLOCK_PATTERN)
    end: Optional[str] = Field(default=None, pattern=CLOCK_PATTERN)


class TimeWindowOut(StrictModel):
    start: str
    end: str
    time_slot: str

    @classmethod
    def from_domain(cls, window: TimeWindow) -> "TimeWindowOut":
        return cls(**window.to_dict(), time_slot=window.to_slot_string())


class DayAvailabilityOut(StrictModel):
    day: WeekDay
    slots: List[TimeWindowOut]

    @classmethod
    def from_domain(cls, day: DayAvailability) -> "DayAvailabilityOut":
        return cls(day=day.day, slots=[TimeWindowOut.from_domain(w) for w in day.windows])


class EligibleSlotsOut(StrictModel):
    subject_offering_id: str
    day: WeekDay
    duration: int
    slots: List[TimeWindowOut]

"""
Weekly availability store for a single subject offering.

Holds one ordered tuple of ``TimeWindow`` per ``WeekDay``. Every mutation
builds a new tuple for the affected day and a new mapping, then swaps the
mapping in with one assignment, so a concurrent reader sees either the old
schedule or the new one and never a half-updated day.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import time
import logging
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from ..core.enums import WeekDay
from ..core.exceptions import (
    CapacityExceededException,
    InvalidWindowException,
    WindowNotFoundException,
)
from .time_window import TimeWindow, parse_clock

logger = logging.getLogger(__name__)

DEFAULT_MAX_WINDOWS_PER_DAY = 3

DayKey = Union[WeekDay, str]
Schedule = Mapping[WeekDay, Tuple[TimeWindow, ...]]


def _as_day(day: DayKey) -> WeekDay:
    if isinstance(day, WeekDay):
        return day
    try:
        return WeekDay.parse(day)
    except ValueError as exc:
        raise InvalidWindowException(
            f"Unknown day '{day}'", details={"day": day}
        ) from exc


@dataclass(frozen=True)
class DayAvailability:
    day: WeekDay
    windows: Tuple[TimeWindow, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {"day": self.day.value, "slots": [w.to_dict() for w in self.windows]}


class AvailabilityStore:
    """CRUD over one offering's weekly schedule with per-day invariants."""

    def __init__(
        self,
        schedule: Optional[Mapping[DayKey, Iterable[TimeWindow]]] = None,
        *,
        max_windows_per_day: int = DEFAULT_MAX_WINDOWS_PER_DAY,
        reject_overlaps: bool = True,
    ) -> None:
        self.max_windows_per_day = max_windows_per_day
        self.reject_overlaps = reject_overlaps
        built: Dict[WeekDay, Tuple[TimeWindow, ...]] = {day: () for day in WeekDay.ordered()}
        for key, windows in (schedule or {}).items():
            day = _as_day(key)
            day_windows = tuple(windows)
            self._check_day(day, day_windows)
            built[day] = day_windows
        self._schedule: Schedule = MappingProxyType(built)

    # Reads

    @property
    def schedule(self) -> Schedule:
        return self._schedule

    def windows_for(self, day: DayKey) -> Tuple[TimeWindow, ...]:
        return self._schedule[_as_day(day)]

    def days(self) -> List[DayAvailability]:
        return [DayAvailability(day, self._schedule[day]) for day in WeekDay.ordered()]

    # Mutations

    def add_window(self, day: DayKey, window: TimeWindow) -> Tuple[TimeWindow, ...]:
        weekday = _as_day(day)
        current = self._schedule[weekday]
        if len(current) >= self.max_windows_per_day:
            raise CapacityExceededException(weekday.value, self.max_windows_per_day)
        updated = current + (window,)
        self._check_overlaps(weekday, updated)
        self._swap(weekday, updated)
        return updated

    def remove_window(self, day: DayKey, index: int) -> Tuple[TimeWindow, ...]:
        weekday = _as_day(day)
        current = self._schedule[weekday]
        self._check_index(weekday, current, index)
        updated = current[:index] + current[index + 1 :]
        # Emptied days stay present as an empty tuple.
        self._swap(weekday, updated)
        return updated

    def update_window(
        self,
        day: DayKey,
        index: int,
        new_start: Union[str, time, None] = None,
        new_end: Union[str, time, None] = None,
    ) -> Tuple[TimeWindow, ...]:
        weekday = _as_day(day)
        current = self._schedule[weekday]
        self._check_index(weekday, current, index)
        replacement = current[index].with_bounds(
            start=parse_clock(new_start) if new_start is not None else None,
            end=parse_clock(new_end) if new_end is not None else None,
        )
        updated = current[:index] + (replacement,) + current[index + 1 :]
        self._check_overlaps(weekday, updated)
        self._swap(weekday, updated)
        return updated

    # Serialisation (``[{"day": "Monday", "slots": [{"start": "09:00", "end": "10:00"}]}]``)

    @classmethod
    def from_payload(
        cls,
        payload: Optional[Iterable[Mapping[str, Any]]],
        *,
        max_windows_per_day: int = DEFAULT_MAX_WINDOWS_PER_DAY,
        reject_overlaps: bool = True,
    ) -> "AvailabilityStore":
        schedule: Dict[WeekDay, List[TimeWindow]] = {}
        for entry in payload or []:
            day = _as_day(entry.get("day", ""))
            if day in schedule:
                raise InvalidWindowException(
                    f"{day.value} appears more than once", details={"day": day.value}
                )
            schedule[day] = [TimeWindow.from_dict(slot) for slot in entry.get("slots") or []]
        return cls(
            schedule,
            max_windows_per_day=max_windows_per_day,
            reject_overlaps=reject_overlaps,
        )

    def to_payload(self) -> List[Dict[str, Any]]:
        return [d.to_dict() for d in self.days()]

    # Internals

    def _swap(self, day: WeekDay, windows: Tuple[TimeWindow, ...]) -> None:
        replacement = dict(self._schedule)
        replacement[day] = windows
        self._schedule = MappingProxyType(replacement)
        logger.debug("Availability for %s now has %d window(s)", day.value, len(windows))

    def _check_day(self, day: WeekDay, windows: Tuple[TimeWindow, ...]) -> None:
        if len(windows) > self.max_windows_per_day:
            raise CapacityExceededException(day.value, self.max_windows_per_day)
        self._check_overlaps(day, windows)

    def _check_overlaps(self, day: WeekDay, windows: Tuple[TimeWindow, ...]) -> None:
        if not self.reject_overlaps:
            return
        for i, first in enumerate(windows):
            for second in windows[i + 1 :]:
                if first.overlaps(second):
                    raise InvalidWindowException(
                        f"Overlapping windows on {day.value}: {first} conflicts with {second}",
                        details={
                            "day": day.value,
                            "new_slot": str(second),
                            "conflicting_slot": str(first),
                        },
                    )

    @staticmethod
    def _check_index(day: WeekDay, windows: Tuple[TimeWindow, ...], index: int) -> None:
        if index < 0 or index >= len(windows):
            raise WindowNotFoundException(day.value, index, len(windows))

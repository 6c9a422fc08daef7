# backend/tutorbook/core/enums.py
"""
Core enums for the tutor booking service.

String-valued so they serialise to the same literals the marketplace
front-end already sends and stores.
"""

from enum import Enum
from typing import List


class WeekDay(str, Enum):
    """Days of the week in calendar order (Monday first)."""

    MONDAY = "Monday"
    TUESDAY = "Tuesday"
    WEDNESDAY = "Wednesday"
    THURSDAY = "Thursday"
    FRIDAY = "Friday"
    SATURDAY = "Saturday"
    SUNDAY = "Sunday"

    @classmethod
    def ordered(cls) -> List["WeekDay"]:
        return list(cls)

    @property
    def weekday_index(self) -> int:
        """Python weekday index (Monday == 0)."""
        return WeekDay.ordered().index(self)

    @classmethod
    def parse(cls, value: str) -> "WeekDay":
        """Case-insensitive lookup by day name."""
        normalized = (value or "").strip().capitalize()
        return cls(normalized)


class TeachingMode(str, Enum):
    """Delivery channel for a session."""

    ONLINE = "online"
    HOME_VISIT = "home-visit"
    GROUP = "group"


class SessionStatus(str, Enum):
    """Time-derived state of a booked session. Never persisted."""

    UPCOMING = "upcoming"
    ONGOING = "ongoing"
    ENDED = "ended"


class ActorRole(str, Enum):
    """Which side of a booking is acting on it."""

    STUDENT = "student"
    TUTOR = "tutor"

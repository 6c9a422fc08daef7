"""
Booking status state machine and time-derived session status.

    pending ──► confirmed ──► completed
       │            │
       └──► cancelled ◄┘

``completed`` and ``cancelled`` are terminal. Session status
(upcoming / ongoing / ended) is computed from the clock and never stored.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, tzinfo
from enum import Enum
from typing import Dict, FrozenSet, Tuple

import pytz

from ..core.enums import ActorRole, SessionStatus, WeekDay
from ..core.exceptions import ForbiddenException, InvalidTransitionException
from .time_window import TimeWindow


class BookingStatus(str, Enum):
    """Booking lifecycle statuses."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


ALLOWED_TRANSITIONS: Dict[BookingStatus, FrozenSet[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.COMPLETED, BookingStatus.CANCELLED}),
    BookingStatus.COMPLETED: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
}

# Statuses that still hold a slot.
ACTIVE_STATUSES: FrozenSet[BookingStatus] = frozenset(
    {BookingStatus.PENDING, BookingStatus.CONFIRMED}
)


def can_transition(current: BookingStatus, target: BookingStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[BookingStatus(current)]


def ensure_transition(current: BookingStatus, target: BookingStatus) -> None:
    current, target = BookingStatus(current), BookingStatus(target)
    if not can_transition(current, target):
        raise InvalidTransitionException(current.value, target.value)


def ensure_actor_may_transition(actor: ActorRole, target: BookingStatus) -> None:
    """Confirm and complete are the tutor's; either party may cancel."""
    if BookingStatus(target) is BookingStatus.CANCELLED:
        return
    if actor is not ActorRole.TUTOR:
        raise ForbiddenException(
            f"Only the tutor can mark a booking as {BookingStatus(target).value}",
            code="TUTOR_ONLY_TRANSITION",
            details={"requested_status": BookingStatus(target).value},
        )


def next_session_date(day: WeekDay, window: TimeWindow, now: datetime) -> date:
    """
    Resolve a weekday window to its next concrete date.

    ``now`` must already be in the session timezone. Today counts when the
    window has not started yet.
    """
    today = now.date()
    offset = (day.weekday_index - today.weekday()) % 7
    candidate = today + timedelta(days=offset)
    if offset == 0 and window.start <= now.time().replace(tzinfo=None):
        candidate += timedelta(days=7)
    return candidate


def session_bounds(
    session_date: date, window: TimeWindow, tz: tzinfo
) -> Tuple[datetime, datetime]:
    """Absolute ``[start, end)`` of a session in ``tz``."""
    start = datetime.combine(session_date, window.start)
    end = datetime.combine(session_date, window.end)
    if isinstance(tz, pytz.BaseTzInfo):
        return tz.localize(start), tz.localize(end)
    return start.replace(tzinfo=tz), end.replace(tzinfo=tz)


def session_status(now: datetime, start: datetime, end: datetime) -> SessionStatus:
    if now < start:
        return SessionStatus.UPCOMING
    if now < end:
        return SessionStatus.ONGOING
    return SessionStatus.ENDED


def completion_allowed(status: BookingStatus, derived: SessionStatus) -> bool:
    """UI guard: a confirmed booking may be completed once its session has ended."""
    return BookingStatus(status) is BookingStatus.CONFIRMED and derived is SessionStatus.ENDED


def format_duration(duration_hours: int) -> str:
    return f"{duration_hours} hour{'s' if duration_hours != 1 else ''}"

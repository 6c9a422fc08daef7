"""Filter a day's windows down to those able to host a session length."""

from __future__ import annotations

from decimal import Decimal
from typing import Iterable, List

from ..core.exceptions import ValidationException
from .time_window import HoursLike, TimeWindow


def filter_eligible_windows(
    windows: Iterable[TimeWindow], duration_hours: HoursLike
) -> List[TimeWindow]:
    """
    Return the windows whose span is at least ``duration_hours``.

    Order is preserved and windows are offered whole; a longer window is
    never split into candidate start times. An empty list means "no slots
    for this day/duration" and is not an error.
    """
    if Decimal(str(duration_hours)) <= 0:
        raise ValidationException(
            "Session duration must be positive",
            code="INVALID_DURATION",
            details={"duration_hours": str(duration_hours)},
        )
    return [window for window in windows if window.covers(duration_hours)]

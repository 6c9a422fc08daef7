"""
Pure scheduling engine: availability windows, pricing, slot eligibility,
booking validation and the booking lifecycle. Nothing here performs I/O.
"""

from .availability import AvailabilityStore, DayAvailability
from .booking_lifecycle import BookingStatus
from .booking_validation import (
    AcceptedBooking,
    BookingRequest,
    BookingRequestValidator,
    OfferingSnapshot,
)
from .pricing import LegacyRates, ModeRate, compute_total, resolve_hourly_rate
from .slot_eligibility import filter_eligible_windows
from .time_window import TimeWindow

__all__ = [
    "AcceptedBooking",
    "AvailabilityStore",
    "BookingRequest",
    "BookingRequestValidator",
    "BookingStatus",
    "DayAvailability",
    "LegacyRates",
    "ModeRate",
    "OfferingSnapshot",
    "TimeWindow",
    "compute_total",
    "filter_eligible_windows",
    "resolve_hourly_rate",
]

# backend/tutorbook/schemas/__init__.py
"""
Pydantic schemas for the tutor booking API.

Request models forbid unknown fields; every model speaks camelCase on the
wire and accepts snake_case when built in code.
"""

from .availability import (
    AvailabilityReplace,
    DayAvailabilityIn,
    DayAvailabilityOut,
    EligibleSlotsOut,
    TimeWindowIn,
    TimeWindowOut,
    WindowCreate,
    WindowUpdate,
)
from .booking import BookingCreate, BookingListResponse, BookingResponse, BookingStatusUpdate
from .subject_offering import (
    LegacyRatesIn,
    ModeRateIn,
    PriceQuoteResponse,
    SubjectOfferingCreate,
    SubjectOfferingResponse,
    SubjectOfferingUpdate,
    TopicRef,
)

__all__ = [
    "AvailabilityReplace",
    "BookingCreate",
    "BookingListResponse",
    "BookingResponse",
    "BookingStatusUpdate",
    "DayAvailabilityIn",
    "DayAvailabilityOut",
    "EligibleSlotsOut",
    "LegacyRatesIn",
    "ModeRateIn",
    "PriceQuoteResponse",
    "SubjectOfferingCreate",
    "SubjectOfferingResponse",
    "SubjectOfferingUpdate",
    "TimeWindowIn",
    "TimeWindowOut",
    "TopicRef",
    "WindowCreate",
    "WindowUpdate",
]

"""
Booking request validation.

Runs the ordered, fail-fast checks that decide whether a student's request
can become a booking, and prices it when it can. Pure: no I/O, no
reservation. Reserving the slot is the caller's job (see
``BookingService.create_booking``).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
import re
from typing import AbstractSet, Collection, Dict, FrozenSet, List, Mapping, Optional

from ..core.enums import TeachingMode, WeekDay
from ..core.exceptions import (
    InvalidContactException,
    InvalidSlotException,
    InvalidTopicException,
    NoAvailabilityException,
    NotFoundException,
    TutorNotVerifiedException,
    ValidationException,
)
from .availability import AvailabilityStore
from .pricing import LegacyRates, ModeRate, ResolvedRate, compute_total, resolve_hourly_rate
from .slot_eligibility import filter_eligible_windows
from .time_window import TimeWindow

CONTACT_NUMBER_RE = re.compile(r"^[0-9]{10,15}$")
DEFAULT_ALLOWED_DURATIONS: FrozenSet[int] = frozenset({1, 2, 3})


@dataclass(frozen=True)
class OfferingSnapshot:
    """Read-only view of a subject offering at request time."""

    id: str
    tutor_id: Optional[str]
    subject_id: str
    subject_name: str
    selected_topic_ids: FrozenSet[str]
    mode_rates: Mapping[TeachingMode, ModeRate]
    availability: AvailabilityStore
    legacy_rates: Optional[LegacyRates] = None
    tutor_verified: bool = True


@dataclass(frozen=True)
class BookingRequest:
    subject_offering_id: str
    day: WeekDay
    window: TimeWindow
    duration_hours: int
    mode: TeachingMode
    contact_number: str
    topic_ids: FrozenSet[str] = field(default_factory=frozenset)
    notes: Optional[str] = None


@dataclass(frozen=True)
class AcceptedBooking:
    """Priced outcome of a valid request; persisted with status ``pending``."""

    request: BookingRequest
    tutor_id: str
    hourly_rate: Decimal
    rate_source: str
    total_price: Decimal


class BookingRequestValidator:
    """Accepts or rejects a ``BookingRequest`` against one offering."""

    def __init__(
        self,
        *,
        allowed_durations: Collection[int] = DEFAULT_ALLOWED_DURATIONS,
        require_verified_tutor: bool = True,
    ) -> None:
        self.allowed_durations = frozenset(allowed_durations)
        self.require_verified_tutor = require_verified_tutor

    def validate(
        self, request: BookingRequest, offering: Optional[OfferingSnapshot]
    ) -> AcceptedBooking:
        # 1. offering exists and belongs to a tutor
        if offering is None or not offering.tutor_id or offering.id != request.subject_offering_id:
            raise NotFoundException(
                "Subject offering not found",
                code="SUBJECT_OFFERING_NOT_FOUND",
                details={"subject_offering_id": request.subject_offering_id},
            )
        if self.require_verified_tutor and not offering.tutor_verified:
            raise TutorNotVerifiedException(offering.tutor_id)

        # duration is one of the offered session lengths
        self._check_duration(request.duration_hours)

        # 2. mode is bookable
        rate = self.resolve_rate(offering, request.mode)

        # 3. at least one window can host the duration
        eligible = self.eligible_windows(offering, request.day, request.duration_hours)
        if not eligible:
            raise NoAvailabilityException(request.day.value, request.duration_hours)

        # 4. the chosen window is one of them, and really covers the duration
        if request.window not in eligible:
            raise InvalidSlotException(
                request.window.to_slot_string(),
                details={"eligible_slots": [w.to_slot_string() for w in eligible]},
            )
        if not request.window.covers(request.duration_hours):
            raise InvalidSlotException(
                request.window.to_slot_string(),
                details={"window_hours": str(request.window.duration_hours)},
            )

        # 5. contact number
        if not CONTACT_NUMBER_RE.fullmatch(request.contact_number or ""):
            raise InvalidContactException(request.contact_number)

        # 6. topics
        self._check_topics(request.topic_ids, offering.selected_topic_ids)

        return AcceptedBooking(
            request=request,
            tutor_id=offering.tutor_id,
            hourly_rate=rate.hourly_rate,
            rate_source=rate.source,
            total_price=compute_total(rate.hourly_rate, request.duration_hours),
        )

    @staticmethod
    def resolve_rate(offering: OfferingSnapshot, mode: TeachingMode) -> ResolvedRate:
        return resolve_hourly_rate(offering.mode_rates, mode, offering.legacy_rates)

    @staticmethod
    def eligible_windows(
        offering: OfferingSnapshot, day: WeekDay, duration_hours: int
    ) -> List[TimeWindow]:
        return filter_eligible_windows(offering.availability.windows_for(day), duration_hours)

    def _check_duration(self, duration_hours: int) -> None:
        if duration_hours not in self.allowed_durations:
            raise ValidationException(
                f"Invalid duration {duration_hours}. Available options: "
                f"{sorted(self.allowed_durations)}",
                code="INVALID_DURATION",
                details={"duration": duration_hours},
            )

    @staticmethod
    def _check_topics(requested: AbstractSet[str], offered: AbstractSet[str]) -> None:
        if not requested:
            return
        unknown = sorted(topic for topic in requested if topic not in offered)
        if unknown:
            raise InvalidTopicException(unknown)


def summarize_request(request: BookingRequest) -> Dict[str, str]:
    """Loggable view of a request without the contact number."""
    return {
        "subject_offering_id": request.subject_offering_id,
        "day": request.day.value,
        "time_slot": request.window.to_slot_string(),
        "duration_hours": str(request.duration_hours),
        "mode": request.mode.value,
    }

# backend/tutorbook/schemas/booking.py
"""
Booking schemas.

The create body keeps the field names the booking form has always sent
(``subject``, ``topics``, ``timeSlot``, ``learningMethod``, ...). ``subject``
carries the subject offering id. ``totalPrice`` is informational only; the
server prices every booking itself.
"""

from datetime import date, datetime
from typing import List, Optional

from pydantic import Field

from ..core.enums import SessionStatus, TeachingMode, WeekDay
from ..core.exceptions import InvalidSlotException, InvalidWindowException
from ..domain.booking_lifecycle import BookingStatus, completion_allowed, format_duration
from ..domain.booking_validation import BookingRequest
from ..domain.time_window import TimeWindow
from ..models.booking import Booking
from ._strict_base import StrictModel, StrictRequestModel
from .base import Money


class BookingCreate(StrictRequestModel):
    """
    ``{subject, topics, day, timeSlot, duration, contactNumber, learningMethod,
    totalPrice, notes?}``

    Contact number and duration are checked by the booking validator so their
    errors come back in the same order as every other eligibility failure.
    """

    subject: str = Field(..., min_length=1, description="Subject offering id")
    topics: List[str] = Field(default_factory=list)
    day: WeekDay
    time_slot: str = Field(..., examples=["09:00 - 11:00"])
    duration: int
    contact_number: str
    learning_method: TeachingMode
    total_price: Optional[Money] = None
    notes: Optional[str] = Field(default=None, max_length=1000)

    def to_domain(self) -> BookingRequest:
        try:
            window = TimeWindow.parse(self.time_slot)
        except InvalidWindowException as exc:
            raise InvalidSlotException(self.time_slot, details=exc.details) from exc
        return BookingRequest(
            subject_offering_id=self.subject,
            day=self.day,
            window=window,
            duration_hours=self.duration,
            mode=self.learning_method,
            contact_number=self.contact_number,
            topic_ids=frozenset(t for t in self.topics if t),
            notes=self.notes,
        )


class BookingStatusUpdate(StrictRequestModel):
    """``{status, cancellationReason?}``"""

    status: BookingStatus
    cancellation_reason: Optional[str] = Field(default=None, max_length=500)


class BookingResponse(StrictModel):
    id: str
    student_id: str
    tutor_profile_id: str
    subject: str
    subject_name: Optional[str] = None
    topics: List[str]
    day: WeekDay
    session_date: date
    time_slot: str
    duration: int
    duration_label: str
    learning_method: TeachingMode
    hourly_rate: Money
    rate_source: str
    total_price: Money
    contact_number: str
    notes: Optional[str] = None
    status: BookingStatus
    session_status: SessionStatus
    completion_allowed: bool
    cancellation_reason: Optional[str] = None
    cancelled_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    confirmed_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None

    @classmethod
    def from_booking(cls, booking: Booking, session_status: SessionStatus) -> "BookingResponse":
        offering = booking.subject_offering
        return cls(
            id=booking.id,
            student_id=booking.student_id,
            tutor_profile_id=booking.tutor_profile_id,
            subject=booking.subject_offering_id,
            subject_name=offering.subject_name if offering is not None else None,
            topics=list(booking.topic_ids or []),
            day=WeekDay(booking.day),
            session_date=booking.session_date,
            time_slot=booking.window.to_slot_string(),
            duration=booking.duration_hours,
            duration_label=format_duration(booking.duration_hours),
            learning_method=TeachingMode(booking.mode),
            hourly_rate=booking.hourly_rate,
            rate_source=booking.rate_source,
            total_price=booking.total_price,
            contact_number=booking.contact_number,
            notes=booking.notes,
            status=booking.booking_status,
            session_status=session_status,
            completion_allowed=completion_allowed(booking.booking_status, session_status),
            cancellation_reason=booking.cancellation_reason,
            cancelled_by=booking.cancelled_by_id,
            created_at=booking.created_at,
            updated_at=booking.updated_at,
            confirmed_at=booking.confirmed_at,
            completed_at=booking.completed_at,
            cancelled_at=booking.cancelled_at,
        )


class BookingListResponse(StrictModel):
    bookings: List[BookingResponse]
    total: int

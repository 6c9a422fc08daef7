# backend/tutorbook/models/booking.py
"""
Booking model.

A booking is a self-contained record: tutor, offering, weekday window,
concrete session date, rate and price are all snapshotted at creation so
later edits to the offering's schedule or rates never rewrite history.

Active bookings (pending or confirmed) own their slot. The partial unique
index ``uq_bookings_active_slot`` is the last line of defence against two
students holding the same tutor window on the same date.
"""

from datetime import datetime, timezone
import logging
from typing import Any, Optional

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Time,
    text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..database import Base
from ..domain.booking_lifecycle import ACTIVE_STATUSES, BookingStatus
from ..domain.time_window import TimeWindow

logger = logging.getLogger(__name__)

_ACTIVE_STATUS_SQL = "status IN ({})".format(
    ", ".join(f"'{status.value}'" for status in sorted(ACTIVE_STATUSES, key=lambda s: s.value))
)


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))

    student_id = Column(String(64), nullable=False, index=True)
    tutor_profile_id = Column(
        String(26), ForeignKey("tutor_profiles.id", ondelete="CASCADE"), nullable=False
    )
    subject_offering_id = Column(
        String(26), ForeignKey("subject_offerings.id", ondelete="CASCADE"), nullable=False
    )
    topic_ids = Column(JSON, nullable=False, default=list)

    # Weekday window plus the date it resolved to
    day = Column(String(10), nullable=False)
    session_date = Column(Date, nullable=False, index=True)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    duration_hours = Column(Integer, nullable=False)

    # Pricing snapshot
    mode = Column(String(20), nullable=False)
    hourly_rate = Column(Numeric(10, 2), nullable=False)
    rate_source = Column(String(20), nullable=False)
    total_price = Column(Numeric(10, 2), nullable=False)

    contact_number = Column(String(15), nullable=False)
    notes = Column(Text, nullable=True)

    status = Column(String(20), nullable=False, default=BookingStatus.PENDING.value, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
    confirmed_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)

    cancelled_by_id = Column(String(64), nullable=True)
    cancellation_reason = Column(Text, nullable=True)

    tutor = relationship("TutorProfile")
    subject_offering = relationship("SubjectOffering")

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'completed', 'cancelled')",
            name="ck_bookings_status",
        ),
        CheckConstraint(
            "mode IN ('online', 'home-visit', 'group')",
            name="ck_bookings_mode",
        ),
        CheckConstraint("duration_hours > 0", name="check_duration_positive"),
        CheckConstraint("total_price >= 0", name="check_price_non_negative"),
        CheckConstraint("start_time < end_time", name="check_time_order"),
        Index(
            "uq_bookings_active_slot",
            "tutor_profile_id",
            "session_date",
            "start_time",
            "end_time",
            unique=True,
            sqlite_where=text(_ACTIVE_STATUS_SQL),
            postgresql_where=text(_ACTIVE_STATUS_SQL),
        ),
        Index("ix_bookings_tutor_date", "tutor_profile_id", "session_date"),
    )

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        if not self.status:
            self.status = BookingStatus.PENDING.value
        logger.info(
            f"Creating booking for student {self.student_id} with tutor {self.tutor_profile_id}"
        )

    def __repr__(self) -> str:
        return (
            f"<Booking {self.id}: student={self.student_id}, "
            f"tutor={self.tutor_profile_id}, date={self.session_date}, "
            f"time={self.start_time}-{self.end_time}, status={self.status}>"
        )

    @property
    def booking_status(self) -> BookingStatus:
        return BookingStatus(self.status)

    @property
    def window(self) -> TimeWindow:
        return TimeWindow(start=self.start_time, end=self.end_time)

    def confirm(self) -> None:
        """Tutor accepted the booking."""
        self.status = BookingStatus.CONFIRMED.value
        self.confirmed_at = datetime.now(timezone.utc)
        logger.info(f"Booking {self.id} confirmed")

    def cancel(self, cancelled_by_user_id: str, reason: Optional[str] = None) -> None:
        """Cancel this booking and release its slot."""
        self.status = BookingStatus.CANCELLED.value
        self.cancelled_at = datetime.now(timezone.utc)
        self.cancelled_by_id = cancelled_by_user_id
        self.cancellation_reason = reason
        logger.info(f"Booking {self.id} cancelled by user {cancelled_by_user_id}")

    def complete(self) -> None:
        """Mark booking as completed."""
        self.status = BookingStatus.COMPLETED.value
        self.completed_at = datetime.now(timezone.utc)
        logger.info(f"Booking {self.id} marked as completed")

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "student_id": self.student_id,
            "tutor_profile_id": self.tutor_profile_id,
            "subject_offering_id": self.subject_offering_id,
            "topic_ids": list(self.topic_ids or []),
            "day": self.day,
            "session_date": self.session_date.isoformat() if self.session_date else None,
            "time_slot": self.window.to_slot_string(),
            "duration_hours": self.duration_hours,
            "mode": self.mode,
            "hourly_rate": float(self.hourly_rate),
            "rate_source": self.rate_source,
            "total_price": float(self.total_price),
            "notes": self.notes,
            "status": self.status,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "confirmed_at": self.confirmed_at.isoformat() if self.confirmed_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "cancelled_at": self.cancelled_at.isoformat() if self.cancelled_at else None,
            "cancelled_by_id": self.cancelled_by_id,
            "cancellation_reason": self.cancellation_reason,
        }


__all__ = ["Booking", "BookingStatus"]

# backend/tutorbook/services/booking_service.py
"""
Booking Service.

Turns a validated booking request into a persisted ``pending`` booking and
drives the booking status lifecycle afterwards.

Creation is an atomic check-and-insert per tutor slot:
1. validate the request against the offering (fail fast, no lock held)
2. take the slot lock for (tutor, session date, window)
3. inside the lock: re-validate, look for active bookings overlapping the
   window, insert
4. the partial unique index on active bookings rejects anything that slipped
   past the lock (e.g. another process without Redis); that IntegrityError
   becomes ``SlotConflictException``

Status changes hold the booking's own mutex and re-read the row before the
transition is checked.
"""

from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
import logging
from typing import Callable, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.booking_lock import booking_lock_sync, slot_lock_key, slot_lock_sync
from ..core.config import settings
from ..core.enums import ActorRole, SessionStatus
from ..core.exceptions import (
    BusinessRuleException,
    ConflictException,
    DomainException,
    ForbiddenException,
    NotFoundException,
    SlotConflictException,
)
from ..domain.booking_lifecycle import (
    BookingStatus,
    ensure_actor_may_transition,
    ensure_transition,
    next_session_date,
    session_bounds,
    session_status,
)
from ..domain.booking_validation import (
    AcceptedBooking,
    BookingRequest,
    BookingRequestValidator,
    summarize_request,
)
from ..models.booking import Booking
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BookingService(BaseService):
    """Booking creation with slot reservation, and status transitions."""

    def __init__(self, db: Session, clock: Optional[Clock] = None):
        super().__init__(db)
        self.repository = RepositoryFactory.create_booking_repository(db)
        self.offering_repository = RepositoryFactory.create_subject_offering_repository(db)
        self.tutor_repository = RepositoryFactory.create_tutor_profile_repository(db)
        self.validator = BookingRequestValidator(
            allowed_durations=settings.allowed_session_durations,
            require_verified_tutor=settings.require_verified_tutor,
        )
        self._clock = clock or _utcnow

    def now(self) -> datetime:
        """Current time in the session timezone."""
        return self._clock().astimezone(settings.get_session_timezone())

    # Creation

    @BaseService.measure_operation("validate_booking_request")
    def validate_request(self, request: BookingRequest) -> AcceptedBooking:
        """Run the ordered eligibility checks; no side effects."""
        offering = self.offering_repository.get_by_id(request.subject_offering_id)
        snapshot = offering.to_snapshot() if offering is not None else None
        return self.validator.validate(request, snapshot)

    @BaseService.measure_operation("create_booking")
    def create_booking(
        self,
        student_id: str,
        request: BookingRequest,
        client_total_price: Optional[Decimal] = None,
    ) -> Booking:
        """
        Create a pending booking for ``student_id``.

        Raises:
            NotFoundException, TutorNotVerifiedException, ModeUnavailableException,
            NoAvailabilityException, InvalidSlotException, InvalidContactException,
            InvalidTopicException: request is not eligible
            SlotConflictException: another active booking holds the slot
        """
        self.log_operation("create_booking", student_id=student_id, **summarize_request(request))
        try:
            accepted = self.validate_request(request)
            session_date = next_session_date(request.day, request.window, self.now())
            lock_key = slot_lock_key(
                accepted.tutor_id, session_date.isoformat(), request.window.to_slot_string()
            )
            with slot_lock_sync(lock_key) as acquired:
                if not acquired:
                    raise SlotConflictException(
                        details=self._conflict_details(accepted, session_date)
                    )
                # Offering may have changed while we queued on the lock.
                accepted = self.validate_request(request)
                booking = self.persist_booking(student_id, accepted, session_date)
        except DomainException as exc:
            prometheus_metrics.record_booking_outcome(exc.code)
            raise

        prometheus_metrics.record_booking_outcome("accepted")
        self._log_price_mismatch(booking, client_total_price)
        logger.info(
            f"Booking {booking.id} created for student {student_id} "
            f"on {booking.session_date} {booking.window}"
        )
        return booking

    def persist_booking(
        self, student_id: str, accepted: AcceptedBooking, session_date: date
    ) -> Booking:
        """
        Insert the booking unless an active one already overlaps the window.

        Callers must hold the slot lock; the unique index covers the rest.
        """
        request = accepted.request
        try:
            with self.repository.transaction():
                clashes = self.repository.get_active_overlapping(
                    accepted.tutor_id,
                    session_date,
                    request.window.start,
                    request.window.end,
                )
                if clashes:
                    raise SlotConflictException(
                        details={
                            **self._conflict_details(accepted, session_date),
                            "conflicting_booking_ids": [b.id for b in clashes],
                        }
                    )
                booking = self.repository.create(
                    student_id=student_id,
                    tutor_profile_id=accepted.tutor_id,
                    subject_offering_id=request.subject_offering_id,
                    topic_ids=sorted(request.topic_ids),
                    day=request.day.value,
                    session_date=session_date,
                    start_time=request.window.start,
                    end_time=request.window.end,
                    duration_hours=request.duration_hours,
                    mode=request.mode.value,
                    hourly_rate=accepted.hourly_rate,
                    rate_source=accepted.rate_source,
                    total_price=accepted.total_price,
                    contact_number=request.contact_number,
                    notes=request.notes,
                    status=BookingStatus.PENDING.value,
                )
        except IntegrityError as exc:
            logger.warning(
                "booking_slot_conflict_on_insert",
                extra={
                    "tutor_profile_id": accepted.tutor_id,
                    "session_date": session_date.isoformat(),
                    "time_slot": request.window.to_slot_string(),
                },
            )
            raise SlotConflictException(
                details=self._conflict_details(accepted, session_date)
            ) from exc
        return booking

    # Reads

    @BaseService.measure_operation("get_booking_for_user")
    def get_booking_for_user(self, booking_id: str, user_id: str) -> Booking:
        booking = self._get_booking(booking_id)
        self._actor_role(booking, user_id)
        return booking

    @BaseService.measure_operation("list_bookings_for_user")
    def list_bookings_for_user(
        self, user_id: str, status: Optional[BookingStatus] = None
    ) -> List[Booking]:
        tutor = self.tutor_repository.get_by_user_id(user_id)
        return self.repository.list_for_user(
            user_id,
            tutor_profile_id=tutor.id if tutor is not None else None,
            status=BookingStatus(status).value if status is not None else None,
        )

    def session_status_for(self, booking: Booking, now: Optional[datetime] = None) -> SessionStatus:
        """Derived upcoming/ongoing/ended state; never stored."""
        tz = settings.get_session_timezone()
        start, end = session_bounds(booking.session_date, booking.window, tz)
        return session_status(now or self.now(), start, end)

    # Lifecycle

    @BaseService.measure_operation("update_booking_status")
    def update_status(
        self,
        booking_id: str,
        user_id: str,
        target: BookingStatus,
        cancellation_reason: Optional[str] = None,
    ) -> Booking:
        """
        Move a booking to ``target``.

        Either party may cancel; confirm and complete belong to the tutor.
        The booking is re-read under its lock, so a concurrent change is seen
        before the transition is checked. An invalid transition leaves the
        booking untouched.
        """
        target = BookingStatus(target)
        with booking_lock_sync(booking_id) as acquired:
            if not acquired:
                raise ConflictException(
                    "This booking is being updated by another request",
                    code="BOOKING_BUSY",
                    details={"booking_id": booking_id},
                )
            booking = self._get_booking_for_update(booking_id)
            actor = self._actor_role(booking, user_id)

            ensure_transition(booking.booking_status, target)
            ensure_actor_may_transition(actor, target)
            if (
                target is BookingStatus.COMPLETED
                and settings.enforce_completion_after_session_end
                and self.session_status_for(booking) is not SessionStatus.ENDED
            ):
                raise BusinessRuleException(
                    "A booking can only be completed after its session has ended",
                    code="SESSION_NOT_ENDED",
                    details={"booking_id": booking.id},
                )

            previous = booking.status
            with self.transaction():
                if target is BookingStatus.CONFIRMED:
                    booking.confirm()
                elif target is BookingStatus.COMPLETED:
                    booking.complete()
                else:
                    booking.cancel(user_id, cancellation_reason)
                self.db.flush()

        self.log_operation(
            "update_booking_status",
            booking_id=booking.id,
            actor_role=actor.value,
            previous_status=previous,
            new_status=booking.status,
        )
        return booking

    # Helpers

    def _get_booking(self, booking_id: str) -> Booking:
        booking = self.repository.get_by_id(booking_id)
        if booking is None:
            raise NotFoundException(
                "Booking not found", code="BOOKING_NOT_FOUND", details={"booking_id": booking_id}
            )
        return booking

    def _get_booking_for_update(self, booking_id: str) -> Booking:
        booking = self.repository.get_for_update(booking_id)
        if booking is None:
            raise NotFoundException(
                "Booking not found", code="BOOKING_NOT_FOUND", details={"booking_id": booking_id}
            )
        return booking

    def _actor_role(self, booking: Booking, user_id: str) -> ActorRole:
        tutor = booking.tutor
        if tutor is not None and tutor.user_id == user_id:
            return ActorRole.TUTOR
        if booking.student_id == user_id:
            return ActorRole.STUDENT
        raise ForbiddenException(
            "You do not have access to this booking",
            code="NOT_BOOKING_PARTY",
            details={"booking_id": booking.id},
        )

    @staticmethod
    def _conflict_details(accepted: AcceptedBooking, session_date: date) -> dict:
        request = accepted.request
        return {
            "tutor_profile_id": accepted.tutor_id,
            "day": request.day.value,
            "session_date": session_date.isoformat(),
            "time_slot": request.window.to_slot_string(),
        }

    @staticmethod
    def _log_price_mismatch(booking: Booking, client_total_price: Optional[Decimal]) -> None:
        if client_total_price is None:
            return
        try:
            client_total = Decimal(str(client_total_price))
        except InvalidOperation:
            client_total = None
        if client_total != Decimal(booking.total_price):
            logger.warning(
                "booking_client_total_mismatch",
                extra={
                    "booking_id": booking.id,
                    "client_total_price": str(client_total_price),
                    "server_total_price": str(booking.total_price),
                },
            )

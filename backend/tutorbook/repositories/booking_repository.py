# backend/tutorbook/repositories/booking_repository.py
"""
Booking Repository.

Data access for bookings: creation that surfaces unique-index conflicts,
overlap queries used while a slot lock is held, and listings per party.
"""

from datetime import date, time
from typing import Any, List, Optional

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Query, Session, joinedload

from ..core.exceptions import RepositoryException
from ..domain.booking_lifecycle import ACTIVE_STATUSES
from ..models.booking import Booking
from .base_repository import BaseRepository

_ACTIVE_VALUES = sorted(status.value for status in ACTIVE_STATUSES)


class BookingRepository(BaseRepository[Booking]):
    def __init__(self, db: Session):
        super().__init__(db, Booking)

    def _apply_eager_loading(self, query: Query) -> Query:
        return query.options(joinedload(Booking.subject_offering), joinedload(Booking.tutor))

    def create(self, **kwargs: Any) -> Booking:
        """Create a booking, exposing integrity errors for conflict handling."""
        try:
            return super().create(**kwargs)
        except RepositoryException as exc:
            if isinstance(exc.__cause__, IntegrityError):
                raise exc.__cause__
            raise

    def get_active_overlapping(
        self,
        tutor_profile_id: str,
        session_date: date,
        start_time: time,
        end_time: time,
        exclude_booking_id: Optional[str] = None,
    ) -> List[Booking]:
        """
        Active bookings for the tutor on ``session_date`` that intersect
        ``[start_time, end_time)``. Touching edges do not intersect.
        """
        try:
            query = self.db.query(Booking).filter(
                Booking.tutor_profile_id == tutor_profile_id,
                Booking.session_date == session_date,
                Booking.status.in_(_ACTIVE_VALUES),
                Booking.start_time < end_time,
                Booking.end_time > start_time,
            )
            if exclude_booking_id:
                query = query.filter(Booking.id != exclude_booking_id)
            return query.all()
        except SQLAlchemyError as e:
            self.logger.error(f"Error checking overlapping bookings: {str(e)}")
            raise RepositoryException(f"Failed to check overlapping bookings: {str(e)}")

    def list_for_user(
        self,
        user_id: str,
        tutor_profile_id: Optional[str] = None,
        status: Optional[str] = None,
        limit: int = 100,
    ) -> List[Booking]:
        """Bookings the user made as a student or received as a tutor, newest session first."""
        try:
            parties = [Booking.student_id == user_id]
            if tutor_profile_id:
                parties.append(Booking.tutor_profile_id == tutor_profile_id)
            query = self.db.query(Booking).filter(or_(*parties))
            if status:
                query = query.filter(Booking.status == status)
            return (
                query.order_by(Booking.session_date.desc(), Booking.start_time.desc())
                .limit(limit)
                .all()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing bookings for user {user_id}: {str(e)}")
            raise RepositoryException(f"Failed to list bookings: {str(e)}")

    def get_for_update(self, booking_id: str) -> Optional[Booking]:
        """
        Row-lock the booking and reload it from the database.

        Stale identity-map state is overwritten so status checks see the
        latest committed value (the row lock is a no-op on SQLite).
        """
        try:
            query = (
                self.db.query(Booking)
                .filter(Booking.id == booking_id)
                .with_for_update()
                .populate_existing()
            )
            return query.first()
        except SQLAlchemyError as e:
            self.logger.error(f"Error locking booking {booking_id}: {str(e)}")
            raise RepositoryException(f"Failed to lock booking: {str(e)}")

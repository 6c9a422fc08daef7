# backend/tutorbook/repositories/factory.py
"""
Repository Factory.

Centralized creation of repository instances so services share one way of
wiring a session to its data access objects.
"""

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

# Avoid circular imports
if TYPE_CHECKING:
    from .booking_repository import BookingRepository
    from .subject_offering_repository import SubjectOfferingRepository
    from .tutor_profile_repository import TutorProfileRepository


class RepositoryFactory:
    """Factory class for creating repository instances."""

    @staticmethod
    def create_booking_repository(db: Session) -> "BookingRepository":
        """Create repository for booking operations."""
        from .booking_repository import BookingRepository

        return BookingRepository(db)

    @staticmethod
    def create_subject_offering_repository(db: Session) -> "SubjectOfferingRepository":
        """Create repository for subject offerings and their schedules."""
        from .subject_offering_repository import SubjectOfferingRepository

        return SubjectOfferingRepository(db)

    @staticmethod
    def create_tutor_profile_repository(db: Session) -> "TutorProfileRepository":
        from .tutor_profile_repository import TutorProfileRepository

        return TutorProfileRepository(db)

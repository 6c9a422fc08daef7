# backend/tutorbook/repositories/__init__.py
"""
Repository layer for data access, separating business logic from queries.

Usage:
    from tutorbook.repositories import RepositoryFactory

    # In a service:
    booking_repo = RepositoryFactory.create_booking_repository(db)
    clashes = booking_repo.get_active_overlapping(tutor_id, session_date, start, end)
"""

from .base_repository import BaseRepository
from .booking_repository import BookingRepository
from .factory import RepositoryFactory
from .subject_offering_repository import SubjectOfferingRepository
from .tutor_profile_repository import TutorProfileRepository

__all__ = [
    "BaseRepository",
    "BookingRepository",
    "RepositoryFactory",
    "SubjectOfferingRepository",
    "TutorProfileRepository",
]

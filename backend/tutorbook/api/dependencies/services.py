# backend/tutorbook/api/dependencies/services.py
"""
Service layer dependencies for dependency injection.

Each request gets service instances bound to its own database session.
"""

from fastapi import Depends
from sqlalchemy.orm import Session

from ...services.availability_service import AvailabilityService
from ...services.booking_service import BookingService
from ...services.pricing_service import PricingService
from ...services.subject_offering_service import SubjectOfferingService
from .database import get_db


def get_subject_offering_service(db: Session = Depends(get_db)) -> SubjectOfferingService:
    return SubjectOfferingService(db)


def get_availability_service(
    db: Session = Depends(get_db),
    offering_service: SubjectOfferingService = Depends(get_subject_offering_service),
) -> AvailabilityService:
    return AvailabilityService(db, offering_service=offering_service)


def get_pricing_service(
    db: Session = Depends(get_db),
    offering_service: SubjectOfferingService = Depends(get_subject_offering_service),
) -> PricingService:
    return PricingService(db, offering_service=offering_service)


def get_booking_service(db: Session = Depends(get_db)) -> BookingService:
    """
    Get booking service instance.

    Args:
        db: Database session

    Returns:
        BookingService bound to the request's session
    """
    return BookingService(db)

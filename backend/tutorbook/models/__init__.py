"""
Database models for the tutor booking service.

- TutorProfile: the tutor who owns subject offerings
- SubjectOffering: one subject with rates, topics and weekly availability
- Booking: a student's reservation of one tutor window on a concrete date
"""

from .booking import Booking, BookingStatus
from .subject_offering import SubjectOffering
from .tutor import TutorProfile

__all__ = [
    "Booking",
    "BookingStatus",
    "SubjectOffering",
    "TutorProfile",
]

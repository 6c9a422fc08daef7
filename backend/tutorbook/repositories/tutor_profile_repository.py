# backend/tutorbook/repositories/tutor_profile_repository.py
"""Data access for tutor profiles."""

from typing import Optional

from sqlalchemy.orm import Session

from ..models.tutor import TutorProfile
from .base_repository import BaseRepository


class TutorProfileRepository(BaseRepository[TutorProfile]):
    def __init__(self, db: Session):
        super().__init__(db, TutorProfile)

    def get_by_user_id(self, user_id: str) -> Optional[TutorProfile]:
        return self.find_one_by(user_id=user_id)

# backend/tutorbook/repositories/subject_offering_repository.py
"""Data access for subject offerings (rates, topics and weekly schedule)."""

from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session, joinedload

from ..core.exceptions import RepositoryException
from ..models.subject_offering import SubjectOffering
from .base_repository import BaseRepository


class SubjectOfferingRepository(BaseRepository[SubjectOffering]):
    def __init__(self, db: Session):
        super().__init__(db, SubjectOffering)

    def _apply_eager_loading(self, query: Query) -> Query:
        return query.options(joinedload(SubjectOffering.tutor))

    def get_for_tutor(self, tutor_profile_id: str) -> List[SubjectOffering]:
        try:
            return (
                self.db.query(SubjectOffering)
                .filter(SubjectOffering.tutor_profile_id == tutor_profile_id)
                .order_by(SubjectOffering.subject_name)
                .all()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting offerings for tutor {tutor_profile_id}: {str(e)}")
            raise RepositoryException(f"Failed to get subject offerings: {str(e)}")

    def get_by_tutor_and_subject(
        self, tutor_profile_id: str, subject_id: str
    ) -> Optional[SubjectOffering]:
        return self.find_one_by(tutor_profile_id=tutor_profile_id, subject_id=subject_id)

    def get_for_update(self, offering_id: str) -> Optional[SubjectOffering]:
        """Row-lock the offering while its schedule is rewritten (no-op on SQLite)."""
        try:
            return (
                self.db.query(SubjectOffering)
                .filter(SubjectOffering.id == offering_id)
                .with_for_update()
                .first()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error locking offering {offering_id}: {str(e)}")
            raise RepositoryException(f"Failed to lock subject offering: {str(e)}")

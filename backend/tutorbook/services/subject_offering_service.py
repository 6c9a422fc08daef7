# backend/tutorbook/services/subject_offering_service.py
"""
Subject offering configuration.

Tutors create and edit the offerings students book against: which subject,
which topics (at most ``settings.max_selected_topics``), the per-mode hourly
rates and, for offerings migrated from the old pricing model, the legacy
``{individual, group, online}`` rates.
"""

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.enums import TeachingMode
from ..core.exceptions import (
    ConflictException,
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from ..domain.availability import AvailabilityStore
from ..domain.pricing import LegacyRates, ModeRate, normalize_mode_rates
from ..models.subject_offering import SubjectOffering
from ..models.tutor import TutorProfile
from ..repositories.factory import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)


class SubjectOfferingService(BaseService):
    """Tutor-side CRUD for subject offerings."""

    def __init__(self, db: Session):
        super().__init__(db)
        self.offering_repository = RepositoryFactory.create_subject_offering_repository(db)
        self.tutor_repository = RepositoryFactory.create_tutor_profile_repository(db)

    # Lookups shared with the other services

    def get_offering(self, offering_id: str) -> SubjectOffering:
        offering = self.offering_repository.get_by_id(offering_id)
        if offering is None:
            raise NotFoundException(
                "Subject offering not found",
                code="SUBJECT_OFFERING_NOT_FOUND",
                details={"subject_offering_id": offering_id},
            )
        return offering

    def get_tutor_for_user(self, user_id: str) -> TutorProfile:
        tutor = self.tutor_repository.get_by_user_id(user_id)
        if tutor is None:
            raise ForbiddenException(
                "Only tutors can manage subject offerings",
                code="TUTOR_PROFILE_REQUIRED",
                details={"user_id": user_id},
            )
        return tutor

    def ensure_owner(self, offering: SubjectOffering, user_id: str) -> None:
        tutor = offering.tutor
        if tutor is None or tutor.user_id != user_id:
            raise ForbiddenException(
                "You can only modify your own subject offerings",
                code="NOT_OFFERING_OWNER",
                details={"subject_offering_id": offering.id},
            )

    # Reads

    @BaseService.measure_operation("list_offerings_for_tutor")
    def list_for_tutor(self, tutor_profile_id: str) -> List[SubjectOffering]:
        return self.offering_repository.get_for_tutor(tutor_profile_id)

    # Writes

    @BaseService.measure_operation("create_offering")
    def create_offering(
        self,
        user_id: str,
        *,
        subject_id: str,
        subject_name: str,
        selected_topics: Iterable[Mapping[str, Any]] = (),
        mode_rates: Iterable[Mapping[str, Any]] = (),
        legacy_rates: Optional[Mapping[str, Any]] = None,
        availability: Optional[Iterable[Mapping[str, Any]]] = None,
    ) -> SubjectOffering:
        tutor = self.get_tutor_for_user(user_id)
        if self.offering_repository.get_by_tutor_and_subject(tutor.id, subject_id):
            raise ConflictException(
                "You already offer this subject",
                code="DUPLICATE_SUBJECT_OFFERING",
                details={"subject_id": subject_id},
            )

        topics = self._normalize_topics(selected_topics)
        rates = self._normalize_rates(mode_rates)
        legacy = LegacyRates.from_dict(legacy_rates)
        store = AvailabilityStore.from_payload(
            availability,
            max_windows_per_day=settings.max_windows_per_day,
            reject_overlaps=settings.reject_overlapping_windows,
        )

        with self.transaction():
            offering = self.offering_repository.create(
                tutor_profile_id=tutor.id,
                subject_id=subject_id,
                subject_name=subject_name,
                selected_topics=topics,
                mode_rates=rates,
                legacy_rates=legacy.to_dict() if legacy is not None else None,
                availability=store.to_payload(),
            )

        self.log_operation(
            "create_offering",
            subject_offering_id=offering.id,
            tutor_profile_id=tutor.id,
            subject_id=subject_id,
        )
        return offering

    @BaseService.measure_operation("update_offering")
    def update_offering(
        self, user_id: str, offering_id: str, changes: Mapping[str, Any]
    ) -> SubjectOffering:
        """
        Apply a partial update. Recognised keys: ``subject_name``,
        ``selected_topics``, ``mode_rates``, ``legacy_rates``.
        """
        offering = self.get_offering(offering_id)
        self.ensure_owner(offering, user_id)

        updates: Dict[str, Any] = {}
        if changes.get("subject_name") is not None:
            updates["subject_name"] = changes["subject_name"]
        if changes.get("selected_topics") is not None:
            updates["selected_topics"] = self._normalize_topics(changes["selected_topics"])
        if changes.get("mode_rates") is not None:
            updates["mode_rates"] = self._normalize_rates(changes["mode_rates"])
        if "legacy_rates" in changes:
            legacy = LegacyRates.from_dict(changes["legacy_rates"])
            updates["legacy_rates"] = legacy.to_dict() if legacy is not None else None

        if not updates:
            return offering

        with self.transaction():
            for key, value in updates.items():
                setattr(offering, key, value)
            self.db.flush()

        self.log_operation(
            "update_offering", subject_offering_id=offering.id, fields=sorted(updates)
        )
        return offering

    # Helpers

    @staticmethod
    def _normalize_topics(topics: Iterable[Mapping[str, Any]]) -> List[Dict[str, str]]:
        normalized: List[Dict[str, str]] = []
        seen = set()
        for topic in topics:
            topic_id = str(topic.get("id") or "").strip()
            if not topic_id:
                raise ValidationException("Every topic needs an id", code="INVALID_TOPIC")
            if topic_id in seen:
                continue
            seen.add(topic_id)
            normalized.append({"id": topic_id, "name": str(topic.get("name") or topic_id)})
        if len(normalized) > settings.max_selected_topics:
            raise ValidationException(
                f"You can select at most {settings.max_selected_topics} topics",
                code="TOO_MANY_TOPICS",
                details={"limit": settings.max_selected_topics, "selected": len(normalized)},
            )
        return normalized

    @staticmethod
    def _normalize_rates(mode_rates: Iterable[Mapping[str, Any]]) -> List[Dict[str, Any]]:
        """One entry per teaching mode, in enum order, as stored JSON."""
        table = normalize_mode_rates(ModeRate.from_dict(item) for item in mode_rates)
        return [table[mode].to_dict() for mode in TeachingMode]

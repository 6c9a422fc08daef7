# backend/tutorbook/models/subject_offering.py
"""
SubjectOffering model.

One subject a tutor teaches, with its per-mode rates, the topics the tutor
selected, and the weekly availability schedule. Rates, topics and schedule
are stored as JSON in the same shapes the front-end edits:

    mode_rates:    [{"type": "online", "rate": 500, "enabled": true}, ...]
    availability:  [{"day": "Monday", "slots": [{"start": "09:00", "end": "11:00"}]}, ...]
    legacy_rates:  {"individual": 0, "group": 0, "online": 750}   (older offerings only)

JSON columns are always replaced wholesale, never mutated in place.
"""

from typing import Any, Dict, List

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Index, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..core.config import settings
from ..database import Base
from ..domain.availability import AvailabilityStore
from ..domain.booking_validation import OfferingSnapshot
from ..domain.pricing import LegacyRates, ModeRate, normalize_mode_rates


class SubjectOffering(Base):
    __tablename__ = "subject_offerings"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    tutor_profile_id = Column(
        String(26), ForeignKey("tutor_profiles.id", ondelete="CASCADE"), nullable=False
    )
    subject_id = Column(String(64), nullable=False)
    subject_name = Column(String(200), nullable=False)

    selected_topics = Column(JSON, nullable=False, default=list)
    mode_rates = Column(JSON, nullable=False, default=list)
    availability = Column(JSON, nullable=False, default=list)
    legacy_rates = Column(JSON, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    tutor = relationship("TutorProfile", back_populates="subject_offerings")

    __table_args__ = (
        Index("ix_subject_offerings_tutor_subject", "tutor_profile_id", "subject_id", unique=True),
    )

    def __repr__(self) -> str:
        return (
            f"<SubjectOffering {self.id}: tutor={self.tutor_profile_id}, "
            f"subject={self.subject_name}>"
        )

    @property
    def selected_topic_ids(self) -> List[str]:
        return [str(topic["id"]) for topic in (self.selected_topics or [])]

    def availability_store(self, *, strict: bool = True) -> AvailabilityStore:
        """
        Build the schedule store.

        ``strict=False`` loads rows written before the capacity/overlap rules
        were enforced, so they stay readable and bookable.
        """
        payload: List[Dict[str, Any]] = list(self.availability or [])
        if strict:
            return AvailabilityStore.from_payload(
                payload,
                max_windows_per_day=settings.max_windows_per_day,
                reject_overlaps=settings.reject_overlapping_windows,
            )
        longest = max((len(entry.get("slots") or []) for entry in payload), default=0)
        return AvailabilityStore.from_payload(
            payload,
            max_windows_per_day=max(settings.max_windows_per_day, longest),
            reject_overlaps=False,
        )

    def rate_table(self) -> Dict[Any, ModeRate]:
        return normalize_mode_rates(ModeRate.from_dict(item) for item in (self.mode_rates or []))

    def to_snapshot(self) -> OfferingSnapshot:
        tutor = self.tutor
        return OfferingSnapshot(
            id=self.id,
            tutor_id=self.tutor_profile_id,
            subject_id=self.subject_id,
            subject_name=self.subject_name,
            selected_topic_ids=frozenset(self.selected_topic_ids),
            mode_rates=self.rate_table(),
            availability=self.availability_store(strict=False),
            legacy_rates=LegacyRates.from_dict(self.legacy_rates),
            tutor_verified=bool(tutor.is_verified) if tutor is not None else False,
        )

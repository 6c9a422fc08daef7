# backend/tutorbook/models/tutor.py
"""Tutor profile: the owner of subject offerings."""

from sqlalchemy import Boolean, Column, DateTime, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..database import Base


class TutorProfile(Base):
    __tablename__ = "tutor_profiles"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    # Identity comes from the auth gateway; we only keep the reference.
    user_id = Column(String(64), nullable=False, unique=True, index=True)
    display_name = Column(String(200), nullable=False, default="")
    is_verified = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    subject_offerings = relationship(
        "SubjectOffering", back_populates="tutor", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<TutorProfile {self.id}: user={self.user_id}, verified={self.is_verified}>"

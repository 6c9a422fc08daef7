# backend/tutorbook/schemas/subject_offering.py
"""Subject offering schemas: topics, per-mode rates, legacy rates and schedule."""

from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import Field, field_validator

from ..core.config import settings
from ..core.enums import TeachingMode
from ..models.subject_offering import SubjectOffering
from ..services.pricing_service import PriceQuote
from ._strict_base import StrictModel, StrictRequestModel
from .availability import DayAvailabilityIn, DayAvailabilityOut
from .base import Money


class TopicRef(StrictModel):
    id: str = Field(..., min_length=1)
    name: str = ""


class ModeRateIn(StrictRequestModel):
    """``{"type": "online", "rate": 500, "enabled": true}``"""

    type: TeachingMode
    rate: Money = Decimal("0")
    enabled: bool = False


class LegacyRatesIn(StrictRequestModel):
    individual: Money = Decimal("0")
    group: Money = Decimal("0")
    online: Money = Decimal("0")


def _check_topic_count(value: Optional[List[TopicRef]]) -> Optional[List[TopicRef]]:
    if value is not None and len(value) > settings.max_selected_topics:
        raise ValueError(f"At most {settings.max_selected_topics} topics can be selected")
    return value


class SubjectOfferingCreate(StrictRequestModel):
    subject_id: str = Field(..., min_length=1, max_length=64)
    subject_name: str = Field(..., min_length=1, max_length=200)
    selected_topics: List[TopicRef] = Field(default_factory=list)
    mode_rates: List[ModeRateIn] = Field(default_factory=list)
    legacy_rates: Optional[LegacyRatesIn] = None
    availability: List[DayAvailabilityIn] = Field(default_factory=list)

    @field_validator("selected_topics")
    @classmethod
    def _limit_topics(cls, v: Optional[List[TopicRef]]) -> Optional[List[TopicRef]]:
        return _check_topic_count(v)

    def to_service_kwargs(self) -> Dict[str, Any]:
        return {
            "subject_id": self.subject_id,
            "subject_name": self.subject_name,
            "selected_topics": [t.model_dump() for t in self.selected_topics],
            "mode_rates": [r.model_dump() for r in self.mode_rates],
            "legacy_rates": self.legacy_rates.model_dump() if self.legacy_rates else None,
            "availability": [
                {"day": d.day.value, "slots": [s.model_dump() for s in d.slots]}
                for d in self.availability
            ],
        }


class SubjectOfferingUpdate(StrictRequestModel):
    subject_name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    selected_topics: Optional[List[TopicRef]] = None
    mode_rates: Optional[List[ModeRateIn]] = None
    legacy_rates: Optional[LegacyRatesIn] = None

    @field_validator("selected_topics")
    @classmethod
    def _limit_topics(cls, v: Optional[List[TopicRef]]) -> Optional[List[TopicRef]]:
        return _check_topic_count(v)

    def to_changes(self) -> Dict[str, Any]:
        """Only fields the client actually sent; an explicit null clears legacy rates."""
        changes: Dict[str, Any] = {}
        sent = self.model_fields_set
        if "subject_name" in sent:
            changes["subject_name"] = self.subject_name
        if "selected_topics" in sent and self.selected_topics is not None:
            changes["selected_topics"] = [t.model_dump() for t in self.selected_topics]
        if "mode_rates" in sent and self.mode_rates is not None:
            changes["mode_rates"] = [r.model_dump() for r in self.mode_rates]
        if "legacy_rates" in sent:
            changes["legacy_rates"] = (
                self.legacy_rates.model_dump() if self.legacy_rates is not None else None
            )
        return changes


class ModeRateOut(StrictModel):
    type: TeachingMode
    rate: Money
    enabled: bool


class LegacyRatesOut(StrictModel):
    individual: Money
    group: Money
    online: Money


class SubjectOfferingResponse(StrictModel):
    id: str
    tutor_profile_id: str
    subject_id: str
    subject_name: str
    selected_topics: List[TopicRef]
    mode_rates: List[ModeRateOut]
    legacy_rates: Optional[LegacyRatesOut] = None
    availability: List[DayAvailabilityOut]

    @classmethod
    def from_model(cls, offering: SubjectOffering) -> "SubjectOfferingResponse":
        snapshot = offering.to_snapshot()
        legacy = snapshot.legacy_rates
        return cls(
            id=offering.id,
            tutor_profile_id=offering.tutor_profile_id,
            subject_id=offering.subject_id,
            subject_name=offering.subject_name,
            selected_topics=[TopicRef(**topic) for topic in offering.selected_topics or []],
            mode_rates=[
                ModeRateOut(type=rate.mode, rate=rate.hourly_rate, enabled=rate.enabled)
                for rate in (snapshot.mode_rates[mode] for mode in TeachingMode)
            ],
            legacy_rates=(
                LegacyRatesOut(
                    individual=legacy.individual, group=legacy.group, online=legacy.online
                )
                if legacy is not None
                else None
            ),
            availability=[DayAvailabilityOut.from_domain(d) for d in snapshot.availability.days()],
        )


class PriceQuoteResponse(StrictModel):
    subject_offering_id: str
    mode: TeachingMode
    duration: int
    hourly_rate: Money
    rate_source: str
    total_price: Money

    @classmethod
    def from_quote(cls, quote: PriceQuote) -> "PriceQuoteResponse":
        return cls(
            subject_offering_id=quote.subject_offering_id,
            mode=quote.mode,
            duration=quote.duration_hours,
            hourly_rate=quote.hourly_rate,
            rate_source=quote.rate_source,
            total_price=quote.total_price,
        )

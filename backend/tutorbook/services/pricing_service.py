"""Price quotes for a (subject offering, teaching mode, duration) request."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.enums import TeachingMode
from ..core.exceptions import ValidationException
from ..domain.pricing import compute_total, resolve_hourly_rate, round_for_display
from .base import BaseService
from .subject_offering_service import SubjectOfferingService


@dataclass(frozen=True)
class PriceQuote:
    subject_offering_id: str
    mode: TeachingMode
    duration_hours: int
    hourly_rate: Decimal
    rate_source: str
    total_price: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return {
            "subject_offering_id": self.subject_offering_id,
            "mode": self.mode.value,
            "duration_hours": self.duration_hours,
            "hourly_rate": round_for_display(self.hourly_rate),
            "rate_source": self.rate_source,
            "total_price": round_for_display(self.total_price),
        }


class PricingService(BaseService):
    """Resolve the bookable hourly rate and total for one offering."""

    def __init__(
        self, db_session: Session, offering_service: Optional[SubjectOfferingService] = None
    ) -> None:
        super().__init__(db_session)
        self.offering_service = offering_service or SubjectOfferingService(db_session)

    @BaseService.measure_operation("pricing.quote")
    def quote(self, offering_id: str, mode: TeachingMode, duration_hours: int) -> PriceQuote:
        if duration_hours not in settings.allowed_session_durations:
            raise ValidationException(
                f"Invalid duration {duration_hours}. Available options: "
                f"{settings.allowed_session_durations}",
                code="INVALID_DURATION",
                details={"duration": duration_hours},
            )
        offering = self.offering_service.get_offering(offering_id)
        snapshot = offering.to_snapshot()
        rate = resolve_hourly_rate(snapshot.mode_rates, mode, snapshot.legacy_rates)
        return PriceQuote(
            subject_offering_id=offering.id,
            mode=mode,
            duration_hours=duration_hours,
            hourly_rate=rate.hourly_rate,
            rate_source=rate.source,
            total_price=compute_total(rate.hourly_rate, duration_hours),
        )

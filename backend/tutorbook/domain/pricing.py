"""Hourly-rate resolution and session price calculation."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Dict, Iterable, Mapping, Optional, Union

from ..core.enums import TeachingMode
from ..core.exceptions import ModeUnavailableException, ValidationException

Number = Union[int, float, str, Decimal]

ZERO = Decimal("0")
CENTS = Decimal("0.01")

# Legacy offerings predate per-mode rates and only know these three fields.
LEGACY_FIELD_BY_MODE: Dict[TeachingMode, str] = {
    TeachingMode.ONLINE: "online",
    TeachingMode.HOME_VISIT: "individual",
    TeachingMode.GROUP: "group",
}

RATE_SOURCE_MODE = "mode_rate"
RATE_SOURCE_LEGACY = "legacy_rate"


def to_decimal(value: Optional[Number], field: str = "value") -> Decimal:
    if value is None:
        return ZERO
    try:
        result = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise ValidationException(
            f"{field} must be a number", code="INVALID_NUMBER", details={field: str(value)}
        ) from exc
    if not result.is_finite() or result < 0:
        raise ValidationException(
            f"{field} must be a non-negative number",
            code="NEGATIVE_NUMBER",
            details={field: str(value)},
        )
    return result


@dataclass(frozen=True)
class ModeRate:
    mode: TeachingMode
    hourly_rate: Decimal
    enabled: bool = False

    @property
    def is_bookable(self) -> bool:
        return self.enabled and self.hourly_rate > 0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ModeRate":
        try:
            mode = TeachingMode(data.get("type"))
        except ValueError as exc:
            raise ValidationException(
                f"Unknown teaching mode '{data.get('type')}'",
                code="INVALID_MODE",
                details={"type": data.get("type")},
            ) from exc
        return cls(
            mode=mode,
            hourly_rate=to_decimal(data.get("rate"), "rate"),
            enabled=bool(data.get("enabled", False)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.mode.value, "rate": float(self.hourly_rate), "enabled": self.enabled}


@dataclass(frozen=True)
class LegacyRates:
    individual: Decimal = ZERO
    group: Decimal = ZERO
    online: Decimal = ZERO

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> Optional["LegacyRates"]:
        if data is None:
            return None
        return cls(
            individual=to_decimal(data.get("individual"), "individual"),
            group=to_decimal(data.get("group"), "group"),
            online=to_decimal(data.get("online"), "online"),
        )

    def for_mode(self, mode: TeachingMode) -> Decimal:
        return getattr(self, LEGACY_FIELD_BY_MODE[mode])

    def to_dict(self) -> Dict[str, float]:
        return {
            "individual": float(self.individual),
            "group": float(self.group),
            "online": float(self.online),
        }


@dataclass(frozen=True)
class ResolvedRate:
    mode: TeachingMode
    hourly_rate: Decimal
    source: str


def normalize_mode_rates(rates: Iterable[ModeRate]) -> Dict[TeachingMode, ModeRate]:
    """One ``ModeRate`` per mode; missing modes become disabled zero rates."""
    by_mode: Dict[TeachingMode, ModeRate] = {}
    for rate in rates:
        if rate.mode in by_mode:
            raise ValidationException(
                f"Duplicate rate for teaching mode '{rate.mode.value}'",
                code="DUPLICATE_MODE_RATE",
                details={"mode": rate.mode.value},
            )
        by_mode[rate.mode] = rate
    for mode in TeachingMode:
        by_mode.setdefault(mode, ModeRate(mode=mode, hourly_rate=ZERO, enabled=False))
    return by_mode


def resolve_hourly_rate(
    mode_rates: Mapping[TeachingMode, ModeRate],
    mode: TeachingMode,
    legacy_rates: Optional[LegacyRates] = None,
) -> ResolvedRate:
    """
    Resolve the bookable hourly rate for ``mode``.

    1. the mode's own rate when enabled and > 0
    2. otherwise the matching legacy field when > 0
    3. otherwise ``ModeUnavailableException``
    """
    mode_rate = mode_rates.get(mode)
    if mode_rate is not None and mode_rate.is_bookable:
        return ResolvedRate(mode=mode, hourly_rate=mode_rate.hourly_rate, source=RATE_SOURCE_MODE)

    if legacy_rates is not None:
        legacy_value = legacy_rates.for_mode(mode)
        if legacy_value > 0:
            return ResolvedRate(mode=mode, hourly_rate=legacy_value, source=RATE_SOURCE_LEGACY)

    raise ModeUnavailableException(
        mode.value,
        details={
            "mode_rate_enabled": bool(mode_rate and mode_rate.enabled),
            "has_legacy_rates": legacy_rates is not None,
        },
    )


def compute_total(rate: Number, duration_hours: Number) -> Decimal:
    """``rate * duration_hours`` as one exact multiplication; never rounded here."""
    return to_decimal(rate, "rate") * to_decimal(duration_hours, "duration_hours")


def round_for_display(amount: Number) -> Decimal:
    return to_decimal(amount, "amount").quantize(CENTS, rounding=ROUND_HALF_UP)

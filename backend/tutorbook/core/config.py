# backend/tutorbook/core/config.py
import logging
import os
from pathlib import Path
from typing import List, Literal, Optional

from dotenv import load_dotenv
import pytz
from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def is_running_tests() -> bool:
    """
    Detect if code is running under pytest.

    PYTEST_CURRENT_TEST is set automatically by pytest during test runs, and is
    not expected to be present in production environments.
    """
    return os.getenv("PYTEST_CURRENT_TEST") is not None


logger = logging.getLogger(__name__)

# Load .env file only if not in CI
if not os.getenv("CI"):
    env_path = Path(__file__).parent.parent.parent / ".env"  # Goes up to backend/.env
    logger.debug(f"[CONFIG] Looking for .env at: {env_path}")
    load_dotenv(env_path)


class Settings(BaseSettings):
    environment: Literal["development", "test", "staging", "production"] = Field(
        default="development",
        validation_alias=AliasChoices("ENVIRONMENT", "environment"),
        description="Deployment environment name",
    )
    log_level: str = Field(
        default="INFO",
        validation_alias=AliasChoices("LOG_LEVEL", "log_level"),
    )

    # Storage
    database_url: str = Field(
        default="sqlite:///./tutorbook.db",
        validation_alias=AliasChoices("DATABASE_URL", "database_url"),
        description="SQLAlchemy URL of the authoritative booking store",
    )
    redis_url: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("REDIS_URL", "redis_url"),
        description="Optional Redis URL; enables cross-process slot locks",
    )
    slot_lock_ttl_seconds: int = Field(default=30, ge=1, le=600)
    slot_lock_namespace: str = Field(default="tutorbook")

    # Availability rules
    max_windows_per_day: int = Field(
        default=3,
        ge=1,
        description="Maximum number of bookable windows a tutor may declare per day",
    )
    reject_overlapping_windows: bool = Field(
        default=True,
        description="Reject windows that overlap another window on the same day",
    )
    max_selected_topics: int = Field(default=5, ge=0)

    # Booking rules
    allowed_session_durations: List[int] = Field(default_factory=lambda: [1, 2, 3])
    require_verified_tutor: bool = Field(
        default=True,
        validation_alias=AliasChoices("REQUIRE_VERIFIED_TUTOR", "require_verified_tutor"),
    )
    enforce_completion_after_session_end: bool = Field(
        default=False,
        validation_alias=AliasChoices(
            "ENFORCE_COMPLETION_AFTER_SESSION_END", "enforce_completion_after_session_end"
        ),
        description="Reject completion before the session window has ended",
    )
    session_timezone: str = Field(
        default="UTC",
        validation_alias=AliasChoices("SESSION_TIMEZONE", "session_timezone"),
        description="Timezone used to resolve weekday windows into concrete sessions",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("session_timezone")
    @classmethod
    def _validate_timezone(cls, value: str) -> str:
        try:
            pytz.timezone(value)
        except pytz.UnknownTimeZoneError as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value

    @field_validator("allowed_session_durations")
    @classmethod
    def _validate_durations(cls, value: List[int]) -> List[int]:
        if not value or any(v <= 0 for v in value):
            raise ValueError("allowed_session_durations must contain positive hours")
        return sorted(set(value))

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    def get_session_timezone(self) -> pytz.BaseTzInfo:
        return pytz.timezone(self.session_timezone)


settings = Settings()

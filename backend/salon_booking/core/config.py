# backend/salon_booking/core/config.py
import logging
import os
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
import pytz

from .constants import (
    BOOKING_LOCK_TTL_SECONDS,
    CHEMICAL_GAP_MIN,
    MAX_HOLD_HOURS,
    MAX_REPEAT_OCCURRENCES,
    MIN_NOTICE_HOURS,
    SIDE_EFFECT_TIMEOUT_SECONDS,
    SLOT_GRANULARITY_MIN,
)


def is_running_tests() -> bool:
    """
    Detect if code is running under pytest.

    PYTEST_CURRENT_TEST is set automatically by pytest during test runs, and is
    not expected to be present in production environments.
    """
    return os.getenv("PYTEST_CURRENT_TEST") is not None


_BACKEND_ROOT = Path(__file__).resolve().parents[2]

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    environment: Literal["local", "development", "staging", "production"] = Field(
        default="local",
        description="Deployment environment name",
    )
    is_testing: bool = Field(default=False, description="Set by the test suite")

    # Persistence
    database_url: str = Field(
        default=f"sqlite:///{_BACKEND_ROOT / 'salon_booking.db'}",
        description="SQLAlchemy database URL",
    )
    database_echo: bool = Field(default=False, description="Echo SQL statements")

    # Advisory locking (optional; locks degrade open without Redis)
    redis_url: Optional[str] = Field(default=None, description="Redis URL for booking locks")
    lock_namespace: str = Field(default="salon", description="Prefix for lock keys")
    booking_lock_ttl_seconds: int = Field(default=BOOKING_LOCK_TTL_SECONDS, ge=1)

    # Business rules
    business_timezone: str = Field(
        default="Europe/London",
        description="Timezone that all wall-clock booking times are expressed in",
    )
    min_notice_hours: int = Field(default=MIN_NOTICE_HOURS, ge=0)
    chemical_gap_minutes: int = Field(default=CHEMICAL_GAP_MIN, ge=0)
    slot_granularity_minutes: int = Field(default=SLOT_GRANULARITY_MIN, ge=1, le=120)
    max_hold_hours: int = Field(default=MAX_HOLD_HOURS, ge=1, le=24)
    max_repeat_occurrences: int = Field(default=MAX_REPEAT_OCCURRENCES, ge=1)

    # Side effects
    audit_enabled: bool = Field(default=True, description="Write booking logs")
    side_effect_timeout_seconds: float = Field(default=SIDE_EFFECT_TIMEOUT_SECONDS, gt=0)

    model_config = SettingsConfigDict(
        env_file=str(_BACKEND_ROOT / ".env") if not os.getenv("CI") else None,
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("business_timezone")
    @classmethod
    def _validate_timezone(cls, value: str) -> str:
        try:
            pytz.timezone(value)
        except pytz.UnknownTimeZoneError as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


settings = Settings()

if is_running_tests():
    settings.is_testing = True

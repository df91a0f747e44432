"""
Timezone utilities for the salon booking engine.

Booking times are naive wall-clock datetimes in the business timezone.
"""

from datetime import datetime
from typing import Optional

import pytz

from .config import settings


def get_business_timezone(name: Optional[str] = None) -> pytz.BaseTzInfo:
    """Return the configured business timezone as a pytz timezone object."""
    return pytz.timezone(name or settings.business_timezone)


def get_business_now(name: Optional[str] = None) -> datetime:
    """
    Current wall-clock time in the business timezone.

    Returns a naive datetime so it compares directly with stored booking times.
    """
    return datetime.now(get_business_timezone(name)).replace(tzinfo=None, microsecond=0)


def to_business_wall_clock(value: datetime, name: Optional[str] = None) -> datetime:
    """
    Normalize an incoming datetime to naive business wall-clock time.

    Aware datetimes are converted; naive ones are assumed to already be local.
    """
    if value.tzinfo is None:
        return value.replace(microsecond=0)
    return value.astimezone(get_business_timezone(name)).replace(tzinfo=None, microsecond=0)

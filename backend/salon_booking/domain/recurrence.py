"""
Recurrence date arithmetic and the blueprint a repeat series is stamped from.

Occurrence ``i`` (0-based) is always computed ``i + 1`` periods from the base
date, never from the previous occurrence, so a Jan 31 monthly series lands on
Feb 28/29 and then back on Mar 31.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Any, List, Optional, Sequence, Tuple


class RecurrencePattern(str, Enum):
    WEEKLY = "weekly"
    FORTNIGHTLY = "fortnightly"
    MONTHLY = "monthly"
    MONTHLY_NTH_DAY = "monthly_nth_day"
    YEARLY = "yearly"

    def label(self, day_of_month: Optional[int] = None) -> str:
        """Human label used in booking log reasons."""
        if self is RecurrencePattern.MONTHLY_NTH_DAY:
            return f"Monthly (day {day_of_month})"
        return self.value.capitalize()


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def clamp_day(year: int, month: int, day: int) -> int:
    return min(day, days_in_month(year, month))


def add_months_preserve_day(base: date, months: int, day_override: Optional[int] = None) -> date:
    """Move ``months`` forward keeping the day of month, clamped to the month's end."""
    month_index = base.month - 1 + months
    year = base.year + month_index // 12
    month = month_index % 12 + 1
    day = day_override if day_override is not None else base.day
    return date(year, month, clamp_day(year, month, day))


def add_years_preserve_day(base: date, years: int) -> date:
    """Same month and day ``years`` later; Feb 29 clamps to Feb 28."""
    year = base.year + years
    return date(year, base.month, clamp_day(year, base.month, base.day))


def occurrence_date(
    base: date,
    pattern: RecurrencePattern,
    n: int,
    day_of_month_override: Optional[int] = None,
) -> date:
    """Date ``n`` periods after ``base`` (n >= 1)."""
    if pattern is RecurrencePattern.WEEKLY:
        return base + timedelta(days=7 * n)
    if pattern is RecurrencePattern.FORTNIGHTLY:
        return base + timedelta(days=14 * n)
    if pattern is RecurrencePattern.MONTHLY:
        return add_months_preserve_day(base, n)
    if pattern is RecurrencePattern.MONTHLY_NTH_DAY:
        if day_of_month_override is None:
            raise ValueError("monthly_nth_day requires a day of month")
        return add_months_preserve_day(base, n, day_of_month_override)
    if pattern is RecurrencePattern.YEARLY:
        return add_years_preserve_day(base, n)
    raise ValueError(f"Unsupported recurrence pattern: {pattern}")


@dataclass(frozen=True)
class BlueprintItem:
    offset_min: int
    duration: int
    title: str
    category: Optional[str] = None
    price: Optional[Decimal] = None
    service_id: Optional[str] = None


@dataclass(frozen=True)
class RecurrenceBlueprint:
    """Immutable snapshot of one booking group, used to stamp out repeats."""

    base_start: datetime
    resource_id: str
    items: Tuple[BlueprintItem, ...]
    client_id: Optional[str] = None
    client_name: Optional[str] = None
    group_id: Optional[str] = None
    repeat_series_id: Optional[str] = None

    @property
    def anchor_hour(self) -> int:
        return self.base_start.hour

    @property
    def anchor_minute(self) -> int:
        return self.base_start.minute

    def anchor_for(
        self,
        index: int,
        pattern: RecurrencePattern,
        day_of_month_override: Optional[int] = None,
    ) -> datetime:
        """Start of occurrence ``index`` (0-based)."""
        day = occurrence_date(self.base_start.date(), pattern, index + 1, day_of_month_override)
        return datetime(day.year, day.month, day.day, self.anchor_hour, self.anchor_minute)

    def materialize(self, anchor: datetime) -> List[Tuple[datetime, datetime, BlueprintItem]]:
        return [
            (
                anchor + timedelta(minutes=item.offset_min),
                anchor + timedelta(minutes=item.offset_min + item.duration),
                item,
            )
            for item in self.items
        ]

    @classmethod
    def from_segments(cls, rows: Sequence[Any]) -> "RecurrenceBlueprint":
        """
        Snapshot stored segment rows of one group.

        Rows need ``start``, ``end``, ``title``, ``category``, ``price``,
        ``service_id``, ``resource_id``, ``client_id``, ``client_name`` and
        ``booking_id`` attributes.
        """
        if not rows:
            raise ValueError("Cannot build a blueprint from an empty booking group")
        ordered = sorted(rows, key=lambda r: r.start)
        first = ordered[0]
        items = tuple(
            BlueprintItem(
                offset_min=int((row.start - first.start).total_seconds() // 60),
                duration=int((row.end - row.start).total_seconds() // 60),
                title=row.title,
                category=row.category,
                price=row.price,
                service_id=row.service_id,
            )
            for row in ordered
        )
        return cls(
            base_start=first.start,
            resource_id=first.resource_id,
            items=items,
            client_id=first.client_id,
            client_name=first.client_name,
            group_id=first.booking_id,
            repeat_series_id=first.repeat_series_id,
        )


@dataclass
class RecurrenceResult:
    series_id: str
    created: List[Any] = field(default_factory=list)
    skipped: List[datetime] = field(default_factory=list)
    failed: List[Tuple[datetime, str]] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.created) + len(self.skipped) + len(self.failed)

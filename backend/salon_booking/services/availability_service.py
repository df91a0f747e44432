# backend/salon_booking/services/availability_service.py
"""
Availability service: which start times can a staff member take a basket at?

``compute_slots`` is the pure calculation. ``AvailabilityService`` loads the
staff member's hours and busy spans and delegates to it. Slot lists are
derived state; ``SlotRequestTracker`` lets callers drop responses that were
overtaken by a newer request for the same inputs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
import itertools
import logging
import threading
from typing import Any, Dict, Hashable, Iterable, List, Mapping, Optional, Sequence, Union

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.constants import MIN_NOTICE_HOURS, SLOT_GRANULARITY_MIN
from ..core.exceptions import ValidationException
from ..core.timezone_utils import get_business_now
from ..domain.intervals import BusySpan
from ..domain.timeline import Timeline
from ..domain.weekly_hours import WeeklyAvailability
from ..monitoring.prometheus_metrics import prometheus_metrics
from .base import BaseService
from .catalog_service import CatalogService
from .conflict_checker import ConflictChecker

logger = logging.getLogger(__name__)

WeeklyHoursInput = Union[WeeklyAvailability, Mapping[str, Any], None]


def _as_weekly_availability(weekly_hours: WeeklyHoursInput) -> WeeklyAvailability:
    if isinstance(weekly_hours, WeeklyAvailability):
        return weekly_hours
    return WeeklyAvailability.from_legacy(weekly_hours)


def _as_span(value: Any) -> BusySpan:
    if isinstance(value, BusySpan):
        return value
    start, end = value[0], value[1]
    return BusySpan(start=start, end=end)


def compute_slots(
    weekly_hours: WeeklyHoursInput,
    target_date: date,
    total_block_minutes: int,
    busy_spans: Iterable[Any],
    now: datetime,
    *,
    granularity_minutes: int = SLOT_GRANULARITY_MIN,
    min_notice_hours: int = MIN_NOTICE_HOURS,
) -> List[datetime]:
    """
    Bookable start times for one staff member on one day.

    Candidates step from opening time by ``granularity_minutes``. A candidate
    is kept when it is at least ``min_notice_hours`` after ``now``, the whole
    block fits before closing, and the block overlaps no busy span.

    Returns:
        Ascending start times, each ``open + k * granularity``

    Raises:
        ValidationException: Non-positive block length or granularity
    """
    if total_block_minutes is None or total_block_minutes <= 0:
        raise ValidationException(
            "Block length must be positive", code="INVALID_BLOCK_LENGTH"
        )
    if granularity_minutes <= 0:
        raise ValidationException("Slot granularity must be positive", code="INVALID_GRANULARITY")

    window = _as_weekly_availability(weekly_hours).window_for(target_date)
    if window is None:
        return []

    open_at, close_at = window.on(target_date)
    block = timedelta(minutes=total_block_minutes)
    last_possible_start = close_at - block
    if last_possible_start < open_at:
        return []

    min_start = now + timedelta(hours=min_notice_hours)
    spans = [_as_span(span) for span in busy_spans]
    step = timedelta(minutes=granularity_minutes)

    slots: List[datetime] = []
    candidate = open_at
    while candidate <= last_possible_start:
        end = candidate + block
        if (
            candidate >= min_start
            and end <= close_at
            and not any(span.overlaps(candidate, end) for span in spans)
        ):
            slots.append(candidate)
        candidate += step
    return slots


def earliest_bookable_day(now: Optional[datetime] = None, min_notice_hours: Optional[int] = None) -> date:
    """Local date a booking calendar should open on: the day of ``now + notice``."""
    current = now or get_business_now()
    hours = settings.min_notice_hours if min_notice_hours is None else min_notice_hours
    return (current + timedelta(hours=hours)).date()


@dataclass(frozen=True)
class SlotRequestToken:
    key: Hashable
    generation: int


class SlotRequestTracker:
    """
    Generation tokens for slot requests.

    Each ``issue`` supersedes earlier tokens for the same key. A response
    whose token is no longer current must be dropped by the caller.
    ``complete`` forgets the key once its current request has answered, so
    only keys with a request in flight are held. ``cancel`` invalidates
    everything outstanding for a key.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._current: Dict[Hashable, int] = {}
        self._counter = itertools.count(1)

    @staticmethod
    def make_key(
        resource_id: str, service_ids: Sequence[str], total_block_minutes: int, target_date: date
    ) -> Hashable:
        return (resource_id, tuple(service_ids), total_block_minutes, target_date.isoformat())

    def issue(self, key: Hashable) -> SlotRequestToken:
        with self._lock:
            generation = next(self._counter)
            self._current[key] = generation
            return SlotRequestToken(key=key, generation=generation)

    def is_current(self, token: SlotRequestToken) -> bool:
        with self._lock:
            return self._current.get(token.key) == token.generation

    def complete(self, token: SlotRequestToken) -> bool:
        """Finish a request; True when it was still the current one for its key."""
        with self._lock:
            if self._current.get(token.key) != token.generation:
                return False
            del self._current[token.key]
            return True

    def cancel(self, key: Hashable) -> None:
        with self._lock:
            self._current.pop(key, None)

    def pending(self) -> int:
        """Number of keys with a request in flight."""
        with self._lock:
            return len(self._current)


@dataclass
class BasketAvailability:
    resource_id: str
    target_date: date
    timeline: Timeline
    slots: List[datetime] = field(default_factory=list)
    token: Optional[SlotRequestToken] = None
    stale: bool = False

    @property
    def total_block_minutes(self) -> int:
        return self.timeline.total_span_minutes


class AvailabilityService(BaseService):
    def __init__(
        self,
        db: Session,
        catalog_service: Optional[CatalogService] = None,
        conflict_checker: Optional[ConflictChecker] = None,
        tracker: Optional[SlotRequestTracker] = None,
    ):
        super().__init__(db)
        self.catalog_service = catalog_service or CatalogService(db)
        self.conflict_checker = conflict_checker or ConflictChecker(db)
        self.tracker = tracker or SlotRequestTracker()

    @BaseService.measure_operation("get_available_slots")
    def get_available_slots(
        self,
        resource_id: str,
        target_date: date,
        total_block_minutes: int,
        now: Optional[datetime] = None,
    ) -> List[datetime]:
        staff = self.catalog_service.get_staff(resource_id)
        day_start = datetime.combine(target_date, time.min)
        spans = self.conflict_checker.get_busy_spans(
            resource_id, day_start, day_start + timedelta(days=1)
        )
        slots = compute_slots(
            staff.availability,
            target_date,
            total_block_minutes,
            spans,
            now or get_business_now(),
            granularity_minutes=settings.slot_granularity_minutes,
            min_notice_hours=settings.min_notice_hours,
        )
        prometheus_metrics.observe_slots(len(slots))
        self.logger.debug(
            "Computed slots",
            extra={
                "resource_id": resource_id,
                "date": target_date.isoformat(),
                "block_minutes": total_block_minutes,
                "busy_spans": len(spans),
                "slots": len(slots),
            },
        )
        return slots

    @BaseService.measure_operation("get_slots_for_basket")
    def get_slots_for_basket(
        self,
        resource_id: str,
        service_ids: Sequence[str],
        target_date: date,
        now: Optional[datetime] = None,
    ) -> BasketAvailability:
        """
        Build the basket timeline for this staff member, then find slots for its span.

        The response carries a generation token; ``stale`` is True when a newer
        request for the same inputs was issued while this one was computing.
        """
        timeline = self.catalog_service.build_basket_timeline(service_ids, resource_id)
        key = self.tracker.make_key(
            resource_id, service_ids, timeline.total_span_minutes, target_date
        )
        token = self.tracker.issue(key)
        try:
            slots = self.get_available_slots(
                resource_id, target_date, timeline.total_span_minutes, now=now
            )
        finally:
            current = self.tracker.complete(token)
        return BasketAvailability(
            resource_id=resource_id,
            target_date=target_date,
            timeline=timeline,
            slots=slots,
            token=token,
            stale=not current,
        )

# backend/salon_booking/services/conflict_checker.py
"""
Conflict checker service.

Answers one question for every write path: does a proposed set of segments
overlap anything already occupying the staff member? Overlap is half-open,
so a booking may start exactly when the previous one ends.
"""

from datetime import datetime, timedelta
import logging
from typing import Iterable, List, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import ValidationException
from ..domain.intervals import BusySpan, conflicting_spans
from ..repositories.booking_repository import BookingRepository
from ..repositories.factory import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)

ProposedSegment = Tuple[datetime, datetime]


def _as_pairs(segments: Iterable[Sequence]) -> List[ProposedSegment]:
    return [(segment[0], segment[1]) for segment in segments]


class ConflictChecker(BaseService):
    def __init__(self, db: Session, repository: Optional[BookingRepository] = None):
        super().__init__(db)
        self.logger = logging.getLogger(__name__)
        self.repository = repository or RepositoryFactory.create_booking_repository(db)

    def get_busy_spans(
        self,
        resource_id: str,
        range_start: datetime,
        range_end: datetime,
        exclude_group_id: Optional[str] = None,
        *,
        include_holds: bool = True,
    ) -> List[BusySpan]:
        return self.repository.get_booked_spans(
            resource_id,
            range_start,
            range_end,
            exclude_group_id,
            include_holds=include_holds,
        )

    @BaseService.measure_operation("find_conflicts")
    def find_conflicts(
        self,
        resource_id: str,
        segments: Iterable[Sequence],
        exclude_group_id: Optional[str] = None,
        *,
        include_holds: bool = True,
    ) -> List[BusySpan]:
        """
        Busy spans that overlap any proposed segment.

        Args:
            resource_id: Staff member the segments are for
            segments: (start, end) pairs; extra tuple items are ignored
            exclude_group_id: Group to ignore, so a reschedule never collides with itself
            include_holds: Count schedule holds as busy

        Returns:
            Distinct conflicting spans ordered by start
        """
        pairs = _as_pairs(segments)
        if not pairs:
            return []

        spans = self.get_busy_spans(
            resource_id,
            min(start for start, _ in pairs),
            max(end for _, end in pairs),
            exclude_group_id,
            include_holds=include_holds,
        )

        found: List[BusySpan] = []
        for start, end in pairs:
            for span in conflicting_spans(start, end, spans):
                if span not in found:
                    found.append(span)

        if found:
            self.logger.info(
                "Conflict detected",
                extra={
                    "resource_id": resource_id,
                    "conflicts": [span.to_dict() for span in found],
                },
            )
        return sorted(found, key=lambda span: span.start)

    def has_conflict(
        self,
        resource_id: str,
        segments: Iterable[Sequence],
        exclude_group_id: Optional[str] = None,
        *,
        include_holds: bool = True,
    ) -> bool:
        return bool(
            self.find_conflicts(
                resource_id, segments, exclude_group_id, include_holds=include_holds
            )
        )

    @staticmethod
    def validate_hold_length(
        start: datetime, end: datetime, max_hours: Optional[int] = None
    ) -> timedelta:
        """
        Check an ad-hoc hold: it must end after it starts and last at most ``max_hours``.

        Returns the hold length.
        """
        limit = max_hours if max_hours is not None else settings.max_hold_hours
        if start is None or end is None:
            raise ValidationException("A hold needs a start and an end", code="INVALID_HOLD")
        if end <= start:
            raise ValidationException("End must be after start", code="INVALID_HOLD")
        length = end - start
        if length > timedelta(hours=limit):
            raise ValidationException(
                f"Blocks can be at most {limit} hours long",
                code="HOLD_TOO_LONG",
                details={"max_hours": limit, "requested_minutes": int(length.total_seconds() // 60)},
            )
        return length

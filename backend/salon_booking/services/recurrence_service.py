# backend/salon_booking/services/recurrence_service.py
"""
Repeat bookings.

A blueprint of an existing group is stamped out on future dates. Each
occurrence is all-or-nothing: if any of its segments conflicts, the whole
occurrence is skipped. The series itself is best-effort and always runs to
the requested count.
"""

from datetime import datetime
import logging
from typing import Any, List, Optional, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.booking_lock import resource_day_lock
from ..core.config import settings
from ..core.exceptions import (
    BookingConflictException,
    NotFoundException,
    RepositoryException,
    ValidationException,
)
from ..core.ulid_helper import generate_ulid
from ..domain.recurrence import RecurrenceBlueprint, RecurrencePattern, RecurrenceResult
from ..models.booking import BookingSource
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.booking_repository import BookingRepository
from ..repositories.factory import RepositoryFactory
from .base import BaseService
from .booking_log_service import BookingLogService
from .booking_service import BookingGroup, segment_row
from .conflict_checker import ConflictChecker

logger = logging.getLogger(__name__)


class RecurrenceService(BaseService):
    def __init__(
        self,
        db: Session,
        repository: Optional[BookingRepository] = None,
        conflict_checker: Optional[ConflictChecker] = None,
        log_service: Optional[BookingLogService] = None,
    ):
        super().__init__(db)
        self.repository = repository or RepositoryFactory.create_booking_repository(db)
        self.conflict_checker = conflict_checker or ConflictChecker(db, self.repository)
        self.log_service = log_service or BookingLogService(db)

    def preview_occurrences(
        self,
        blueprint: RecurrenceBlueprint,
        pattern: Union[RecurrencePattern, str],
        occurrence_count: int,
        day_of_month_override: Optional[int] = None,
    ) -> List[datetime]:
        """Anchors the series would use, without checking or writing anything."""
        pattern, day_of_month_override = self._validate_request(
            blueprint, pattern, occurrence_count, day_of_month_override
        )
        return [
            blueprint.anchor_for(i, pattern, day_of_month_override) for i in range(occurrence_count)
        ]

    @BaseService.measure_operation("generate_repeat_series")
    def generate(
        self,
        blueprint: RecurrenceBlueprint,
        pattern: Union[RecurrencePattern, str],
        occurrence_count: int,
        day_of_month_override: Optional[int] = None,
        *,
        actor: Any = None,
    ) -> RecurrenceResult:
        """
        Create up to ``occurrence_count`` future copies of the blueprint.

        Occurrence ``i`` is anchored ``i + 1`` periods after the blueprint's
        base date, at the blueprint's hour and minute.

        Returns:
            created/skipped/failed lists whose lengths add up to ``occurrence_count``

        Raises:
            ValidationException: Bad pattern, count or day of month, or an empty blueprint
        """
        pattern, day_of_month_override = self._validate_request(
            blueprint, pattern, occurrence_count, day_of_month_override
        )
        series_id = blueprint.repeat_series_id or generate_ulid()
        result = RecurrenceResult(series_id=series_id)

        if blueprint.group_id and not blueprint.repeat_series_id:
            self._tag_original(blueprint.group_id, series_id)

        reason = f"Repeat Booking: {pattern.label(day_of_month_override)}"
        self.log_operation(
            "generate_repeat_series",
            series_id=series_id,
            pattern=pattern.value,
            occurrences=occurrence_count,
        )

        for index in range(occurrence_count):
            anchor = blueprint.anchor_for(index, pattern, day_of_month_override)
            group = self._create_occurrence(blueprint, anchor, series_id, result)
            if group is not None:
                result.created.append(group)
                self.log_service.log_change(
                    "created", group.group_id, actor=actor, after=group.snapshot(), reason=reason
                )

        prometheus_metrics.record_recurrence(pattern.value, "created", len(result.created))
        prometheus_metrics.record_recurrence(pattern.value, "skipped", len(result.skipped))
        prometheus_metrics.record_recurrence(pattern.value, "failed", len(result.failed))
        self.logger.info(
            "Repeat series finished",
            extra={
                "series_id": series_id,
                "created_count": len(result.created),
                "skipped_count": len(result.skipped),
                "failed_count": len(result.failed),
            },
        )
        return result

    def repeat_group(
        self,
        group_id: str,
        pattern: Union[RecurrencePattern, str],
        occurrence_count: int,
        day_of_month_override: Optional[int] = None,
        *,
        actor: Any = None,
    ) -> RecurrenceResult:
        """Snapshot an existing group and repeat it."""
        rows = self.repository.get_group(group_id)
        if not rows:
            raise NotFoundException(f"Booking {group_id} not found", code="BOOKING_NOT_FOUND")
        blueprint = RecurrenceBlueprint.from_segments(rows)
        return self.generate(
            blueprint, pattern, occurrence_count, day_of_month_override, actor=actor
        )

    # Helpers

    def _validate_request(
        self,
        blueprint: RecurrenceBlueprint,
        pattern: Union[RecurrencePattern, str],
        occurrence_count: int,
        day_of_month_override: Optional[int],
    ) -> tuple:
        try:
            pattern = RecurrencePattern(pattern)
        except ValueError as exc:
            raise ValidationException(
                f"Unknown repeat pattern: {pattern}", code="INVALID_PATTERN"
            ) from exc

        limit = settings.max_repeat_occurrences
        if not isinstance(occurrence_count, int) or not 1 <= occurrence_count <= limit:
            raise ValidationException(
                f"Number of repeats must be between 1 and {limit}",
                code="INVALID_OCCURRENCE_COUNT",
                details={"max": limit},
            )

        if pattern is RecurrencePattern.MONTHLY_NTH_DAY:
            if day_of_month_override is None:
                day_of_month_override = blueprint.base_start.day
            if not 1 <= day_of_month_override <= 31:
                raise ValidationException(
                    "Day of month must be between 1 and 31", code="INVALID_DAY_OF_MONTH"
                )
        else:
            day_of_month_override = None

        if not blueprint.items:
            raise ValidationException(
                "No services found to repeat for this booking", code="EMPTY_BLUEPRINT"
            )
        return pattern, day_of_month_override

    def _tag_original(self, group_id: str, series_id: str) -> None:
        # The series still goes ahead if the original cannot be tagged.
        try:
            self.repository.tag_series(group_id, series_id)
            self.db.commit()
        except (SQLAlchemyError, RepositoryException) as exc:
            self.db.rollback()
            self.logger.warning(
                f"Failed to tag original booking with repeat series: {str(exc)}",
                extra={"group_id": group_id, "series_id": series_id},
            )

    def _create_occurrence(
        self,
        blueprint: RecurrenceBlueprint,
        anchor: datetime,
        series_id: str,
        result: RecurrenceResult,
    ) -> Optional[BookingGroup]:
        planned = blueprint.materialize(anchor)
        group_id = generate_ulid()
        try:
            with resource_day_lock(blueprint.resource_id, anchor.date()):
                if self.conflict_checker.has_conflict(blueprint.resource_id, planned):
                    result.skipped.append(anchor)
                    return None
                try:
                    rows = self.repository.insert_segments(
                        [
                            segment_row(
                                group_id=group_id,
                                resource_id=blueprint.resource_id,
                                start=seg_start,
                                end=seg_end,
                                title=item.title,
                                category=item.category,
                                price=item.price,
                                service_id=item.service_id,
                                client_id=blueprint.client_id,
                                client_name=blueprint.client_name,
                                source=BookingSource.REPEAT.value,
                                repeat_series_id=series_id,
                            )
                            for seg_start, seg_end, item in planned
                        ]
                    )
                    self.db.commit()
                except (SQLAlchemyError, RepositoryException) as exc:
                    self.db.rollback()
                    self.logger.warning(
                        f"Repeat occurrence insert failed: {str(exc)}",
                        extra={"series_id": series_id, "anchor": anchor.isoformat()},
                    )
                    result.failed.append((anchor, str(exc) or "Insert failed"))
                    return None
        except BookingConflictException:
            # Another booking flow holds this day; treat like a clash.
            result.skipped.append(anchor)
            return None
        except RepositoryException as exc:
            result.failed.append((anchor, str(exc) or "Conflict check failed"))
            return None

        return BookingGroup(group_id=group_id, segments=sorted(rows, key=lambda r: r.start))


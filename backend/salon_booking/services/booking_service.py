# backend/salon_booking/services/booking_service.py
"""
Booking service: commit, reschedule, cancel and lock booking groups.

A booking group is every segment row sharing one group id. All writes for a
group happen in a single transaction while holding the staff member's
(resource, day) advisory lock, after a fresh conflict check.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.booking_lock import resource_day_lock
from ..core.config import settings
from ..core.constants import ERROR_GROUP_LOCKED, ERROR_NO_SERVICES
from ..core.exceptions import (
    BookingConflictException,
    BusinessRuleException,
    DomainException,
    InsufficientNoticeException,
    NotFoundException,
    PartialPersistenceException,
    RepositoryException,
    ServiceException,
    ValidationException,
)
from ..core.timezone_utils import get_business_now, to_business_wall_clock
from ..core.ulid_helper import generate_ulid
from ..domain.intervals import BusySpan
from ..domain.timeline import Timeline
from ..models.booking import Booking, BookingSource, BookingStatus
from ..models.client import Client
from ..models.staff import Staff
from ..repositories.booking_repository import BookingRepository
from ..repositories.factory import RepositoryFactory
from .base import BaseService
from .booking_log_service import BookingLogService, snapshot_group
from .catalog_service import CatalogService
from .client_service import ClientDetails, ClientService
from .conflict_checker import ConflictChecker

logger = logging.getLogger(__name__)


@dataclass
class BookingGroup:
    group_id: str
    segments: List[Booking] = field(default_factory=list)

    @property
    def start(self) -> Optional[datetime]:
        return self.segments[0].start if self.segments else None

    @property
    def end(self) -> Optional[datetime]:
        return max(s.end for s in self.segments) if self.segments else None

    @property
    def resource_id(self) -> Optional[str]:
        return self.segments[0].resource_id if self.segments else None

    @property
    def client_id(self) -> Optional[str]:
        return self.segments[0].client_id if self.segments else None

    @property
    def client_name(self) -> Optional[str]:
        return self.segments[0].client_name if self.segments else None

    @property
    def repeat_series_id(self) -> Optional[str]:
        return self.segments[0].repeat_series_id if self.segments else None

    @property
    def is_locked(self) -> bool:
        return any(s.is_locked for s in self.segments)

    @property
    def total_price(self) -> Optional[Decimal]:
        """Sum of known prices; None when no segment has a price."""
        prices = [s.price for s in self.segments if s.price is not None]
        return sum(prices, Decimal("0")) if prices else None

    def snapshot(self) -> Optional[Dict[str, Any]]:
        return snapshot_group(self.segments)


def segment_row(
    *,
    group_id: str,
    resource_id: str,
    start: datetime,
    end: datetime,
    title: str,
    category: Optional[str],
    price: Optional[Decimal],
    service_id: Optional[str],
    client_id: Optional[str],
    client_name: Optional[str],
    source: str,
    repeat_series_id: Optional[str] = None,
) -> Dict[str, Any]:
    """Column values for one segment row; ``duration`` always matches end - start."""
    return {
        "booking_id": group_id,
        "repeat_series_id": repeat_series_id,
        "resource_id": resource_id,
        "client_id": client_id,
        "client_name": client_name,
        "service_id": service_id,
        "start": start,
        "end": end,
        "title": title,
        "category": category,
        "price": price,
        "duration": int((end - start).total_seconds() // 60),
        "status": BookingStatus.CONFIRMED.value,
        "is_locked": False,
        "source": source,
    }


class BookingService(BaseService):
    """
    Coordinates every write to booking groups.

    Failure semantics of ``commit``:
    - validation, notice and client problems abort before anything is written
    - a conflict found on the re-check aborts with nothing written
    - an insert failure that rolled back cleanly raises ServiceException
    - an insert failure that left rows behind raises PartialPersistenceException
    """

    def __init__(
        self,
        db: Session,
        repository: Optional[BookingRepository] = None,
        conflict_checker: Optional[ConflictChecker] = None,
        client_service: Optional[ClientService] = None,
        catalog_service: Optional[CatalogService] = None,
        log_service: Optional[BookingLogService] = None,
    ):
        super().__init__(db)
        self.repository = repository or RepositoryFactory.create_booking_repository(db)
        self.conflict_checker = conflict_checker or ConflictChecker(db, self.repository)
        self.client_service = client_service or ClientService(db)
        self.catalog_service = catalog_service or CatalogService(db)
        self.log_service = log_service or BookingLogService(db)

    # Commit

    @BaseService.measure_operation("commit_booking")
    def commit(
        self,
        resource_id: str,
        client: ClientDetails,
        timeline: Timeline,
        start_time: datetime,
        *,
        source: str = BookingSource.PUBLIC.value,
        actor: Any = None,
        now: Optional[datetime] = None,
    ) -> BookingGroup:
        """
        Book a timeline for a staff member starting at ``start_time``.

        Args:
            resource_id: Staff member being booked
            client: Contact details used to find or create the client
            timeline: Basket timeline built for this staff member
            start_time: Wall-clock start of the first segment
            source: "public" or "staff"
            actor: Who made the booking, recorded in the booking log
            now: Current wall-clock time (defaults to business now)

        Returns:
            The created booking group

        Raises:
            ValidationException: Missing input or insufficient notice, or a public start
                outside opening hours or off the slot grid
            NotFoundException: Unknown staff member or client id
            ClientAmbiguityException: Same-name client without a confirming phone
            BookingConflictException: Slot taken since it was offered
            PartialPersistenceException: Some rows were left behind by a failed write
            ServiceException: The write failed and was rolled back
        """
        if not resource_id:
            raise ValidationException("Choose a staff member", code="RESOURCE_REQUIRED")
        if start_time is None:
            raise ValidationException("Choose a start time", code="START_REQUIRED")
        if timeline is None or timeline.is_empty:
            raise ValidationException(ERROR_NO_SERVICES, code="NO_SERVICES")
        source = self._coerce_source(source)

        start_time = to_business_wall_clock(start_time)
        self.ensure_minimum_notice(start_time, now or get_business_now())
        staff = self.catalog_service.get_staff(resource_id)
        if source == BookingSource.PUBLIC.value:
            self.ensure_bookable_start(staff, start_time, timeline.total_span_minutes)

        planned = timeline.materialize(start_time)
        group_id = generate_ulid()
        self.log_operation(
            "commit_booking",
            resource_id=resource_id,
            group_id=group_id,
            start=start_time.isoformat(),
            segments=len(planned),
        )

        with resource_day_lock(resource_id, start_time.date()):
            try:
                client_row = self.client_service.find_or_create(client)
                conflicts = self.conflict_checker.find_conflicts(resource_id, planned)
                if conflicts:
                    raise BookingConflictException(details=self._conflict_details(conflicts))

                rows = self.repository.insert_segments(
                    [
                        segment_row(
                            group_id=group_id,
                            resource_id=resource_id,
                            start=seg_start,
                            end=seg_end,
                            title=getattr(segment.service, "name", None) or "Service",
                            category=getattr(segment.service, "category", None),
                            price=segment.price,
                            service_id=getattr(segment.service, "id", None),
                            client_id=client_row.id,
                            client_name=self._client_name(client_row, client),
                            source=source,
                        )
                        for seg_start, seg_end, segment in planned
                    ]
                )
                self.db.commit()
            except DomainException:
                self.db.rollback()
                raise
            except (SQLAlchemyError, RepositoryException) as exc:
                self._raise_persistence_failure(group_id, len(planned), exc)

        group = BookingGroup(group_id=group_id, segments=sorted(rows, key=lambda r: r.start))
        self.log_service.log_change(
            "created",
            group_id,
            actor=actor,
            after=group.snapshot(),
            reason="Online Booking" if source == BookingSource.PUBLIC.value else "Staff Booking",
        )
        return group

    @staticmethod
    def ensure_bookable_start(staff: Staff, start_time: datetime, span_minutes: int) -> None:
        """Public starts must be an offered slot: inside opening hours and on the grid."""
        window = staff.availability.window_for(start_time.date())
        if window is None:
            raise ValidationException(
                f"{staff.title} is not working that day", code="OUTSIDE_OPENING_HOURS"
            )
        open_at, close_at = window.on(start_time.date())
        if start_time < open_at or start_time + timedelta(minutes=span_minutes) > close_at:
            raise ValidationException(
                "That time is outside opening hours",
                code="OUTSIDE_OPENING_HOURS",
                details={"open": open_at.isoformat(), "close": close_at.isoformat()},
            )
        step = timedelta(minutes=settings.slot_granularity_minutes)
        if (start_time - open_at) % step:
            raise ValidationException(
                "Choose one of the offered start times",
                code="OFF_SLOT_GRID",
                details={"granularity_minutes": settings.slot_granularity_minutes},
            )

    def ensure_minimum_notice(self, start_time: datetime, now: datetime) -> None:
        min_start = now + timedelta(hours=settings.min_notice_hours)
        if start_time < min_start:
            raise InsufficientNoticeException(
                settings.min_notice_hours, (start_time - now).total_seconds() / 3600
            )

    # Group lifecycle

    def get_group(self, group_id: str) -> BookingGroup:
        rows = self.repository.get_group(group_id)
        if not rows:
            raise NotFoundException(f"Booking {group_id} not found", code="BOOKING_NOT_FOUND")
        return BookingGroup(group_id=group_id, segments=rows)

    @BaseService.measure_operation("reschedule_booking")
    def reschedule(
        self,
        group_id: str,
        new_start: datetime,
        *,
        resource_id: Optional[str] = None,
        actor: Any = None,
        reason: Optional[str] = None,
    ) -> BookingGroup:
        """
        Move a whole group so its first segment starts at ``new_start``.

        Every segment shifts by the same delta, so processing gaps are kept.
        ``resource_id`` moves the group to another staff member as well.
        """
        if new_start is None:
            raise ValidationException("Choose a new start time", code="START_REQUIRED")
        group = self.get_group(group_id)
        self._ensure_unlocked(group)

        new_start = to_business_wall_clock(new_start)
        target_resource = resource_id or group.resource_id
        if target_resource != group.resource_id:
            self.catalog_service.get_staff(target_resource)

        delta = new_start - group.start
        if delta == timedelta(0) and target_resource == group.resource_id:
            return group

        before = group.snapshot()
        planned: List[Tuple[datetime, datetime]] = [
            (segment.start + delta, segment.end + delta) for segment in group.segments
        ]

        with resource_day_lock(target_resource, new_start.date()):
            conflicts = self.conflict_checker.find_conflicts(
                target_resource, planned, exclude_group_id=group_id
            )
            if conflicts:
                raise BookingConflictException(details=self._conflict_details(conflicts))
            with self.transaction():
                for segment in group.segments:
                    segment.shift(delta)
                    segment.resource_id = target_resource

        self.log_service.log_change(
            "rescheduled", group_id, actor=actor, before=before, after=group.snapshot(), reason=reason
        )
        return group

    @BaseService.measure_operation("cancel_booking")
    def cancel(self, group_id: str, *, actor: Any = None, reason: Optional[str] = None) -> int:
        """Delete every segment of the group. Returns the number of rows removed."""
        group = self.get_group(group_id)
        self._ensure_unlocked(group)
        before = group.snapshot()

        with self.transaction():
            deleted = self.repository.delete_group(group_id)

        self.log_service.log_change("cancelled", group_id, actor=actor, before=before, reason=reason)
        return deleted

    @BaseService.measure_operation("set_booking_lock")
    def set_lock(
        self,
        group_id: str,
        is_locked: bool,
        *,
        actor: Any = None,
        reason: Optional[str] = None,
    ) -> BookingGroup:
        group = self.get_group(group_id)
        before = group.snapshot()

        with self.transaction():
            self.repository.set_group_lock(group_id, is_locked)

        group = self.get_group(group_id)
        self.log_service.log_change(
            "locked" if is_locked else "unlocked",
            group_id,
            actor=actor,
            before=before,
            after=group.snapshot(),
            reason=reason,
        )
        return group

    # Helpers

    @staticmethod
    def _coerce_source(source: str) -> str:
        try:
            return BookingSource(source).value
        except ValueError as exc:
            raise ValidationException(
                f"Unknown booking source: {source}", code="INVALID_SOURCE"
            ) from exc

    @staticmethod
    def _client_name(client_row: Client, details: ClientDetails) -> str:
        return client_row.full_name or details.full_name

    @staticmethod
    def _ensure_unlocked(group: BookingGroup) -> None:
        if group.is_locked:
            raise BusinessRuleException(
                ERROR_GROUP_LOCKED, code="BOOKING_LOCKED", details={"group_id": group.group_id}
            )

    @staticmethod
    def _conflict_details(conflicts: Sequence[BusySpan]) -> Dict[str, Any]:
        return {"conflicts": [span.to_dict() for span in conflicts]}

    def _raise_persistence_failure(self, group_id: str, expected: int, exc: Exception) -> None:
        """Roll back, then report whether any rows of the group survived."""
        self.db.rollback()
        try:
            written = self.repository.count_group_rows(group_id)
        except RepositoryException as count_exc:
            self.logger.error(
                "Could not verify booking rows after failed write",
                extra={"group_id": group_id, "error": str(count_exc)},
            )
            written = 0

        if written:
            self.logger.error(
                "Booking group partially persisted",
                extra={"group_id": group_id, "written": written, "expected": expected},
            )
            raise PartialPersistenceException(group_id, written, expected) from exc

        self.logger.error(
            f"Booking write failed and was rolled back: {str(exc)}",
            extra={"group_id": group_id},
        )
        raise ServiceException(
            "We couldn't save your booking. Please try again.",
            code="BOOKING_SAVE_FAILED",
            details={"group_id": group_id},
        ) from exc

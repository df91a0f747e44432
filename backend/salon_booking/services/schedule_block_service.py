# backend/salon_booking/services/schedule_block_service.py
"""
Ad-hoc holds on staff time (training, lunch, admin).

An active hold counts as busy for availability and conflict checks. Holds
are checked against bookings when created, but may overlap other holds.
Locking is its own action; a locked hold cannot be deleted.
"""

from contextlib import nullcontext
from datetime import datetime
import logging
from typing import Any, List, Optional, Sequence

from sqlalchemy.orm import Session

from ..core.booking_lock import resource_day_lock
from ..core.exceptions import (
    BookingConflictException,
    BusinessRuleException,
    NotFoundException,
    ValidationException,
)
from ..core.timezone_utils import to_business_wall_clock
from ..models.schedule_block import ScheduleBlock
from ..repositories.factory import RepositoryFactory
from ..repositories.schedule_block_repository import ScheduleBlockRepository
from .base import BaseService
from .catalog_service import CatalogService
from .conflict_checker import ConflictChecker

logger = logging.getLogger(__name__)


class ScheduleBlockService(BaseService):
    def __init__(
        self,
        db: Session,
        repository: Optional[ScheduleBlockRepository] = None,
        conflict_checker: Optional[ConflictChecker] = None,
        catalog_service: Optional[CatalogService] = None,
    ):
        super().__init__(db)
        self.repository = repository or RepositoryFactory.create_schedule_block_repository(db)
        self.conflict_checker = conflict_checker or ConflictChecker(db)
        self.catalog_service = catalog_service or CatalogService(db)

    @BaseService.measure_operation("create_hold")
    def create_hold(
        self,
        staff_id: Optional[str],
        start: datetime,
        end: datetime,
        title: str,
        *,
        actor: Any = None,
    ) -> ScheduleBlock:
        """
        Hold a staff member's time, or the whole salon when ``staff_id`` is None.

        Raises:
            ValidationException: Missing title, end not after start, or longer than the max hold
            NotFoundException: Unknown staff member
            BookingConflictException: The hold overlaps an existing booking, or a
                booking flow holds the staff member's day
        """
        if not (title or "").strip():
            raise ValidationException("Give the block a title", code="TITLE_REQUIRED")
        if start is not None:
            start = to_business_wall_clock(start)
        if end is not None:
            end = to_business_wall_clock(end)
        ConflictChecker.validate_hold_length(start, end)

        if staff_id:
            self.catalog_service.get_staff(staff_id)
            lock = resource_day_lock(staff_id, start.date())
        else:
            lock = nullcontext()

        # Conflict check and insert share the day lock booking flows take
        with lock:
            if staff_id:
                conflicts = self.conflict_checker.find_conflicts(
                    staff_id, [(start, end)], include_holds=False
                )
                if conflicts:
                    raise BookingConflictException(
                        "This time overlaps an existing booking",
                        details={"conflicts": [span.to_dict() for span in conflicts]},
                    )

            with self.transaction():
                block = self.repository.create(
                    staff_id=staff_id,
                    title=title.strip(),
                    start=start,
                    end=end,
                    is_active=True,
                    is_locked=False,
                )

        self.log_operation(
            "create_hold",
            block_id=block.id,
            staff_id=staff_id,
            actor_ref=getattr(actor, "id", actor),
        )
        return block

    @BaseService.measure_operation("set_hold_lock")
    def set_lock(self, block_ids: Sequence[str], is_locked: bool) -> List[ScheduleBlock]:
        blocks = self.repository.get_many(block_ids)
        if not blocks:
            raise NotFoundException("Schedule block not found", code="BLOCK_NOT_FOUND")
        with self.transaction():
            self.repository.set_lock([b.id for b in blocks], is_locked)
        return self.repository.get_many([b.id for b in blocks])

    @BaseService.measure_operation("delete_hold")
    def delete_hold(self, block_id: str) -> None:
        block = self.repository.get_by_id(block_id)
        if block is None:
            raise NotFoundException("Schedule block not found", code="BLOCK_NOT_FOUND")
        if block.is_locked:
            raise BusinessRuleException(
                "This block is locked and cannot be deleted",
                code="BLOCK_LOCKED",
                details={"block_id": block_id},
            )
        with self.transaction():
            self.repository.delete(block_id)
        self.log_operation("delete_hold", block_id=block_id)

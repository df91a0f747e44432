# backend/salon_booking/repositories/booking_repository.py
"""
Booking repository.

Segment rows are grouped by ``booking_id``. Busy-span queries merge booked
segments with active schedule holds, including salon-wide holds.
"""

from datetime import datetime
import logging
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..domain.intervals import BusySpan
from ..models.booking import Booking
from ..models.schedule_block import ScheduleBlock
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class BookingRepository(BaseRepository[Booking]):
    def __init__(self, db: Session):
        super().__init__(db, Booking)
        self.logger = logging.getLogger(__name__)

    # Busy span queries

    def get_booked_spans(
        self,
        resource_id: str,
        range_start: datetime,
        range_end: datetime,
        exclude_group_id: Optional[str] = None,
        *,
        include_holds: bool = True,
    ) -> List[BusySpan]:
        """
        Everything occupying ``resource_id`` that overlaps [range_start, range_end).

        Args:
            resource_id: Staff member to check
            range_start: Inclusive start of the window
            range_end: Exclusive end of the window
            exclude_group_id: Booking group to ignore (used when rescheduling)
            include_holds: Also return active schedule holds

        Returns:
            Spans ordered by start
        """
        try:
            query = self.db.query(Booking.start, Booking.end, Booking.booking_id).filter(
                Booking.resource_id == resource_id,
                Booking.start < range_end,
                Booking.end > range_start,
            )
            if exclude_group_id:
                query = query.filter(Booking.booking_id != exclude_group_id)

            spans = [
                BusySpan(start=start, end=end, group_id=group_id, kind="booking")
                for start, end, group_id in query.all()
            ]

            if include_holds:
                holds = (
                    self.db.query(ScheduleBlock.start, ScheduleBlock.end, ScheduleBlock.id)
                    .filter(
                        ScheduleBlock.is_active.is_(True),
                        or_(ScheduleBlock.staff_id == resource_id, ScheduleBlock.staff_id.is_(None)),
                        ScheduleBlock.start < range_end,
                        ScheduleBlock.end > range_start,
                    )
                    .all()
                )
                spans.extend(
                    BusySpan(start=start, end=end, group_id=block_id, kind="hold")
                    for start, end, block_id in holds
                )

            return sorted(spans, key=lambda span: (span.start, span.end))
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting booked spans for {resource_id}: {str(e)}")
            raise RepositoryException(f"Failed to get booked spans: {str(e)}")

    # Group operations

    def insert_segments(self, rows: Sequence[Dict[str, Any]]) -> List[Booking]:
        """Add all segment rows with a single flush. Does not commit."""
        return self.bulk_create(list(rows))

    def get_group(self, group_id: str) -> List[Booking]:
        try:
            return (
                self.db.query(Booking)
                .filter(Booking.booking_id == group_id)
                .order_by(Booking.start)
                .all()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading booking group {group_id}: {str(e)}")
            raise RepositoryException(f"Failed to load booking group: {str(e)}")

    def count_group_rows(self, group_id: str) -> int:
        return self.count(booking_id=group_id)

    def delete_group(self, group_id: str) -> int:
        try:
            return (
                self.db.query(Booking)
                .filter(Booking.booking_id == group_id)
                .delete(synchronize_session="fetch")
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error deleting booking group {group_id}: {str(e)}")
            raise RepositoryException(f"Failed to delete booking group: {str(e)}")

    def set_group_lock(self, group_id: str, is_locked: bool) -> int:
        try:
            return (
                self.db.query(Booking)
                .filter(Booking.booking_id == group_id)
                .update({Booking.is_locked: is_locked}, synchronize_session="fetch")
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error locking booking group {group_id}: {str(e)}")
            raise RepositoryException(f"Failed to update booking lock: {str(e)}")

    def tag_series(self, group_id: str, series_id: str) -> int:
        """Attach a repeat series id to an existing group."""
        try:
            return (
                self.db.query(Booking)
                .filter(Booking.booking_id == group_id)
                .update({Booking.repeat_series_id: series_id}, synchronize_session="fetch")
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error tagging booking group {group_id}: {str(e)}")
            raise RepositoryException(f"Failed to tag repeat series: {str(e)}")

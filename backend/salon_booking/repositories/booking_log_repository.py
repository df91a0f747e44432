# backend/salon_booking/repositories/booking_log_repository.py
"""Persistence for booking log entries."""

import logging
from typing import Any, List, Mapping

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.booking_log import BookingLog
from .base_repository import BaseRepository


class BookingLogRepository(BaseRepository[BookingLog]):
    def __init__(self, db: Session):
        super().__init__(db, BookingLog)
        self.logger = logging.getLogger(__name__)

    def write(self, entry: Mapping[str, Any]) -> BookingLog:
        """Stage a log row built from ``{action, group_id, actor_ref, before, after, reason}``."""
        try:
            row = BookingLog.from_entry(entry)
            self.db.add(row)
            self.db.flush()
            return row
        except SQLAlchemyError as e:
            self.logger.error(f"Error writing booking log: {str(e)}")
            raise RepositoryException(f"Failed to write booking log: {str(e)}")

    def list_for_group(self, group_id: str) -> List[BookingLog]:
        try:
            return (
                self.db.query(BookingLog)
                .filter(BookingLog.booking_id == group_id)
                .order_by(BookingLog.created_at, BookingLog.id)
                .all()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error reading booking logs: {str(e)}")
            raise RepositoryException(f"Failed to read booking logs: {str(e)}")

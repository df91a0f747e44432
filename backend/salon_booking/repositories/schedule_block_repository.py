# backend/salon_booking/repositories/schedule_block_repository.py
import logging
from typing import List, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.schedule_block import ScheduleBlock
from .base_repository import BaseRepository


class ScheduleBlockRepository(BaseRepository[ScheduleBlock]):
    def __init__(self, db: Session):
        super().__init__(db, ScheduleBlock)
        self.logger = logging.getLogger(__name__)

    def get_many(self, block_ids: Sequence[str]) -> List[ScheduleBlock]:
        if not block_ids:
            return []
        try:
            return self.db.query(ScheduleBlock).filter(ScheduleBlock.id.in_(list(block_ids))).all()
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading schedule blocks: {str(e)}")
            raise RepositoryException(f"Failed to load schedule blocks: {str(e)}")

    def set_lock(self, block_ids: Sequence[str], is_locked: bool) -> int:
        if not block_ids:
            return 0
        try:
            return (
                self.db.query(ScheduleBlock)
                .filter(ScheduleBlock.id.in_(list(block_ids)))
                .update({ScheduleBlock.is_locked: is_locked}, synchronize_session="fetch")
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error locking schedule blocks: {str(e)}")
            raise RepositoryException(f"Failed to update schedule block lock: {str(e)}")

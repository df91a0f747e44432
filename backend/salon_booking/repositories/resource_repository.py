# backend/salon_booking/repositories/resource_repository.py
"""Staff and service catalog reads."""

import logging
from typing import Dict, List, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.service import Service, StaffService
from ..models.staff import Staff
from .base_repository import BaseRepository


class ResourceRepository(BaseRepository[Staff]):
    def __init__(self, db: Session):
        super().__init__(db, Staff)
        self.logger = logging.getLogger(__name__)

    def get_services(self, service_ids: Sequence[str]) -> List[Service]:
        """
        Load services by id, keeping the caller's order.

        Duplicates are kept (a basket may hold the same service twice);
        unknown ids are dropped.
        """
        if not service_ids:
            return []
        try:
            rows = self.db.query(Service).filter(Service.id.in_(set(service_ids))).all()
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading services: {str(e)}")
            raise RepositoryException(f"Failed to load services: {str(e)}")
        by_id = {row.id: row for row in rows}
        return [by_id[service_id] for service_id in service_ids if service_id in by_id]

    def get_overrides_for_staff(self, staff_id: str) -> Dict[str, StaffService]:
        try:
            rows = self.db.query(StaffService).filter(StaffService.staff_id == staff_id).all()
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading staff overrides: {str(e)}")
            raise RepositoryException(f"Failed to load staff overrides: {str(e)}")
        return {row.service_id: row for row in rows}

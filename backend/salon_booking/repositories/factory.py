# backend/salon_booking/repositories/factory.py
"""
Repository factory.

Centralizes repository creation so services can be handed mocks in tests.
"""

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

if TYPE_CHECKING:
    from .booking_log_repository import BookingLogRepository
    from .booking_repository import BookingRepository
    from .client_repository import ClientRepository
    from .resource_repository import ResourceRepository
    from .schedule_block_repository import ScheduleBlockRepository


class RepositoryFactory:
    @staticmethod
    def create_booking_repository(db: Session) -> "BookingRepository":
        from .booking_repository import BookingRepository

        return BookingRepository(db)

    @staticmethod
    def create_client_repository(db: Session) -> "ClientRepository":
        from .client_repository import ClientRepository

        return ClientRepository(db)

    @staticmethod
    def create_resource_repository(db: Session) -> "ResourceRepository":
        from .resource_repository import ResourceRepository

        return ResourceRepository(db)

    @staticmethod
    def create_schedule_block_repository(db: Session) -> "ScheduleBlockRepository":
        from .schedule_block_repository import ScheduleBlockRepository

        return ScheduleBlockRepository(db)

    @staticmethod
    def create_booking_log_repository(db: Session) -> "BookingLogRepository":
        from .booking_log_repository import BookingLogRepository

        return BookingLogRepository(db)

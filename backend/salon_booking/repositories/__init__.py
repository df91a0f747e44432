# backend/salon_booking/repositories/__init__.py
"""
Repository layer for the salon booking engine.

Usage:
    from salon_booking.repositories import RepositoryFactory

    bookings = RepositoryFactory.create_booking_repository(db)
    spans = bookings.get_booked_spans(staff_id, day_start, day_end)
"""

from .base_repository import BaseRepository
from .booking_log_repository import BookingLogRepository
from .booking_repository import BookingRepository
from .client_repository import ClientRepository
from .factory import RepositoryFactory
from .resource_repository import ResourceRepository
from .schedule_block_repository import ScheduleBlockRepository

__all__ = [
    "BaseRepository",
    "BookingLogRepository",
    "BookingRepository",
    "ClientRepository",
    "RepositoryFactory",
    "ResourceRepository",
    "ScheduleBlockRepository",
]

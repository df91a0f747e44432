# backend/salon_booking/api/dependencies/__init__.py
"""
Central export point for all dependencies.
"""

from .database import get_db
from .services import (
    get_availability_service,
    get_booking_log_service,
    get_booking_service,
    get_catalog_service,
    get_recurrence_service,
    get_schedule_block_service,
    get_slot_request_tracker,
)

__all__ = [
    # Database
    "get_db",
    # Services
    "get_availability_service",
    "get_booking_log_service",
    "get_booking_service",
    "get_catalog_service",
    "get_recurrence_service",
    "get_schedule_block_service",
    "get_slot_request_tracker",
]

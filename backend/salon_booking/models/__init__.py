"""
Database models for the salon booking engine.

- Staff and the service catalog (with per-staff overrides)
- Clients
- Booking segments, ad-hoc schedule holds and booking logs
"""

from .booking import Booking, BookingSource, BookingStatus
from .booking_log import BookingLog
from .client import Client
from .schedule_block import ScheduleBlock
from .service import Service, StaffService
from .staff import Staff

__all__ = [
    "Booking",
    "BookingLog",
    "BookingSource",
    "BookingStatus",
    "Client",
    "ScheduleBlock",
    "Service",
    "Staff",
    "StaffService",
]

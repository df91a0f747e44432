# backend/salon_booking/routes/v1/__init__.py
"""
API v1 routers. Mounted under /api/v1 in main.py.
"""

from . import availability, bookings, schedule_blocks

__all__ = ["availability", "bookings", "schedule_blocks"]

# backend/salon_booking/models/booking.py
"""
Booking segment model.

One row per booked service. Rows that were booked together share a group id
(``booking_id``); rows stamped out by a repeat series also share a
``repeat_series_id``. Start and end are naive wall-clock times in the
business timezone.
"""

from datetime import timedelta
from enum import Enum
import logging
from typing import Any, Dict

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
)
from sqlalchemy.sql import func
import ulid

from ..database import Base

logger = logging.getLogger(__name__)


class BookingStatus(str, Enum):
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    NO_SHOW = "no_show"


class BookingSource(str, Enum):
    PUBLIC = "public"
    STAFF = "staff"
    REPEAT = "repeat"


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    booking_id = Column(String(26), nullable=False, index=True)
    repeat_series_id = Column(String(26), nullable=True, index=True)

    resource_id = Column(String(26), ForeignKey("staff.id"), nullable=False)
    client_id = Column(String(26), ForeignKey("clients.id"), nullable=True)
    client_name = Column(String(200), nullable=True)
    service_id = Column(String(26), ForeignKey("services.id"), nullable=True)

    start = Column(DateTime, nullable=False)
    end = Column(DateTime, nullable=False)

    # Service snapshot at booking time
    title = Column(String(200), nullable=False)
    category = Column(String(100), nullable=True)
    price = Column(Numeric(10, 2), nullable=True)
    duration = Column(Integer, nullable=False)

    status = Column(String(20), nullable=False, default=BookingStatus.CONFIRMED.value)
    is_locked = Column(Boolean, nullable=False, default=False)
    source = Column(String(20), nullable=False, default=BookingSource.PUBLIC.value)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    __table_args__ = (
        CheckConstraint("duration > 0", name="check_segment_duration_positive"),
        CheckConstraint('"end" > start', name="check_segment_time_order"),
        Index("ix_bookings_resource_start_end", "resource_id", "start", "end"),
    )

    def shift(self, delta: timedelta) -> None:
        """Move the segment, keeping end = start + duration."""
        self.start = self.start + delta
        self.end = self.start + timedelta(minutes=self.duration)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "booking_id": self.booking_id,
            "repeat_series_id": self.repeat_series_id,
            "resource_id": self.resource_id,
            "client_id": self.client_id,
            "client_name": self.client_name,
            "service_id": self.service_id,
            "start": self.start.isoformat() if self.start else None,
            "end": self.end.isoformat() if self.end else None,
            "title": self.title,
            "category": self.category,
            "price": str(self.price) if self.price is not None else None,
            "duration": self.duration,
            "status": self.status,
            "is_locked": bool(self.is_locked),
            "source": self.source,
        }

    def __repr__(self) -> str:
        return (
            f"<Booking {self.id}: group={self.booking_id} resource={self.resource_id} "
            f"{self.start}-{self.end} {self.title!r}>"
        )

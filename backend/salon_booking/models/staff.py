# backend/salon_booking/models/staff.py
"""
Staff model.

A staff member is the bookable resource. Weekly opening hours are stored in
the canonical shape read by ``WeeklyAvailability.from_dict``.
"""

from typing import Any, Dict

from sqlalchemy import Boolean, Column, DateTime, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from sqlalchemy.types import JSON
import ulid

from ..database import Base
from ..domain.weekly_hours import WeeklyAvailability


class Staff(Base):
    __tablename__ = "staff"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    title = Column(String(120), nullable=False)
    email = Column(String(255), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    weekly_hours = Column(
        JSONB(astext_type=Text()).with_variant(JSON(), "sqlite"),
        nullable=True,
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    service_overrides = relationship(
        "StaffService", back_populates="staff", cascade="all, delete-orphan"
    )

    @property
    def availability(self) -> WeeklyAvailability:
        # Rows written before canonicalisation still carry legacy keys.
        return WeeklyAvailability.from_legacy(self.weekly_hours)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "email": self.email,
            "is_active": self.is_active,
            "weekly_hours": self.availability.to_dict(),
        }

    def __repr__(self) -> str:
        return f"<Staff {self.id}: {self.title}>"

# backend/salon_booking/models/service.py
"""
Service catalog models.

Service holds the salon-wide base price and duration. StaffService links a
staff member to a service with optional per-staff overrides.
"""

from typing import Any, Dict, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..database import Base
from ..domain.chemical import is_chemical_service


class Service(Base):
    __tablename__ = "services"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    name = Column(String(200), nullable=False)
    category = Column(String(100), nullable=True)
    base_price = Column(Numeric(10, 2), nullable=True)
    base_duration = Column(Integer, nullable=False)
    # None for records created before the flag existed
    is_chemical = Column(Boolean, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (CheckConstraint("base_duration > 0", name="check_service_duration_positive"),)

    @property
    def requires_processing_gap(self) -> bool:
        return is_chemical_service(self)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "base_price": self.base_price,
            "base_duration": self.base_duration,
            "is_chemical": self.requires_processing_gap,
        }

    def __repr__(self) -> str:
        return f"<Service {self.id}: {self.name} ({self.base_duration}m)>"


class StaffService(Base):
    """Per-staff price/duration override; a null price means "to be confirmed"."""

    __tablename__ = "staff_services"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    staff_id = Column(String(26), ForeignKey("staff.id", ondelete="CASCADE"), nullable=False)
    service_id = Column(String(26), ForeignKey("services.id", ondelete="CASCADE"), nullable=False)
    price = Column(Numeric(10, 2), nullable=True)
    duration = Column(Integer, nullable=True)

    staff = relationship("Staff", back_populates="service_overrides")
    service = relationship("Service")

    __table_args__ = (UniqueConstraint("staff_id", "service_id", name="uq_staff_service"),)

    @property
    def effective_duration(self) -> Optional[int]:
        if self.duration is not None and self.duration > 0:
            return self.duration
        return None

    def __repr__(self) -> str:
        return f"<StaffService staff={self.staff_id} service={self.service_id}>"

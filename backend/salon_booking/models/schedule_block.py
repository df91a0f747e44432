# backend/salon_booking/models/schedule_block.py
"""Ad-hoc holds on a staff member's time (training, lunch, admin)."""

from typing import Any, Dict

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, ForeignKey, String
from sqlalchemy.sql import func
import ulid

from ..database import Base


class ScheduleBlock(Base):
    """A null ``staff_id`` holds the whole salon."""

    __tablename__ = "schedule_blocks"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    staff_id = Column(String(26), ForeignKey("staff.id", ondelete="CASCADE"), nullable=True)
    title = Column(String(200), nullable=False)
    start = Column(DateTime, nullable=False)
    end = Column(DateTime, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    is_locked = Column(Boolean, nullable=False, default=False)
    repeat_series_id = Column(String(26), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (CheckConstraint('"end" > start', name="check_block_time_order"),)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "staff_id": self.staff_id,
            "title": self.title,
            "start": self.start.isoformat() if self.start else None,
            "end": self.end.isoformat() if self.end else None,
            "is_active": bool(self.is_active),
            "is_locked": bool(self.is_locked),
            "repeat_series_id": self.repeat_series_id,
        }

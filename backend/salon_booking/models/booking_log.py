# backend/salon_booking/models/booking_log.py
"""
Booking log model capturing every change to a booking group.

Snapshots are stored as JSON; formatting them for display is left to readers.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from sqlalchemy import Column, DateTime, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func
from sqlalchemy.types import JSON
import ulid

from ..database import Base


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


class BookingLog(Base):
    __tablename__ = "booking_logs"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    action = Column(String(30), nullable=False)
    booking_id = Column(String(26), nullable=True, index=True)
    actor_ref = Column(String(64), nullable=True)
    reason = Column(Text, nullable=True)
    before_snapshot = Column(
        JSONB(astext_type=Text()).with_variant(JSON(), "sqlite"),
        nullable=True,
    )
    after_snapshot = Column(
        JSONB(astext_type=Text()).with_variant(JSON(), "sqlite"),
        nullable=True,
    )
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=_now_utc,
        server_default=func.now(),
    )

    @classmethod
    def from_entry(cls, entry: Mapping[str, Any]) -> "BookingLog":
        actor: Optional[Any] = entry.get("actor_ref")
        return cls(
            action=str(entry["action"]),
            booking_id=entry.get("group_id"),
            actor_ref=str(actor) if actor is not None else None,
            reason=entry.get("reason"),
            before_snapshot=entry.get("before"),
            after_snapshot=entry.get("after"),
        )

# backend/salon_booking/schemas/schedule_block.py
from datetime import datetime
from typing import List, Optional

from pydantic import Field

from .base import StandardizedModel, StrictRequestModel


class ScheduleBlockCreate(StrictRequestModel):
    staff_id: Optional[str] = Field(None, description="Omit to hold the whole salon")
    title: str = Field(..., min_length=1, max_length=200)
    start: datetime
    end: datetime


class ScheduleBlockLockUpdate(StrictRequestModel):
    block_ids: List[str] = Field(..., min_length=1)
    is_locked: bool


class ScheduleBlockResponse(StandardizedModel):
    id: str
    staff_id: Optional[str] = None
    title: str
    start: datetime
    end: datetime
    is_active: bool
    is_locked: bool

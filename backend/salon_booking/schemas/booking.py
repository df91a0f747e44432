# backend/salon_booking/schemas/booking.py
"""
Booking request and response schemas.

Times are wall-clock datetimes in the salon's timezone; offset-aware values
are converted on the way in.
"""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import EmailStr, Field, field_validator, model_validator

from .base import Money, StandardizedModel, StrictRequestModel, strip_or_none


class ClientInput(StrictRequestModel):
    client_id: Optional[str] = Field(None, description="Existing client to book for")
    first_name: str = Field("", max_length=100)
    last_name: str = Field("", max_length=100)
    email: Optional[EmailStr] = None
    mobile: Optional[str] = Field(None, max_length=32)

    @field_validator("first_name", "last_name", mode="before")
    @classmethod
    def _strip_names(cls, v: object) -> object:
        return v.strip() if isinstance(v, str) else v

    @field_validator("email", "mobile", mode="before")
    @classmethod
    def _blank_to_none(cls, v: object) -> object:
        return strip_or_none(v)


class BookingCreate(StrictRequestModel):
    staff_id: str = Field(..., description="Staff member to book")
    service_ids: List[str] = Field(..., min_length=1, description="Services in booking order")
    start: datetime = Field(..., description="Start of the first service")
    client: ClientInput
    source: Literal["public", "staff"] = "public"


class BookingReschedule(StrictRequestModel):
    start: datetime
    staff_id: Optional[str] = None
    reason: Optional[str] = Field(None, max_length=500)


class BookingLockUpdate(StrictRequestModel):
    is_locked: bool
    reason: Optional[str] = Field(None, max_length=500)


class RepeatRequest(StrictRequestModel):
    pattern: Literal["weekly", "fortnightly", "monthly", "monthly_nth_day", "yearly"]
    occurrences: int = Field(..., ge=1, le=52)
    day_of_month: Optional[int] = Field(None, ge=1, le=31)

    @model_validator(mode="after")
    def _day_only_for_nth_day(self) -> "RepeatRequest":
        if self.day_of_month is not None and self.pattern != "monthly_nth_day":
            raise ValueError("day_of_month only applies to the monthly_nth_day pattern")
        return self


class SegmentResponse(StandardizedModel):
    id: str
    service_id: Optional[str] = None
    title: str
    category: Optional[str] = None
    start: datetime
    end: datetime
    duration: int
    price: Money = None
    status: str


class BookingGroupResponse(StandardizedModel):
    group_id: str
    staff_id: str
    client_id: Optional[str] = None
    client_name: Optional[str] = None
    repeat_series_id: Optional[str] = None
    start: datetime
    end: datetime
    is_locked: bool
    source: str
    total_price: Money = None
    segments: List[SegmentResponse]

    @classmethod
    def from_group(cls, group: Any) -> "BookingGroupResponse":
        first = group.segments[0]
        return cls(
            group_id=group.group_id,
            staff_id=group.resource_id,
            client_id=group.client_id,
            client_name=group.client_name,
            repeat_series_id=group.repeat_series_id,
            start=group.start,
            end=group.end,
            is_locked=group.is_locked,
            source=first.source,
            total_price=group.total_price,
            segments=[
                SegmentResponse(
                    id=s.id,
                    service_id=s.service_id,
                    title=s.title,
                    category=s.category,
                    start=s.start,
                    end=s.end,
                    duration=s.duration,
                    price=s.price,
                    status=s.status,
                )
                for s in group.segments
            ],
        )


class CancelResponse(StandardizedModel):
    group_id: str
    deleted_segments: int


class FailedOccurrence(StandardizedModel):
    start: datetime
    reason: str


class RepeatResponse(StandardizedModel):
    series_id: str
    created: List[BookingGroupResponse]
    skipped: List[datetime]
    failed: List[FailedOccurrence]
    summary: Dict[str, int]

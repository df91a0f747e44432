# backend/salon_booking/schemas/availability.py
from datetime import date, datetime
from typing import List

from pydantic import Field

from ..domain.timeline import Timeline
from .base import Money, StandardizedModel


class TimelineSegmentResponse(StandardizedModel):
    service_id: str
    name: str
    offset_min: int
    duration: int
    price: Money = None
    is_chemical: bool


class TimelineResponse(StandardizedModel):
    segments: List[TimelineSegmentResponse] = Field(default_factory=list)
    sum_active_duration: int
    total_span_minutes: int
    sum_price: Money = None
    has_unknown_price: bool
    has_chemical: bool


class SlotsResponse(StandardizedModel):
    staff_id: str
    target_date: date
    block_minutes: int
    slots: List[datetime]
    timeline: TimelineResponse
    request_generation: int
    stale: bool = False


def timeline_response(timeline: Timeline) -> TimelineResponse:
    return TimelineResponse(
        segments=[
            TimelineSegmentResponse(
                service_id=segment.service.id,
                name=segment.service.name,
                offset_min=segment.offset_min,
                duration=segment.duration,
                price=segment.price,
                is_chemical=segment.is_chemical,
            )
            for segment in timeline.segments
        ],
        sum_active_duration=timeline.sum_active_duration,
        total_span_minutes=timeline.total_span_minutes,
        sum_price=timeline.sum_price,
        has_unknown_price=timeline.has_unknown_price,
        has_chemical=timeline.has_chemical,
    )


class EarliestDayResponse(StandardizedModel):
    target_date: date
    min_notice_hours: int

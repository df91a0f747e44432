# backend/salon_booking/routes/v1/availability.py
"""
Availability routes - API v1

Endpoints:
    GET /earliest-day - First date a booking calendar should offer
    GET /staff/{staff_id}/slots - Start times for a basket of services on a date
"""

import asyncio
from datetime import date
import logging
from typing import List

from fastapi import APIRouter, Depends, Query
from fastapi.params import Path

from ...api.dependencies import get_availability_service
from ...core.config import settings
from ...core.exceptions import DomainException
from ...schemas.availability import EarliestDayResponse, SlotsResponse, timeline_response
from ...services.availability_service import AvailabilityService, earliest_bookable_day
from .errors import ULID_PATH_PATTERN, handle_domain_exception

logger = logging.getLogger(__name__)

router = APIRouter(tags=["availability-v1"])


@router.get("/earliest-day", response_model=EarliestDayResponse)
async def get_earliest_day() -> EarliestDayResponse:
    return EarliestDayResponse(
        target_date=earliest_bookable_day(), min_notice_hours=settings.min_notice_hours
    )


@router.get(
    "/staff/{staff_id}/slots",
    response_model=SlotsResponse,
    responses={404: {"description": "Staff member or service not found"}},
)
async def get_slots(
    staff_id: str = Path(..., description="Staff ULID", pattern=ULID_PATH_PATTERN),
    target_date: date = Query(..., alias="date", description="Local date to search"),
    service_ids: List[str] = Query(..., description="Services in booking order"),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> SlotsResponse:
    """
    Bookable start times for the basket.

    ``stale`` is set when a newer request for the same staff member, basket
    and date overtook this one; clients should discard such responses.
    """
    try:
        result = await asyncio.to_thread(
            availability_service.get_slots_for_basket, staff_id, service_ids, target_date
        )
    except DomainException as e:
        handle_domain_exception(e)

    return SlotsResponse(
        staff_id=staff_id,
        target_date=target_date,
        block_minutes=result.total_block_minutes,
        slots=result.slots,
        timeline=timeline_response(result.timeline),
        request_generation=result.token.generation if result.token else 0,
        stale=result.stale,
    )

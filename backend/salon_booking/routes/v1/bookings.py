# backend/salon_booking/routes/v1/bookings.py
"""
Booking routes - API v1

Versioned booking endpoints under /api/v1/bookings.
All business logic delegated to BookingService and RecurrenceService.

Endpoints:
    POST / - Book a basket of services for a client
    GET /{group_id} - Booking group with its segments
    GET /{group_id}/history - Booking log entries for the group
    POST /{group_id}/reschedule - Move the whole group
    POST /{group_id}/cancel - Delete every segment of the group
    PATCH /{group_id}/lock - Lock or unlock the group
    POST /{group_id}/repeat - Create a repeat series from the group
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, Header, status
from fastapi.params import Path

from ...api.dependencies import (
    get_booking_log_service,
    get_booking_service,
    get_catalog_service,
    get_recurrence_service,
)
from ...core.exceptions import DomainException
from ...schemas.booking import (
    BookingCreate,
    BookingGroupResponse,
    BookingLockUpdate,
    BookingReschedule,
    CancelResponse,
    FailedOccurrence,
    RepeatRequest,
    RepeatResponse,
)
from ...services.booking_log_service import BookingLogService
from ...services.booking_service import BookingService
from ...services.catalog_service import CatalogService
from ...services.client_service import ClientDetails
from ...services.recurrence_service import RecurrenceService
from .errors import ULID_PATH_PATTERN, handle_domain_exception

logger = logging.getLogger(__name__)

# V1 router - no prefix here, will be added when mounting in main.py
router = APIRouter(tags=["bookings-v1"])

GROUP_ID_PATH = Path(..., description="Booking group ULID", pattern=ULID_PATH_PATTERN)


@router.post(
    "/",
    response_model=BookingGroupResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"description": "Slot taken or client ambiguous"}},
)
async def create_booking(
    booking_data: BookingCreate = Body(...),
    actor_id: Optional[str] = Header(None, alias="X-Actor-Id"),
    catalog_service: CatalogService = Depends(get_catalog_service),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingGroupResponse:
    """
    Book a basket for a client.

    The timeline is rebuilt server-side with the staff member's overrides and
    every segment is re-checked for conflicts under the day lock.
    """
    client = ClientDetails(
        first_name=booking_data.client.first_name,
        last_name=booking_data.client.last_name,
        email=booking_data.client.email,
        mobile=booking_data.client.mobile,
        client_id=booking_data.client.client_id,
    )

    def _book():
        timeline = catalog_service.build_basket_timeline(
            booking_data.service_ids, booking_data.staff_id
        )
        return booking_service.commit(
            booking_data.staff_id,
            client,
            timeline,
            booking_data.start,
            source=booking_data.source,
            actor=actor_id,
        )

    try:
        group = await asyncio.to_thread(_book)
        return BookingGroupResponse.from_group(group)
    except DomainException as e:
        handle_domain_exception(e)


@router.get(
    "/{group_id}",
    response_model=BookingGroupResponse,
    responses={404: {"description": "Booking not found"}},
)
async def get_booking(
    group_id: str = GROUP_ID_PATH,
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingGroupResponse:
    try:
        group = await asyncio.to_thread(booking_service.get_group, group_id)
        return BookingGroupResponse.from_group(group)
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/{group_id}/history", response_model=List[Dict[str, Any]])
async def get_booking_history(
    group_id: str = GROUP_ID_PATH,
    log_service: BookingLogService = Depends(get_booking_log_service),
) -> List[Dict[str, Any]]:
    return await asyncio.to_thread(log_service.history, group_id)


@router.post(
    "/{group_id}/reschedule",
    response_model=BookingGroupResponse,
    responses={404: {"description": "Booking not found"}, 409: {"description": "Time conflict"}},
)
async def reschedule_booking(
    group_id: str = GROUP_ID_PATH,
    payload: BookingReschedule = Body(...),
    actor_id: Optional[str] = Header(None, alias="X-Actor-Id"),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingGroupResponse:
    try:
        group = await asyncio.to_thread(
            lambda: booking_service.reschedule(
                group_id,
                payload.start,
                resource_id=payload.staff_id,
                actor=actor_id,
                reason=payload.reason,
            )
        )
        return BookingGroupResponse.from_group(group)
    except DomainException as e:
        handle_domain_exception(e)


@router.post(
    "/{group_id}/cancel",
    response_model=CancelResponse,
    responses={404: {"description": "Booking not found"}, 422: {"description": "Booking locked"}},
)
async def cancel_booking(
    group_id: str = GROUP_ID_PATH,
    actor_id: Optional[str] = Header(None, alias="X-Actor-Id"),
    booking_service: BookingService = Depends(get_booking_service),
) -> CancelResponse:
    """Cancel a booking."""
    try:
        deleted = await asyncio.to_thread(
            lambda: booking_service.cancel(group_id, actor=actor_id)
        )
        return CancelResponse(group_id=group_id, deleted_segments=deleted)
    except DomainException as e:
        handle_domain_exception(e)


@router.patch("/{group_id}/lock", response_model=BookingGroupResponse)
async def set_booking_lock(
    group_id: str = GROUP_ID_PATH,
    payload: BookingLockUpdate = Body(...),
    actor_id: Optional[str] = Header(None, alias="X-Actor-Id"),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingGroupResponse:
    try:
        group = await asyncio.to_thread(
            lambda: booking_service.set_lock(
                group_id, payload.is_locked, actor=actor_id, reason=payload.reason
            )
        )
        return BookingGroupResponse.from_group(group)
    except DomainException as e:
        handle_domain_exception(e)


@router.post("/{group_id}/repeat", response_model=RepeatResponse)
async def repeat_booking(
    group_id: str = GROUP_ID_PATH,
    payload: RepeatRequest = Body(...),
    actor_id: Optional[str] = Header(None, alias="X-Actor-Id"),
    recurrence_service: RecurrenceService = Depends(get_recurrence_service),
) -> RepeatResponse:
    """
    Stamp the group out on future dates.

    Clashing occurrences are skipped rather than failing the series; the
    response reports created, skipped and failed occurrences separately.
    """
    try:
        result = await asyncio.to_thread(
            lambda: recurrence_service.repeat_group(
                group_id,
                payload.pattern,
                payload.occurrences,
                payload.day_of_month,
                actor=actor_id,
            )
        )
    except DomainException as e:
        handle_domain_exception(e)

    return RepeatResponse(
        series_id=result.series_id,
        created=[BookingGroupResponse.from_group(group) for group in result.created],
        skipped=result.skipped,
        failed=[FailedOccurrence(start=start, reason=reason) for start, reason in result.failed],
        summary={
            "created": len(result.created),
            "skipped": len(result.skipped),
            "failed": len(result.failed),
        },
    )

# backend/salon_booking/routes/v1/schedule_blocks.py
"""
Schedule block routes - API v1

Endpoints:
    POST / - Hold a staff member's time, or the whole salon
    PATCH /lock - Lock or unlock holds
    DELETE /{block_id} - Remove an unlocked hold
"""

import asyncio
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Header, Response, status
from fastapi.params import Path

from ...api.dependencies import get_schedule_block_service
from ...core.exceptions import DomainException
from ...schemas.schedule_block import (
    ScheduleBlockCreate,
    ScheduleBlockLockUpdate,
    ScheduleBlockResponse,
)
from ...services.schedule_block_service import ScheduleBlockService
from .errors import ULID_PATH_PATTERN, handle_domain_exception

router = APIRouter(tags=["schedule-blocks-v1"])


@router.post(
    "/",
    response_model=ScheduleBlockResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"description": "Overlaps an existing booking"}},
)
async def create_schedule_block(
    payload: ScheduleBlockCreate = Body(...),
    actor_id: Optional[str] = Header(None, alias="X-Actor-Id"),
    block_service: ScheduleBlockService = Depends(get_schedule_block_service),
) -> ScheduleBlockResponse:
    try:
        block = await asyncio.to_thread(
            lambda: block_service.create_hold(
                payload.staff_id, payload.start, payload.end, payload.title, actor=actor_id
            )
        )
        return ScheduleBlockResponse.model_validate(block.to_dict())
    except DomainException as e:
        handle_domain_exception(e)


@router.patch("/lock", response_model=List[ScheduleBlockResponse])
async def lock_schedule_blocks(
    payload: ScheduleBlockLockUpdate = Body(...),
    block_service: ScheduleBlockService = Depends(get_schedule_block_service),
) -> List[ScheduleBlockResponse]:
    try:
        blocks = await asyncio.to_thread(
            block_service.set_lock, payload.block_ids, payload.is_locked
        )
        return [ScheduleBlockResponse.model_validate(b.to_dict()) for b in blocks]
    except DomainException as e:
        handle_domain_exception(e)


@router.delete(
    "/{block_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"description": "Block not found"}, 422: {"description": "Block locked"}},
)
async def delete_schedule_block(
    block_id: str = Path(..., description="Schedule block ULID", pattern=ULID_PATH_PATTERN),
    block_service: ScheduleBlockService = Depends(get_schedule_block_service),
) -> Response:
    try:
        await asyncio.to_thread(block_service.delete_hold, block_id)
    except DomainException as e:
        handle_domain_exception(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

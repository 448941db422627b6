# backend/app/routes/v1/availability.py
"""
Availability routes - API v1

Public, read-only view of a trainer's bookable time.

Endpoints:
    GET /{trainer_id}            -> Weekly windows
    GET /{trainer_id}?date=...   -> Free and booked hourly slots on that date
"""

import asyncio
import logging
from typing import NoReturn, Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ...api.dependencies import get_availability_service, require_booking_schema, require_database
from ...core.exceptions import DomainException
from ...schemas.availability import (
    AvailabilityWindowResponse,
    DayAvailabilityResponse,
    TimeSlot,
    WeeklyAvailabilityResponse,
)
from ...services.availability_service import (
    AvailabilityService,
    DayAvailability,
    WeeklyAvailability,
)
from ...utils.time_helpers import time_to_string

logger = logging.getLogger(__name__)

# V1 router - no prefix here, will be added when mounting in main.py
router = APIRouter(
    tags=["availability-v1"],
    dependencies=[Depends(require_booking_schema), Depends(require_database)],
)


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


def _weekly_response(result: WeeklyAvailability) -> WeeklyAvailabilityResponse:
    return WeeklyAvailabilityResponse(
        trainer_id=result.trainer_id,
        available=result.available,
        windows=[
            AvailabilityWindowResponse(
                id=window.id,
                day_of_week=window.day_of_week,
                start_time=time_to_string(window.start_time),
                end_time=time_to_string(window.end_time),
            )
            for window in result.windows
        ],
    )


def _day_response(result: DayAvailability) -> DayAvailabilityResponse:
    return DayAvailabilityResponse(
        date=result.date,
        day_of_week=result.day_of_week,
        available=result.available,
        available_slots=[
            TimeSlot(start_time=slot.start_time, end_time=slot.end_time)
            for slot in result.available_slots
        ],
        booked_slots=[
            TimeSlot(start_time=slot.start_time, end_time=slot.end_time)
            for slot in result.booked_slots
        ],
        message=result.message,
    )


@router.get(
    "/{trainer_id}",
    response_model=Union[DayAvailabilityResponse, WeeklyAvailabilityResponse],
    responses={400: {"description": "Invalid date"}},
)
async def get_trainer_availability(
    trainer_id: int,
    date: Optional[str] = Query(None, description="YYYY-MM-DD; omit for weekly windows"),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> Union[DayAvailabilityResponse, WeeklyAvailabilityResponse]:
    """
    Trainer availability.

    Without ``date`` returns the active weekly windows; with ``date`` returns
    the hourly slots still free that day plus the booked intervals.
    """
    try:
        result = await asyncio.to_thread(availability_service.get_availability, trainer_id, date)
    except DomainException as e:
        handle_domain_exception(e)

    if isinstance(result, WeeklyAvailability):
        return _weekly_response(result)
    return _day_response(result)

# backend/app/routes/v1/appointments.py
"""
Appointment routes - API v1

Versioned booking endpoints under /api/v1/appointments.
All business logic delegated to AppointmentService and RatingService.

Endpoints:
    POST /                           -> Book a session (caller is the client)
    GET /                            -> Caller's appointments (?role=client|trainer)
    GET /trainer/{trainer_id}        -> Trainer's schedule (public)
    PUT /{appointment_id}            -> Update status and/or notes
    DELETE /{appointment_id}         -> Cancel (delete) an appointment
    POST /{appointment_id}/rate      -> Rate a completed appointment
"""

import asyncio
import logging
from typing import Any, Dict, NoReturn, Optional

from fastapi import APIRouter, BackgroundTasks, Body, Depends, HTTPException, Query, status

from ...api.dependencies import (
    get_appointment_service,
    get_current_user_id,
    get_rating_service,
    require_booking_schema,
    require_database,
)
from ...core.exceptions import DomainException
from ...models.appointment import Appointment
from ...models.rating import AppointmentRating
from ...schemas.appointment import (
    AppointmentCreate,
    AppointmentListItem,
    AppointmentListResponse,
    AppointmentResponse,
    AppointmentUpdate,
    RatingCreate,
    RatingResponse,
    TrainerScheduleResponse,
)
from ...schemas.base_responses import DeleteResponse
from ...services.appointment_service import AppointmentListing, AppointmentService
from ...services.rating_service import RatingService, refresh_trainer_rating_aggregate_task
from ...utils.time_helpers import time_to_string

logger = logging.getLogger(__name__)

# V1 router - no prefix here, will be added when mounting in main.py
router = APIRouter(
    tags=["appointments-v1"],
    dependencies=[Depends(require_booking_schema), Depends(require_database)],
)


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


def _appointment_fields(appointment: Appointment) -> Dict[str, Any]:
    return {
        "id": appointment.id,
        "trainer_id": appointment.trainer_id,
        "client_id": appointment.client_id,
        "date": appointment.appointment_date.isoformat(),
        "start_time": time_to_string(appointment.start_time),
        "end_time": time_to_string(appointment.end_time),
        "status": appointment.status,
        "notes": appointment.notes,
        "created_at": appointment.created_at,
        "updated_at": appointment.updated_at,
    }


def _appointment_response(appointment: Appointment) -> AppointmentResponse:
    return AppointmentResponse(**_appointment_fields(appointment))


def _list_item(listing: AppointmentListing, role: str) -> AppointmentListItem:
    appointment = listing.appointment
    counterpart = listing.counterpart
    counterpart_id = appointment.client_id if role == "trainer" else appointment.trainer_id
    return AppointmentListItem(
        **_appointment_fields(appointment),
        counterpart_id=counterpart_id,
        counterpart_name=counterpart.name if counterpart else None,
        counterpart_avatar=counterpart.avatar_url if counterpart else None,
        rated=listing.rated,
    )


def _rating_response(rating: AppointmentRating) -> RatingResponse:
    return RatingResponse(
        id=rating.id,
        appointment_id=rating.appointment_id,
        author_id=rating.author_id,
        trainer_id=rating.target_trainer_id,
        rating_professional=rating.professional_score,
        rating_training=rating.training_score,
        comment=rating.comment,
        created_at=rating.created_at,
    )


# ============================================================================
# SECTION 1: Static routes (no path parameters)
# ============================================================================


@router.post(
    "",
    response_model=AppointmentResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Missing or invalid field"},
        409: {"description": "Outside availability or slot already booked"},
    },
)
async def create_appointment(
    payload: AppointmentCreate = Body(...),
    current_user_id: int = Depends(get_current_user_id),
    appointment_service: AppointmentService = Depends(get_appointment_service),
) -> AppointmentResponse:
    """Book a session with a trainer; the caller is the client."""
    try:
        appointment = await asyncio.to_thread(
            appointment_service.create_appointment,
            client_id=current_user_id,
            trainer_id=payload.trainer_id,
            on_date=payload.date,
            start_time=payload.start_time,
            end_time=payload.end_time,
            notes=payload.notes,
        )
    except DomainException as e:
        handle_domain_exception(e)
    return _appointment_response(appointment)


@router.get("", response_model=AppointmentListResponse)
async def list_appointments(
    role: str = Query("client", description="client or trainer"),
    current_user_id: int = Depends(get_current_user_id),
    appointment_service: AppointmentService = Depends(get_appointment_service),
) -> AppointmentListResponse:
    """Caller's appointments, newest first."""
    try:
        listings = await asyncio.to_thread(
            appointment_service.list_appointments, current_user_id, role
        )
    except DomainException as e:
        handle_domain_exception(e)

    normalized_role = role.strip().lower()
    items = [_list_item(listing, normalized_role) for listing in listings]
    return AppointmentListResponse(appointments=items, total=len(items))


@router.get("/trainer/{trainer_id}", response_model=TrainerScheduleResponse)
async def get_trainer_appointments(
    trainer_id: int,
    date: Optional[str] = Query(None, description="YYYY-MM-DD"),
    appointment_service: AppointmentService = Depends(get_appointment_service),
) -> TrainerScheduleResponse:
    """Public schedule of a trainer, optionally restricted to one date."""
    try:
        appointments = await asyncio.to_thread(
            appointment_service.list_trainer_appointments, trainer_id, date
        )
    except DomainException as e:
        handle_domain_exception(e)
    return TrainerScheduleResponse(
        trainer_id=trainer_id,
        appointments=[_appointment_response(appt) for appt in appointments],
    )


# ============================================================================
# SECTION 2: Dynamic routes (with path parameters)
# ============================================================================


@router.put("/{appointment_id}", response_model=AppointmentResponse)
async def update_appointment(
    appointment_id: str,
    payload: AppointmentUpdate = Body(...),
    current_user_id: int = Depends(get_current_user_id),
    appointment_service: AppointmentService = Depends(get_appointment_service),
) -> AppointmentResponse:
    """Partially update status and/or notes; trainer or client only."""
    changes: Dict[str, Any] = {}
    if payload.status is not None:
        changes["status"] = payload.status
    if "notes" in payload.model_fields_set:
        changes["notes"] = payload.notes

    try:
        appointment = await asyncio.to_thread(
            appointment_service.update_appointment, appointment_id, current_user_id, **changes
        )
    except DomainException as e:
        handle_domain_exception(e)
    return _appointment_response(appointment)


@router.delete("/{appointment_id}", response_model=DeleteResponse)
async def cancel_appointment(
    appointment_id: str,
    current_user_id: int = Depends(get_current_user_id),
    appointment_service: AppointmentService = Depends(get_appointment_service),
) -> DeleteResponse:
    """Cancel an appointment; the row is removed."""
    try:
        await asyncio.to_thread(
            appointment_service.cancel_appointment, appointment_id, current_user_id
        )
    except DomainException as e:
        handle_domain_exception(e)
    return DeleteResponse(success=True, message="Appointment cancelled")


@router.post(
    "/{appointment_id}/rate",
    response_model=RatingResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        404: {"description": "Appointment not found or not completed"},
        409: {"description": "Appointment already rated"},
    },
)
async def rate_appointment(
    appointment_id: str,
    background_tasks: BackgroundTasks,
    payload: RatingCreate = Body(...),
    current_user_id: int = Depends(get_current_user_id),
    rating_service: RatingService = Depends(get_rating_service),
) -> RatingResponse:
    """
    Rate a completed appointment.

    The trainer's profile aggregate is refreshed after the response is sent.
    """
    try:
        rating = await asyncio.to_thread(
            rating_service.rate_appointment,
            appointment_id=appointment_id,
            author_id=current_user_id,
            professional_score=payload.rating_professional,
            training_score=payload.rating_training,
            comment=payload.comment,
            trainer_id=payload.trainer_id,
        )
    except DomainException as e:
        handle_domain_exception(e)

    background_tasks.add_task(refresh_trainer_rating_aggregate_task, rating.target_trainer_id)
    return _rating_response(rating)

# backend/app/schemas/appointment.py
"""
Appointment and rating schemas for the MOVT API.

Request fields are optional at the schema level so that a missing field is
reported by the service as MISSING_FIELD (400) with the field names, rather
than as a generic 422.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from ._strict_base import CamelResponseModel, StrictRequestModel


class AppointmentCreate(StrictRequestModel):
    """Book a session; the client is the authenticated caller."""

    trainer_id: Optional[int] = Field(None, alias="trainerId")
    date: Optional[str] = Field(None, description="YYYY-MM-DD")
    start_time: Optional[str] = Field(None, alias="startTime", description="HH:MM")
    end_time: Optional[str] = Field(None, alias="endTime", description="HH:MM")
    notes: Optional[str] = Field(None, max_length=2000)


class AppointmentUpdate(StrictRequestModel):
    """
    Partial update of status and/or notes.

    ``notas`` is the mobile client's key for notes; ``notes`` is accepted too.
    Status accepts English or Portuguese lexemes.
    """

    status: Optional[str] = None
    notes: Optional[str] = Field(None, alias="notas", max_length=2000)


class RatingCreate(StrictRequestModel):
    rating_professional: Optional[int] = Field(None, alias="ratingProfessional")
    rating_training: Optional[int] = Field(None, alias="ratingTraining")
    comment: Optional[str] = Field(None, max_length=2000)
    trainer_id: Optional[int] = Field(None, alias="trainerId")


class AppointmentResponse(CamelResponseModel):
    id: str
    trainer_id: int
    client_id: int
    date: str
    start_time: str
    end_time: str
    status: str
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class AppointmentListItem(AppointmentResponse):
    """Appointment with the other party's profile, for the caller's list."""

    counterpart_id: int
    counterpart_name: Optional[str] = None
    counterpart_avatar: Optional[str] = None
    rated: Optional[bool] = None


class AppointmentListResponse(CamelResponseModel):
    appointments: List[AppointmentListItem] = Field(default_factory=list)
    total: int = 0


class TrainerScheduleResponse(CamelResponseModel):
    trainer_id: int
    appointments: List[AppointmentResponse] = Field(default_factory=list)


class RatingResponse(CamelResponseModel):
    id: str
    appointment_id: str
    author_id: int
    trainer_id: int
    rating_professional: int
    rating_training: int
    comment: Optional[str] = None
    created_at: Optional[datetime] = None

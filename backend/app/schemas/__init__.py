# backend/app/schemas/__init__.py
"""
Pydantic schemas for the MOVT API.

Booking-side responses use camelCase keys; chat responses keep the
snake_case keys of the realtime store.
"""

from .appointment import (
    AppointmentCreate,
    AppointmentListItem,
    AppointmentListResponse,
    AppointmentResponse,
    AppointmentUpdate,
    RatingCreate,
    RatingResponse,
    TrainerScheduleResponse,
)
from .availability import (
    AvailabilityResponse,
    AvailabilityWindowResponse,
    DayAvailabilityResponse,
    TimeSlot,
    WeeklyAvailabilityResponse,
)
from .base_responses import DeleteResponse, SuccessResponse
from .chat import (
    CreateThreadRequest,
    CreateThreadResponse,
    DeleteMessageResponse,
    MarkReadResponse,
    MessageResponse,
    MessagesResponse,
    SendMessageRequest,
    ThreadListItem,
    ThreadListResponse,
    ThreadResponse,
)
from .health import DatabaseHealthResponse, HealthResponse

__all__ = [
    # Appointments
    "AppointmentCreate",
    "AppointmentListItem",
    "AppointmentListResponse",
    "AppointmentResponse",
    "AppointmentUpdate",
    "RatingCreate",
    "RatingResponse",
    "TrainerScheduleResponse",
    # Availability
    "AvailabilityResponse",
    "AvailabilityWindowResponse",
    "DayAvailabilityResponse",
    "TimeSlot",
    "WeeklyAvailabilityResponse",
    # Common
    "DeleteResponse",
    "SuccessResponse",
    # Chat
    "CreateThreadRequest",
    "CreateThreadResponse",
    "DeleteMessageResponse",
    "MarkReadResponse",
    "MessageResponse",
    "MessagesResponse",
    "SendMessageRequest",
    "ThreadListItem",
    "ThreadListResponse",
    "ThreadResponse",
    # Health
    "DatabaseHealthResponse",
    "HealthResponse",
]

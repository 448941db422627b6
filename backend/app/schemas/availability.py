# backend/app/schemas/availability.py
"""
Availability schemas for the MOVT API.

Two response shapes share one endpoint: the trainer's weekly windows when no
date is given, and the free/booked hourly slots of a single date otherwise.
"""

from typing import List, Optional, Union

from pydantic import Field

from ._strict_base import CamelResponseModel


class TimeSlot(CamelResponseModel):
    """Half-open ``[startTime, endTime)`` interval, HH:MM strings."""

    start_time: str = Field(..., description="HH:MM")
    end_time: str = Field(..., description="HH:MM")


class AvailabilityWindowResponse(CamelResponseModel):
    id: str
    day_of_week: int = Field(..., ge=0, le=6, description="0 = Sunday")
    start_time: str
    end_time: str


class WeeklyAvailabilityResponse(CamelResponseModel):
    """All active windows of a trainer, ordered by (dayOfWeek, startTime)."""

    trainer_id: int
    available: bool
    windows: List[AvailabilityWindowResponse] = Field(default_factory=list)


class DayAvailabilityResponse(CamelResponseModel):
    """Bookable hourly slots of a trainer on one date."""

    date: str
    day_of_week: int
    available: bool
    available_slots: List[TimeSlot] = Field(default_factory=list)
    booked_slots: List[TimeSlot] = Field(default_factory=list)
    message: Optional[str] = None


AvailabilityResponse = Union[DayAvailabilityResponse, WeeklyAvailabilityResponse]

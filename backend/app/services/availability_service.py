# backend/app/services/availability_service.py
"""
Availability Service for the MOVT backend.

Turns a trainer's weekly windows into bookable hourly slots for a specific
date, excluding slots whose start falls inside an active appointment.
"""

from dataclasses import dataclass, field
from datetime import date
import logging
from typing import List, Optional, Union

from sqlalchemy.orm import Session

from ..core.exceptions import ValidationException
from ..models.availability import TrainerAvailabilityWindow
from ..repositories.factory import RepositoryFactory
from ..utils.time_helpers import day_of_week, hourly_slots, parse_iso_date, string_to_time, time_to_string
from .base import BaseService

logger = logging.getLogger(__name__)


@dataclass
class Slot:
    start_time: str
    end_time: str


@dataclass
class DayAvailability:
    """Availability of one trainer on one calendar date."""

    date: str
    day_of_week: int
    available: bool
    available_slots: List[Slot] = field(default_factory=list)
    booked_slots: List[Slot] = field(default_factory=list)
    message: Optional[str] = None


@dataclass
class WeeklyAvailability:
    """All active windows of a trainer (no date requested)."""

    trainer_id: int
    windows: List[TrainerAvailabilityWindow]

    @property
    def available(self) -> bool:
        return bool(self.windows)


def parse_request_date(value: Union[str, date, None]) -> Optional[date]:
    if value is None or value == "":
        return None
    try:
        return parse_iso_date(value)
    except ValueError as exc:
        raise ValidationException(
            "Invalid date, expected YYYY-MM-DD",
            code="INVALID_DATE",
            details={"date": str(value)},
        ) from exc


class AvailabilityService(BaseService):
    """
    Computes free slots from windows and active appointments.

    Slot rules:
    - each window yields [h:00, h+1:00) for every whole hour h in
      [start hour, end hour)
    - a slot is taken when its start lies in a booked [start, end)
    - slots are de-duplicated across overlapping windows, keeping first order
    """

    def __init__(self, db: Session):
        super().__init__(db)
        self.availability_repository = RepositoryFactory.create_availability_repository(db)
        self.appointment_repository = RepositoryFactory.create_appointment_repository(db)

    @BaseService.measure_operation("get_availability")
    def get_availability(
        self, trainer_id: int, on_date: Union[str, date, None] = None
    ) -> Union[WeeklyAvailability, DayAvailability]:
        requested = parse_request_date(on_date)
        if requested is None:
            windows = self.availability_repository.list_active_windows(trainer_id)
            return WeeklyAvailability(trainer_id=trainer_id, windows=windows)
        return self.get_day_availability(trainer_id, requested)

    def get_day_availability(self, trainer_id: int, requested: date) -> DayAvailability:
        weekday = day_of_week(requested)
        windows = self.availability_repository.list_windows_for_day(trainer_id, weekday)
        if not windows:
            return DayAvailability(
                date=requested.isoformat(),
                day_of_week=weekday,
                available=False,
                message="Trainer is not available on this day",
            )

        booked = self.appointment_repository.get_active_for_date(trainer_id, requested)
        booked_ranges = [(appt.start_time, appt.end_time) for appt in booked]

        seen: set[tuple[str, str]] = set()
        free: List[Slot] = []
        for window in windows:
            for slot_start, slot_end in hourly_slots(window.start_time, window.end_time):
                if (slot_start, slot_end) in seen:
                    continue
                start_value = string_to_time(slot_start)
                if any(b_start <= start_value < b_end for b_start, b_end in booked_ranges):
                    continue
                seen.add((slot_start, slot_end))
                free.append(Slot(start_time=slot_start, end_time=slot_end))

        return DayAvailability(
            date=requested.isoformat(),
            day_of_week=weekday,
            available=bool(free),
            available_slots=free,
            booked_slots=[
                Slot(start_time=time_to_string(b_start), end_time=time_to_string(b_end))
                for b_start, b_end in booked_ranges
            ],
        )

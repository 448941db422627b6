"""AvailabilityService: weekly windows and per-date hourly slots."""

from datetime import date, time

import pytest
from sqlalchemy.orm import Session

from app.core.enums import AppointmentStatus
from app.core.exceptions import ValidationException
from app.services.availability_service import (
    AvailabilityService,
    DayAvailability,
    WeeklyAvailability,
)

MONDAY = date(2030, 1, 7)
TUESDAY = date(2030, 1, 8)


def _starts(result: DayAvailability) -> list:
    return [slot.start_time for slot in result.available_slots]


class TestWeeklyView:
    def test_lists_active_windows_in_week_order(self, db: Session, trainer, window_factory):
        window_factory(trainer, 3, time(14), time(16))
        window_factory(trainer, 1, time(10), time(12))
        window_factory(trainer, 1, time(8), time(9))
        window_factory(trainer, 5, time(8), time(9), active=False)

        result = AvailabilityService(db).get_availability(trainer.id)

        assert isinstance(result, WeeklyAvailability)
        assert result.available is True
        assert [(w.day_of_week, w.start_time) for w in result.windows] == [
            (1, time(8)),
            (1, time(10)),
            (3, time(14)),
        ]

    def test_trainer_without_windows(self, db: Session, trainer):
        result = AvailabilityService(db).get_availability(trainer.id, "")

        assert isinstance(result, WeeklyAvailability)
        assert result.available is False
        assert result.windows == []


class TestDayView:
    def test_hourly_slots_for_window(self, db: Session, trainer, monday_window):
        result = AvailabilityService(db).get_availability(trainer.id, "2030-01-07")

        assert isinstance(result, DayAvailability)
        assert result.day_of_week == 1
        assert result.available is True
        assert _starts(result) == ["08:00", "09:00", "10:00", "11:00"]
        assert result.available_slots[-1].end_time == "12:00"
        assert result.booked_slots == []

    def test_no_window_on_that_weekday(self, db: Session, trainer, monday_window):
        result = AvailabilityService(db).get_availability(trainer.id, TUESDAY)

        assert result.available is False
        assert result.available_slots == []
        assert result.message == "Trainer is not available on this day"
        assert result.day_of_week == 2

    def test_booked_slot_is_removed(
        self, db: Session, trainer, client_user, monday_window, appointment_factory
    ):
        appointment_factory(trainer, client_user, MONDAY, time(9), time(10))

        result = AvailabilityService(db).get_availability(trainer.id, MONDAY)

        assert _starts(result) == ["08:00", "10:00", "11:00"]
        assert [(s.start_time, s.end_time) for s in result.booked_slots] == [("09:00", "10:00")]

    def test_slot_is_taken_only_when_its_start_falls_in_a_booking(
        self, db: Session, trainer, client_user, monday_window, appointment_factory
    ):
        appointment_factory(trainer, client_user, MONDAY, time(9, 30), time(10, 30))

        result = AvailabilityService(db).get_availability(trainer.id, MONDAY)

        # 09:00 starts before the booking; 10:00 starts inside it
        assert _starts(result) == ["08:00", "09:00", "11:00"]

    def test_inactive_appointments_do_not_block(
        self, db: Session, trainer, client_user, monday_window, appointment_factory
    ):
        appointment_factory(
            trainer, client_user, MONDAY, time(9), time(10), status=AppointmentStatus.CANCELLED
        )
        appointment_factory(
            trainer, client_user, MONDAY, time(10), time(11), status=AppointmentStatus.COMPLETED
        )

        result = AvailabilityService(db).get_availability(trainer.id, MONDAY)

        assert _starts(result) == ["08:00", "09:00", "10:00", "11:00"]

    def test_overlapping_windows_are_deduplicated(self, db: Session, trainer, window_factory):
        window_factory(trainer, 1, time(8), time(10))
        window_factory(trainer, 1, time(9), time(11))

        result = AvailabilityService(db).get_availability(trainer.id, MONDAY)

        assert _starts(result) == ["08:00", "09:00", "10:00"]

    def test_fully_booked_day_is_unavailable(
        self, db: Session, trainer, client_user, window_factory, appointment_factory
    ):
        window_factory(trainer, 1, time(8), time(9))
        appointment_factory(trainer, client_user, MONDAY, time(8), time(9))

        result = AvailabilityService(db).get_availability(trainer.id, MONDAY)

        assert result.available is False
        assert result.available_slots == []

    def test_invalid_date(self, db: Session, trainer):
        with pytest.raises(ValidationException) as exc_info:
            AvailabilityService(db).get_availability(trainer.id, "not-a-date")
        assert exc_info.value.code == "INVALID_DATE"

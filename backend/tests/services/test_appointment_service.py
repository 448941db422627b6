"""AppointmentService: booking rules, updates, cancellation and listings."""

from datetime import date, time
from unittest.mock import patch

import pytest
from sqlalchemy.orm import Session

from app.core.enums import AppointmentStatus
from app.core.exceptions import (
    ForbiddenException,
    MissingFieldException,
    NoAvailabilityThisDayException,
    NotFoundException,
    OutsideAvailabilityException,
    SlotConflictException,
    ValidationException,
)
from app.models import Appointment
from app.repositories.appointment_repository import AppointmentRepository
from app.services.appointment_service import AppointmentService

MONDAY = date(2030, 1, 7)
TUESDAY = date(2030, 1, 8)


@pytest.fixture
def service(db: Session) -> AppointmentService:
    return AppointmentService(db)


class TestCreateAppointment:
    def test_books_pending_session(self, service, trainer, client_user, monday_window):
        appointment = service.create_appointment(
            client_id=client_user.id,
            trainer_id=trainer.id,
            on_date="2030-01-07",
            start_time="09:00",
            end_time="10:00",
            notes="Leg day",
        )

        assert appointment.id
        assert appointment.status == AppointmentStatus.PENDING.value
        assert appointment.appointment_date == MONDAY
        assert appointment.start_time == time(9) and appointment.end_time == time(10)
        assert appointment.notes == "Leg day"

    def test_missing_fields_are_named(self, service, client_user):
        with pytest.raises(MissingFieldException) as exc_info:
            service.create_appointment(
                client_id=client_user.id, trainer_id=None, on_date="2030-01-07",
                start_time=None, end_time="10:00",
            )
        assert exc_info.value.details["fields"] == ["trainerId", "startTime"]

    def test_start_must_precede_end(self, service, trainer, client_user, monday_window):
        with pytest.raises(ValidationException) as exc_info:
            service.create_appointment(client_user.id, trainer.id, MONDAY, "10:00", "10:00")
        assert exc_info.value.code == "INVALID_TIME_RANGE"

    def test_malformed_time(self, service, trainer, client_user, monday_window):
        with pytest.raises(ValidationException) as exc_info:
            service.create_appointment(client_user.id, trainer.id, MONDAY, "9am", "10:00")
        assert exc_info.value.code == "INVALID_TIME"

    def test_cannot_book_yourself(self, service, trainer, monday_window):
        with pytest.raises(ValidationException) as exc_info:
            service.create_appointment(trainer.id, trainer.id, MONDAY, "09:00", "10:00")
        assert exc_info.value.code == "SELF_BOOKING"

    def test_no_window_that_day(self, service, trainer, client_user, monday_window):
        with pytest.raises(NoAvailabilityThisDayException) as exc_info:
            service.create_appointment(client_user.id, trainer.id, TUESDAY, "09:00", "10:00")
        assert exc_info.value.details["dayOfWeek"] == 2

    def test_outside_window(self, service, trainer, client_user, monday_window):
        with pytest.raises(OutsideAvailabilityException):
            service.create_appointment(client_user.id, trainer.id, MONDAY, "11:00", "13:00")

    def test_must_fit_in_a_single_window(self, service, trainer, client_user, window_factory):
        window_factory(trainer, 1, time(8), time(10))
        window_factory(trainer, 1, time(10), time(12))

        with pytest.raises(OutsideAvailabilityException):
            service.create_appointment(client_user.id, trainer.id, MONDAY, "09:00", "11:00")

    def test_overlap_is_rejected(self, service, trainer, client_user, monday_window, appointment_factory):
        existing = appointment_factory(trainer, client_user, MONDAY, time(9), time(10))

        with pytest.raises(SlotConflictException) as exc_info:
            service.create_appointment(client_user.id, trainer.id, MONDAY, "09:30", "10:30")
        assert exc_info.value.details["conflicting_ids"] == [existing.id]

    def test_back_to_back_is_allowed(self, service, trainer, client_user, monday_window, appointment_factory):
        appointment_factory(trainer, client_user, MONDAY, time(9), time(10))

        appointment = service.create_appointment(client_user.id, trainer.id, MONDAY, "10:00", "11:00")

        assert appointment.start_time == time(10)

    def test_cancelled_slot_can_be_rebooked(
        self, service, trainer, client_user, monday_window, appointment_factory
    ):
        appointment_factory(
            trainer, client_user, MONDAY, time(9), time(10), status=AppointmentStatus.CANCELLED
        )

        appointment = service.create_appointment(client_user.id, trainer.id, MONDAY, "09:00", "10:00")

        assert appointment.status == "pending"

    def test_storage_constraint_backs_up_the_precheck(
        self, db: Session, service, trainer, client_user, monday_window
    ):
        service.create_appointment(client_user.id, trainer.id, MONDAY, "09:00", "10:00")

        # Simulate a racing request whose overlap check ran before the first insert
        with patch.object(AppointmentRepository, "find_overlapping", return_value=[]):
            with pytest.raises(SlotConflictException):
                service.create_appointment(client_user.id, trainer.id, MONDAY, "09:00", "10:00")

        assert db.query(Appointment).count() == 1


class TestUpdateAppointment:
    def test_portuguese_status_is_stored_in_english(
        self, service, trainer, client_user, appointment_factory
    ):
        appointment = appointment_factory(trainer, client_user, MONDAY, time(9), time(10))

        updated = service.update_appointment(appointment.id, trainer.id, status="concluído")

        assert updated.status == "completed"

    def test_invalid_status(self, service, trainer, client_user, appointment_factory):
        appointment = appointment_factory(trainer, client_user, MONDAY, time(9), time(10))

        with pytest.raises(ValidationException) as exc_info:
            service.update_appointment(appointment.id, trainer.id, status="finished")
        assert exc_info.value.code == "INVALID_STATUS"

    def test_notes_left_out_are_kept_and_none_clears(
        self, service, trainer, client_user, appointment_factory
    ):
        appointment = appointment_factory(
            trainer, client_user, MONDAY, time(9), time(10), notes="bring water"
        )

        kept = service.update_appointment(appointment.id, client_user.id, status="confirmed")
        assert kept.notes == "bring water"
        assert kept.status == "confirmed"

        cleared = service.update_appointment(appointment.id, client_user.id, notes=None)
        assert cleared.notes is None
        assert cleared.status == "confirmed"

    def test_only_participants_may_update(
        self, service, trainer, client_user, outsider, appointment_factory
    ):
        appointment = appointment_factory(trainer, client_user, MONDAY, time(9), time(10))

        with pytest.raises(ForbiddenException):
            service.update_appointment(appointment.id, outsider.id, status="cancelled")

    def test_unknown_appointment(self, service, trainer):
        with pytest.raises(NotFoundException):
            service.update_appointment("01HZZZZZZZZZZZZZZZZZZZZZZZ", trainer.id, status="cancelled")

    def test_reactivation_rechecks_overlap(
        self, service, trainer, client_user, outsider, appointment_factory
    ):
        cancelled = appointment_factory(
            trainer, client_user, MONDAY, time(9), time(10), status=AppointmentStatus.CANCELLED
        )
        appointment_factory(trainer, outsider, MONDAY, time(9), time(10))

        with pytest.raises(SlotConflictException):
            service.update_appointment(cancelled.id, client_user.id, status="pendente")


class TestCancelAppointment:
    def test_participant_cancels_and_row_is_removed(
        self, db: Session, service, trainer, client_user, appointment_factory
    ):
        appointment = appointment_factory(trainer, client_user, MONDAY, time(9), time(10))

        service.cancel_appointment(appointment.id, client_user.id)

        assert db.query(Appointment).filter_by(id=appointment.id).first() is None

    def test_outsider_cannot_cancel(self, service, trainer, client_user, outsider, appointment_factory):
        appointment = appointment_factory(trainer, client_user, MONDAY, time(9), time(10))

        with pytest.raises(ForbiddenException):
            service.cancel_appointment(appointment.id, outsider.id)


class TestListings:
    def test_client_view_has_trainer_counterpart(
        self, service, trainer, client_user, appointment_factory
    ):
        appointment_factory(trainer, client_user, MONDAY, time(9), time(10))

        listings = service.list_appointments(client_user.id, "client")

        assert len(listings) == 1
        assert listings[0].counterpart.id == trainer.id
        assert listings[0].rated is False

    def test_trainer_view_has_client_counterpart(
        self, service, trainer, client_user, appointment_factory
    ):
        appointment_factory(trainer, client_user, MONDAY, time(9), time(10))

        listings = service.list_appointments(trainer.id, "TRAINER")

        assert listings[0].counterpart.id == client_user.id
        assert listings[0].rated is None

    def test_invalid_role(self, service, client_user):
        with pytest.raises(ValidationException):
            service.list_appointments(client_user.id, "admin")

    def test_trainer_schedule_filters_by_date(
        self, service, trainer, client_user, appointment_factory
    ):
        appointment_factory(trainer, client_user, MONDAY, time(10), time(11))
        appointment_factory(trainer, client_user, MONDAY, time(8), time(9))
        appointment_factory(trainer, client_user, date(2030, 1, 14), time(8), time(9))

        on_monday = service.list_trainer_appointments(trainer.id, "2030-01-07")
        everything = service.list_trainer_appointments(trainer.id)

        assert [a.start_time for a in on_monday] == [time(8), time(10)]
        assert len(everything) == 3
        assert everything[0].appointment_date == date(2030, 1, 14)

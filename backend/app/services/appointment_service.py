# backend/app/services/appointment_service.py
"""
Appointment Service for the MOVT booking engine.

Owns booking creation (containment in a weekly window plus overlap checks),
status/notes updates, cancellation and the appointment listings.

Double-booking protection is layered:
1. PostgreSQL advisory lock on (trainer, date) around check-then-insert
2. Overlap pre-check against pending/confirmed appointments
3. Storage constraints (partial unique index, exclusion constraint); an
   IntegrityError surfaces as the same SlotConflictException
"""

from dataclasses import dataclass
from datetime import date, time
import logging
from typing import Any, List, Optional, Union

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.enums import AppointmentStatus, normalize_status
from ..core.exceptions import (
    ForbiddenException,
    MissingFieldException,
    NoAvailabilityThisDayException,
    NotFoundException,
    OutsideAvailabilityException,
    RepositoryException,
    ServiceException,
    SlotConflictException,
    ValidationException,
    is_integrity_violation,
)
from ..models.appointment import Appointment
from ..models.user import User
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from ..utils.time_helpers import day_of_week, string_to_time, time_to_string
from .availability_service import parse_request_date
from .base import BaseService

logger = logging.getLogger(__name__)

_UNSET: Any = object()


@dataclass
class AppointmentListing:
    """Appointment plus the counterpart's profile for list views."""

    appointment: Appointment
    counterpart: Optional[User]
    rated: Optional[bool] = None


def _parse_time_field(name: str, value: Union[str, time]) -> time:
    if isinstance(value, time):
        return value
    try:
        return string_to_time(str(value))
    except ValueError as exc:
        raise ValidationException(
            f"Invalid {name}, expected HH:MM",
            code="INVALID_TIME",
            details={name: str(value)},
        ) from exc


class AppointmentService(BaseService):
    """
    Service layer for appointment lifecycle.

    All operations raise domain exceptions; routes translate them to HTTP.
    """

    def __init__(self, db: Session):
        super().__init__(db)
        self.repository = RepositoryFactory.create_appointment_repository(db)
        self.availability_repository = RepositoryFactory.create_availability_repository(db)
        self.user_repository = RepositoryFactory.create_user_repository(db)

    @BaseService.measure_operation("create_appointment")
    def create_appointment(
        self,
        client_id: int,
        trainer_id: Optional[int],
        on_date: Union[str, date, None],
        start_time: Union[str, time, None],
        end_time: Union[str, time, None],
        notes: Optional[str] = None,
    ) -> Appointment:
        """
        Book a session for ``client_id`` with ``trainer_id``.

        Raises:
            MissingFieldException: trainer, date, start or end missing
            ValidationException: malformed date/time, start >= end, self-booking
            NoAvailabilityThisDayException: no active window on that weekday
            OutsideAvailabilityException: interval not inside any window
            SlotConflictException: overlaps a pending/confirmed appointment
        """
        missing = [
            name
            for name, value in (
                ("trainerId", trainer_id),
                ("date", on_date),
                ("startTime", start_time),
                ("endTime", end_time),
            )
            if value is None or value == ""
        ]
        if missing:
            raise MissingFieldException(*missing)

        requested_date = parse_request_date(on_date) or date.min
        start_value = _parse_time_field("startTime", start_time)
        end_value = _parse_time_field("endTime", end_time)
        if start_value >= end_value:
            raise ValidationException(
                "startTime must be before endTime",
                code="INVALID_TIME_RANGE",
                details={"startTime": time_to_string(start_value), "endTime": time_to_string(end_value)},
            )
        if int(trainer_id) == int(client_id):
            raise ValidationException("Trainers cannot book themselves", code="SELF_BOOKING")

        self.log_operation(
            "create_appointment",
            trainer_id=trainer_id,
            client_id=client_id,
            date=requested_date.isoformat(),
            start=time_to_string(start_value),
            end=time_to_string(end_value),
        )

        try:
            with self.transaction():
                self.repository.lock_trainer_day(int(trainer_id), requested_date)
                self._ensure_within_availability(int(trainer_id), requested_date, start_value, end_value)
                self._ensure_no_overlap(int(trainer_id), requested_date, start_value, end_value)
                appointment = self.repository.create(
                    trainer_id=int(trainer_id),
                    client_id=client_id,
                    appointment_date=requested_date,
                    start_time=start_value,
                    end_time=end_value,
                    status=AppointmentStatus.PENDING.value,
                    notes=notes,
                )
        except (RepositoryException, ServiceException) as exc:
            if is_integrity_violation(exc):
                prometheus_metrics.inc_booking_conflict("storage")
                raise SlotConflictException(
                    details=self._conflict_details(requested_date, start_value, end_value)
                ) from exc
            raise

        return appointment

    def _ensure_within_availability(
        self, trainer_id: int, requested_date: date, start_value: time, end_value: time
    ) -> None:
        weekday = day_of_week(requested_date)
        windows = self.availability_repository.list_windows_for_day(trainer_id, weekday)
        if not windows:
            raise NoAvailabilityThisDayException(day_of_week=weekday, date=requested_date.isoformat())

        contained = any(
            window.start_time <= start_value and end_value <= window.end_time for window in windows
        )
        if not contained:
            raise OutsideAvailabilityException(
                requested=f"{time_to_string(start_value)}-{time_to_string(end_value)}",
                day_of_week=weekday,
            )

    def _ensure_no_overlap(
        self,
        trainer_id: int,
        requested_date: date,
        start_value: time,
        end_value: time,
        exclude_id: Optional[str] = None,
    ) -> None:
        conflicts = self.repository.find_overlapping(
            trainer_id, requested_date, start_value, end_value, exclude_id=exclude_id
        )
        if conflicts:
            prometheus_metrics.inc_booking_conflict("precheck")
            details = self._conflict_details(requested_date, start_value, end_value)
            details["conflicting_ids"] = [appt.id for appt in conflicts]
            raise SlotConflictException(details=details)

    @staticmethod
    def _conflict_details(requested_date: date, start_value: time, end_value: time) -> dict:
        return {
            "date": requested_date.isoformat(),
            "startTime": time_to_string(start_value),
            "endTime": time_to_string(end_value),
        }

    def _get_for_participant(self, appointment_id: str, requester_id: int) -> Appointment:
        appointment = self.repository.get_by_id(appointment_id)
        if appointment is None:
            raise NotFoundException("Appointment not found", details={"appointment_id": appointment_id})
        if not appointment.is_participant(requester_id):
            raise ForbiddenException(
                "Only the trainer or the client can change this appointment",
                details={"appointment_id": appointment_id},
            )
        return appointment

    @BaseService.measure_operation("update_appointment")
    def update_appointment(
        self,
        appointment_id: str,
        requester_id: int,
        status: Optional[str] = None,
        notes: Any = _UNSET,
    ) -> Appointment:
        """
        Partially update status and/or notes.

        ``notes`` left unset keeps the stored value; passing None clears it.
        Re-activating an appointment re-runs the overlap check.
        """
        appointment = self._get_for_participant(appointment_id, requester_id)

        new_status: Optional[AppointmentStatus] = None
        if status is not None:
            new_status = normalize_status(status)
            if new_status is None:
                raise ValidationException(
                    "Invalid status",
                    code="INVALID_STATUS",
                    details={"status": status, "allowed": [s.value for s in AppointmentStatus]},
                )

        try:
            with self.transaction():
                if new_status is not None:
                    current = normalize_status(appointment.status)
                    reactivating = new_status in AppointmentStatus.active() and current not in AppointmentStatus.active()
                    if reactivating:
                        self._ensure_no_overlap(
                            appointment.trainer_id,
                            appointment.appointment_date,
                            appointment.start_time,
                            appointment.end_time,
                            exclude_id=appointment.id,
                        )
                    appointment.status = new_status.value
                if notes is not _UNSET:
                    appointment.notes = notes
                self.repository.flush()
        except (RepositoryException, ServiceException) as exc:
            if is_integrity_violation(exc):
                raise SlotConflictException(
                    details=self._conflict_details(
                        appointment.appointment_date, appointment.start_time, appointment.end_time
                    )
                ) from exc
            raise

        self.log_operation(
            "update_appointment",
            appointment_id=appointment_id,
            requester_id=requester_id,
            status=appointment.status,
        )
        return appointment

    @BaseService.measure_operation("cancel_appointment")
    def cancel_appointment(self, appointment_id: str, requester_id: int) -> None:
        """Delete the appointment; only its trainer or client may do so."""
        appointment = self._get_for_participant(appointment_id, requester_id)
        with self.transaction():
            self.repository.delete(appointment.id)
        self.log_operation("cancel_appointment", appointment_id=appointment_id, requester_id=requester_id)

    @BaseService.measure_operation("list_appointments")
    def list_appointments(self, requester_id: int, role: str = "client") -> List[AppointmentListing]:
        """
        Caller's appointments, newest first.

        ``role=client`` lists sessions the caller booked (with a ``rated`` flag),
        ``role=trainer`` sessions booked with the caller.
        """
        normalized_role = (role or "client").strip().lower()
        if normalized_role not in {"client", "trainer"}:
            raise ValidationException("role must be 'client' or 'trainer'", code="INVALID_ROLE")

        limit = settings.appointment_list_limit
        if normalized_role == "trainer":
            rows = [(appt, None) for appt in self.repository.list_for_trainer(requester_id, limit)]
            users = self.user_repository.get_many(appt.client_id for appt, _ in rows)
            return [
                AppointmentListing(appointment=appt, counterpart=users.get(appt.client_id))
                for appt, _ in rows
            ]

        rated_rows = self.repository.list_for_client(requester_id, limit)
        users = self.user_repository.get_many(appt.trainer_id for appt, _ in rated_rows)
        return [
            AppointmentListing(appointment=appt, counterpart=users.get(appt.trainer_id), rated=rated)
            for appt, rated in rated_rows
        ]

    @BaseService.measure_operation("list_trainer_appointments")
    def list_trainer_appointments(
        self, trainer_id: int, on_date: Union[str, date, None] = None
    ) -> List[Appointment]:
        return self.repository.list_trainer_schedule(trainer_id, parse_request_date(on_date))

# backend/app/repositories/appointment_repository.py
"""
Appointment Repository for the booking engine.

Holds the conflict queries (active appointments overlapping an interval),
the listing queries, and the PostgreSQL advisory lock used to serialise
check-then-insert for one trainer/date.
"""

from datetime import date, time
from typing import List, Optional, Sequence

from sqlalchemy import and_, exists, text
from sqlalchemy.orm import Session

from ..core.enums import AppointmentStatus
from ..models.appointment import Appointment
from ..models.rating import AppointmentRating
from .base_repository import BaseRepository

_ACTIVE_STATUSES = [status.value for status in AppointmentStatus.active()]


class AppointmentRepository(BaseRepository[Appointment]):
    """
    Repository for Appointment data access.

    Overlap uses the half-open test ``existing.start < end AND existing.end > start``
    so back-to-back sessions do not conflict.
    """

    def __init__(self, db: Session):
        super().__init__(db, Appointment)

    def get_active_for_date(self, trainer_id: int, on_date: date) -> List[Appointment]:
        """Pending/confirmed appointments of a trainer on a date, by start time."""
        query = (
            self.db.query(Appointment)
            .filter(
                Appointment.trainer_id == trainer_id,
                Appointment.appointment_date == on_date,
                Appointment.status.in_(_ACTIVE_STATUSES),
            )
            .order_by(Appointment.start_time)
        )
        return self._execute_query(query)

    def find_overlapping(
        self,
        trainer_id: int,
        on_date: date,
        start_time: time,
        end_time: time,
        exclude_id: Optional[str] = None,
    ) -> List[Appointment]:
        query = self.db.query(Appointment).filter(
            Appointment.trainer_id == trainer_id,
            Appointment.appointment_date == on_date,
            Appointment.status.in_(_ACTIVE_STATUSES),
            Appointment.start_time < end_time,
            Appointment.end_time > start_time,
        )
        if exclude_id:
            query = query.filter(Appointment.id != exclude_id)
        return self._execute_query(query)

    def lock_trainer_day(self, trainer_id: int, on_date: date) -> None:
        """
        Take a transaction-scoped advisory lock for (trainer, date) on PostgreSQL.

        No-op on other dialects; the unique index still catches the race there.
        """
        if self.dialect_name != "postgresql":
            return
        self.db.execute(
            text("SELECT pg_advisory_xact_lock(:k1, :k2)"),
            {"k1": int(trainer_id), "k2": on_date.toordinal()},
        )

    def list_for_client(self, client_id: int, limit: int) -> Sequence[tuple[Appointment, bool]]:
        """Client's appointments newest first, each paired with whether it was rated."""
        rated = exists().where(AppointmentRating.appointment_id == Appointment.id)
        query = (
            self.db.query(Appointment, rated.label("rated"))
            .filter(Appointment.client_id == client_id)
            .order_by(Appointment.appointment_date.desc(), Appointment.start_time.desc())
            .limit(limit)
        )
        return [(row[0], bool(row[1])) for row in self._execute_query(query)]

    def list_for_trainer(self, trainer_id: int, limit: int) -> List[Appointment]:
        query = (
            self.db.query(Appointment)
            .filter(Appointment.trainer_id == trainer_id)
            .order_by(Appointment.appointment_date.desc(), Appointment.start_time.desc())
            .limit(limit)
        )
        return self._execute_query(query)

    def list_trainer_schedule(self, trainer_id: int, on_date: Optional[date] = None) -> List[Appointment]:
        """Public schedule view: newest date first, sessions in start order within a day."""
        conditions = [Appointment.trainer_id == trainer_id]
        if on_date is not None:
            conditions.append(Appointment.appointment_date == on_date)
        query = (
            self.db.query(Appointment)
            .filter(and_(*conditions))
            .order_by(Appointment.appointment_date.desc(), Appointment.start_time.asc())
        )
        return self._execute_query(query)

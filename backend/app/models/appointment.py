# backend/app/models/appointment.py
"""
Appointment model for trainer/client sessions.

Storage-level guard against double booking: a partial unique index on
``(trainer_id, appointment_date, start_time)`` over active statuses. On
PostgreSQL the migration also adds an exclusion constraint over the full
``[start_time, end_time)`` span.
"""

from datetime import datetime, timezone

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Time,
    text,
)
from sqlalchemy.orm import relationship
import ulid

from ..core.enums import AppointmentStatus
from ..database import Base

ACTIVE_STATUS_SQL = "status IN ('pending', 'confirmed')"


class Appointment(Base):
    """
    A booked session between a trainer and a client.

    Attributes:
        id: ULID primary key
        trainer_id: Trainer's local user id
        client_id: Client's local user id
        appointment_date: Calendar date of the session
        start_time / end_time: Half-open interval on that date
        status: One of AppointmentStatus
        notes: Free-form notes
    """

    __tablename__ = "appointments"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    trainer_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    client_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    appointment_date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    status = Column(String(20), nullable=False, default=AppointmentStatus.PENDING.value)
    notes = Column(Text, nullable=True)
    created_at = Column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    trainer = relationship("User", foreign_keys=[trainer_id])
    client = relationship("User", foreign_keys=[client_id])
    rating = relationship(
        "AppointmentRating",
        uselist=False,
        back_populates="appointment",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint("start_time < end_time", name="ck_appointments_time_order"),
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'completed', 'cancelled')",
            name="ck_appointments_status",
        ),
        Index("idx_appointments_trainer_date", "trainer_id", "appointment_date"),
        Index("idx_appointments_client", "client_id"),
        Index(
            "uq_appointments_active_slot",
            "trainer_id",
            "appointment_date",
            "start_time",
            unique=True,
            postgresql_where=text(ACTIVE_STATUS_SQL),
            sqlite_where=text(ACTIVE_STATUS_SQL),
        ),
    )

    def is_participant(self, user_id: int) -> bool:
        return user_id in (self.trainer_id, self.client_id)

    def __repr__(self) -> str:
        return (
            f"<Appointment {self.id} trainer={self.trainer_id} client={self.client_id} "
            f"{self.appointment_date} {self.start_time}-{self.end_time} {self.status}>"
        )

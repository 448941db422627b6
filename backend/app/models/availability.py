# backend/app/models/availability.py
"""
Availability models for the MOVT backend.

Trainers publish recurring weekly windows. Each window belongs to one weekday
(0 = Sunday ... 6 = Saturday) and spans ``[start_time, end_time)``. A trainer
may publish several windows on the same day.
"""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    SmallInteger,
    String,
    Time,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..database import Base


class TrainerAvailabilityWindow(Base):
    """Recurring weekly availability window for a trainer."""

    __tablename__ = "trainer_availability_windows"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    trainer_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    day_of_week = Column(SmallInteger, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    trainer = relationship("User")

    __table_args__ = (
        CheckConstraint("day_of_week BETWEEN 0 AND 6", name="ck_availability_day_of_week"),
        CheckConstraint("start_time < end_time", name="ck_availability_time_order"),
        Index("idx_availability_trainer_day", "trainer_id", "day_of_week"),
    )

    def __repr__(self) -> str:
        return (
            f"<TrainerAvailabilityWindow trainer={self.trainer_id} day={self.day_of_week} "
            f"{self.start_time}-{self.end_time}>"
        )

# backend/app/models/rating.py
"""
Post-session rating model.

One rating per appointment, enforced by a unique constraint so concurrent
submissions cannot both land.
"""

from datetime import datetime, timezone

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
import ulid

from ..database import Base


class AppointmentRating(Base):
    """Client's rating of a completed appointment."""

    __tablename__ = "appointment_ratings"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    appointment_id = Column(
        String(26), ForeignKey("appointments.id", ondelete="CASCADE"), nullable=False
    )
    author_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    target_trainer_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    professional_score = Column(Integer, nullable=False)
    training_score = Column(Integer, nullable=False)
    comment = Column(Text, nullable=True)
    created_at = Column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )

    appointment = relationship("Appointment", back_populates="rating")

    __table_args__ = (
        UniqueConstraint("appointment_id", name="uq_appointment_ratings_appointment"),
        CheckConstraint(
            "professional_score >= 1 AND professional_score <= 5",
            name="ck_appointment_ratings_professional_range",
        ),
        CheckConstraint(
            "training_score >= 1 AND training_score <= 5",
            name="ck_appointment_ratings_training_range",
        ),
        Index("idx_appointment_ratings_trainer", "target_trainer_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<AppointmentRating {self.id} appointment={self.appointment_id} "
            f"pro={self.professional_score} training={self.training_score}>"
        )

# backend/app/models/trainer_profile.py
"""Trainer profile cache holding the rating aggregate."""

from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Column, DateTime, Float, ForeignKey, Integer
from sqlalchemy.orm import relationship

from ..database import Base


class TrainerProfile(Base):
    """
    Denormalised rating summary for a trainer.

    ``rating`` is the mean professional score rounded to one decimal and
    ``total_ratings`` the number of ratings it was computed from. Both are
    refreshed after every new rating.
    """

    __tablename__ = "trainer_profiles"

    trainer_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    rating = Column(Float, nullable=True)
    total_ratings = Column(Integer, nullable=False, default=0)
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    trainer = relationship("User", back_populates="trainer_profile")

    __table_args__ = (
        CheckConstraint("total_ratings >= 0", name="ck_trainer_profiles_total_non_negative"),
    )

    def __repr__(self) -> str:
        return f"<TrainerProfile {self.trainer_id} rating={self.rating} n={self.total_ratings}>"

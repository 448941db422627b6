# backend/app/repositories/trainer_profile_repository.py
"""Trainer profile cache writer."""

from typing import Optional

from sqlalchemy.orm import Session

from ..models.trainer_profile import TrainerProfile
from .base_repository import BaseRepository


class TrainerProfileRepository(BaseRepository[TrainerProfile]):
    """Repository for TrainerProfile (rating aggregate cache)."""

    def __init__(self, db: Session):
        super().__init__(db, TrainerProfile)

    def set_rating_aggregate(self, trainer_id: int, rating: Optional[float], total: int) -> TrainerProfile:
        """Upsert the trainer's rating summary. Does NOT commit."""
        profile = self.get_by_id(trainer_id)
        if profile is None:
            return self.create(trainer_id=trainer_id, rating=rating, total_ratings=total)
        profile.rating = rating
        profile.total_ratings = total
        self.flush()
        return profile

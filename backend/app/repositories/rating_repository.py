# backend/app/repositories/rating_repository.py
"""Rating Repository: per-appointment ratings and trainer aggregates."""

from typing import Optional, Tuple

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.rating import AppointmentRating
from .base_repository import BaseRepository


class RatingRepository(BaseRepository[AppointmentRating]):
    """Repository for AppointmentRating entity operations."""

    def __init__(self, db: Session):
        super().__init__(db, AppointmentRating)

    def get_by_appointment(self, appointment_id: str) -> Optional[AppointmentRating]:
        return self.find_one_by(appointment_id=appointment_id)

    def aggregate_for_trainer(self, trainer_id: int) -> Tuple[Optional[float], int]:
        """
        Mean professional score and rating count for a trainer.

        Returns (None, 0) when the trainer has no ratings yet.
        """
        query = self.db.query(
            func.avg(AppointmentRating.professional_score),
            func.count(AppointmentRating.id),
        ).filter(AppointmentRating.target_trainer_id == trainer_id)
        try:
            avg_score, count = query.one()
        except SQLAlchemyError as e:
            self.logger.error(f"Aggregate query failed for trainer {trainer_id}: {str(e)}")
            raise RepositoryException(f"Failed to aggregate ratings: {str(e)}") from e
        return (float(avg_score) if avg_score is not None else None, int(count or 0))

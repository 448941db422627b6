# backend/app/repositories/availability_repository.py
"""
Availability Repository for trainer weekly windows.

Windows are read-only from the booking engine's point of view; trainers
maintain them outside this API.
"""

from typing import List

from sqlalchemy.orm import Session

from ..models.availability import TrainerAvailabilityWindow
from .base_repository import BaseRepository


class AvailabilityRepository(BaseRepository[TrainerAvailabilityWindow]):
    """Repository for TrainerAvailabilityWindow reads."""

    def __init__(self, db: Session):
        super().__init__(db, TrainerAvailabilityWindow)

    def list_active_windows(self, trainer_id: int) -> List[TrainerAvailabilityWindow]:
        """All active windows of a trainer, ordered by weekday then start time."""
        query = (
            self.db.query(TrainerAvailabilityWindow)
            .filter(
                TrainerAvailabilityWindow.trainer_id == trainer_id,
                TrainerAvailabilityWindow.active.is_(True),
            )
            .order_by(
                TrainerAvailabilityWindow.day_of_week,
                TrainerAvailabilityWindow.start_time,
            )
        )
        return self._execute_query(query)

    def list_windows_for_day(self, trainer_id: int, day_of_week: int) -> List[TrainerAvailabilityWindow]:
        """Active windows for one weekday (0 = Sunday), ordered by start time."""
        query = (
            self.db.query(TrainerAvailabilityWindow)
            .filter(
                TrainerAvailabilityWindow.trainer_id == trainer_id,
                TrainerAvailabilityWindow.day_of_week == day_of_week,
                TrainerAvailabilityWindow.active.is_(True),
            )
            .order_by(TrainerAvailabilityWindow.start_time)
        )
        return self._execute_query(query)

# backend/app/services/rating_service.py
"""
Rating Service: post-session ratings and the trainer aggregate.

A rating is accepted once per appointment, only after the session is
completed. The trainer's profile aggregate is recomputed after the rating
commits, in a separate unit of work, so a failure there never loses the
rating itself.
"""

import logging
from typing import Callable, ContextManager, Optional

from sqlalchemy.orm import Session

from ..core.constants import MAX_RATING_SCORE, MIN_RATING_SCORE
from ..core.enums import AppointmentStatus, normalize_status
from ..core.exceptions import (
    ForbiddenException,
    MissingFieldException,
    NotEligibleException,
    NotFoundException,
    RatingAlreadyExistsException,
    RepositoryException,
    ServiceException,
    ValidationException,
    is_integrity_violation,
)
from ..database import get_db_session
from ..models.rating import AppointmentRating
from ..models.trainer_profile import TrainerProfile
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from .base import BaseService
from .ratings_math import summarize_scores

logger = logging.getLogger(__name__)


def _validate_score(name: str, value: Optional[int]) -> int:
    if value is None:
        raise MissingFieldException(name)
    try:
        score = int(value)
    except (TypeError, ValueError) as exc:
        raise ValidationException(f"{name} must be an integer", code="INVALID_SCORE") from exc
    if not MIN_RATING_SCORE <= score <= MAX_RATING_SCORE:
        raise ValidationException(
            f"{name} must be between {MIN_RATING_SCORE} and {MAX_RATING_SCORE}",
            code="INVALID_SCORE",
            details={name: score},
        )
    return score


class RatingService(BaseService):
    """Service layer for appointment ratings."""

    def __init__(self, db: Session):
        super().__init__(db)
        self.repository = RepositoryFactory.create_rating_repository(db)
        self.appointment_repository = RepositoryFactory.create_appointment_repository(db)
        self.profile_repository = RepositoryFactory.create_trainer_profile_repository(db)
        self.user_repository = RepositoryFactory.create_user_repository(db)

    @BaseService.measure_operation("rate_appointment")
    def rate_appointment(
        self,
        appointment_id: str,
        author_id: int,
        professional_score: Optional[int],
        training_score: Optional[int],
        comment: Optional[str] = None,
        trainer_id: Optional[int] = None,
    ) -> AppointmentRating:
        """
        Record the client's rating of a completed appointment.

        The aggregate refresh is NOT done here; callers schedule
        ``refresh_trainer_rating_aggregate_task`` after this returns.

        Raises:
            NotFoundException: appointment or named trainer missing
            NotEligibleException: appointment not completed
            ForbiddenException: author is not the appointment's client
            RatingAlreadyExistsException: appointment already rated
        """
        professional = _validate_score("ratingProfessional", professional_score)
        training = _validate_score("ratingTraining", training_score)

        appointment = self.appointment_repository.get_by_id(appointment_id)
        if appointment is None:
            raise NotFoundException("Appointment not found", details={"appointment_id": appointment_id})
        if normalize_status(appointment.status) != AppointmentStatus.COMPLETED:
            raise NotEligibleException(appointment_id)
        if appointment.client_id != author_id:
            raise ForbiddenException(
                "Only the client of this appointment can rate it",
                details={"appointment_id": appointment_id},
            )

        target_trainer_id = trainer_id or appointment.trainer_id
        if trainer_id and self.user_repository.get_by_id(trainer_id) is None:
            raise NotFoundException("Trainer not found", details={"trainer_id": trainer_id})

        if self.repository.get_by_appointment(appointment_id) is not None:
            raise RatingAlreadyExistsException(appointment_id)

        try:
            with self.transaction():
                rating = self.repository.create(
                    appointment_id=appointment_id,
                    author_id=author_id,
                    target_trainer_id=target_trainer_id,
                    professional_score=professional,
                    training_score=training,
                    comment=comment or None,
                )
        except (RepositoryException, ServiceException) as exc:
            # Only the one-rating-per-appointment constraint means "already rated"
            if is_integrity_violation(exc) and self.repository.get_by_appointment(appointment_id):
                raise RatingAlreadyExistsException(appointment_id) from exc
            raise

        self.log_operation(
            "rate_appointment",
            appointment_id=appointment_id,
            author_id=author_id,
            trainer_id=target_trainer_id,
        )
        return rating

    @BaseService.measure_operation("refresh_trainer_rating_aggregate")
    def refresh_trainer_rating_aggregate(self, trainer_id: int) -> TrainerProfile:
        """Recompute (rounded mean professional score, count) into the trainer profile."""
        avg_score, count = self.repository.aggregate_for_trainer(trainer_id)
        summary = summarize_scores(avg_score, count)
        with self.transaction():
            profile = self.profile_repository.set_rating_aggregate(
                trainer_id, summary["rating"], int(summary["total_ratings"] or 0)
            )
        self.logger.info(
            "Trainer rating aggregate refreshed",
            extra={"trainer_id": trainer_id, "rating": profile.rating, "total": profile.total_ratings},
        )
        return profile


def refresh_trainer_rating_aggregate_task(
    trainer_id: int,
    session_factory: Callable[[], ContextManager[Session]] = get_db_session,
) -> None:
    """
    Background entry point for the aggregate refresh.

    Runs in its own session. Failures are logged and counted, never raised:
    the rating has already been stored.
    """
    try:
        with session_factory() as db:
            RatingService(db).refresh_trainer_rating_aggregate(trainer_id)
    except Exception as exc:
        prometheus_metrics.inc_best_effort_failure("rating_aggregate")
        logger.warning(
            "Trainer rating aggregate refresh failed",
            extra={"trainer_id": trainer_id, "error": str(exc)},
        )

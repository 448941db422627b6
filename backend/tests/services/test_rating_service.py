"""RatingService: eligibility, one rating per appointment, trainer aggregate."""

from contextlib import contextmanager
from datetime import date, time
from unittest.mock import patch

import pytest
from sqlalchemy.orm import Session

from app.core.enums import AppointmentStatus
from app.core.exceptions import (
    ForbiddenException,
    MissingFieldException,
    NotEligibleException,
    NotFoundException,
    RatingAlreadyExistsException,
    RepositoryException,
    ValidationException,
    is_integrity_violation,
)
from app.models import AppointmentRating, TrainerProfile
from app.monitoring.prometheus_metrics import REGISTRY
from app.repositories.user_repository import UserRepository
from app.services.rating_service import RatingService, refresh_trainer_rating_aggregate_task

MONDAY = date(2030, 1, 7)


@pytest.fixture
def completed(trainer, client_user, appointment_factory):
    return appointment_factory(
        trainer, client_user, MONDAY, time(9), time(10), status=AppointmentStatus.COMPLETED
    )


class TestRateAppointment:
    def test_client_rates_completed_session(self, db: Session, trainer, client_user, completed):
        rating = RatingService(db).rate_appointment(
            completed.id, client_user.id, 5, 4, comment="Excelente"
        )

        assert rating.appointment_id == completed.id
        assert rating.target_trainer_id == trainer.id
        assert (rating.professional_score, rating.training_score) == (5, 4)
        assert rating.comment == "Excelente"

    def test_second_rating_conflicts(self, db: Session, client_user, completed):
        service = RatingService(db)
        service.rate_appointment(completed.id, client_user.id, 5, 5)

        with pytest.raises(RatingAlreadyExistsException):
            service.rate_appointment(completed.id, client_user.id, 3, 3)

    def test_pending_session_is_not_eligible(
        self, db: Session, trainer, client_user, appointment_factory
    ):
        pending = appointment_factory(trainer, client_user, MONDAY, time(9), time(10))

        with pytest.raises(NotEligibleException):
            RatingService(db).rate_appointment(pending.id, client_user.id, 5, 5)

    def test_unknown_appointment(self, db: Session, client_user):
        with pytest.raises(NotFoundException):
            RatingService(db).rate_appointment("01HMISSINGAPPOINTMENT00000", client_user.id, 5, 5)

    def test_only_the_client_can_rate(self, db: Session, trainer, completed):
        with pytest.raises(ForbiddenException):
            RatingService(db).rate_appointment(completed.id, trainer.id, 5, 5)

    def test_unknown_trainer_is_not_found(self, db: Session, client_user, completed):
        with pytest.raises(NotFoundException) as exc_info:
            RatingService(db).rate_appointment(completed.id, client_user.id, 5, 5, trainer_id=999999)
        assert exc_info.value.message == "Trainer not found"

    def test_other_integrity_errors_are_not_reported_as_duplicates(
        self, db: Session, client_user, completed
    ):
        # Let a dangling trainer id reach the foreign key
        with patch.object(UserRepository, "get_by_id", return_value=object()):
            with pytest.raises(RepositoryException) as exc_info:
                RatingService(db).rate_appointment(completed.id, client_user.id, 5, 5, trainer_id=999999)

        assert is_integrity_violation(exc_info.value)
        assert db.query(AppointmentRating).count() == 0

    @pytest.mark.parametrize("score", [0, 6, -1])
    def test_scores_out_of_range(self, db: Session, client_user, completed, score):
        with pytest.raises(ValidationException) as exc_info:
            RatingService(db).rate_appointment(completed.id, client_user.id, score, 3)
        assert exc_info.value.code == "INVALID_SCORE"

    def test_missing_score(self, db: Session, client_user, completed):
        with pytest.raises(MissingFieldException):
            RatingService(db).rate_appointment(completed.id, client_user.id, 4, None)


class TestAggregate:
    def test_refresh_writes_rounded_mean_and_count(
        self, db: Session, trainer, client_user, appointment_factory
    ):
        service = RatingService(db)
        for day, score in ((7, 4), (14, 4), (21, 5)):
            appt = appointment_factory(
                trainer,
                client_user,
                date(2030, 1, day),
                time(9),
                time(10),
                status=AppointmentStatus.COMPLETED,
            )
            service.rate_appointment(appt.id, client_user.id, score, 1)

        profile = service.refresh_trainer_rating_aggregate(trainer.id)

        # (4 + 4 + 5) / 3 = 4.333...
        assert profile.rating == 4.3
        assert profile.total_ratings == 3

    def test_training_score_does_not_feed_the_aggregate(
        self, db: Session, trainer, client_user, completed
    ):
        service = RatingService(db)
        service.rate_appointment(completed.id, client_user.id, 2, 5)

        profile = service.refresh_trainer_rating_aggregate(trainer.id)

        assert profile.rating == 2.0

    def test_background_task_uses_its_own_session(self, db: Session, trainer, client_user, completed):
        RatingService(db).rate_appointment(completed.id, client_user.id, 5, 5)

        refresh_trainer_rating_aggregate_task(trainer.id)

        db.expire_all()
        profile = db.get(TrainerProfile, trainer.id)
        assert profile.rating == 5.0
        assert profile.total_ratings == 1

    def test_background_failure_is_logged_and_counted(self, trainer):
        labels = {"task": "rating_aggregate"}
        before = REGISTRY.get_sample_value("movt_best_effort_failures_total", labels) or 0.0

        @contextmanager
        def broken_session():
            raise RuntimeError("database went away")
            yield  # pragma: no cover

        refresh_trainer_rating_aggregate_task(trainer.id, session_factory=broken_session)

        assert REGISTRY.get_sample_value("movt_best_effort_failures_total", labels) == before + 1

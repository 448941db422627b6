"""Enums, domain exceptions and settings helpers."""

from fastapi import status
import pytest
from sqlalchemy.exc import IntegrityError

from app.core.config import Settings
from app.core.enums import AppointmentStatus, normalize_status
from app.core.exceptions import (
    MissingFieldException,
    NotEligibleException,
    RatingAlreadyExistsException,
    RepositoryException,
    SchemaNotInstalledException,
    SlotConflictException,
    UpstreamException,
    is_db_pool_exhaustion,
    is_integrity_violation,
)


class TestNormalizeStatus:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("pending", AppointmentStatus.PENDING),
            ("pendente", AppointmentStatus.PENDING),
            ("Confirmado", AppointmentStatus.CONFIRMED),
            ("concluído", AppointmentStatus.COMPLETED),
            ("CONCLUIDO", AppointmentStatus.COMPLETED),
            ("completed", AppointmentStatus.COMPLETED),
            ("cancelado", AppointmentStatus.CANCELLED),
            ("canceled", AppointmentStatus.CANCELLED),
            (" cancelled ", AppointmentStatus.CANCELLED),
        ],
    )
    def test_aliases(self, raw, expected):
        assert normalize_status(raw) is expected

    def test_unknown_and_none(self):
        assert normalize_status("finished") is None
        assert normalize_status(None) is None

    def test_active_statuses(self):
        assert AppointmentStatus.active() == (AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED)


class TestDomainExceptions:
    def test_http_mapping_carries_code_and_details(self):
        http_exc = MissingFieldException("trainerId", "date").to_http_exception()

        assert http_exc.status_code == status.HTTP_400_BAD_REQUEST
        assert http_exc.detail["code"] == "MISSING_FIELD"
        assert http_exc.detail["details"] == {"fields": ["trainerId", "date"]}

    def test_conflicts_are_409(self):
        assert SlotConflictException().to_http_exception().status_code == 409
        assert RatingAlreadyExistsException("a1").to_http_exception().detail["code"] == "RATING_EXISTS"

    def test_not_eligible_is_404(self):
        assert NotEligibleException("a1").to_http_exception().status_code == 404

    def test_schema_not_installed_is_501(self):
        http_exc = SchemaNotInstalledException().to_http_exception()
        assert http_exc.status_code == 501
        assert http_exc.detail["message"] == "Appointment system not installed"

    def test_upstream_sets_retry_after(self):
        http_exc = UpstreamException(retry_after=5).to_http_exception()
        assert http_exc.status_code == 503
        assert http_exc.headers == {"Retry-After": "5"}

    def test_integrity_violation_detected_through_chain(self):
        integrity = IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed"))
        wrapped = RepositoryException("wrapped")
        wrapped.__cause__ = integrity

        assert is_integrity_violation(wrapped)
        assert not is_integrity_violation(RepositoryException("plain"))

    def test_pool_exhaustion_heuristic(self):
        assert is_db_pool_exhaustion(Exception("QueuePool limit of size 10 overflow 5 reached"))
        assert not is_db_pool_exhaustion(Exception("syntax error"))


class TestSettings:
    def test_postgres_scheme_normalised(self):
        cfg = Settings(database_url="postgres://u:p@db:5432/movt")
        assert cfg.get_database_url() == "postgresql://u:p@db:5432/movt"

    def test_cors_origin_list(self):
        cfg = Settings(cors_origins="https://app.movt.test, https://admin.movt.test,")
        assert cfg.cors_origin_list == ["https://app.movt.test", "https://admin.movt.test"]

    def test_supabase_configuration(self):
        assert not Settings(supabase_url="", supabase_service_role_key="").supabase_configured
        cfg = Settings(supabase_url="https://x.supabase.co/", supabase_service_role_key="k")
        assert cfg.supabase_configured
        assert cfg.supabase_url == "https://x.supabase.co"

    def test_message_secret_falls_back_outside_production(self):
        cfg = Settings(message_encryption_key="")
        assert cfg.get_message_secret()
        assert Settings(message_encryption_key="abc").get_message_secret() == "abc"

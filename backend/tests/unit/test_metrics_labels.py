from app.middleware.prometheus_middleware import normalize_endpoint
from app.monitoring.prometheus_metrics import REGISTRY, prometheus_metrics


def test_numeric_segments_collapse():
    assert normalize_endpoint("/api/v1/availability/42") == "/api/v1/availability/:id"


def test_ulid_segments_collapse():
    path = "/api/v1/chat/01HZX3Y0W9V3S6Q6S1Q1Q1Q1Q1/messages"
    assert normalize_endpoint(path) == "/api/v1/chat/:id/messages"


def test_static_paths_unchanged():
    assert normalize_endpoint("/api/v1/appointments") == "/api/v1/appointments"


def test_best_effort_counter_increments():
    labels = {"task": "realtime_mirror"}
    before = REGISTRY.get_sample_value("movt_best_effort_failures_total", labels) or 0.0

    prometheus_metrics.inc_best_effort_failure("realtime_mirror")

    assert REGISTRY.get_sample_value("movt_best_effort_failures_total", labels) == before + 1


def test_exposition_contains_domain_counters():
    prometheus_metrics.inc_booking_conflict("precheck")

    body = prometheus_metrics.get_metrics().decode()

    assert "movt_booking_conflicts_total" in body

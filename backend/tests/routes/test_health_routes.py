"""Health probes, root and Prometheus exposition."""

from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

import app.api.dependencies.database as database_deps


def test_liveness(client: TestClient):
    response = client.get("/api/v1/health")

    assert response.status_code == 200
    assert response.headers["Cache-Control"] == "no-store"
    body = response.json()
    assert body["status"] == "healthy"
    assert body["service"] == "movt-api"


def test_readiness_reports_schema(client: TestClient):
    response = client.get("/api/v1/health/db")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "database": "sqlite", "booking_schema_ready": True}


def test_unreachable_database_is_503_with_retry_after(client: TestClient, monkeypatch):
    def _down(db):
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))

    monkeypatch.setattr(database_deps, "ping", _down)

    response = client.get("/api/v1/health/db")

    assert response.status_code == 503
    assert response.headers["Retry-After"] == "2"
    assert response.json()["code"] == "UPSTREAM_UNAVAILABLE"


def test_root(client: TestClient):
    body = client.get("/").json()

    assert body["docs"] == "/docs"
    assert "MOVT" in body["message"]


def test_metrics_exposition(client: TestClient):
    client.get("/api/v1/health")

    response = client.get("/metrics")

    assert response.status_code == 200
    assert "movt_prometheus_scrapes_total" in response.text

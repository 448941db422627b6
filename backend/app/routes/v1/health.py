# backend/app/routes/v1/health.py
"""
Health check endpoints for monitoring and load balancer probes.
"""

from __future__ import annotations

from datetime import datetime, timezone
import logging

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session

from ...api.dependencies.database import require_database
from ...core.config import settings
from ...core.constants import API_VERSION, BRAND_NAME
from ...schemas.health import DatabaseHealthResponse, HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


def _apply_health_headers(response: Response) -> None:
    """Apply standard health check headers."""
    response.headers["Cache-Control"] = "no-store"
    if settings.is_testing:
        response.headers["X-Testing"] = "1"


@router.get("", response_model=HealthResponse)
def health_check(response: Response) -> HealthResponse:
    """
    Liveness check.

    Does not touch the database; used by load balancers for frequent probes.
    """
    _apply_health_headers(response)
    return HealthResponse(
        status="healthy",
        service=f"{BRAND_NAME.lower()}-api",
        version=API_VERSION,
        environment=settings.environment,
        timestamp=datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
    )


@router.get("/db", response_model=DatabaseHealthResponse)
def health_check_db(
    request: Request,
    response: Response,
    db: Session = Depends(require_database),
) -> DatabaseHealthResponse:
    """
    Readiness check.

    Runs the ``SELECT 1`` probe (503 with Retry-After when it fails) and
    reports whether the booking tables are installed.
    """
    _apply_health_headers(response)
    return DatabaseHealthResponse(
        status="ok",
        database=db.get_bind().dialect.name,
        booking_schema_ready=bool(getattr(request.app.state, "booking_schema_ready", False)),
    )

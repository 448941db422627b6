# backend/app/api/dependencies/database.py
"""
Database-related dependencies.
"""

import logging
from typing import Generator

from fastapi import Depends, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...core.exceptions import SchemaNotInstalledException, UpstreamException
from ...database import get_db as original_get_db, ping

logger = logging.getLogger(__name__)


def get_db() -> Generator[Session, None, None]:
    """
    Get database session dependency.

    Yields:
        Database session that will be closed after use
    """
    yield from original_get_db()


def require_database(db: Session = Depends(get_db)) -> Session:
    """
    Liveness probe run before any work that needs the relational store.

    Turns an unreachable database into a 503 with Retry-After instead of a
    500 from deep inside a service.
    """
    try:
        ping(db)
    except SQLAlchemyError as exc:
        logger.error("Database probe failed: %s", exc)
        db.rollback()
        raise UpstreamException().to_http_exception() from exc
    return db


def require_booking_schema(request: Request) -> None:
    """Reject booking requests with 501 when the booking tables were never migrated."""
    if not getattr(request.app.state, "booking_schema_ready", True):
        raise SchemaNotInstalledException().to_http_exception()

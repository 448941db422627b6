"""
Database engine, session factory, and metadata shared across the application.
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime
import logging
from typing import Any, Generator, Iterable, Optional

from sqlalchemy import create_engine, event, inspect, text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.orm import DeclarativeMeta, Session, declarative_base, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from ..core.config import settings

logger = logging.getLogger(__name__)


def _is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


def _build_engine_kwargs(db_url: str) -> dict[str, Any]:
    """Pool settings for the relational store; SQLite gets a single shared connection in memory."""

    if _is_sqlite(db_url):
        kwargs: dict[str, Any] = {"connect_args": {"check_same_thread": False}, "future": True}
        if ":memory:" in db_url or db_url in {"sqlite://", "sqlite:///"}:
            kwargs["poolclass"] = StaticPool
        return kwargs

    return {
        "poolclass": QueuePool,
        "pool_size": settings.db_pool_size,
        "max_overflow": settings.db_max_overflow,
        # Fail fast when the pool is exhausted so callers get a 503, not a hang
        "pool_timeout": settings.db_pool_timeout,
        "pool_recycle": settings.db_pool_recycle,
        "pool_pre_ping": True,
        "future": True,
        "connect_args": {
            "connect_timeout": settings.db_connect_timeout,
            "options": f"-c statement_timeout={settings.db_statement_timeout_ms}",
            "application_name": "movt_api",
        },
    }


def create_app_engine(db_url: Optional[str] = None) -> Engine:
    url = db_url or settings.get_database_url()
    new_engine = create_engine(url, **_build_engine_kwargs(url))
    _add_pool_events(new_engine)
    return new_engine


def _add_pool_events(target: Engine) -> None:
    @event.listens_for(target, "connect")
    def _on_connect(dbapi_connection: Any, connection_record: Any) -> None:
        connection_record.info["connect_time"] = datetime.now()
        if target.dialect.name == "sqlite":
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()
        logger.debug("Database connection established")

    @event.listens_for(target, "checkout")
    def _on_checkout(dbapi_connection: Any, connection_record: Any, connection_proxy: Any) -> None:
        logger.debug("Connection checked out from pool")

    @event.listens_for(target, "checkin")
    def _on_checkin(dbapi_connection: Any, connection_record: Any) -> None:
        logger.debug("Connection returned to pool")


engine: Engine = create_app_engine()

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)

Base: DeclarativeMeta = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """Get database session with proper cleanup."""
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@contextmanager
def get_db_session() -> Generator[Session, None, None]:
    """Context manager for short-lived DB operations outside a request."""
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def ping(db: Session) -> None:
    """Run the liveness probe; raises the driver error when the store is down."""
    db.execute(text("SELECT 1"))


def missing_tables(bind: Engine | Connection, required: Iterable[str]) -> list[str]:
    """Return the required tables that do not exist on ``bind``."""
    existing = set(inspect(bind).get_table_names())
    return [name for name in required if name not in existing]


def get_dialect_name(session: Session, default: str = "sqlite") -> str:
    """Return the SQLAlchemy dialect name of the session's bind."""
    bind = session.get_bind()
    if bind is None:
        return default
    return getattr(bind.dialect, "name", None) or default


__all__ = [
    "Base",
    "SessionLocal",
    "create_app_engine",
    "engine",
    "get_db",
    "get_db_session",
    "get_dialect_name",
    "missing_tables",
    "ping",
]

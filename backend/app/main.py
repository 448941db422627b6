# backend/app/main.py
from __future__ import annotations

from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from .core.config import is_running_tests, settings
from .core.constants import API_VERSION, BOOKING_TABLES, BRAND_NAME
from .database import engine, missing_tables
from .errors import register_error_handlers
from .middleware.prometheus_middleware import PrometheusMiddleware
from .routes import prometheus
from .routes.v1 import (
    appointments as appointments_v1,
    availability as availability_v1,
    chat as chat_v1,
    health as health_v1,
)

# Configure logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)


def check_booking_schema() -> bool:
    """
    Report whether every booking table exists.

    Evaluated once at startup; booking routes answer 501 while it is False.
    """
    try:
        with engine.connect() as connection:
            missing = missing_tables(connection, BOOKING_TABLES)
    except SQLAlchemyError as e:
        logger.error("Could not inspect database schema: %s", e)
        return False
    if missing:
        logger.warning("Booking tables missing, appointment routes disabled: %s", ", ".join(missing))
        return False
    return True


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup/shutdown without deprecated events."""
    logger.info(f"{BRAND_NAME} API starting up...")
    logger.info(f"Environment: {settings.environment}")
    if is_running_tests():
        logger.info("Running under pytest (test mode active)")

    app.state.booking_schema_ready = check_booking_schema()

    yield

    logger.info(f"{BRAND_NAME} API shutting down...")


app = FastAPI(
    title=f"{BRAND_NAME} API",
    description="Trainer availability, bookings, ratings and chat for the MOVT app",
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=app_lifespan,
)
# Register unified error envelope handlers
register_error_handlers(app)

app.add_middleware(PrometheusMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials="*" not in settings.cors_origin_list,
    allow_methods=["GET", "HEAD", "OPTIONS", "POST", "PUT", "PATCH", "DELETE"],
    allow_headers=["*"],
)
logger.info("CORS allow_origins=%s", settings.cors_origin_list)

# API v1 router; prefixes are set here, not on the routers
api_v1 = APIRouter(prefix="/api/v1")
api_v1.include_router(health_v1.router, prefix="/health")
api_v1.include_router(availability_v1.router, prefix="/availability")
api_v1.include_router(appointments_v1.router, prefix="/appointments")
api_v1.include_router(chat_v1.router, prefix="/chat")

app.include_router(api_v1)

# Intentionally unversioned: scraped by monitoring at a fixed path
app.include_router(prometheus.router)


@app.get("/")
def read_root() -> dict[str, str]:
    return {"message": f"{BRAND_NAME} API", "version": API_VERSION, "docs": "/docs"}

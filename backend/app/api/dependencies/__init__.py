# backend/app/api/dependencies/__init__.py
"""
Central export point for all dependencies.

This module re-exports all dependencies from submodules
for convenient access throughout the application.
"""

from .auth import get_current_user, get_current_user_id
from .database import get_db, require_booking_schema, require_database
from .services import (
    get_appointment_service,
    get_availability_service,
    get_chat_service,
    get_identity_bridge,
    get_identity_provider,
    get_rating_service,
    get_realtime_mirror,
)

__all__ = [
    # Auth
    "get_current_user",
    "get_current_user_id",
    # Database
    "get_db",
    "require_booking_schema",
    "require_database",
    # Services
    "get_appointment_service",
    "get_availability_service",
    "get_chat_service",
    "get_identity_bridge",
    "get_identity_provider",
    "get_rating_service",
    "get_realtime_mirror",
]

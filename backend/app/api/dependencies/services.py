# backend/app/api/dependencies/services.py
"""
Service layer dependencies for dependency injection.

This module provides factory functions that create service instances
with their required dependencies properly injected. External integrations
fall back to their null implementations when Supabase is not configured.
"""

import logging

from fastapi import Depends
from sqlalchemy.orm import Session

from ...core.config import settings
from ...integrations import (
    IdentityProvider,
    NullIdentityProvider,
    NullRealtimeMirror,
    RealtimeMirror,
    SupabaseAuthAdminClient,
    SupabaseRealtimeMirror,
)
from ...services.appointment_service import AppointmentService
from ...services.availability_service import AvailabilityService
from ...services.chat_service import ChatService
from ...services.identity_bridge import IdentityBridgeService
from ...services.rating_service import RatingService
from .database import get_db

logger = logging.getLogger(__name__)


def get_identity_provider() -> IdentityProvider:
    """External account directory used by the identity bridge."""
    if not settings.supabase_configured:
        return NullIdentityProvider()
    return SupabaseAuthAdminClient(
        base_url=settings.supabase_url,
        service_key=settings.supabase_service_role_key,
        timeout=settings.identity_provider_timeout,
    )


def get_realtime_mirror() -> RealtimeMirror:
    """Realtime thread store the mobile client subscribes to."""
    if not (settings.supabase_configured and settings.realtime_mirror_enabled):
        return NullRealtimeMirror()
    return SupabaseRealtimeMirror(
        base_url=settings.supabase_url,
        service_key=settings.supabase_service_role_key,
        timeout=settings.identity_provider_timeout,
    )


def get_availability_service(db: Session = Depends(get_db)) -> AvailabilityService:
    return AvailabilityService(db)


def get_appointment_service(db: Session = Depends(get_db)) -> AppointmentService:
    return AppointmentService(db)


def get_rating_service(db: Session = Depends(get_db)) -> RatingService:
    return RatingService(db)


def get_identity_bridge(
    db: Session = Depends(get_db),
    provider: IdentityProvider = Depends(get_identity_provider),
) -> IdentityBridgeService:
    """Request-scoped bridge; its memo lives as long as the request."""
    return IdentityBridgeService(db, provider)


def get_chat_service(
    db: Session = Depends(get_db),
    identity_bridge: IdentityBridgeService = Depends(get_identity_bridge),
    mirror: RealtimeMirror = Depends(get_realtime_mirror),
) -> ChatService:
    """
    Get chat service instance with all dependencies.

    Args:
        db: Database session
        identity_bridge: Resolves local ids to participant UUIDs
        mirror: Realtime store mirror (best-effort)

    Returns:
        ChatService instance
    """
    return ChatService(db, identity_bridge=identity_bridge, mirror=mirror)

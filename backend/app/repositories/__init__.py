# backend/app/repositories/__init__.py
"""
Repository Pattern Implementation for the MOVT backend

This package provides the repository layer for data access,
separating business logic from database queries.

Key Components:
- BaseRepository: Foundation for all repositories with generic CRUD operations
- RepositoryFactory: Factory for creating repository instances
- AppointmentRepository: Conflict checks, listings, advisory locking
- ChatThreadRepository / MessageRepository: Messaging storage
- IdentityMappingRepository: Local/external identity bridge storage

Usage:
    from app.repositories import RepositoryFactory

    repository = RepositoryFactory.create_appointment_repository(db)
    booked = repository.get_active_for_date(trainer_id, on_date)
"""

from .appointment_repository import AppointmentRepository
from .availability_repository import AvailabilityRepository
from .base_repository import BaseRepository, IRepository
from .chat_thread_repository import ChatThreadRepository
from .factory import RepositoryFactory
from .identity_mapping_repository import IdentityMappingRepository
from .message_repository import MessageRepository
from .rating_repository import RatingRepository
from .trainer_profile_repository import TrainerProfileRepository
from .user_repository import UserRepository

__all__ = [
    "AppointmentRepository",
    "AvailabilityRepository",
    "BaseRepository",
    "ChatThreadRepository",
    "IRepository",
    "IdentityMappingRepository",
    "MessageRepository",
    "RatingRepository",
    "RepositoryFactory",
    "TrainerProfileRepository",
    "UserRepository",
]

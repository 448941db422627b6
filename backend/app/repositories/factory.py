# backend/app/repositories/factory.py
"""
Repository Factory for the MOVT backend

Provides centralized creation of repository instances,
ensuring consistent initialization and dependency injection.
"""

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

# Avoid circular imports
if TYPE_CHECKING:
    from .appointment_repository import AppointmentRepository
    from .availability_repository import AvailabilityRepository
    from .chat_thread_repository import ChatThreadRepository
    from .identity_mapping_repository import IdentityMappingRepository
    from .message_repository import MessageRepository
    from .rating_repository import RatingRepository
    from .trainer_profile_repository import TrainerProfileRepository
    from .user_repository import UserRepository


class RepositoryFactory:
    """
    Factory class for creating repository instances.

    Centralizes repository creation so services never construct
    repositories directly and tests can swap implementations.
    """

    @staticmethod
    def create_user_repository(db: Session) -> "UserRepository":
        """Create repository for user and session-token lookups."""
        from .user_repository import UserRepository

        return UserRepository(db)

    @staticmethod
    def create_availability_repository(db: Session) -> "AvailabilityRepository":
        """Create repository for trainer availability windows."""
        from .availability_repository import AvailabilityRepository

        return AvailabilityRepository(db)

    @staticmethod
    def create_appointment_repository(db: Session) -> "AppointmentRepository":
        """Create repository for appointment operations."""
        from .appointment_repository import AppointmentRepository

        return AppointmentRepository(db)

    @staticmethod
    def create_rating_repository(db: Session) -> "RatingRepository":
        """Create repository for appointment ratings."""
        from .rating_repository import RatingRepository

        return RatingRepository(db)

    @staticmethod
    def create_trainer_profile_repository(db: Session) -> "TrainerProfileRepository":
        """Create repository for the trainer rating cache."""
        from .trainer_profile_repository import TrainerProfileRepository

        return TrainerProfileRepository(db)

    @staticmethod
    def create_chat_thread_repository(db: Session) -> "ChatThreadRepository":
        """Create repository for chat threads."""
        from .chat_thread_repository import ChatThreadRepository

        return ChatThreadRepository(db)

    @staticmethod
    def create_message_repository(db: Session) -> "MessageRepository":
        """Create repository for chat messages."""
        from .message_repository import MessageRepository

        return MessageRepository(db)

    @staticmethod
    def create_identity_mapping_repository(db: Session) -> "IdentityMappingRepository":
        """Create repository for local/external identity mappings."""
        from .identity_mapping_repository import IdentityMappingRepository

        return IdentityMappingRepository(db)

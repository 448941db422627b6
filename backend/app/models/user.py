# backend/app/models/user.py
"""
User model for the MOVT backend.

Only the slice of the user record that the booking and messaging features
need lives here. Password hashing and login are handled by a separate
service, which writes the ``session_token`` this API authenticates against.
"""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.orm import relationship

from ..database import Base


class User(Base):
    """
    Local user record, keyed by an integer id.

    Attributes:
        id: Local integer user id
        email: Unique email, used to match the external identity account
        name: Display name shown in chat listings
        avatar_url: Optional profile picture URL
        session_token: Opaque bearer token issued at login
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=True)
    avatar_url = Column(String(1024), nullable=True)
    session_token = Column(String(255), nullable=True, unique=True, index=True)
    created_at = Column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )

    trainer_profile = relationship(
        "TrainerProfile",
        uselist=False,
        back_populates="trainer",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<User {self.id} {self.email}>"

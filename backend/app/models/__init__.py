"""
Database models for the MOVT backend.

The models are organized by functionality:
- Users and the trainer profile cache
- Weekly availability windows and appointments
- Post-session ratings
- Chat threads and messages
- Local/external identity mapping
"""

from .appointment import Appointment
from .availability import TrainerAvailabilityWindow
from .chat_thread import ChatThread, make_pair_key
from .identity_mapping import IdentityMapping
from .message import Message
from .rating import AppointmentRating
from .trainer_profile import TrainerProfile
from .user import User

__all__ = [
    "Appointment",
    "AppointmentRating",
    "ChatThread",
    "IdentityMapping",
    "Message",
    "TrainerAvailabilityWindow",
    "TrainerProfile",
    "User",
    "make_pair_key",
]

# backend/app/core/enums.py
"""
Core enums for the MOVT backend.

Appointment statuses are stored in English. The mobile client still sends the
Portuguese lexemes (``pendente``, ``concluído``...), so inbound values go through
``normalize_status`` before they reach the domain.
"""

from enum import Enum
from typing import Optional
import unicodedata


class AppointmentStatus(str, Enum):
    """Lifecycle states of an appointment."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @classmethod
    def active(cls) -> tuple["AppointmentStatus", ...]:
        """Statuses that occupy a trainer's time."""
        return (cls.PENDING, cls.CONFIRMED)


_STATUS_ALIASES = {
    "pending": AppointmentStatus.PENDING,
    "pendente": AppointmentStatus.PENDING,
    "confirmed": AppointmentStatus.CONFIRMED,
    "confirmado": AppointmentStatus.CONFIRMED,
    "completed": AppointmentStatus.COMPLETED,
    "concluido": AppointmentStatus.COMPLETED,
    "cancelled": AppointmentStatus.CANCELLED,
    "canceled": AppointmentStatus.CANCELLED,
    "cancelado": AppointmentStatus.CANCELLED,
}


def _fold(value: str) -> str:
    decomposed = unicodedata.normalize("NFKD", value)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.strip().lower()


def normalize_status(value: Optional[str]) -> Optional[AppointmentStatus]:
    """
    Map a status string onto AppointmentStatus.

    Matching is case- and diacritic-insensitive, so ``"Concluído"`` and
    ``"CONCLUIDO"`` both resolve to COMPLETED. Unknown values return None.
    """
    if value is None:
        return None
    if isinstance(value, AppointmentStatus):
        return value
    return _STATUS_ALIASES.get(_fold(str(value)))

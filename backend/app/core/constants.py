"""Application-wide constants for the MOVT backend."""

from __future__ import annotations

BRAND_NAME = "MOVT"
API_VERSION = "1.0.0"

# Chat previews use this literal when a message carries only an image
IMAGE_PREVIEW_TEXT = "Imagem"

# Rating score bounds (inclusive)
MIN_RATING_SCORE = 1
MAX_RATING_SCORE = 5

# Display fallback for chat participants without a local profile
UNKNOWN_PARTICIPANT_PREFIX = "User"

# Tables the booking engine needs; checked once at startup
BOOKING_TABLES = (
    "users",
    "trainer_availability_windows",
    "appointments",
    "appointment_ratings",
    "trainer_profiles",
)

# backend/app/core/exceptions.py
"""
Domain-specific exceptions for the MOVT backend.

Services raise these; routes convert them with ``to_http_exception()`` and
the handlers in ``app.errors`` render the JSON envelope.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def _headers(self) -> Optional[Dict[str, str]]:
        return None

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
            headers=self._headers(),
        )


class ValidationException(DomainException):
    """Raised when business validation fails."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictException(DomainException):
    """Raised when there's a conflict with existing data."""

    status_code = status.HTTP_409_CONFLICT


class ForbiddenException(DomainException):
    """Raised when user lacks permission for an action."""

    status_code = status.HTTP_403_FORBIDDEN


class ServiceException(DomainException):
    """Raised when a service operation fails."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "message": self.message or "An error occurred processing your request",
                "code": self.code,
                "details": self.details if self.details else {},
            },
        )


class UpstreamException(DomainException):
    """Raised when the relational store (or another hard dependency) is unreachable."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    def __init__(self, message: Optional[str] = None, *, retry_after: int = 2) -> None:
        super().__init__(
            message=message or "Service temporarily unavailable. Please retry.",
            code="UPSTREAM_UNAVAILABLE",
        )
        self.retry_after = retry_after

    def _headers(self) -> Optional[Dict[str, str]]:
        return {"Retry-After": str(self.retry_after)}


class SchemaNotInstalledException(DomainException):
    """Raised when the booking tables have not been migrated yet."""

    status_code = status.HTTP_501_NOT_IMPLEMENTED

    def __init__(self) -> None:
        super().__init__(
            message="Appointment system not installed",
            code="SCHEMA_NOT_INSTALLED",
        )


# Specific business exceptions


class MissingFieldException(ValidationException):
    """Raised when a required request field is absent."""

    def __init__(self, *fields: str) -> None:
        super().__init__(
            message=f"Missing required field(s): {', '.join(fields)}",
            code="MISSING_FIELD",
            details={"fields": list(fields)},
        )


class EmptyMessageException(ValidationException):
    """Raised when a chat message has neither text nor image."""

    def __init__(self) -> None:
        super().__init__(
            message="Message must contain text or an image",
            code="EMPTY_MESSAGE",
        )


class NoAvailabilityThisDayException(ConflictException):
    """Raised when a trainer has no active window on the requested weekday."""

    def __init__(self, *, day_of_week: int, date: str) -> None:
        super().__init__(
            message="Trainer is not available on this day",
            code="NO_AVAILABILITY_THIS_DAY",
            details={"dayOfWeek": day_of_week, "date": date},
        )


class OutsideAvailabilityException(ConflictException):
    """Raised when the requested interval is not contained in any window."""

    def __init__(self, *, requested: str, day_of_week: int) -> None:
        super().__init__(
            message="Requested time is outside the trainer's availability",
            code="OUTSIDE_AVAILABILITY",
            details={"requested": requested, "dayOfWeek": day_of_week},
        )


class SlotConflictException(ConflictException):
    """Raised when a booking overlaps an active appointment."""

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message or "This time slot is already booked",
            code="SLOT_CONFLICT",
            details=details or {},
        )


class RatingAlreadyExistsException(ConflictException):
    """Raised when an appointment has already been rated."""

    def __init__(self, appointment_id: str) -> None:
        super().__init__(
            message="This appointment has already been rated",
            code="RATING_EXISTS",
            details={"appointment_id": appointment_id},
        )


class NotEligibleException(NotFoundException):
    """Raised when an appointment cannot be rated (missing or not completed)."""

    def __init__(self, appointment_id: str) -> None:
        super().__init__(
            message="Appointment not found or not completed",
            code="NOT_ELIGIBLE",
            details={"appointment_id": appointment_id},
        )


class IdentityNotFoundException(NotFoundException):
    """Raised when a local user has no resolvable external identity."""

    def __init__(self, local_user_id: int) -> None:
        super().__init__(
            message="External identity could not be resolved for user",
            code="IDENTITY_NOT_FOUND",
            details={"user_id": local_user_id},
        )


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as database connection issues, query failures, or
    constraint violations.
    """


def is_integrity_violation(exc: BaseException) -> bool:
    """True when ``exc`` is, or wraps, a database IntegrityError."""
    seen = 0
    current: Optional[BaseException] = exc
    while current is not None and seen < 5:
        if isinstance(current, IntegrityError):
            return True
        current = current.__cause__
        seen += 1
    return False


def is_db_pool_exhaustion(exc: Exception) -> bool:
    """
    Check if an exception indicates DB connection pool exhaustion.

    This is a common failure mode under high load when all database
    connections are in use and new requests time out waiting.
    """
    error_str = str(exc).lower()
    return "queuepool" in error_str or (
        "timeout" in error_str and ("connection" in error_str or "pool" in error_str)
    )

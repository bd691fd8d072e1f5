# app/core/exceptions.py
"""
Scheduling exceptions.

Validation failures travel as data (ValidationResult / BookingResult);
these exceptions cover the typed rejections the API layer maps to
transport-level responses.
"""
from typing import Any, Dict, Optional

from fastapi import HTTPException, status


class SchedulingError(Exception):
    """Base exception for all scheduling errors."""

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

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class FormatError(SchedulingError):
    """Malformed time or date input."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(SchedulingError):
    """Unknown business, service, staff member or booking."""

    status_code = status.HTTP_404_NOT_FOUND


class PolicyError(SchedulingError):
    """A booking policy was violated (cancellation window, capacity, hours)."""

    status_code = 422


class ForbiddenError(SchedulingError):
    """Requester is not allowed to act on the booking."""

    status_code = status.HTTP_403_FORBIDDEN


class ConflictError(SchedulingError):
    """The booking is already in the requested or a terminal state."""

    status_code = status.HTTP_409_CONFLICT


class DataIntegrityError(SchedulingError):
    """Stored rule or time data is corrupt or references a missing scope."""

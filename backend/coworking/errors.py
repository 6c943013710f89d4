"""
Domain errors raised by the booking core.

Routers never catch these; main.py maps each kind to an HTTP status so
conflicts and rule violations reach the caller verbatim.
"""

from typing import Any, Optional


class BookingError(Exception):
    """Base class for business-rule failures."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(BookingError):
    """Client, room, workspace, booking or slot does not exist."""


class ValidationFailure(BookingError):
    """Malformed period or missing resource selector for a rental type."""


class InvariantViolation(BookingError):
    """A lifecycle rule forbids the operation (paid invoice, terminal state...)."""


class ConflictError(BookingError):
    """
    Resource already reserved.

    `conflicts` holds one dict per colliding interval
    (date, type, description, start_time, end_time).
    """

    def __init__(self, message: str, conflicts: Optional[list[dict[str, Any]]] = None):
        super().__init__(message)
        self.conflicts = conflicts or []

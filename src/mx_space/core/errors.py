"""Domain errors raised by repositories and services.

The API layer maps these onto HTTP responses (see ``mx_space.main``); nothing
below the routers knows about status codes.
"""

from __future__ import annotations


class SpaceError(RuntimeError):
    """Base exception for request-scoped failures raised by the core."""

    default_message = "Request failed"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class NotFoundError(SpaceError):
    """Raised when a target, parent or comment the caller relies on is absent."""

    default_message = "The requested resource could not be found"


class ForbiddenError(SpaceError):
    """Raised when the caller may not perform the operation.

    Covers comments disabled on a target and guests reaching master-only data.
    """

    default_message = "Operation not permitted"


class BadInputError(SpaceError):
    """Raised for malformed input the schemas cannot catch on their own."""

    default_message = "Invalid input"

"""Errors raised by the scheduling core.

The API layer maps each class to an HTTP status; nothing in the core
recovers from them.
"""

from __future__ import annotations


class SchedulingError(Exception):
    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(SchedulingError):
    """Malformed or missing input."""

    status_code = 400


class ConflictError(SchedulingError):
    """The requested interval is already taken for this vet."""

    status_code = 409


class InvalidStateError(SchedulingError):
    """Transition attempted from a terminal or incompatible status."""

    status_code = 409


class NotFoundError(SchedulingError):
    status_code = 404


class PermissionDeniedError(SchedulingError):
    status_code = 403

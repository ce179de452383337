from __future__ import annotations

from typing import Dict, Optional


class TaskError(Exception):
    """
    Base class for failures that map onto the error envelope.

    Subclasses fix the HTTP status; the message is what the client sees.
    """

    status_code: int = 500

    def __init__(self, message: str, headers: Optional[Dict[str, str]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.headers = headers


class ValidationError(TaskError):
    """Raised when input is missing or malformed."""

    status_code = 400


class Unauthenticated(TaskError):
    """Raised when the bearer gate rejects a request."""

    status_code = 401


class NotFound(TaskError):
    """Raised when no task exists for the given id."""

    status_code = 404


class Conflict(TaskError):
    """Raised when an update carries a stale version."""

    status_code = 409


class StoreError(TaskError):
    """Raised when the storage backend fails."""

    status_code = 500

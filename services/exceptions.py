"""
Exceptions raised by the backend service layer.
"""

from typing import Any, Optional


class BackendError(Exception):
    """The backend answered with an unexpected HTTP status."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class BackendUnavailableError(BackendError):
    """The backend could not be reached (connection failure or timeout)."""


class NotAuthenticatedError(Exception):
    """No signed-in user, or the stored credential was rejected."""

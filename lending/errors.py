"""Error taxonomy for lending operations.

Each error carries the HTTP status the API layer answers with and a
caller-facing message.
"""

from __future__ import annotations


class LendingError(Exception):
    status_code = 500
    default_message = "Server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(LendingError):
    """Missing or malformed required field."""

    status_code = 400
    default_message = "Invalid request"


class Unauthorized(LendingError):
    """Missing, invalid or expired session, or bad credentials."""

    status_code = 401
    default_message = "Authentication required"


class Forbidden(LendingError):
    status_code = 403
    default_message = "Forbidden"


class NotFound(LendingError):
    status_code = 404
    default_message = "Not found"


class Conflict(LendingError):
    """Duplicate username, double borrow or double return."""

    status_code = 409
    default_message = "Conflict"


class StoreFailure(LendingError):
    """Persisting the document failed. Never retried automatically."""

    status_code = 500
    default_message = "Server error"

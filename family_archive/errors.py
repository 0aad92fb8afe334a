"""Error types raised by the archive core.

Each error carries the HTTP status class it maps to at the API boundary.
"""

from typing import Any


class ArchiveError(Exception):
    """Base class for expected, user-facing archive errors."""

    status_code = 500

    def __init__(self, message: str, details: Any | None = None):
        """Initialize the error.

        Args:
            message: Human readable error message
            details: Optional structured details for the response payload
        """
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        """Convert to the JSON error payload."""
        payload: dict[str, Any] = {"success": False, "error": self.message}
        if self.details is not None:
            payload["details"] = self.details
        return payload


class ValidationError(ArchiveError):
    """Missing or malformed input, including self-referential edges."""

    status_code = 400


class NotFoundError(ArchiveError):
    """Unknown person, relative, relationship, document or photo id."""

    status_code = 404

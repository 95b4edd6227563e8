"""Error types raised by the registry, resolver and analytics services.

Each error knows the HTTP status it maps to; the handlers in ``shortlink.main``
render them as ``{"success": false, "message": ...}``.
"""

from typing import Optional


class ShortLinkError(Exception):
    """Base class for errors surfaced to API clients."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInput(ShortLinkError):
    """Malformed URL, short code or query parameter."""

    status_code = 400
    default_message = "Invalid input"


class Conflict(ShortLinkError):
    """Custom short code is already taken."""

    status_code = 409
    default_message = "Short code already exists"


class NotFound(ShortLinkError):
    """Unknown, deleted or expired short code."""

    status_code = 404
    default_message = "Not Found"


class Internal(ShortLinkError):
    """Store failure or exhausted code generation."""

    status_code = 500

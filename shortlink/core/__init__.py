"""Core package - configuration, errors and database utilities."""

from .config import Settings, get_settings
from .database import Database
from .errors import ShortLinkError, InvalidInput, Conflict, NotFound, Internal

__all__ = [
    "Settings",
    "get_settings",
    "Database",
    "ShortLinkError",
    "InvalidInput",
    "Conflict",
    "NotFound",
    "Internal",
]

"""Models package for the shortlink service."""

from .link import CamelModel, LinkCreate, ErrorResponse

__all__ = ["CamelModel", "LinkCreate", "ErrorResponse"]

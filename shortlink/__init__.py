"""Shortlink - URL shortening service with click analytics."""

__version__ = "1.0.0"

"""Services package - link registry, redirect resolver and analytics."""

from .registry import LinkRegistry
from .resolver import RedirectResolver, RedirectTarget, RequestMetadata
from .analytics import AnalyticsService

__all__ = [
    "LinkRegistry",
    "RedirectResolver",
    "RedirectTarget",
    "RequestMetadata",
    "AnalyticsService",
]

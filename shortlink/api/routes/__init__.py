"""API route modules."""

from .health import router as health_router
from .links import router as links_router
from .analytics import router as analytics_router
from .redirect import router as redirect_router

__all__ = ["health_router", "links_router", "analytics_router", "redirect_router"]

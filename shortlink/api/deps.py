"""FastAPI dependencies wiring the services to the app's database handle."""

from fastapi import BackgroundTasks, Depends, Request

from ..core.config import Settings
from ..core.database import Database
from ..services import AnalyticsService, LinkRegistry, RedirectResolver, RequestMetadata
from ..utils.shortener import create_short_url


def get_db(request: Request) -> Database:
    """Get the database opened by the application lifespan."""
    return request.app.state.db


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_registry(
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> LinkRegistry:
    return LinkRegistry(db, settings)


def get_analytics(
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> AnalyticsService:
    return AnalyticsService(db, settings)


def get_resolver(
    background_tasks: BackgroundTasks,
    db: Database = Depends(get_db),
) -> RedirectResolver:
    """Build a resolver whose click writes run after the response is sent."""
    return RedirectResolver(db, dispatch=background_tasks.add_task)


def get_request_metadata(
    request: Request, settings: Settings = Depends(get_app_settings)
) -> RequestMetadata:
    """Collect visitor details for click analytics.

    With ``TRUST_PROXY`` on, the client IP is the first ``X-Forwarded-For``
    entry when present. That header is client-controlled unless a reverse
    proxy overwrites it, so deployments without one should turn it off.
    """
    ip_address = None
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for and settings.trust_proxy:
        ip_address = forwarded_for.split(",")[0].strip() or None
    if ip_address is None and request.client:
        ip_address = request.client.host
    return RequestMetadata(
        ip_address=ip_address,
        user_agent=request.headers.get("user-agent"),
        referer=request.headers.get("referer"),
    )


def get_base_url(
    request: Request, settings: Settings = Depends(get_app_settings)
) -> str:
    """Get the base URL short links are built on.

    Uses ``BASE_URL`` when configured, the request's own base URL otherwise.
    """
    return (settings.base_url or str(request.base_url)).rstrip("/")


def with_short_url(link: dict, base_url: str) -> dict:
    """Add the presentation-only ``short_url`` to a link record."""
    return {**link, "short_url": create_short_url(base_url, link["short_code"])}

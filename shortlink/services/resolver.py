"""Redirect resolution and fire-and-forget click recording."""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from ..core.database import Database
from ..core.errors import NotFound
from ..utils.shortener import is_url_expired, validate_short_code
from ..utils.useragent import detect_device

logger = logging.getLogger(__name__)

# Schedules ``fn(*args)`` to run later, e.g. ``BackgroundTasks.add_task``
Dispatcher = Callable[..., Any]


@dataclass(frozen=True)
class RequestMetadata:
    """What a redirect request tells us about the visitor."""

    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    referer: Optional[str] = None


@dataclass(frozen=True)
class RedirectTarget:
    """Outcome of a successful resolution."""

    short_code: str
    url: str
    clicks: int


class RedirectResolver:
    """Resolves short codes to live links and counts the visit."""

    def __init__(self, db: Database, dispatch: Dispatcher):
        """Initialize the resolver.

        Args:
            db: Connected database handle.
            dispatch: Hands the click event write off to run in the background.
        """
        self.db = db
        self.dispatch = dispatch

    def resolve(self, short_code: str, metadata: RequestMetadata) -> RedirectTarget:
        """Resolve a code to its redirect target.

        Unknown, deleted and expired links all raise the same NotFound.
        The click counter is incremented before returning; the click event
        itself is only scheduled.

        Raises:
            NotFound: The code does not resolve to a live link.
        """
        if not validate_short_code(short_code):
            raise NotFound()

        link = self.db.get_link_by_code(short_code)
        if link is None or not link["is_active"] or is_url_expired(link["expires_at"]):
            logger.debug(f"Short code did not resolve: {short_code}")
            raise NotFound()

        clicks = self.db.increment_clicks(link["id"])
        if clicks is None:
            # Deleted between lookup and increment
            raise NotFound()

        self.dispatch(self.record_click, link["id"], metadata)
        return RedirectTarget(
            short_code=short_code, url=link["original_url"], clicks=clicks
        )

    def record_click(self, link_id: str, metadata: RequestMetadata) -> None:
        """Write the click event for a resolved link.

        Runs detached from the redirect response. Failures are logged and
        the event is dropped.
        """
        try:
            device = detect_device(metadata.user_agent)
            self.db.create_click_event(
                link_id,
                ip_address=metadata.ip_address,
                user_agent=metadata.user_agent,
                referer=metadata.referer,
                device_type=device.device_type,
                browser=device.browser,
                os=device.os,
            )
        except Exception as e:
            logger.error(f"Dropped click event for link {link_id}: {e}")

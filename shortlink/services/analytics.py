"""Read-only click analytics for a single link."""

from datetime import datetime
from typing import Optional

from ..core.config import Settings, get_settings
from ..core.database import Database, to_utc
from ..core.errors import InvalidInput, NotFound
from ..utils.pagination import build_pagination, clamp_page


class AnalyticsService:
    """Counts and pages through the click events of a link."""

    def __init__(self, db: Database, settings: Optional[Settings] = None):
        self.db = db
        self.settings = settings or get_settings()

    def _link(self, short_code: str) -> dict:
        link = self.db.get_link_by_code(short_code)
        if link is None:
            raise NotFound("Link not found")
        return link

    def events(
        self,
        short_code: str,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> tuple[list[dict], dict]:
        """Page through click events newest first.

        Args:
            short_code: The short code.
            page: 1-based page.
            limit: Page size, clamped like link listings.
            start_date: Earliest click time to include.
            end_date: Latest click time to include.

        Returns:
            Tuple of (click events, pagination dict).

        Raises:
            InvalidInput: start_date is after end_date.
            NotFound: Unknown code.
        """
        try:
            start_date = to_utc(start_date) if start_date else None
            end_date = to_utc(end_date) if end_date else None
        except (OverflowError, ValueError):
            raise InvalidInput("Invalid date range")
        if start_date and end_date and start_date > end_date:
            raise InvalidInput("startDate must not be after endDate")
        link = self._link(short_code)
        page, limit = clamp_page(
            page,
            limit,
            default_limit=self.settings.default_page_size,
            max_limit=self.settings.max_page_size,
        )
        total = self.db.count_click_events(link["id"], start_date, end_date)
        events = self.db.get_click_events(
            link["id"],
            offset=(page - 1) * limit,
            limit=limit,
            start=start_date,
            end=end_date,
        )
        return events, build_pagination(page, limit, total)

    def summary(self, short_code: str) -> dict:
        """Total clicks plus event counts per device type, browser and OS."""
        link = self._link(short_code)
        return {
            "short_code": link["short_code"],
            "total_clicks": link["clicks"],
            "recorded_events": self.db.count_click_events(link["id"]),
            "devices": self.db.count_click_events_by(link["id"], "device_type"),
            "browsers": self.db.count_click_events_by(link["id"], "browser"),
            "operating_systems": self.db.count_click_events_by(link["id"], "os"),
        }

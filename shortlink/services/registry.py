"""Link registry: creation, lookup, listing and deletion of short links."""

import logging
from datetime import datetime
from typing import Callable, Optional

from ..core.config import Settings, get_settings
from ..core.database import Database, to_utc
from ..core.errors import Conflict, Internal, InvalidInput, NotFound
from ..utils.pagination import build_pagination, clamp_page
from ..utils.shortener import (
    generate_short_code,
    is_reserved_code,
    validate_short_code,
    validate_url,
)

logger = logging.getLogger(__name__)


class LinkRegistry:
    """Owns the short link records and the uniqueness of their codes."""

    def __init__(
        self,
        db: Database,
        settings: Optional[Settings] = None,
        code_generator: Callable[[int], str] = generate_short_code,
    ):
        """Initialize the registry.

        Args:
            db: Connected database handle.
            settings: Application settings, defaults to the cached settings.
            code_generator: Produces a random code of the given length.
        """
        self.db = db
        self.settings = settings or get_settings()
        self.code_generator = code_generator

    def create(
        self,
        original_url: str,
        short_code: Optional[str] = None,
        title: Optional[str] = None,
        description: Optional[str] = None,
        expires_at: Optional[datetime] = None,
    ) -> dict:
        """Create a short link.

        Args:
            original_url: Absolute http(s) URL to shorten.
            short_code: Optional custom code, 6-8 alphanumerics.
            title: Optional title.
            description: Optional description.
            expires_at: Optional expiry; past values are accepted.

        Returns:
            The stored link record.

        Raises:
            InvalidInput: Malformed URL or custom code.
            Conflict: Custom code already taken.
            Internal: No free code found within the attempt budget.
        """
        if isinstance(original_url, str):
            original_url = original_url.strip()
        if not validate_url(original_url):
            raise InvalidInput("Invalid URL: must be an absolute http or https URL")

        if expires_at is not None:
            try:
                expires_at = to_utc(expires_at)
            except (OverflowError, ValueError):
                raise InvalidInput("Invalid expiresAt")

        if short_code is not None:
            if not validate_short_code(short_code):
                raise InvalidInput(
                    "Short code must be 6-8 alphanumeric characters"
                )
            if is_reserved_code(short_code):
                raise InvalidInput(f"Short code '{short_code}' is reserved")
            return self._create_with_code(
                short_code, original_url, title, description, expires_at
            )

        return self._create_with_generated_code(
            original_url, title, description, expires_at
        )

    def _create_with_code(
        self,
        short_code: str,
        original_url: str,
        title: Optional[str],
        description: Optional[str],
        expires_at: Optional[datetime],
    ) -> dict:
        if self.db.short_code_exists(short_code):
            raise Conflict("Short code already exists")
        link = self.db.create_link(
            short_code, original_url, title, description, expires_at
        )
        if link is None:
            # Lost a race with a concurrent create of the same code
            raise Conflict("Short code already exists")
        return link

    def _create_with_generated_code(
        self,
        original_url: str,
        title: Optional[str],
        description: Optional[str],
        expires_at: Optional[datetime],
    ) -> dict:
        start = self.settings.default_short_code_length
        stop = self.settings.max_short_code_length
        attempts = 0
        for length in range(start, stop + 1):
            for _ in range(self.settings.code_generation_attempts):
                attempts += 1
                code = self.code_generator(length)
                if is_reserved_code(code) or self.db.short_code_exists(code):
                    logger.debug(f"Generated code {code} already exists, retrying")
                    continue
                link = self.db.create_link(
                    code, original_url, title, description, expires_at
                )
                if link is not None:
                    if attempts > 1:
                        logger.info(f"Generated code {code} after {attempts} attempts")
                    return link
            logger.warning(f"No free {length}-character code found, lengthening")

        logger.error(f"Failed to generate unique short code after {attempts} attempts")
        raise Internal("Failed to generate unique short code")

    def get(self, short_code: str) -> dict:
        """Get a link by code, whether active, expired or deleted.

        Raises:
            NotFound: No link was ever created with this code.
        """
        link = None
        if validate_short_code(short_code):
            link = self.db.get_link_by_code(short_code)
        if link is None:
            raise NotFound("Link not found")
        return link

    def get_stats(self, short_code: str) -> dict:
        """Get a link together with all of its click events."""
        link = self.get(short_code)
        return {**link, "click_events": self.db.get_click_events(link["id"])}

    def list_links(
        self,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        search: Optional[str] = None,
    ) -> tuple[list[dict], dict]:
        """List links newest first.

        Args:
            page: 1-based page, values below 1 become 1.
            limit: Page size, clamped into [1, max_page_size].
            search: Case-insensitive substring of code, URL or title.

        Returns:
            Tuple of (links, pagination dict).
        """
        page, limit = clamp_page(
            page,
            limit,
            default_limit=self.settings.default_page_size,
            max_limit=self.settings.max_page_size,
        )
        search = search.strip() if search else None
        links, total = self.db.list_links((page - 1) * limit, limit, search or None)
        return links, build_pagination(page, limit, total)

    def delete(self, short_code: str) -> None:
        """Soft delete a link; its code stays retired.

        Raises:
            NotFound: Unknown or already deleted code.
        """
        if not validate_short_code(short_code) or not self.db.deactivate_link(short_code):
            raise NotFound("Link not found")

"""Pagination helpers shared by link listings and click analytics."""

import math
from typing import Optional


def clamp_page(
    page: Optional[int],
    limit: Optional[int],
    default_limit: int = 10,
    max_limit: int = 100,
) -> tuple[int, int]:
    """Bring page and limit into range instead of rejecting them.

    Args:
        page: Requested 1-based page.
        limit: Requested page size.
        default_limit: Page size used when none is given.
        max_limit: Largest page size allowed.

    Returns:
        Tuple of (page, limit) with page >= 1 and 1 <= limit <= max_limit.
    """
    page = max(page or 1, 1)
    if limit is None:
        limit = default_limit
    limit = min(max(limit, 1), max_limit)
    return page, limit


def build_pagination(page: int, limit: int, total: int) -> dict:
    """Build the pagination block returned next to a page of results."""
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "pages": math.ceil(total / limit) if total else 0,
    }

"""Link management API routes.

This module contains the endpoints under /api/links:
- Create short link (POST /api/links)
- List links (GET /api/links)
- Get link stats (GET /api/links/{short_code})
- Delete link (DELETE /api/links/{short_code})
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from ...models.link import ErrorResponse, LinkCreate
from ...schemas.link import (
    DeleteResponse,
    LinkListResponse,
    LinkResponse,
    LinkStatsResponse,
)
from ...services import LinkRegistry
from ..deps import get_base_url, get_registry, with_short_url

router = APIRouter(prefix="/api/links", tags=["Links"])


@router.post(
    "",
    response_model=LinkResponse,
    status_code=201,
    responses={
        201: {"description": "Short link created successfully"},
        400: {"model": ErrorResponse, "description": "Invalid URL or short code"},
        409: {"model": ErrorResponse, "description": "Short code already exists"},
    },
    summary="Create a short link",
    description="Create a new short link from a long URL. Optionally specify a custom code.",
)
def create_link(
    link_data: LinkCreate,
    registry: LinkRegistry = Depends(get_registry),
    base_url: str = Depends(get_base_url),
) -> dict:
    """Create a short link.

    Args:
        link_data: Link creation data.
        registry: Link registry.
        base_url: Base URL for the returned short URL.

    Returns:
        Created link including its short URL.
    """
    link = registry.create(
        link_data.original_url,
        short_code=link_data.short_code,
        title=link_data.title,
        description=link_data.description,
        expires_at=link_data.expires_at,
    )
    return with_short_url(link, base_url)


@router.get(
    "",
    response_model=LinkListResponse,
    summary="List links",
    description="List links newest first, with optional search over code, URL and title.",
)
def list_links(
    page: int = Query(1, description="1-based page number"),
    limit: int = Query(10, description="Page size, at most 100"),
    search: Optional[str] = Query(None, description="Case-insensitive substring"),
    registry: LinkRegistry = Depends(get_registry),
    base_url: str = Depends(get_base_url),
) -> dict:
    """List links with pagination metadata."""
    links, pagination = registry.list_links(page=page, limit=limit, search=search)
    return {
        "links": [with_short_url(link, base_url) for link in links],
        "pagination": pagination,
    }


@router.get(
    "/{short_code}",
    response_model=LinkStatsResponse,
    responses={
        200: {"description": "Link and its click events"},
        404: {"model": ErrorResponse, "description": "Link not found"},
    },
    summary="Get link stats",
    description="Get a link, including inactive or expired ones, with its recorded clicks.",
)
def get_link_stats(
    short_code: str,
    registry: LinkRegistry = Depends(get_registry),
    base_url: str = Depends(get_base_url),
) -> dict:
    """Get stats for one link.

    Args:
        short_code: The short code.
        registry: Link registry.
        base_url: Base URL for the returned short URL.

    Returns:
        Link information with click events.
    """
    return with_short_url(registry.get_stats(short_code), base_url)


@router.delete(
    "/{short_code}",
    response_model=DeleteResponse,
    responses={
        200: {"description": "Link deleted successfully"},
        404: {"model": ErrorResponse, "description": "Link not found"},
    },
    summary="Delete a link",
    description="Soft delete a link. Its code stops redirecting and is never reused.",
)
def delete_link(
    short_code: str,
    registry: LinkRegistry = Depends(get_registry),
) -> dict:
    """Delete a link."""
    registry.delete(short_code)
    return {"success": True, "message": "Link deleted successfully"}

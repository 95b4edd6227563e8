"""Click analytics API routes."""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ...models.link import ErrorResponse
from ...schemas.link import AnalyticsSummaryResponse, ClickEventListResponse
from ...services import AnalyticsService
from ..deps import get_analytics

router = APIRouter(prefix="/api/analytics", tags=["Analytics"])


@router.get(
    "/summary/{short_code}",
    response_model=AnalyticsSummaryResponse,
    responses={404: {"model": ErrorResponse, "description": "Link not found"}},
    summary="Click summary for a link",
)
def get_summary(
    short_code: str,
    analytics: AnalyticsService = Depends(get_analytics),
) -> dict:
    """Total clicks and counts per device type, browser and OS."""
    return analytics.summary(short_code)


@router.get(
    "/{short_code}",
    response_model=ClickEventListResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid date range"},
        404: {"model": ErrorResponse, "description": "Link not found"},
    },
    summary="Click events for a link",
)
def get_events(
    short_code: str,
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    page: int = Query(1),
    limit: int = Query(10),
    analytics: AnalyticsService = Depends(get_analytics),
) -> dict:
    """Page through the recorded clicks of a link.

    Args:
        short_code: The short code.
        start_date: Earliest click time to include.
        end_date: Latest click time to include.
        page: 1-based page number.
        limit: Page size, at most 100.
        analytics: Analytics service.

    Returns:
        Click events and pagination metadata.
    """
    events, pagination = analytics.events(
        short_code,
        page=page,
        limit=limit,
        start_date=start_date,
        end_date=end_date,
    )
    return {"events": events, "pagination": pagination}

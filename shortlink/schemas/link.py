"""Response schemas for the shortlink service."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from ..models.link import CamelModel


class LinkResponse(CamelModel):
    """Response model for a short link."""

    id: str
    short_code: str
    short_url: str
    original_url: str
    title: Optional[str] = None
    description: Optional[str] = None
    clicks: int
    is_active: bool
    expires_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class ClickEventResponse(CamelModel):
    """Response model for one recorded click."""

    id: str
    link_id: str
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    referer: Optional[str] = None
    device_type: Optional[str] = None
    browser: Optional[str] = None
    os: Optional[str] = None
    clicked_at: datetime


class LinkStatsResponse(LinkResponse):
    """Response model for a link with its click events."""

    click_events: list[ClickEventResponse]


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    pages: int


class LinkListResponse(CamelModel):
    """Response model for a page of links."""

    links: list[LinkResponse]
    pagination: Pagination


class ClickEventListResponse(CamelModel):
    """Response model for a page of click events."""

    events: list[ClickEventResponse]
    pagination: Pagination


class AnalyticsSummaryResponse(CamelModel):
    """Response model for per-link click counts."""

    short_code: str
    total_clicks: int
    recorded_events: int
    devices: dict[str, int]
    browsers: dict[str, int]
    operating_systems: dict[str, int]


class DeleteResponse(BaseModel):
    """Response model for link deletion."""

    success: bool = True
    message: str


class HealthResponse(BaseModel):
    """Response model for health check."""

    ok: bool
    version: str

"""Schemas package for the shortlink service."""

from .link import (
    LinkResponse,
    LinkStatsResponse,
    LinkListResponse,
    ClickEventResponse,
    ClickEventListResponse,
    AnalyticsSummaryResponse,
    Pagination,
    DeleteResponse,
    HealthResponse,
)

__all__ = [
    "LinkResponse",
    "LinkStatsResponse",
    "LinkListResponse",
    "ClickEventResponse",
    "ClickEventListResponse",
    "AnalyticsSummaryResponse",
    "Pagination",
    "DeleteResponse",
    "HealthResponse",
]

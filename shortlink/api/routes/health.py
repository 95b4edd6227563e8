"""Health check API routes."""

from fastapi import APIRouter

from ...schemas.link import HealthResponse

router = APIRouter(tags=["Health"])

HEALTH_VERSION = "1.0"


@router.get("/healthz", response_model=HealthResponse, summary="Health check")
@router.get("/health", response_model=HealthResponse, include_in_schema=False)
async def health_check() -> dict:
    """Health check endpoint.

    Returns:
        Liveness flag and API version.
    """
    return {"ok": True, "version": HEALTH_VERSION}

"""Short code redirect route. Registered last so it never shadows API paths."""

from fastapi import APIRouter, Depends
from fastapi.responses import RedirectResponse

from ...models.link import ErrorResponse
from ...services import RedirectResolver, RequestMetadata
from ..deps import get_request_metadata, get_resolver

router = APIRouter(tags=["Redirect"])


@router.get(
    "/{short_code}",
    response_class=RedirectResponse,
    status_code=302,
    responses={
        302: {"description": "Redirect to original URL"},
        404: {"model": ErrorResponse, "description": "Short URL not found"},
    },
    summary="Redirect to original URL",
    description="Redirect to the original URL associated with the short code.",
)
def redirect_to_url(
    short_code: str,
    resolver: RedirectResolver = Depends(get_resolver),
    metadata: RequestMetadata = Depends(get_request_metadata),
) -> RedirectResponse:
    """Redirect to the original URL.

    The click event is written by a background task after the response.

    Args:
        short_code: The short URL code.
        resolver: Redirect resolver bound to this request's background tasks.
        metadata: Visitor details for analytics.

    Returns:
        Redirect response to original URL.
    """
    target = resolver.resolve(short_code, metadata)
    return RedirectResponse(url=target.url, status_code=302)

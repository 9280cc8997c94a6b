import logging
import secrets
from typing import Optional

from fastapi import APIRouter, Depends, Header, Query, Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from linkpeek.config import Settings, get_settings
from linkpeek.models.error import ErrorResponse
from linkpeek.models.metadata import Metadata
from linkpeek.services.errors import Unauthorized
from linkpeek.services.resolver import resolve

logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address)


async def require_api_key(
    x_api_key: Optional[str] = Header(default=None, alias="X-API-Key"),
    settings: Settings = Depends(get_settings),
) -> None:
    """Reject the request unless X-API-Key equals the configured key."""
    if not x_api_key or not secrets.compare_digest(x_api_key.encode(), settings.api_key.encode()):
        raise Unauthorized("invalid or missing API key")


router = APIRouter(dependencies=[Depends(require_api_key)])


@router.get(
    "/metadata",
    response_model=Metadata,
    summary="Resolve preview metadata for a URL",
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
)
@limiter.limit("60/minute")
async def get_metadata(
    request: Request,
    url: Optional[str] = Query(default=None, description="Absolute http(s) URL to inspect."),
    settings: Settings = Depends(get_settings),
) -> Metadata:
    """Return title, description, site name and preview images for *url*.

    YouTube links are answered from oEmbed, then the Data API when a key is
    configured; everything else (and any YouTube link both tiers fail on) is
    fetched and its HTML parsed.
    """
    logger.info("Metadata request received", extra={"target": url})
    return await resolve(url or "", settings)

"""YouTube oEmbed client: the keyless, lightweight provider tier."""

import logging
from typing import Optional

import httpx

from linkpeek.models.metadata import Metadata
from linkpeek.services.errors import ProviderError

logger = logging.getLogger(__name__)

OEMBED_ENDPOINT = "https://www.youtube.com/oembed"
_OEMBED_TIMEOUT = 5


async def fetch_embed(
    page_url: str,
    timeout: float = _OEMBED_TIMEOUT,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Metadata:
    """Return metadata for *page_url* from the YouTube oEmbed endpoint.

    oEmbed has no description field, so the author name is reported as the
    description.

    Raises:
        ProviderError: on transport failure, a non-200 status or an
            undecodable body.
    """
    params = {"url": page_url, "format": "json"}
    try:
        async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
            resp = await client.get(OEMBED_ENDPOINT, params=params)
    except httpx.HTTPError as exc:
        raise ProviderError(f"oEmbed request failed: {exc}") from exc

    if resp.status_code != 200:
        raise ProviderError(f"oEmbed returned HTTP {resp.status_code}")

    try:
        data = resp.json()
    except ValueError as exc:
        raise ProviderError(f"oEmbed returned invalid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ProviderError("oEmbed returned an unexpected payload")

    logger.debug("oEmbed hit for %s", page_url)
    return Metadata(
        url=page_url,
        page_name=str(data.get("provider_name") or ""),
        title=str(data.get("title") or ""),
        description=str(data.get("author_name") or ""),
        images=[str(data.get("thumbnail_url") or "")],
    )

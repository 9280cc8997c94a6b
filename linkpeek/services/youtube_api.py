"""YouTube Data API v3 client: the keyed, richer provider tier."""

import logging
from typing import Optional

import httpx

from linkpeek.models.metadata import Metadata
from linkpeek.services.errors import ProviderError, VideoNotFound

logger = logging.getLogger(__name__)

VIDEOS_ENDPOINT = "https://www.googleapis.com/youtube/v3/videos"
_API_TIMEOUT = 5
_THUMBNAIL_QUALITY = "high"


def _snippet_to_metadata(video_id: str, snippet: dict) -> Metadata:
    thumbnails = snippet.get("thumbnails") or {}
    thumb = (thumbnails.get(_THUMBNAIL_QUALITY) or {}).get("url", "")
    # The Data API path echoes the video ID rather than the page URL.
    return Metadata(
        url=video_id,
        page_name=str(snippet.get("channelTitle") or ""),
        title=str(snippet.get("title") or ""),
        description=str(snippet.get("description") or ""),
        images=[str(thumb or "")],
    )


async def fetch_video_by_id(
    video_id: str,
    api_key: str,
    timeout: float = _API_TIMEOUT,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Metadata:
    """Return metadata for *video_id* from the ``videos`` resource (snippet part).

    Raises:
        VideoNotFound: if *video_id* is empty (no request is made) or the API
            returns no items.
        ProviderError: if *api_key* is empty, or on transport failure, a
            non-200 status or an undecodable body.
    """
    if not video_id:
        raise VideoNotFound("no video ID in URL")
    if not api_key:
        raise ProviderError("no YouTube Data API key configured")

    params = {"part": "snippet", "id": video_id, "key": api_key}
    try:
        async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
            resp = await client.get(VIDEOS_ENDPOINT, params=params)
    except httpx.HTTPError as exc:
        raise ProviderError(f"YouTube API request failed: {exc}") from exc

    if resp.status_code != 200:
        raise ProviderError(f"YouTube API returned HTTP {resp.status_code}")

    try:
        data = resp.json()
    except ValueError as exc:
        raise ProviderError(f"YouTube API returned invalid JSON: {exc}") from exc

    items = data.get("items") if isinstance(data, dict) else None
    if not items:
        raise VideoNotFound(f"no video found for ID {video_id}")

    try:
        meta = _snippet_to_metadata(video_id, items[0].get("snippet") or {})
    except (AttributeError, TypeError, KeyError) as exc:
        raise ProviderError(f"YouTube API returned an unexpected payload: {exc}") from exc

    logger.debug("YouTube API hit for %s", video_id)
    return meta

"""Metadata resolution: picks the best source for a URL and falls back in order."""

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Tuple
from urllib.parse import urlparse

import httpx

from linkpeek.config import Settings
from linkpeek.models.metadata import Metadata
from linkpeek.services.classifier import ProviderMatch, classify
from linkpeek.services.errors import BlockedURL, InvalidInput, ProviderError, UpstreamFetchError
from linkpeek.services.extractor import extract, host_label
from linkpeek.services.fetcher import ALLOWED_SCHEMES, fetch_url
from linkpeek.services.oembed import fetch_embed
from linkpeek.services.youtube_api import fetch_video_by_id

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Target:
    url: str
    hostname: str
    match: ProviderMatch


ProviderStrategy = Callable[[Target, Settings, str], Awaitable[Metadata]]


async def _via_oembed(target: Target, settings: Settings, api_key: str) -> Metadata:
    return await fetch_embed(target.url, timeout=settings.provider_timeout)


async def _via_data_api(target: Target, settings: Settings, api_key: str) -> Metadata:
    if not api_key:
        raise ProviderError("skipped: no YouTube Data API key configured")
    return await fetch_video_by_id(
        target.match.provider_id, api_key, timeout=settings.provider_timeout
    )


# Tried in order for special-provider URLs; the first success wins.
PROVIDER_STRATEGIES: Tuple[Tuple[str, ProviderStrategy], ...] = (
    ("oembed", _via_oembed),
    ("youtube_data_api", _via_data_api),
)


def validate_target(raw_url: str) -> Target:
    """Check that *raw_url* is an absolute http(s) URL and classify it.

    Raises:
        InvalidInput: if the URL is missing, relative, or not http(s).
    """
    if not raw_url:
        raise InvalidInput("missing url parameter")
    try:
        parsed = urlparse(raw_url)
        # .port raises on a non-numeric or out-of-range port
        hostname, _port = parsed.hostname, parsed.port
    except ValueError as exc:
        raise InvalidInput("invalid url") from exc
    if parsed.scheme not in ALLOWED_SCHEMES or not hostname:
        raise InvalidInput("invalid url")
    return Target(url=raw_url, hostname=host_label(raw_url), match=classify(raw_url))


async def _resolve_via_providers(
    target: Target, settings: Settings, api_key: str
) -> Optional[Metadata]:
    for name, strategy in PROVIDER_STRATEGIES:
        try:
            meta = await strategy(target, settings, api_key)
        except ProviderError as exc:
            logger.warning("Resolver: %s failed for %s, falling back: %s", name, target.url, exc)
            continue
        logger.info("Resolver: %s resolved %s", name, target.url)
        return meta
    return None


async def _resolve_via_html(target: Target, settings: Settings) -> Metadata:
    try:
        body = await fetch_url(
            target.url,
            timeout=settings.fetch_timeout,
            block_private=settings.block_private_addresses,
        )
    except BlockedURL as exc:
        logger.warning("Invalid or blocked URL: %s – %s", target.url, exc)
        raise InvalidInput(str(exc)) from exc
    except (httpx.HTTPError, httpx.InvalidURL, RuntimeError) as exc:
        logger.error("Error fetching URL %s: %s", target.url, exc)
        raise UpstreamFetchError("failed to fetch target") from exc

    return extract(body, target.url)


def _with_page_name(meta: Metadata, hostname: str) -> Metadata:
    if meta.page_name:
        return meta
    return meta.model_copy(update={"page_name": hostname})


async def resolve(raw_url: str, settings: Settings, api_key: Optional[str] = None) -> Metadata:
    """Resolve *raw_url* into a :class:`Metadata` record.

    Resolution order:
    1. Provider tiers (YouTube only): oEmbed, then the Data API when a key
       is available. Provider failures are logged and never surfaced.
    2. Generic fetch of the page followed by HTML extraction.

    *api_key* is the YouTube Data API key; ``None`` uses ``settings.yt_api_key``.

    Raises:
        InvalidInput: if *raw_url* is not a valid absolute http(s) URL.
        UpstreamFetchError: if the page cannot be fetched or returns non-2xx.
        ExtractionError: if the page cannot be parsed.
    """
    target = validate_target(raw_url)
    if api_key is None:
        api_key = settings.yt_api_key

    # ── 1. Provider tiers ─────────────────────────────────────────────────────
    if target.match.is_special:
        meta = await _resolve_via_providers(target, settings, api_key)
        if meta is not None:
            return _with_page_name(meta, target.hostname)
        logger.info("Resolver: provider tiers exhausted for %s, scraping HTML", target.url)

    # ── 2. Generic HTML (fallback) ────────────────────────────────────────────
    meta = await _resolve_via_html(target, settings)
    return _with_page_name(meta, target.hostname)

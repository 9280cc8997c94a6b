"""Outbound fetch of the target page for HTML extraction."""

import asyncio
import ipaddress
import socket
from typing import List, Optional
from urllib.parse import urljoin, urlparse

import httpx

from linkpeek.services.errors import BlockedURL

MAX_BODY_BYTES = 10 * 1024 * 1024  # 10 MB
FETCH_TIMEOUT = 10  # seconds
MAX_HOPS = 10
ALLOWED_SCHEMES = {"http", "https"}

DEFAULT_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/113.0.0.0 Safari/537.36"
    ),
    "Accept-Language": "en-GB,en;q=0.9",
    "Cache-Control": "no-cache",
}


def _is_internal(raw_ip: str) -> bool:
    # IPv6 results may carry a zone ID ("fe80::1%eth0").
    try:
        addr = ipaddress.ip_address(raw_ip.split("%")[0])
    except ValueError:
        return False
    return addr.is_private or addr.is_loopback or addr.is_link_local or addr.is_reserved


async def _resolves_internally(hostname: str) -> bool:
    """Return True if any address *hostname* resolves to is internal.

    Unresolvable hosts are let through; the fetch itself will fail on them.
    """
    loop = asyncio.get_running_loop()
    try:
        infos = await loop.getaddrinfo(hostname, None)
    except socket.gaierror:
        return False
    return any(_is_internal(info[4][0]) for info in infos)


async def check_url(url: str, block_private: bool = True) -> None:
    """Raise :class:`BlockedURL` unless *url* is safe to request."""
    parsed = urlparse(url)
    if parsed.scheme not in ALLOWED_SCHEMES:
        raise BlockedURL(f"Scheme '{parsed.scheme}' is not allowed. Use http or https.")
    if not parsed.hostname:
        raise BlockedURL("URL must have a valid hostname.")
    if block_private and await _resolves_internally(parsed.hostname):
        raise BlockedURL("Requests to private/internal addresses are not allowed.")


def _declared_length(response: httpx.Response) -> Optional[int]:
    """Content-Length as an int, or None when absent or unparseable."""
    try:
        return int(response.headers["content-length"])
    except (KeyError, ValueError):
        return None


async def _read_capped(response: httpx.Response) -> bytes:
    declared = _declared_length(response)
    if declared is not None and declared > MAX_BODY_BYTES:
        raise RuntimeError("Response body exceeds the maximum allowed size.")

    chunks: List[bytes] = []
    received = 0
    async for chunk in response.aiter_bytes():
        received += len(chunk)
        if received > MAX_BODY_BYTES:
            raise RuntimeError("Response body exceeds the maximum allowed size.")
        chunks.append(chunk)
    return b"".join(chunks)


def _next_hop(current_url: str, response: httpx.Response) -> str:
    try:
        return urljoin(current_url, response.headers.get("location", ""))
    except ValueError as exc:
        raise httpx.InvalidURL(f"Malformed redirect location: {exc}") from exc


async def fetch_url(
    url: str,
    timeout: float = FETCH_TIMEOUT,
    block_private: bool = True,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> bytes:
    """Fetch *url* and return the raw response body.

    Redirects are followed by hand so each hop passes :func:`check_url`
    before it is requested. The body is returned undecoded so the HTML parser
    can sniff its encoding.

    Raises:
        BlockedURL: if the URL or a redirect target fails :func:`check_url`.
        httpx.HTTPError: on network errors or a non-2xx response.
        httpx.InvalidURL: if a URL or redirect location cannot be requested.
        RuntimeError: on too many redirects or a body over MAX_BODY_BYTES.
    """
    await check_url(url, block_private)

    current_url = url
    async with httpx.AsyncClient(
        follow_redirects=False,
        timeout=timeout,
        headers=DEFAULT_HEADERS,
        transport=transport,
    ) as client:
        for _ in range(MAX_HOPS + 1):
            async with client.stream("GET", current_url) as response:
                if not response.is_redirect:
                    response.raise_for_status()
                    return await _read_capped(response)
                current_url = _next_hop(current_url, response)
            await check_url(current_url, block_private)

    raise RuntimeError("Too many redirects.")

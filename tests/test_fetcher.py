"""Tests for linkpeek.services.fetcher.fetch_url."""

import asyncio
import asyncio.base_events
import socket

import httpx
import pytest

from linkpeek.services import fetcher
from linkpeek.services.errors import BlockedURL
from linkpeek.services.fetcher import check_url, fetch_url


def _fetch(url: str, handler):
    return asyncio.run(
        fetch_url(url, block_private=False, transport=httpx.MockTransport(handler))
    )


class TestFetchUrl:
    def test_returns_raw_body(self):
        body = _fetch("https://example.test/", lambda r: httpx.Response(200, content=b"<html>ok</html>"))
        assert body == b"<html>ok</html>"

    def test_sends_browser_headers(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, content=b"")

        _fetch("https://example.test/", handler)

        headers = seen[0].headers
        assert headers["User-Agent"].startswith("Mozilla/5.0")
        assert headers["Accept-Language"] == "en-GB,en;q=0.9"
        assert headers["Cache-Control"] == "no-cache"

    def test_follows_relative_redirect(self):
        def handler(request):
            if request.url.path == "/old":
                return httpx.Response(301, headers={"location": "/new"})
            return httpx.Response(200, content=request.url.path.encode())

        assert _fetch("https://example.test/old", handler) == b"/new"

    def test_non_2xx_raises_status_error(self):
        with pytest.raises(httpx.HTTPStatusError):
            _fetch("https://example.test/", lambda r: httpx.Response(404, content=b"missing"))

    def test_too_many_redirects(self):
        def handler(request):
            return httpx.Response(302, headers={"location": "/loop"})

        with pytest.raises(RuntimeError):
            _fetch("https://example.test/loop", handler)

    def test_oversized_body_rejected(self, monkeypatch):
        monkeypatch.setattr(fetcher, "MAX_BODY_BYTES", 8)
        with pytest.raises(RuntimeError):
            _fetch("https://example.test/", lambda r: httpx.Response(200, content=b"0123456789"))

    def test_malformed_content_length_is_ignored(self):
        def handler(request):
            return httpx.Response(200, headers={"content-length": "abc"}, content=b"<html></html>")

        assert _fetch("https://example.test/", handler) == b"<html></html>"

    def test_redirect_to_internal_address_is_blocked(self):
        async def run():
            transport = httpx.MockTransport(
                lambda r: httpx.Response(302, headers={"location": "http://127.0.0.1/admin"})
            )
            return await fetch_url("http://93.184.216.34/", block_private=True, transport=transport)

        with pytest.raises(BlockedURL):
            asyncio.run(run())

    def test_malformed_redirect_location_is_invalid_url(self):
        with pytest.raises(httpx.InvalidURL):
            _fetch(
                "https://example.test/",
                lambda r: httpx.Response(302, headers={"location": "http://[oops/"}),
            )


class TestCheckUrl:
    def test_rejects_non_http_scheme(self):
        with pytest.raises(BlockedURL):
            asyncio.run(check_url("ftp://example.test/file", block_private=False))

    def test_rejects_missing_host(self):
        with pytest.raises(BlockedURL):
            asyncio.run(check_url("https:///path", block_private=False))

    def test_rejects_loopback_when_blocking(self):
        with pytest.raises(BlockedURL):
            asyncio.run(check_url("http://127.0.0.1/", block_private=True))

    def test_allows_loopback_when_not_blocking(self):
        asyncio.run(check_url("http://127.0.0.1/", block_private=False))

    def test_lookup_goes_through_event_loop(self, monkeypatch):
        seen = []

        async def fake_getaddrinfo(self, host, port, *args, **kwargs):
            seen.append(host)
            return [(socket.AF_INET, socket.SOCK_STREAM, 6, "", ("10.0.0.7", 0))]

        monkeypatch.setattr(asyncio.base_events.BaseEventLoop, "getaddrinfo", fake_getaddrinfo)
        monkeypatch.setattr(
            socket, "getaddrinfo", lambda *a, **k: pytest.fail("blocking lookup on the loop thread")
        )

        with pytest.raises(BlockedURL):
            asyncio.run(check_url("http://intranet.test/", block_private=True))
        assert seen == ["intranet.test"]

"""Tests for the direct HTTP fetcher using httpx.MockTransport."""

import asyncio

import httpx
import pytest

from productqa.scrapers.http_fetcher import FetchTransportError, HttpFetcher


URL = "https://shop.example.jp/items/1"


def fetcher_for(handler, **kwargs) -> HttpFetcher:
    return HttpFetcher(transport=httpx.MockTransport(handler), **kwargs)


class TestHttpFetcher:
    async def test_returns_body_and_charset(self):
        def handler(request):
            return httpx.Response(
                200,
                content="<h1>靴</h1>".encode("shift_jis"),
                headers={"Content-Type": "text/html; charset=shift_jis"},
            )

        response = await fetcher_for(handler).fetch(URL, headers={}, timeout=5)

        assert response.status_code == 200
        assert response.charset == "shift_jis"
        assert response.markup == "<h1>靴</h1>"

    async def test_undeclared_charset_returns_bytes(self):
        def handler(request):
            return httpx.Response(200, content=b"<h1>x</h1>", headers={"Content-Type": "text/html"})

        response = await fetcher_for(handler).fetch(URL, headers={}, timeout=5)

        assert response.markup == b"<h1>x</h1>"

    async def test_error_status_is_returned_not_raised(self):
        response = await fetcher_for(lambda request: httpx.Response(503)).fetch(
            URL, headers={}, timeout=5
        )

        assert response.status_code == 503

    async def test_sends_identity_headers(self):
        seen = {}

        def handler(request):
            seen.update(request.headers)
            return httpx.Response(200, content=b"ok")

        await fetcher_for(handler).fetch(
            URL, headers={"User-Agent": "agent/1.0", "Referer": "https://shop.example.jp/"}, timeout=5
        )

        assert seen["user-agent"] == "agent/1.0"
        assert seen["referer"] == "https://shop.example.jp/"

    async def test_follows_redirects(self):
        def handler(request):
            if request.url.path == "/old":
                return httpx.Response(301, headers={"Location": "https://shop.example.jp/new"})
            return httpx.Response(200, content=b"moved")

        response = await fetcher_for(handler).fetch(
            "https://shop.example.jp/old", headers={}, timeout=5
        )

        assert response.url == "https://shop.example.jp/new"
        assert response.content == b"moved"

    async def test_redirect_limit_is_not_retryable(self):
        def handler(request):
            return httpx.Response(302, headers={"Location": str(request.url)})

        with pytest.raises(FetchTransportError) as exc_info:
            await fetcher_for(handler, max_redirects=2).fetch(URL, headers={}, timeout=5)

        assert exc_info.value.retryable is False

    async def test_connect_error_is_retryable(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(FetchTransportError) as exc_info:
            await fetcher_for(handler).fetch(URL, headers={}, timeout=5)

        assert exc_info.value.retryable is True
        assert "ConnectError" in str(exc_info.value)

    async def test_oversized_body_is_not_retryable(self):
        handler = lambda request: httpx.Response(200, content=b"x" * 100)

        with pytest.raises(FetchTransportError) as exc_info:
            await fetcher_for(handler, max_bytes=10).fetch(URL, headers={}, timeout=5)

        assert exc_info.value.retryable is False

    async def test_deadline_is_enforced(self):
        async def handler(request):
            await asyncio.sleep(5)
            return httpx.Response(200)

        with pytest.raises(FetchTransportError) as exc_info:
            await fetcher_for(handler).fetch(URL, headers={}, timeout=0.05)

        assert exc_info.value.retryable is True
        assert "timed out" in str(exc_info.value)

    async def test_corrupt_compressed_body_is_retryable(self):
        def handler(request):
            return httpx.Response(
                200, headers={"Content-Encoding": "gzip"}, content=b"<html>not gzip</html>"
            )

        with pytest.raises(FetchTransportError) as exc_info:
            await fetcher_for(handler).fetch(URL, headers={}, timeout=5)

        assert exc_info.value.retryable is True
        assert "DecodingError" in str(exc_info.value)

    async def test_invalid_url_is_not_retryable(self):
        handler = lambda request: httpx.Response(200)

        with pytest.raises(FetchTransportError) as exc_info:
            await fetcher_for(handler).fetch(
                "https://shop.example.jp/items/\x00", headers={}, timeout=5
            )

        assert exc_info.value.retryable is False

from __future__ import annotations

import asyncio
import time
from unittest.mock import AsyncMock, patch

import httpx
import pytest
import respx

import app.workers.fetcher as fetcher_module
from app.core.errors import (
    AnalysisStage,
    FetchTimeoutError,
    FetchUnreachableError,
    InvalidURLError,
)
from app.core.config import settings
from app.workers.fetcher import fetch_page


@pytest.fixture(autouse=True)
def fresh_http_client():
    """Each test gets a new shared client so respx can intercept it."""
    fetcher_module._http_client = None
    yield
    fetcher_module._http_client = None


class TestFetcher:
    @respx.mock
    async def test_successful_fetch(self):
        respx.get("https://example.com/").mock(
            return_value=httpx.Response(
                200,
                headers={"Content-Type": "text/html", "X-Frame-Options": "DENY"},
                text="<html><title>Hi</title></html>",
            )
        )
        page = await fetch_page("https://example.com/")

        assert page.status_code == 200
        assert page.html == "<html><title>Hi</title></html>"
        assert page.final_url == "https://example.com/"
        assert page.headers["x-frame-options"] == "DENY"

    @respx.mock
    async def test_sends_browser_user_agent(self):
        route = respx.get("https://example.com/").mock(return_value=httpx.Response(200, text=""))
        await fetch_page("https://example.com/")
        assert route.calls.last.request.headers["User-Agent"].startswith("Mozilla/5.0")

    @respx.mock
    async def test_follows_redirects_and_reports_final_url(self):
        respx.get("https://example.com/old").mock(
            return_value=httpx.Response(301, headers={"Location": "https://example.com/new"})
        )
        respx.get("https://example.com/new").mock(return_value=httpx.Response(200, text="moved"))

        page = await fetch_page("https://example.com/old")

        assert page.final_url == "https://example.com/new"
        assert page.html == "moved"

    @respx.mock
    async def test_non_200_response_is_returned(self):
        respx.get("https://example.com/404").mock(return_value=httpx.Response(404, text="not found"))
        page = await fetch_page("https://example.com/404")
        assert page.status_code == 404
        assert page.html == "not found"

    async def test_invalid_url_raises(self):
        with patch("app.workers.fetcher.get_http_client") as mock_get:
            mock_client = AsyncMock()
            mock_client.get = AsyncMock(side_effect=httpx.InvalidURL("invalid url"))
            mock_get.return_value = mock_client
            with pytest.raises(InvalidURLError, match="Invalid URL"):
                await fetch_page("https://exa mple.com")

    @respx.mock
    async def test_timeout_raises_fetch_timeout(self):
        respx.get("https://slow.example/").mock(side_effect=httpx.ReadTimeout("timed out"))
        with pytest.raises(FetchTimeoutError) as exc_info:
            await fetch_page("https://slow.example/")
        assert exc_info.value.stage is AnalysisStage.FETCHING

    @respx.mock
    async def test_connect_error_raises_unreachable(self):
        respx.get("https://nowhere.example/").mock(side_effect=httpx.ConnectError("DNS lookup failed"))
        with pytest.raises(FetchUnreachableError, match="DNS lookup failed"):
            await fetch_page("https://nowhere.example/")

    @respx.mock
    async def test_fetch_is_not_retried(self):
        route = respx.get("https://nowhere.example/").mock(side_effect=httpx.ConnectError("refused"))
        with pytest.raises(FetchUnreachableError):
            await fetch_page("https://nowhere.example/")
        assert route.call_count == 1

    async def test_slow_body_hits_overall_timeout(self, monkeypatch):
        """Each chunk arrives within the read timeout, the whole body does not."""
        for var in ("HTTP_PROXY", "HTTPS_PROXY", "ALL_PROXY", "http_proxy", "https_proxy", "all_proxy"):
            monkeypatch.delenv(var, raising=False)

        async def drip(reader, writer):
            await reader.readuntil(b"\r\n\r\n")
            writer.write(b"HTTP/1.1 200 OK\r\nContent-Type: text/html\r\nContent-Length: 8\r\n\r\n")
            try:
                for _ in range(8):
                    await writer.drain()
                    await asyncio.sleep(0.2)
                    writer.write(b"x")
                await writer.drain()
            except ConnectionError:
                pass
            finally:
                writer.close()

        server = await asyncio.start_server(drip, "127.0.0.1", 0)
        port = server.sockets[0].getsockname()[1]
        try:
            with patch.object(settings, "http_timeout", 0.5):
                started = time.monotonic()
                with pytest.raises(FetchTimeoutError):
                    await fetch_page(f"http://127.0.0.1:{port}/")
                assert time.monotonic() - started < 1.2
        finally:
            await fetcher_module.close_http_client()
            server.close()


class TestClientLifecycle:
    async def test_client_is_shared_and_closed(self):
        first = fetcher_module.get_http_client()
        assert fetcher_module.get_http_client() is first

        await fetcher_module.close_http_client()

        assert first.is_closed
        assert fetcher_module._http_client is None

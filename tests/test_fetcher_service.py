"""Tests for the bounded-time fetch layer."""

from __future__ import annotations

import asyncio

import httpx
import pytest

from src.config.settings import settings
from src.modules.fetcher.service import HTML_ACCEPT, fetcher_service


@pytest.mark.asyncio
async def test_fetch_success_sets_client_headers(make_client):
    seen: dict[str, str] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["ua"] = request.headers["User-Agent"]
        seen["accept"] = request.headers["Accept"]
        return httpx.Response(200, text="<rss></rss>")

    async with make_client(handler) as client:
        result = await fetcher_service.fetch_with_timeout(
            client, "https://feeds.example.com/rss", 1000, accept=HTML_ACCEPT
        )

    assert result.ok is True
    assert result.status_code == 200
    assert result.body == "<rss></rss>"
    assert result.error == ""
    assert seen["ua"] == settings.user_agent
    assert seen["accept"] == HTML_ACCEPT


@pytest.mark.asyncio
async def test_fetch_non_2xx_is_a_failure_value(make_client):
    async with make_client(lambda request: httpx.Response(500)) as client:
        result = await fetcher_service.fetch_with_timeout(
            client, "https://feeds.example.com/broken", 1000
        )

    assert result.ok is False
    assert result.status_code == 500
    assert result.error == "HTTP 500"
    assert result.body == ""


@pytest.mark.asyncio
async def test_fetch_transport_error_never_raises(make_client):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with make_client(handler) as client:
        result = await fetcher_service.fetch_with_timeout(
            client, "https://down.example.com/feed", 1000
        )

    assert result.ok is False
    assert result.status_code == 0
    assert "connection refused" in result.error


@pytest.mark.asyncio
async def test_fetch_httpx_timeout_reported_as_timeout(make_client):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("read timed out", request=request)

    async with make_client(handler) as client:
        result = await fetcher_service.fetch_with_timeout(
            client, "https://slow.example.com/feed", 1000
        )

    assert result.ok is False
    assert result.error == "Timeout"


@pytest.mark.asyncio
async def test_fetch_slow_upstream_is_cancelled(make_client):
    """A hanging upstream is cut off at the deadline, not awaited to completion."""

    async def handler(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(5)
        return httpx.Response(200, text="too late")

    async with make_client(handler) as client:
        result = await fetcher_service.fetch_with_timeout(
            client, "https://slow.example.com/feed", 50
        )

    assert result.ok is False
    assert result.error == "Timeout"
    assert result.elapsed_ms < 2000


@pytest.mark.asyncio
async def test_fetch_json_raises_for_status(make_client):
    async with make_client(lambda request: httpx.Response(403, json={"error": "nope"})) as client:
        with pytest.raises(httpx.HTTPStatusError):
            await fetcher_service.fetch_json(client, "https://graph.example.com/x")

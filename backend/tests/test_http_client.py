"""Tests for FeedHTTPClient error mapping, using httpx.MockTransport."""
from __future__ import annotations

import httpx
import pytest

from shared.utils.http_client import FeedHTTPClient, FeedShapeError, FeedTransportError

URL = "https://feeds.example/scoreboard"


def _client(settings, handler) -> FeedHTTPClient:
    return FeedHTTPClient(settings, transport=httpx.MockTransport(handler))


class TestFeedHTTPClient:

    @pytest.mark.asyncio
    async def test_returns_json_object_and_sends_user_agent(self, settings) -> None:
        seen: dict[str, str] = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["ua"] = request.headers["user-agent"]
            return httpx.Response(200, json={"events": []})

        async with _client(settings, handler) as client:
            data = await client.get_json(URL, feed="nfl")

        assert data == {"events": []}
        assert seen["ua"] == settings.user_agent

    @pytest.mark.asyncio
    async def test_http_error_status(self, settings) -> None:
        async with _client(settings, lambda r: httpx.Response(500)) as client:
            with pytest.raises(FeedTransportError) as exc_info:
                await client.get_json(URL, feed="college")
        assert str(exc_info.value) == "college feed returned HTTP 500"
        assert exc_info.value.feed == "college"

    @pytest.mark.asyncio
    async def test_timeout(self, settings) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        async with _client(settings, handler) as client:
            with pytest.raises(FeedTransportError) as exc_info:
                await client.get_json(URL, feed="college")
        assert str(exc_info.value) == "college feed timed out after 10s"

    @pytest.mark.asyncio
    async def test_connection_error(self, settings) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        async with _client(settings, handler) as client:
            with pytest.raises(FeedTransportError):
                await client.get_json(URL, feed="rankings")

    @pytest.mark.asyncio
    async def test_non_object_body(self, settings) -> None:
        async with _client(settings, lambda r: httpx.Response(200, json=[1, 2])) as client:
            with pytest.raises(FeedShapeError):
                await client.get_json(URL, feed="nfl")

    @pytest.mark.asyncio
    async def test_invalid_json(self, settings) -> None:
        async with _client(settings, lambda r: httpx.Response(200, content=b"<html>")) as client:
            with pytest.raises(FeedShapeError):
                await client.get_json(URL, feed="nfl")

    @pytest.mark.asyncio
    async def test_not_started(self, settings) -> None:
        with pytest.raises(RuntimeError):
            await FeedHTTPClient(settings).get_json(URL)

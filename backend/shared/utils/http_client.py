"""
Async HTTP client for the ESPN feeds.
One shared httpx client with a bounded timeout, the identifying User-Agent,
latency metrics, and failures mapped onto the FeedError hierarchy.
"""
from __future__ import annotations

import time
from typing import Any, Optional

import httpx

from shared.config import Settings, get_settings
from shared.utils.logging import get_logger
from shared.utils.metrics import FEED_LATENCY, FEED_REQUESTS

logger = get_logger(__name__)


class FeedError(Exception):
    """Base class for feed fetch failures."""

    def __init__(self, feed: str, message: str) -> None:
        self.feed = feed
        super().__init__(message)


class FeedTransportError(FeedError):
    """Timeout, connection failure, or non-2xx response."""


class FeedShapeError(FeedError):
    """Body was not the JSON object the feed contract promises."""


class FeedHTTPClient:
    """
    Thin wrapper around httpx.AsyncClient.

    No retries: a failed fetch fails the cycle and the next scheduled
    cycle is the retry.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._timeout = self._settings.request_timeout_s
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def start(self) -> None:
        """Initialize the underlying httpx client."""
        self._client = httpx.AsyncClient(
            headers={"User-Agent": self._settings.user_agent, "Accept": "application/json"},
            timeout=httpx.Timeout(self._timeout, connect=5.0),
            follow_redirects=True,
            transport=self._transport,
        )

    async def close(self) -> None:
        """Close the underlying httpx client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "FeedHTTPClient":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def get_json(self, url: str, feed: str = "unknown") -> dict[str, Any]:
        """
        GET a feed URL and decode its JSON object body.

        Raises:
            FeedTransportError: On timeout, transport error or HTTP error status.
            FeedShapeError: If the body is not a JSON object.
        """
        if not self._client:
            raise RuntimeError("FeedHTTPClient not started. Call start() first.")

        start_time = time.perf_counter()
        status = "error"
        try:
            resp = await self._client.get(url)
            status = str(resp.status_code)
            resp.raise_for_status()
        except httpx.TimeoutException as exc:
            status = "timeout"
            logger.warning("feed_timeout", feed=feed, url=url, timeout_s=self._timeout)
            raise FeedTransportError(feed, f"{feed} feed timed out after {self._timeout:g}s") from exc
        except httpx.HTTPStatusError as exc:
            logger.warning("feed_http_error", feed=feed, url=url, status=exc.response.status_code)
            raise FeedTransportError(
                feed, f"{feed} feed returned HTTP {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            logger.warning("feed_request_error", feed=feed, url=url, error=str(exc))
            raise FeedTransportError(feed, f"{feed} feed request failed: {exc}") from exc
        finally:
            FEED_LATENCY.labels(feed=feed).observe(time.perf_counter() - start_time)
            FEED_REQUESTS.labels(feed=feed, status=status).inc()

        try:
            data = resp.json()
        except ValueError as exc:
            raise FeedShapeError(feed, f"{feed} feed returned invalid JSON") from exc
        if not isinstance(data, dict):
            raise FeedShapeError(feed, f"{feed} feed returned {type(data).__name__}, expected object")

        logger.debug(
            "feed_request_success",
            feed=feed,
            status=resp.status_code,
            latency_ms=round((time.perf_counter() - start_time) * 1000, 2),
        )
        return data

"""
Prometheus metrics for the Game Day services.
"""
from __future__ import annotations

import time
from contextlib import asynccontextmanager
from typing import AsyncIterator

from prometheus_client import Counter, Gauge, Histogram, start_http_server

from shared.config import get_settings
from shared.utils.logging import get_logger

logger = get_logger(__name__)

# ── Counters ────────────────────────────────────────────────────────────
FEED_REQUESTS = Counter(
    "gd_feed_requests_total",
    "Total outbound feed requests",
    ["feed", "status"],
)
REFRESH_CYCLES = Counter(
    "gd_refresh_cycles_total",
    "Completed refresh cycles by outcome",
    ["outcome"],
)
REFRESH_SKIPPED = Counter(
    "gd_refresh_skipped_total",
    "Refresh requests skipped because a cycle was already running",
)
RANK_ALIAS_COLLISIONS = Counter(
    "gd_rank_alias_collisions_total",
    "Rank alias keys claimed by two differently ranked teams",
)
EVENTS_DROPPED = Counter(
    "gd_events_dropped_total",
    "Live events dropped for malformed data",
    ["league"],
)

# ── Histograms ──────────────────────────────────────────────────────────
FEED_LATENCY = Histogram(
    "gd_feed_latency_seconds",
    "Feed request latency in seconds",
    ["feed"],
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)
REFRESH_DURATION = Histogram(
    "gd_refresh_duration_seconds",
    "Duration of a full refresh cycle",
    buckets=(0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 20.0),
)

# ── Gauges ──────────────────────────────────────────────────────────────
LIVE_GAMES = Gauge(
    "gd_live_games",
    "Live games in the last published state",
    ["league"],
)
RANKED_KEYS = Gauge(
    "gd_ranked_keys",
    "Lookup keys in the current ranking index",
)


@asynccontextmanager
async def atrack_latency(histogram: Histogram, **labels: str) -> AsyncIterator[None]:
    """Async context manager to track operation latency."""
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed = time.perf_counter() - start
        if labels:
            histogram.labels(**labels).observe(elapsed)
        else:
            histogram.observe(elapsed)


def start_metrics_server(port: int | None = None) -> None:
    """Start the Prometheus metrics HTTP server."""
    settings = get_settings()
    if not settings.metrics_enabled:
        return
    metrics_port = port or settings.metrics_port
    try:
        start_http_server(metrics_port)
        logger.info("metrics_server_started", port=metrics_port)
    except OSError as exc:
        logger.warning("metrics_server_failed", error=str(exc), port=metrics_port)

"""
FastAPI application factory for the Game Day live scores API.

Creates the app with:
- Live scores and rankings routes
- Middleware stack
- Health check endpoint
- Lifespan management: feed client, aggregator and the background
  refresh scheduler are started on startup and torn down on shutdown
"""
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

from shared.config import get_settings
from shared.utils.http_client import FeedHTTPClient
from shared.utils.logging import get_logger, setup_logging
from shared.utils.metrics import start_metrics_server

from api.dependencies import init_dependencies
from api.middleware import setup_middleware
from api.routes.live import router as live_router
from scores.aggregator import ScoreAggregator
from scores.scheduler import RefreshScheduler

logger = get_logger(__name__)


@asynccontextmanager
async def _noop_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """No-op lifespan for testing without outbound HTTP."""
    yield


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    settings = get_settings()
    setup_logging("api")
    start_metrics_server()

    client = FeedHTTPClient(settings)
    await client.start()
    aggregator = ScoreAggregator(client, settings)
    init_dependencies(aggregator)

    scheduler = RefreshScheduler(aggregator, settings.refresh_interval_s)
    scheduler.start()
    logger.info("api_service_started", host=settings.api_host, port=settings.api_port)

    yield

    await scheduler.stop()
    await client.close()
    init_dependencies(None)
    logger.info("api_service_stopped")


def create_app(*, use_lifespan: bool = True) -> FastAPI:
    """Create and configure the FastAPI application. Set use_lifespan=False for testing."""
    app = FastAPI(
        title="Game Day Live Scores API",
        description="Live college football and NFL scores with poll rankings",
        version="1.0.0",
        lifespan=lifespan if use_lifespan else _noop_lifespan,
    )

    setup_middleware(app)
    app.include_router(live_router)

    @app.get("/health", tags=["system"])
    async def health() -> dict[str, str]:
        return {"status": "ok", "service": "api"}

    return app

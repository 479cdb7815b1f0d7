"""
Headless poller entrypoint.
Runs the refresh scheduler until SIGINT/SIGTERM and logs every published state.
"""
from __future__ import annotations

import asyncio
import signal
import sys
from pathlib import Path

# Ensure backend root is on path when run as python -m scores.main
_backend = Path(__file__).resolve().parent.parent
if str(_backend) not in sys.path:
    sys.path.insert(0, str(_backend))

from shared.config import get_settings
from shared.models.domain import LiveState
from shared.utils.http_client import FeedHTTPClient
from shared.utils.logging import get_logger, setup_logging
from shared.utils.metrics import start_metrics_server

from scores.aggregator import ScoreAggregator
from scores.scheduler import RefreshScheduler

logger = get_logger(__name__)


def _log_state(state: LiveState) -> None:
    if state.is_loading:
        return
    logger.info(
        "live_state_published",
        is_live_day=state.is_live_day,
        games=[f"{g.away.name} {g.away.score} @ {g.home.name} {g.home.score}" for g in state.games],
        last_error=state.last_error,
    )


async def main() -> None:
    setup_logging("poller")
    settings = get_settings()
    start_metrics_server()

    async with FeedHTTPClient(settings) as client:
        aggregator = ScoreAggregator(client, settings)
        aggregator.subscribe(_log_state)
        scheduler = RefreshScheduler(aggregator, settings.refresh_interval_s)

        shutdown = asyncio.Event()
        for sig in (signal.SIGTERM, signal.SIGINT):
            try:
                asyncio.get_running_loop().add_signal_handler(sig, shutdown.set)
            except NotImplementedError:
                pass

        scheduler.start()
        logger.info("poller_started", interval_s=settings.refresh_interval_s)
        await shutdown.wait()
        await scheduler.stop()

    logger.info("poller_stopped")


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()

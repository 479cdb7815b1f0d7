"""
Fixed-interval refresh scheduler.
Drives ScoreAggregator.refresh() on a background asyncio task; a tick that
lands while the previous cycle is still running is skipped.
"""
from __future__ import annotations

import asyncio
from typing import Optional

from shared.utils.logging import get_logger
from shared.utils.metrics import REFRESH_SKIPPED

from scores.aggregator import ScoreAggregator

logger = get_logger(__name__)


class RefreshScheduler:
    """Calls the aggregator immediately and then every `interval_s` seconds."""

    def __init__(self, aggregator: ScoreAggregator, interval_s: float) -> None:
        if interval_s <= 0:
            raise ValueError("interval_s must be positive")
        self._aggregator = aggregator
        self._interval = interval_s
        self._task: Optional[asyncio.Task[None]] = None
        self._in_flight: Optional[asyncio.Task[object]] = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.is_running:
            return
        self._task = asyncio.create_task(self._run(), name="score-refresh-scheduler")
        logger.info("refresh_scheduler_started", interval_s=self._interval)

    async def stop(self) -> None:
        """Cancel the loop; an in-flight cycle is abandoned."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        if self._in_flight is not None and not self._in_flight.done():
            self._in_flight.cancel()
        logger.info("refresh_scheduler_stopped")

    def tick(self) -> bool:
        """
        Start one cycle in the background unless one is still running.
        Returns whether a cycle was started.
        """
        if self._aggregator.is_refreshing or (
            self._in_flight is not None and not self._in_flight.done()
        ):
            REFRESH_SKIPPED.inc()
            logger.warning("refresh_tick_skipped", reason="previous_cycle_in_flight")
            return False
        self._in_flight = asyncio.create_task(self._aggregator.refresh())
        self._in_flight.add_done_callback(_log_cycle_failure)
        return True

    async def _run(self) -> None:
        while True:
            self.tick()
            await asyncio.sleep(self._interval)


def _log_cycle_failure(task: asyncio.Task[object]) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error("refresh_cycle_crashed", error=str(exc), exc_info=exc)

"""
Score aggregator.

Owns the published LiveState and the cached ranking index. One refresh
cycle: rankings (only while the cached index is empty), both scoreboards
fetched concurrently, live events parsed and rank-annotated, then one new
LiveState replaces the old one and subscribers are notified.
"""
from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from shared.config import Settings, get_settings
from shared.models.domain import Game, LiveState
from shared.models.enums import FeedName
from shared.utils.http_client import FeedError
from shared.utils.logging import bind_cycle, get_logger
from shared.utils.metrics import (
    EVENTS_DROPPED,
    LIVE_GAMES,
    REFRESH_CYCLES,
    REFRESH_DURATION,
    REFRESH_SKIPPED,
    atrack_latency,
)

from scores.espn import extract_live_games
from scores.rankings import FeedClient, RankingIndex, RankingsResolver

logger = get_logger(__name__)

Subscriber = Callable[[LiveState], None]

# Concatenation order of the two scoreboards.
FEED_ORDER: tuple[FeedName, ...] = (FeedName.COLLEGE, FeedName.NFL)


class ScoreAggregator:
    """
    Long-lived session object for live football scores.

    Independent instances share nothing, so tests and multiple sessions
    can run side by side.
    """

    def __init__(
        self,
        client: FeedClient,
        settings: Optional[Settings] = None,
        resolver: Optional[RankingsResolver] = None,
    ) -> None:
        self._client = client
        self._settings = settings or get_settings()
        self._resolver = resolver or RankingsResolver(client, self._settings)
        self._state = LiveState()
        self._ranking_index: RankingIndex = {}
        self._subscribers: list[Subscriber] = []
        self._lock = asyncio.Lock()
        self._cycle = 0

    # ── Read-only surface ───────────────────────────────────────────────

    @property
    def state(self) -> LiveState:
        return self._state

    @property
    def ranking_index(self) -> RankingIndex:
        return dict(self._ranking_index)

    @property
    def is_refreshing(self) -> bool:
        return self._lock.locked()

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register an observer called with every published state. Returns an unsubscribe function."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def reset_rankings(self) -> None:
        """Drop the cached index; the next cycle refetches rankings."""
        self._ranking_index = {}
        logger.info("rankings_reset")

    # ── Refresh ─────────────────────────────────────────────────────────

    async def refresh(self) -> LiveState:
        """
        Run one refresh cycle and return the published state.

        A call made while a cycle is in flight is skipped and returns the
        current snapshot.
        Errors other than feed failures still end the cycle with a failed,
        non-loading state.
        """
        if self._lock.locked():
            REFRESH_SKIPPED.inc()
            logger.info("refresh_skipped_in_flight")
            return self._state

        async with self._lock:
            self._cycle += 1
            with bind_cycle(self._cycle):
                async with atrack_latency(REFRESH_DURATION):
                    try:
                        return await self._run_cycle()
                    except Exception as exc:
                        REFRESH_CYCLES.labels(outcome="error").inc()
                        self._set_live_gauges([])
                        logger.exception("refresh_crashed", error=str(exc))
                        return self._publish(LiveState.failed(f"refresh failed: {exc}", _now()))

    async def refresh_now(self) -> LiveState:
        """Manual trigger for the presentation layer."""
        return await self.refresh()

    async def _run_cycle(self) -> LiveState:
        self._publish(self._state.model_copy(update={"is_loading": True}))

        if not self._ranking_index:
            self._ranking_index = await self._resolver.refresh_rankings()
        index = self._ranking_index

        try:
            feeds = await self._fetch_scoreboards()
        except FeedError as exc:
            REFRESH_CYCLES.labels(outcome="error").inc()
            self._set_live_gauges([])
            logger.error("refresh_failed", feed=exc.feed, error=str(exc))
            return self._publish(LiveState.failed(str(exc), _now()))

        games: list[Game] = []
        for league in FEED_ORDER:
            parsed, dropped = extract_live_games(
                feeds[league], league, index, self._settings.logo_placeholder
            )
            if dropped:
                EVENTS_DROPPED.labels(league=league.value).inc(dropped)
            games.extend(parsed)

        REFRESH_CYCLES.labels(outcome="ok").inc()
        self._set_live_gauges(games)
        logger.info(
            "refresh_completed",
            games=len(games),
            ranked=sum(1 for g in games for side in (g.home, g.away) if side.rank is not None),
        )
        return self._publish(LiveState.published(games, _now()))

    async def _fetch_scoreboards(self) -> dict[FeedName, list[Any]]:
        """Both scoreboards concurrently; either failing raises FeedError."""
        urls = self._settings.scoreboard_urls
        results = await asyncio.gather(
            *(self._client.get_json(urls[league.value], feed=league.value) for league in FEED_ORDER),
            return_exceptions=True,
        )
        feeds: dict[FeedName, list[Any]] = {}
        for league, result in zip(FEED_ORDER, results):
            if isinstance(result, BaseException):
                if isinstance(result, (FeedError, asyncio.CancelledError)):
                    raise result
                raise FeedError(league.value, f"{league.value} feed failed: {result}") from result
            events = result.get("events") or []
            feeds[league] = events if isinstance(events, list) else []
        return feeds

    def _publish(self, state: LiveState) -> LiveState:
        self._state = state
        for callback in list(self._subscribers):
            try:
                callback(state)
            except Exception as exc:
                logger.exception("subscriber_error", error=str(exc))
        return state

    def _set_live_gauges(self, games: list[Game]) -> None:
        for league in FEED_ORDER:
            LIVE_GAMES.labels(league=league.value).set(sum(1 for g in games if g.league == league))


def _now() -> datetime:
    return datetime.now(timezone.utc)

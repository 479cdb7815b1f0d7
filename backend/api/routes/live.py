"""
Live scores REST endpoints.

GET  /v1/live            current LiveState snapshot
POST /v1/live/refresh    run a refresh cycle now (skipped if one is running)
GET  /v1/rankings        cached ranking index
POST /v1/rankings/reset  drop the cached index so the next cycle refetches it
"""
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from shared.utils.logging import get_logger

from api.dependencies import get_aggregator
from scores.aggregator import ScoreAggregator

logger = get_logger(__name__)
router = APIRouter(prefix="/v1", tags=["live"])


@router.get("/live")
async def get_live(aggregator: ScoreAggregator = Depends(get_aggregator)) -> dict[str, Any]:
    """Snapshot of live games: {is_live_day, games, is_loading, last_error, updated_at}."""
    return aggregator.state.model_dump(mode="json")


@router.post("/live/refresh")
async def refresh_live(aggregator: ScoreAggregator = Depends(get_aggregator)) -> dict[str, Any]:
    refreshed = not aggregator.is_refreshing
    state = await aggregator.refresh_now()
    logger.info("manual_refresh", refreshed=refreshed, games=len(state.games))
    return {"refreshed": refreshed, **state.model_dump(mode="json")}


@router.get("/rankings")
async def get_rankings(aggregator: ScoreAggregator = Depends(get_aggregator)) -> dict[str, Any]:
    index = aggregator.ranking_index
    return {
        "count": len(index),
        "entries": [{"key": key, "rank": rank} for key, rank in index.items()],
    }


@router.post("/rankings/reset")
async def reset_rankings(aggregator: ScoreAggregator = Depends(get_aggregator)) -> dict[str, str]:
    aggregator.reset_rankings()
    return {"status": "reset"}

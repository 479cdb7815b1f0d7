"""
Dependency injection for the API service.
Hands the process-wide ScoreAggregator to route handlers.
"""
from __future__ import annotations

from scores.aggregator import ScoreAggregator

# Module-level singleton, initialized at startup
_aggregator: ScoreAggregator | None = None


def init_dependencies(aggregator: ScoreAggregator | None) -> None:
    """Install (or clear, with None) the aggregator served by the routes."""
    global _aggregator
    _aggregator = aggregator


def get_aggregator() -> ScoreAggregator:
    """FastAPI dependency: returns the shared ScoreAggregator."""
    if _aggregator is None:
        raise RuntimeError("ScoreAggregator not initialized; call init_dependencies first")
    return _aggregator

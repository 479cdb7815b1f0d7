"""Shared fixtures: settings and ESPN payload builders."""
from __future__ import annotations

from typing import Any, Callable, Optional
from unittest.mock import AsyncMock

import pytest

from shared.config import Settings
from shared.utils.http_client import FeedTransportError


@pytest.fixture
def settings() -> Settings:
    return Settings(metrics_enabled=False, _env_file=None)


def make_competitor(
    side: str,
    name: Optional[str],
    score: Any = "0",
    team_id: str = "1",
    logo: Optional[str] = None,
) -> dict[str, Any]:
    team: dict[str, Any] = {"id": team_id}
    if name is not None:
        team["displayName"] = name
    if logo is not None:
        team["logo"] = logo
    return {"id": team_id, "homeAway": side, "score": score, "team": team}


def make_event(
    event_id: str = "401",
    state: str = "in",
    home: Optional[dict[str, Any]] = None,
    away: Optional[dict[str, Any]] = None,
    situation: Optional[dict[str, Any]] = None,
    clock: str = "7:32",
    period: int = 2,
    status_name: str = "STATUS_IN_PROGRESS",
    competitors: Optional[list[dict[str, Any]]] = None,
) -> dict[str, Any]:
    if competitors is None:
        competitors = [
            home if home is not None else make_competitor("home", "Home Team", "0", "10"),
            away if away is not None else make_competitor("away", "Away Team", "0", "20"),
        ]
    competition: dict[str, Any] = {"competitors": competitors}
    if situation is not None:
        competition["situation"] = situation
    return {
        "id": event_id,
        "status": {
            "displayClock": clock,
            "period": period,
            "type": {"state": state, "name": status_name, "shortDetail": f"{clock} - {period}nd"},
        },
        "competitions": [competition],
    }


def make_rankings(*teams: tuple[str, int], poll: str = "AP Top 25") -> dict[str, Any]:
    return {
        "rankings": [
            {
                "name": poll,
                "ranks": [{"current": rank, "team": {"displayName": name}} for name, rank in teams],
            }
        ]
    }


@pytest.fixture
def competitor() -> Callable[..., dict[str, Any]]:
    return make_competitor


@pytest.fixture
def event() -> Callable[..., dict[str, Any]]:
    return make_event


@pytest.fixture
def rankings_payload() -> Callable[..., dict[str, Any]]:
    return make_rankings


class FakeFeeds:
    """Routes FeedHTTPClient.get_json calls by feed name; a feed set to an exception raises it."""

    def __init__(self) -> None:
        self.payloads: dict[str, Any] = {
            "college": {"events": []},
            "nfl": {"events": []},
            "rankings": {"rankings": []},
        }
        self.client = AsyncMock()
        self.client.get_json.side_effect = self._get_json

    async def _get_json(self, url: str, feed: str = "unknown") -> dict[str, Any]:
        payload = self.payloads[feed]
        if isinstance(payload, BaseException):
            raise payload
        return payload

    def calls_for(self, feed: str) -> int:
        return sum(1 for c in self.client.get_json.call_args_list if c.kwargs.get("feed") == feed)

    def timeout(self, feed: str) -> None:
        self.payloads[feed] = FeedTransportError(feed, f"{feed} feed timed out after 10s")


@pytest.fixture
def feeds() -> FakeFeeds:
    return FakeFeeds()

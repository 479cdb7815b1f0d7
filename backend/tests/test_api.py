"""API route tests. Lifespan disabled; the aggregator is wired to fake feeds."""
from __future__ import annotations

from typing import Iterator

import pytest
from fastapi.testclient import TestClient

from api.app import create_app
from api.dependencies import get_aggregator, init_dependencies
from scores.aggregator import ScoreAggregator


@pytest.fixture
def client(feeds, settings) -> Iterator[TestClient]:
    """Test client with lifespan disabled so no outbound HTTP is made."""
    init_dependencies(ScoreAggregator(feeds.client, settings))
    app = create_app(use_lifespan=False)
    with TestClient(app) as c:
        yield c
    init_dependencies(None)


def test_health_returns_ok(client: TestClient) -> None:
    """GET /health returns 200 and status ok."""
    r = client.get("/health")
    assert r.status_code == 200
    data = r.json()
    assert data.get("status") == "ok"
    assert data.get("service") == "api"


def test_health_returns_json(client: TestClient) -> None:
    r = client.get("/health")
    assert r.headers.get("content-type", "").startswith("application/json")


def test_request_id_echoed(client: TestClient) -> None:
    r = client.get("/health", headers={"X-Request-ID": "abc123"})
    assert r.headers.get("x-request-id") == "abc123"


# ── Live ────────────────────────────────────────────────────────────────

def test_live_before_first_cycle(client: TestClient) -> None:
    r = client.get("/v1/live")
    assert r.status_code == 200
    data = r.json()
    assert data["games"] == []
    assert data["is_live_day"] is False
    assert data["is_loading"] is False
    assert data["last_error"] is None


def test_refresh_publishes_games(client: TestClient, feeds, event, competitor) -> None:
    feeds.payloads["nfl"] = {"events": [event(
        event_id="n1",
        home=competitor("home", "Kansas City Chiefs", "17", "12"),
        away=competitor("away", "Buffalo Bills", "14", "2"),
    )]}

    r = client.post("/v1/live/refresh")
    assert r.status_code == 200
    data = r.json()
    assert data["refreshed"] is True
    assert data["is_live_day"] is True
    assert data["games"][0]["id"] == "n1"
    assert data["games"][0]["league"] == "nfl"
    assert data["games"][0]["home"]["score"] == 17

    live = client.get("/v1/live").json()
    assert live["games"] == data["games"]


def test_refresh_reports_feed_error(client: TestClient, feeds) -> None:
    feeds.timeout("college")
    data = client.post("/v1/live/refresh").json()
    assert data["games"] == []
    assert data["last_error"] == "college feed timed out after 10s"


# ── Rankings ────────────────────────────────────────────────────────────

def test_rankings_listing_and_reset(client: TestClient, feeds, rankings_payload) -> None:
    feeds.payloads["rankings"] = rankings_payload(("Georgia Bulldogs", 1))
    client.post("/v1/live/refresh")

    data = client.get("/v1/rankings").json()
    assert data["count"] == len(data["entries"]) >= 1
    assert {"key": "georgia bulldogs", "rank": 1} in data["entries"]

    r = client.post("/v1/rankings/reset")
    assert r.json() == {"status": "reset"}
    assert client.get("/v1/rankings").json() == {"count": 0, "entries": []}


def test_uninitialized_aggregator_raises() -> None:
    init_dependencies(None)
    with pytest.raises(RuntimeError):
        get_aggregator()

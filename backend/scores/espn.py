"""
ESPN scoreboard parsing.
Maps raw scoreboard events onto Game snapshots; malformed events are
rejected by returning None rather than raising.
"""
from __future__ import annotations

import re
from typing import Any, Optional

from shared.models.domain import FieldSituation, Game, TeamSide
from shared.models.enums import Direction, EventState, FeedName
from shared.utils.logging import get_logger

from scores.rankings import RankingIndex, resolve_rank

logger = get_logger(__name__)

HALFTIME_STATUS = "STATUS_HALFTIME"
_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def _safe_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _parse_score(value: Any) -> int:
    """Leading integer of the feed score ("21.0" -> 21, "24abc" -> 24), else 0."""
    if isinstance(value, str):
        match = _LEADING_INT.match(value)
        return int(match.group(1)) if match else 0
    return _safe_int(value)


def _optional_int(value: Any) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _status(event: dict[str, Any]) -> dict[str, Any]:
    status = event.get("status")
    return status if isinstance(status, dict) else {}


def _status_type(event: dict[str, Any]) -> dict[str, Any]:
    status_type = _status(event).get("type")
    return status_type if isinstance(status_type, dict) else {}


def event_state(event: dict[str, Any]) -> Optional[EventState]:
    state = _status_type(event).get("state")
    try:
        return EventState(state)
    except ValueError:
        return None


def is_halftime(event: dict[str, Any]) -> bool:
    status_type = _status_type(event)
    return (
        status_type.get("state") == EventState.HALF.value
        or status_type.get("name") == HALFTIME_STATUS
        or status_type.get("shortDetail") == "Halftime"
    )


def is_live_event(event: dict[str, Any]) -> bool:
    """In progress, halftime included."""
    state = event_state(event)
    return state is not None and state.is_live


def _competition(event: dict[str, Any]) -> dict[str, Any]:
    competitions = event.get("competitions") or []
    if isinstance(competitions, list) and competitions and isinstance(competitions[0], dict):
        return competitions[0]
    return {}


def _competitor(competition: dict[str, Any], side: str) -> Optional[dict[str, Any]]:
    matches = [
        c for c in competition.get("competitors") or []
        if isinstance(c, dict) and c.get("homeAway") == side
    ]
    # exactly one per side, anything else is malformed
    return matches[0] if len(matches) == 1 else None


def _competitor_ids(competitor: dict[str, Any]) -> set[str]:
    team = competitor.get("team") or {}
    return {str(i) for i in (competitor.get("id"), team.get("id")) if i is not None}


def _team_side(
    competitor: dict[str, Any],
    possession: Optional[str],
    index: RankingIndex,
    logo_placeholder: str,
) -> TeamSide:
    team = competitor.get("team") or {}
    name = team.get("displayName") or "Unknown"
    return TeamSide(
        id=str(competitor.get("id") or team.get("id") or ""),
        name=name,
        score=max(_parse_score(competitor.get("score")), 0),
        logo=team.get("logo") or logo_placeholder,
        rank=resolve_rank(name, index),
        has_possession=possession is not None and possession in _competitor_ids(competitor),
    )


def _field_situation(
    situation: dict[str, Any], home: TeamSide, away: TeamSide
) -> Optional[FieldSituation]:
    down = _safe_int(situation.get("down"), default=-1)
    if down < 1:
        return None

    raw_direction = str(situation.get("direction") or "").lower()
    if raw_direction in (Direction.LEFT.value, Direction.RIGHT.value):
        direction: Optional[Direction] = Direction(raw_direction)
    elif home.has_possession:
        direction = Direction.LEFT
    elif away.has_possession:
        direction = Direction.RIGHT
    else:
        direction = None

    location = situation.get("location")
    if location is None:
        location = situation.get("yardLine")
    return FieldSituation(
        ball_position=_optional_int(location),
        line_to_gain=_optional_int(situation.get("lineToGain")),
        down=down,
        yards_to_go=max(_safe_int(situation.get("distance")), 0),
        direction=direction,
        down_distance_text=situation.get("downDistanceText") or situation.get("shortDownDistanceText"),
        is_red_zone=bool(situation.get("isRedZone", False)),
    )


def parse_event(
    event: dict[str, Any],
    league: FeedName,
    index: RankingIndex,
    logo_placeholder: str,
) -> Optional[Game]:
    """
    Build a Game from one live scoreboard event.

    Returns None when the event lacks exactly one home and one away
    competitor. Scores without leading digits count as 0.
    """
    competition = _competition(event)
    home_raw = _competitor(competition, "home")
    away_raw = _competitor(competition, "away")
    if home_raw is None or away_raw is None:
        logger.debug("event_missing_competitor", event_id=event.get("id"), league=league.value)
        return None

    situation = competition.get("situation")
    if not isinstance(situation, dict):
        situation = None
    possession = situation.get("possession") if situation else None
    possession = str(possession) if possession not in (None, "") else None

    home = _team_side(home_raw, possession, index, logo_placeholder)
    away = _team_side(away_raw, possession, index, logo_placeholder)

    status = _status(event)
    status_type = _status_type(event)
    return Game(
        id=str(event.get("id") or ""),
        league=league,
        home=home,
        away=away,
        clock_display=status.get("displayClock") or "0:00",
        period=_safe_int(status.get("period"), default=1) or 1,
        is_halftime=is_halftime(event),
        status_detail=status_type.get("shortDetail") or status_type.get("detail"),
        field_situation=_field_situation(situation, home, away) if situation else None,
    )


def extract_live_games(
    events: list[Any],
    league: FeedName,
    index: RankingIndex,
    logo_placeholder: str,
) -> tuple[list[Game], int]:
    """Filter to live events and parse them. Returns (games, dropped_count)."""
    games: list[Game] = []
    dropped = 0
    for event in events:
        if not isinstance(event, dict):
            continue
        try:
            if not is_live_event(event):
                continue
            game = parse_event(event, league, index, logo_placeholder)
        except (TypeError, ValueError, AttributeError) as exc:
            logger.debug("event_parse_error", event_id=event.get("id"), league=league.value, error=str(exc))
            game = None
        if game is None:
            dropped += 1
            continue
        games.append(game)
    return games, dropped

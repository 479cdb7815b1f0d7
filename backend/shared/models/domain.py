"""
Pydantic v2 domain models published to the presentation layer.
Every model is frozen: a refresh replaces snapshots, it never edits them.
"""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from shared.models.enums import Direction, FeedName


# ── Base ────────────────────────────────────────────────────────────────
class DomainModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


# ── Teams ───────────────────────────────────────────────────────────────
class TeamSide(DomainModel):
    id: str = ""
    name: str = "Unknown"
    score: int = Field(default=0, ge=0)
    logo: str
    rank: Optional[int] = Field(default=None, ge=1, le=25)
    has_possession: bool = False


# ── Game ────────────────────────────────────────────────────────────────
class FieldSituation(DomainModel):
    """Down-and-distance state; only built while a down is active."""
    ball_position: Optional[int] = None
    line_to_gain: Optional[int] = None
    down: int
    yards_to_go: int
    direction: Optional[Direction] = None
    down_distance_text: Optional[str] = None
    is_red_zone: bool = False


class Game(DomainModel):
    id: str
    league: FeedName
    home: TeamSide
    away: TeamSide
    clock_display: str = "0:00"
    period: int = 1
    is_halftime: bool = False
    status_detail: Optional[str] = None
    field_situation: Optional[FieldSituation] = None


# ── Session state ───────────────────────────────────────────────────────
class LiveState(DomainModel):
    games: tuple[Game, ...] = ()
    is_live_day: bool = False
    is_loading: bool = False
    last_error: Optional[str] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def published(cls, games: list[Game], updated_at: datetime) -> "LiveState":
        """State for a completed cycle; is_live_day always follows games."""
        return cls(games=tuple(games), is_live_day=len(games) > 0, updated_at=updated_at)

    @classmethod
    def failed(cls, error: str, updated_at: datetime) -> "LiveState":
        return cls(last_error=error, updated_at=updated_at)

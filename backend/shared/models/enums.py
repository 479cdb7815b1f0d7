"""Domain enumerations for the Game Day live scores service."""
from __future__ import annotations

from enum import Enum


class FeedName(str, Enum):
    COLLEGE = "college"
    NFL = "nfl"


class EventState(str, Enum):
    """ESPN `status.type.state` values."""
    PRE = "pre"
    IN = "in"
    HALF = "half"
    POST = "post"

    @property
    def is_live(self) -> bool:
        return self in (EventState.IN, EventState.HALF)


class Direction(str, Enum):
    LEFT = "left"
    RIGHT = "right"

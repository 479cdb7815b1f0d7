"""
Rankings resolver.

Builds a lookup of team-name variants -> poll rank from the college
rankings feed, and resolves free-text scoreboard names against it. The
scoreboard and rankings feeds disagree on naming (full institutional
name, mascot, abbreviation), so lookup falls through progressively looser
matches. Matching is heuristic: short or common fragments can produce
false positives, which is accepted in favour of coverage.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Iterable, Optional, Protocol

from shared.config import Settings, get_settings
from shared.utils.http_client import FeedError
from shared.utils.logging import get_logger
from shared.utils.metrics import RANK_ALIAS_COLLISIONS, RANKED_KEYS

logger = get_logger(__name__)

# name -> rank; insertion order (poll order, then key order) is the
# iteration order used by fuzzy lookups.
RankingIndex = dict[str, int]

MAX_RANK = 25

_STATE_SUFFIX = re.compile(r"\s+(state|st\.?)$")
_WHITESPACE = re.compile(r"\s+")

# Institutional name -> names the scoreboard feed may use instead.
# Keys are matched against the start of the lowercased ranked name.
KNOWN_ALIASES: dict[str, tuple[str, ...]] = {
    "ole miss": ("mississippi", "ole miss rebels"),
    "mississippi rebels": ("ole miss",),
    "lsu": ("louisiana state", "lsu tigers"),
    "louisiana state": ("lsu",),
    "usc": ("southern california", "southern cal"),
    "southern california": ("usc",),
    "miami hurricanes": ("miami", "miami (fl)"),
    "pittsburgh": ("pitt",),
    "pitt": ("pittsburgh",),
    "ucf": ("central florida",),
    "smu": ("southern methodist",),
    "tcu": ("texas christian",),
    "byu": ("brigham young",),
    "uconn": ("connecticut",),
    "nc state": ("north carolina state", "n.c. state"),
    "texas a&m": ("texas am", "tamu"),
    "unlv": ("nevada-las vegas", "nevada las vegas"),
    "utsa": ("texas-san antonio", "ut san antonio"),
    "penn state": ("penn st", "nittany lions"),
}


@dataclass(frozen=True)
class RankEntry:
    team_name: str
    rank: int
    location: Optional[str] = None


class FeedClient(Protocol):
    async def get_json(self, url: str, feed: str = ...) -> dict[str, Any]: ...


def normalize_name(name: str) -> str:
    """Lowercase, collapse whitespace and drop a trailing "state"/"st" suffix."""
    s = _WHITESPACE.sub(" ", (name or "").lower()).strip()
    return _STATE_SUFFIX.sub("", s).strip()


def rank_keys(team_name: str) -> list[str]:
    """
    All lookup keys for one ranked team, in priority order, de-duplicated.

    Full lowercase name, normalized form, "university" -> "u",
    "college" stripped, then any hard-coded aliases.
    """
    full = _WHITESPACE.sub(" ", (team_name or "").lower()).strip()
    candidates = [
        full,
        normalize_name(full),
        _WHITESPACE.sub(" ", full.replace("university", "u")).strip(),
        _WHITESPACE.sub(" ", full.replace("college", "")).strip(),
    ]
    for institution, aliases in KNOWN_ALIASES.items():
        if full == institution or full.startswith(institution + " "):
            candidates.extend(aliases)

    keys: list[str] = []
    for key in candidates:
        if key and key not in keys:
            keys.append(key)
    return keys


def _entry_keys(entry: RankEntry) -> list[str]:
    keys = rank_keys(entry.team_name)
    if entry.location:
        keys.extend(k for k in rank_keys(entry.location) if k not in keys)
    return keys


def build_ranking_index(entries: Iterable[RankEntry]) -> RankingIndex:
    """
    Map every key of every ranked team to its rank.

    First binding wins. A key already bound to a different rank is an
    alias collision: it is logged and counted, and keeps its first rank.
    """
    index: RankingIndex = {}
    owners: dict[str, str] = {}
    for entry in entries:
        for key in _entry_keys(entry):
            existing = index.get(key)
            if existing is None:
                index[key] = entry.rank
                owners[key] = entry.team_name
            elif existing != entry.rank:
                RANK_ALIAS_COLLISIONS.inc()
                logger.warning(
                    "rank_alias_collision",
                    key=key,
                    kept_team=owners[key],
                    kept_rank=existing,
                    dropped_team=entry.team_name,
                    dropped_rank=entry.rank,
                )
    return index


def resolve_rank(team_name: str, index: RankingIndex) -> Optional[int]:
    """
    Best-effort rank lookup for a scoreboard team name.

    1. exact (case-insensitive)
    2. normalized
    3. first two tokens contained in a key, or a key contained in them
    4. any token longer than 3 characters contained in a key
    """
    if not index or not team_name:
        return None
    lowered = _WHITESPACE.sub(" ", team_name.lower()).strip()
    if not lowered:
        return None

    if lowered in index:
        return index[lowered]

    normalized = normalize_name(lowered)
    if normalized in index:
        return index[normalized]

    tokens = lowered.split(" ")
    base = " ".join(tokens[:2])
    for key, rank in index.items():
        if base in key or key in base:
            return rank

    for token in tokens:
        if len(token) <= 3:
            continue
        for key, rank in index.items():
            if token in key:
                return rank

    return None


def parse_rankings(data: dict[str, Any], poll: str, cutoff: int = MAX_RANK) -> list[RankEntry]:
    """Extract up to `cutoff` entries from the preferred poll (else the first listed)."""
    polls = data.get("rankings") or []
    if not isinstance(polls, list) or not polls:
        return []
    chosen = next(
        (p for p in polls if isinstance(p, dict) and (p.get("name") == poll or p.get("shortName") == poll)),
        polls[0],
    )
    if not isinstance(chosen, dict):
        return []

    entries: list[RankEntry] = []
    for raw in (chosen.get("ranks") or [])[:cutoff]:
        if not isinstance(raw, dict):
            continue
        team = raw.get("team") or {}
        name = team.get("displayName") or " ".join(
            part for part in (team.get("location"), team.get("name")) if part
        )
        try:
            rank = int(raw.get("current"))
        except (TypeError, ValueError):
            continue
        if not name or not 1 <= rank <= min(cutoff, MAX_RANK):
            continue
        entries.append(
            RankEntry(
                team_name=name,
                rank=rank,
                location=team.get("location") or None,
            )
        )
    return entries


class RankingsResolver:
    """Fetches the rankings feed and builds a fresh RankingIndex per call."""

    def __init__(self, client: FeedClient, settings: Settings | None = None) -> None:
        self._client = client
        self._settings = settings or get_settings()

    async def refresh_rankings(self) -> RankingIndex:
        """
        Fetch and index the current poll.

        Rankings are an optional enrichment: any failure is logged and an
        empty index (every team unranked) is returned instead of raising.
        """
        try:
            data = await self._client.get_json(self._settings.rankings_url, feed="rankings")
            entries = parse_rankings(data, self._settings.rankings_poll, self._settings.ranking_cutoff)
        except FeedError as exc:
            logger.warning("rankings_fetch_failed", error=str(exc))
            RANKED_KEYS.set(0)
            return {}
        except Exception as exc:
            logger.warning("rankings_parse_failed", error=str(exc), exc_info=True)
            RANKED_KEYS.set(0)
            return {}

        index = build_ranking_index(entries)
        RANKED_KEYS.set(len(index))
        logger.info("rankings_refreshed", teams=len(entries), keys=len(index))
        return index

"""Application state model and its persisted JSON layout.

The persisted blob keeps the camelCase field names of the stored layout
(`oddsPropsCache`, `aiPicksBySport`, ...). Loading is a shallow merge of the
default layout with whatever was stored, so fields added later always get a
default when an older blob is read.
"""

from __future__ import annotations

import logging
import math
import uuid
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from prop_tracker.catalog import (
    DEFAULT_BOOK,
    DEFAULT_ROUTE,
    DEFAULT_SPORT,
    LEANS,
    ROUTES,
    SPORTS,
    default_odds_market,
)

logger = logging.getLogger(__name__)


def new_entry_id() -> str:
    """Build a stable synthetic id for a tracked entry."""
    return uuid.uuid4().hex


@dataclass(frozen=True)
class TrackedEntry:
    """One watch-list row: a player and market the user follows."""

    id: str
    sport: str
    name: str
    market: str
    line: str = ""
    lean: str = "MORE"


@dataclass(frozen=True)
class Pick:
    """One generated confidence pick."""

    id: str
    player: str
    market: str
    line: str
    lean: str
    confidence: float
    reasoning: tuple[str, ...]


@dataclass(frozen=True)
class PropsCache:
    """Player-prop odds payload scoped by (sport, market)."""

    sport: str
    market: str
    fetched_at: int
    data: tuple[dict[str, Any], ...]
    truncated: bool = False


@dataclass(frozen=True)
class GamesCache:
    """Game odds payload scoped by (sport, book)."""

    sport: str
    book: str
    fetched_at: int
    data: tuple[dict[str, Any], ...]


@dataclass(frozen=True)
class AppState:
    """The single persisted application state value."""

    sport: str = DEFAULT_SPORT
    route: str = DEFAULT_ROUTE
    odds_gateway_url: str = ""
    odds_preferred_book: str = DEFAULT_BOOK
    odds_props_cache: PropsCache | None = None
    odds_games_cache: GamesCache | None = None
    odds_market_by_sport: Mapping[str, str] = field(default_factory=dict)
    selected_event_id: str | None = None
    tracked: tuple[TrackedEntry, ...] = ()
    ai_picks_by_sport: Mapping[str, tuple[Pick, ...]] = field(default_factory=dict)
    last_updated_at: str | None = None


def default_state() -> AppState:
    return AppState()


# attribute name -> persisted key
FIELD_KEYS: dict[str, str] = {
    "sport": "sport",
    "route": "route",
    "odds_gateway_url": "oddsGatewayUrl",
    "odds_preferred_book": "oddsPreferredBook",
    "odds_props_cache": "oddsPropsCache",
    "odds_games_cache": "oddsGamesCache",
    "odds_market_by_sport": "oddsMarketBySport",
    "selected_event_id": "selectedEventId",
    "tracked": "tracked",
    "ai_picks_by_sport": "aiPicksBySport",
    "last_updated_at": "lastUpdatedAt",
}

# Older blobs stored the gateway under the proxy name.
LEGACY_KEYS: dict[str, str] = {"oddsProxyUrl": "oddsGatewayUrl"}


def _props_cache_to_dict(cache: PropsCache | None) -> dict[str, Any] | None:
    if cache is None:
        return None
    return {
        "sport": cache.sport,
        "market": cache.market,
        "fetchedAt": cache.fetched_at,
        "data": list(cache.data),
        "truncated": cache.truncated,
    }


def _games_cache_to_dict(cache: GamesCache | None) -> dict[str, Any] | None:
    if cache is None:
        return None
    return {
        "sport": cache.sport,
        "book": cache.book,
        "fetchedAt": cache.fetched_at,
        "data": list(cache.data),
    }


def _entry_to_dict(entry: TrackedEntry) -> dict[str, Any]:
    return {
        "id": entry.id,
        "sport": entry.sport,
        "name": entry.name,
        "market": entry.market,
        "line": entry.line,
        "lean": entry.lean,
    }


def _pick_to_dict(pick: Pick) -> dict[str, Any]:
    return {
        "id": pick.id,
        "player": pick.player,
        "market": pick.market,
        "line": pick.line,
        "lean": pick.lean,
        "confidence": pick.confidence,
        "reasoning": list(pick.reasoning),
    }


def state_to_dict(state: AppState) -> dict[str, Any]:
    """Project state onto its JSON-serializable persisted layout."""
    return {
        "sport": state.sport,
        "route": state.route,
        "oddsGatewayUrl": state.odds_gateway_url,
        "oddsPreferredBook": state.odds_preferred_book,
        "oddsPropsCache": _props_cache_to_dict(state.odds_props_cache),
        "oddsGamesCache": _games_cache_to_dict(state.odds_games_cache),
        "oddsMarketBySport": dict(state.odds_market_by_sport),
        "selectedEventId": state.selected_event_id,
        "tracked": [_entry_to_dict(entry) for entry in state.tracked],
        "aiPicksBySport": {
            sport: [_pick_to_dict(pick) for pick in picks]
            for sport, picks in state.ai_picks_by_sport.items()
        },
        "lastUpdatedAt": state.last_updated_at,
    }


def _as_str(value: Any, *, default: str) -> str:
    if isinstance(value, str):
        return value
    return default


def _finite_number(value: Any) -> int | float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return value


def _as_optional_str(value: Any) -> str | None:
    """Strings pass through; finite numbers (a stored line such as 27.5) are rendered."""
    if isinstance(value, str):
        return value
    number = _finite_number(value)
    return None if number is None else str(number)


def _as_int(value: Any, *, default: int) -> int:
    number = _finite_number(value)
    return default if number is None else int(number)


def _as_float(value: Any, *, default: float) -> float:
    number = _finite_number(value)
    if number is None:
        return default
    try:
        return float(number)
    except OverflowError:
        return default


def _as_rows(value: Any) -> tuple[dict[str, Any], ...]:
    if not isinstance(value, list):
        return ()
    return tuple(row for row in value if isinstance(row, dict))


def _props_cache_from(value: Any) -> PropsCache | None:
    if not isinstance(value, dict):
        return None
    return PropsCache(
        sport=_as_str(value.get("sport"), default=""),
        market=_as_str(value.get("market"), default=""),
        fetched_at=_as_int(value.get("fetchedAt"), default=0),
        data=_as_rows(value.get("data")),
        truncated=value.get("truncated") is True,
    )


def _games_cache_from(value: Any) -> GamesCache | None:
    if not isinstance(value, dict):
        return None
    return GamesCache(
        sport=_as_str(value.get("sport"), default=""),
        book=_as_str(value.get("book"), default=""),
        fetched_at=_as_int(value.get("fetchedAt"), default=0),
        data=_as_rows(value.get("data")),
    )


def _entry_from(value: Any) -> TrackedEntry | None:
    if not isinstance(value, dict):
        return None
    name = _as_str(value.get("name"), default="")
    sport = _as_str(value.get("sport"), default="")
    if not name or not sport:
        return None
    lean = value.get("lean")
    entry_id = value.get("id")
    return TrackedEntry(
        id=entry_id if isinstance(entry_id, str) and entry_id else new_entry_id(),
        sport=sport,
        name=name,
        market=_as_str(value.get("market"), default=""),
        line=_as_optional_str(value.get("line")) or "",
        lean=lean if lean in LEANS else "MORE",
    )


def _pick_from(value: Any) -> Pick | None:
    if not isinstance(value, dict):
        return None
    reasoning = value.get("reasoning")
    return Pick(
        id=_as_str(value.get("id"), default=""),
        player=_as_str(value.get("player"), default=""),
        market=_as_str(value.get("market"), default=""),
        line=_as_optional_str(value.get("line")) or "",
        lean=_as_str(value.get("lean"), default="MORE"),
        confidence=_as_float(value.get("confidence"), default=0.0),
        reasoning=tuple(str(item) for item in reasoning) if isinstance(reasoning, list) else (),
    )


def _market_map_from(value: Any) -> dict[str, str]:
    if not isinstance(value, dict):
        return {}
    return {
        str(sport): market
        for sport, market in value.items()
        if isinstance(market, str) and market
    }


def _picks_map_from(value: Any) -> dict[str, tuple[Pick, ...]]:
    if not isinstance(value, dict):
        return {}
    out: dict[str, tuple[Pick, ...]] = {}
    for sport, rows in value.items():
        if not isinstance(rows, list):
            continue
        picks = [pick for pick in (_pick_from(row) for row in rows) if pick is not None]
        out[str(sport)] = tuple(picks)
    return out


def state_from_dict(
    payload: Mapping[str, Any], defaults: Callable[[], AppState] = default_state
) -> AppState:
    """Build state from a persisted layout merged over the defaults.

    The merge is shallow: a stored nested value (for example
    `oddsMarketBySport`) replaces the default wholesale. Values of the wrong
    type fall back to the field default; unknown keys are dropped.
    """
    stored = dict(payload)
    for legacy, current in LEGACY_KEYS.items():
        if legacy in stored and current not in stored:
            stored[current] = stored.pop(legacy)
    unknown = sorted(set(stored) - set(FIELD_KEYS.values()) - set(LEGACY_KEYS))
    if unknown:
        logger.debug("dropping unknown persisted keys: %s", ",".join(unknown))

    base = defaults()
    merged = state_to_dict(base) | stored

    sport = merged.get("sport")
    route = merged.get("route")
    tracked_raw = merged.get("tracked")
    tracked = tuple(
        entry
        for entry in (
            _entry_from(row) for row in (tracked_raw if isinstance(tracked_raw, list) else [])
        )
        if entry is not None
    )
    return AppState(
        sport=sport if sport in SPORTS else base.sport,
        route=route if route in ROUTES else base.route,
        odds_gateway_url=_as_str(
            merged.get("oddsGatewayUrl"), default=base.odds_gateway_url
        ).strip(),
        odds_preferred_book=_as_str(
            merged.get("oddsPreferredBook"), default=base.odds_preferred_book
        ),
        odds_props_cache=_props_cache_from(merged.get("oddsPropsCache")),
        odds_games_cache=_games_cache_from(merged.get("oddsGamesCache")),
        odds_market_by_sport=_market_map_from(merged.get("oddsMarketBySport")),
        selected_event_id=_as_optional_str(merged.get("selectedEventId")),
        tracked=tracked,
        ai_picks_by_sport=_picks_map_from(merged.get("aiPicksBySport")),
        last_updated_at=_as_optional_str(merged.get("lastUpdatedAt")),
    )


def odds_market_for(state: AppState, sport: str | None = None) -> str:
    """Return the remembered odds market for a sport, else the sport default."""
    key = sport or state.sport
    return state.odds_market_by_sport.get(key) or default_odds_market(key)

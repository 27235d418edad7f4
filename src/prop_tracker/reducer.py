"""Actions and the pure state reducer.

`reduce(state, action)` never performs I/O. Selection changes (sport, market,
book, gateway) null the cache records they scope, which takes precedence over
TTL expiry. Loaded-series actions replace only their own cache record.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any

from prop_tracker import watchlist
from prop_tracker.catalog import ROUTES, is_sport
from prop_tracker.errors import InvalidActionError
from prop_tracker.state import (
    AppState,
    GamesCache,
    Pick,
    PropsCache,
    new_entry_id,
    odds_market_for,
)


@dataclass(frozen=True)
class SetRoute:
    route: str


@dataclass(frozen=True)
class SetSport:
    sport: str


@dataclass(frozen=True)
class SetGatewayUrl:
    url: str


@dataclass(frozen=True)
class SetPreferredBook:
    book: str


@dataclass(frozen=True)
class SetOddsMarket:
    market: str
    sport: str | None = None


@dataclass(frozen=True)
class SelectEvent:
    event_id: str | None


@dataclass(frozen=True)
class AddTracked:
    name: str
    entry_id: str = field(default_factory=new_entry_id)


@dataclass(frozen=True)
class UpdateTracked:
    entry_id: str
    changes: Mapping[str, Any]


@dataclass(frozen=True)
class RemoveTracked:
    entry_id: str


@dataclass(frozen=True)
class ReplacePicks:
    sport: str
    picks: tuple[Pick, ...]


@dataclass(frozen=True)
class PropsLoaded:
    cache: PropsCache


@dataclass(frozen=True)
class GamesLoaded:
    cache: GamesCache


@dataclass(frozen=True)
class ScoreboardRefreshed:
    at: str


@dataclass(frozen=True)
class ReplaceState:
    state: AppState


Action = (
    SetRoute
    | SetSport
    | SetGatewayUrl
    | SetPreferredBook
    | SetOddsMarket
    | SelectEvent
    | AddTracked
    | UpdateTracked
    | RemoveTracked
    | ReplacePicks
    | PropsLoaded
    | GamesLoaded
    | ScoreboardRefreshed
    | ReplaceState
)


def _require_sport(sport: str) -> None:
    if not is_sport(sport):
        raise InvalidActionError(f"unknown sport: {sport}")


def _set_sport(state: AppState, sport: str) -> AppState:
    _require_sport(sport)
    if sport == state.sport:
        return replace(state, selected_event_id=None)
    return replace(
        state,
        sport=sport,
        selected_event_id=None,
        odds_props_cache=None,
        odds_games_cache=None,
    )


def _set_gateway_url(state: AppState, url: str) -> AppState:
    cleaned = url.strip()
    if cleaned == state.odds_gateway_url:
        return state
    return replace(state, odds_gateway_url=cleaned, odds_props_cache=None, odds_games_cache=None)


def _set_odds_market(state: AppState, market: str, sport: str | None) -> AppState:
    key = sport or state.sport
    _require_sport(key)
    if market == odds_market_for(state, key):
        return state
    markets = dict(state.odds_market_by_sport)
    markets[key] = market
    return replace(state, odds_market_by_sport=markets, odds_props_cache=None)


def _add_tracked(state: AppState, name: str, entry_id: str) -> AppState:
    cleaned = name.strip()
    if not cleaned:
        raise InvalidActionError("tracked name must not be empty")
    tracked = watchlist.add_from_name(state.tracked, cleaned, state.sport, entry_id=entry_id)
    return replace(state, tracked=tracked)


def reduce(state: AppState, action: Action) -> AppState:
    """Return the state that results from applying one action."""
    if isinstance(action, SetRoute):
        if action.route not in ROUTES:
            raise InvalidActionError(f"unknown route: {action.route}")
        return replace(state, route=action.route)
    if isinstance(action, SetSport):
        return _set_sport(state, action.sport)
    if isinstance(action, SetGatewayUrl):
        return _set_gateway_url(state, action.url)
    if isinstance(action, SetPreferredBook):
        if action.book == state.odds_preferred_book:
            return state
        return replace(state, odds_preferred_book=action.book, odds_games_cache=None)
    if isinstance(action, SetOddsMarket):
        return _set_odds_market(state, action.market, action.sport)
    if isinstance(action, SelectEvent):
        return replace(state, selected_event_id=action.event_id or None)
    if isinstance(action, AddTracked):
        return _add_tracked(state, action.name, action.entry_id)
    if isinstance(action, UpdateTracked):
        return replace(
            state, tracked=watchlist.update(state.tracked, action.entry_id, action.changes)
        )
    if isinstance(action, RemoveTracked):
        return replace(state, tracked=watchlist.remove(state.tracked, action.entry_id))
    if isinstance(action, ReplacePicks):
        _require_sport(action.sport)
        picks_by_sport = dict(state.ai_picks_by_sport)
        picks_by_sport[action.sport] = tuple(action.picks)
        return replace(state, ai_picks_by_sport=picks_by_sport)
    if isinstance(action, PropsLoaded):
        return replace(state, odds_props_cache=action.cache)
    if isinstance(action, GamesLoaded):
        return replace(state, odds_games_cache=action.cache)
    if isinstance(action, ScoreboardRefreshed):
        return replace(state, last_updated_at=action.at)
    if isinstance(action, ReplaceState):
        return action.state
    raise InvalidActionError(f"unsupported action: {type(action).__name__}")

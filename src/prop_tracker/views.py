"""Pure view-model derivation from application state.

Every view is recomputed from scratch on each state change. Odds cards only
show a cache record whose scope matches the current selection and whose TTL has
not lapsed; anything else renders as "nothing loaded".
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from prop_tracker.catalog import odds_market_label
from prop_tracker.freshness import LiveCache, live_events, usable_games, usable_props
from prop_tracker.normalize import (
    GameOdds,
    NormalizedEvent,
    PlayerRef,
    PropBoard,
    normalize_game_odds,
    normalize_prop_odds,
)
from prop_tracker.state import AppState, Pick, TrackedEntry, odds_market_for
from prop_tracker.watchlist import list_for_sport

STATUS_NOT_CONFIGURED = "not_configured"
STATUS_EMPTY = "empty"
STATUS_LOADED = "loaded"

NOT_CONFIGURED_MESSAGE = "Odds gateway not set."
EMPTY_MESSAGE = "Nothing loaded yet."
NO_ODDS_MESSAGE = "No odds returned."

PLAYER_HELPERS = {
    "NBA": "Tip: pick a game in Games Today to load that game's player list.",
    "UFC": "UFC: fighters come from the scoreboard; add anyone manually for tracking.",
}
DEFAULT_PLAYER_HELPER = (
    "Player lists are automatic only for NBA. Add anyone manually for tracking & AI picks."
)


@dataclass(frozen=True)
class OddsCard:
    """State of one odds card: not configured, empty, or loaded."""

    status: str
    message: str
    button_label: str
    book: str
    error: str = ""
    market: str = ""
    market_label: str = ""
    fetched_at: int | None = None
    truncated: bool = False
    games: tuple[GameOdds, ...] = ()
    props: tuple[PropBoard, ...] = ()


@dataclass(frozen=True)
class EventRow:
    event: NormalizedEvent
    matchup: str
    score: str
    pill: str


@dataclass(frozen=True)
class LiveView:
    events: tuple[EventRow, ...]
    odds: OddsCard


@dataclass(frozen=True)
class GamesView:
    events: tuple[EventRow, ...]
    odds: OddsCard


@dataclass(frozen=True)
class PlayersView:
    odds: OddsCard
    helper: str
    selected_event_id: str | None
    players: tuple[PlayerRef, ...]
    tracked: tuple[TrackedEntry, ...]


@dataclass(frozen=True)
class AIView:
    info: str
    picks: tuple[Pick, ...]


@dataclass(frozen=True)
class ProfileView:
    tracked_total: int
    gateway_url: str
    preferred_book: str


@dataclass(frozen=True)
class ViewModel:
    route: str
    sport: str
    last_updated_at: str | None
    body: LiveView | GamesView | PlayersView | AIView | ProfileView
    errors: Mapping[str, str] = field(default_factory=dict)


def event_row(event: NormalizedEvent) -> EventRow:
    matchup = f"{event.away.abbr or event.away.name} @ {event.home.abbr or event.home.name}"
    if event.state == "in" or event.completed:
        score = f"{event.away.score}–{event.home.score}"
    else:
        score = "—"
    if event.completed:
        pill = "Final"
    elif event.state == "in":
        pill = "Live"
    else:
        pill = event.short_detail or "Scheduled"
    return EventRow(event=event, matchup=matchup, score=score, pill=pill)


def games_card(state: AppState, *, now_ms: int, error: str = "") -> OddsCard:
    book = state.odds_preferred_book
    if not state.odds_gateway_url:
        return OddsCard(
            status=STATUS_NOT_CONFIGURED,
            message=NOT_CONFIGURED_MESSAGE,
            button_label="Load",
            book=book,
            error=error,
        )
    cache = usable_games(state, now_ms)
    if cache is None:
        return OddsCard(
            status=STATUS_EMPTY, message=EMPTY_MESSAGE, button_label="Load", book=book, error=error
        )
    games = tuple(normalize_game_odds(list(cache.data), book))
    return OddsCard(
        status=STATUS_LOADED,
        message="" if games else NO_ODDS_MESSAGE,
        button_label="Refresh",
        book=book,
        error=error,
        fetched_at=cache.fetched_at,
        games=games,
    )


def props_card(state: AppState, *, now_ms: int, error: str = "") -> OddsCard:
    book = state.odds_preferred_book
    market = odds_market_for(state)
    common = {
        "book": book,
        "error": error,
        "market": market,
        "market_label": odds_market_label(state.sport, market),
    }
    if not state.odds_gateway_url:
        return OddsCard(
            status=STATUS_NOT_CONFIGURED,
            message=NOT_CONFIGURED_MESSAGE,
            button_label="Load",
            **common,
        )
    cache = usable_props(state, now_ms)
    if cache is None:
        return OddsCard(status=STATUS_EMPTY, message=EMPTY_MESSAGE, button_label="Load", **common)
    props = tuple(normalize_prop_odds(list(cache.data), book))
    return OddsCard(
        status=STATUS_LOADED,
        message="" if props else NO_ODDS_MESSAGE,
        button_label="Refresh",
        fetched_at=cache.fetched_at,
        truncated=cache.truncated,
        props=props,
        **common,
    )


def ai_info(state: AppState) -> str:
    if list_for_sport(state.tracked, state.sport):
        return "Based on your tracked list."
    return "Demo mode (add tracked players to personalize)."


def derive_view(
    state: AppState,
    *,
    live: LiveCache,
    now_ms: int,
    players: Sequence[PlayerRef] = (),
    errors: Mapping[str, str] | None = None,
    route: str | None = None,
) -> ViewModel:
    """Build the view model for the current (or given) route."""
    errors = dict(errors or {})
    active = route or state.route
    sport = state.sport
    events = live_events(live, sport)
    body: LiveView | GamesView | PlayersView | AIView | ProfileView
    if active == "live":
        body = LiveView(
            events=tuple(event_row(event) for event in events if event.is_live),
            odds=games_card(state, now_ms=now_ms, error=errors.get("games", "")),
        )
    elif active == "games":
        body = GamesView(
            events=tuple(event_row(event) for event in events),
            odds=games_card(state, now_ms=now_ms, error=errors.get("games", "")),
        )
    elif active == "players":
        body = PlayersView(
            odds=props_card(state, now_ms=now_ms, error=errors.get("props", "")),
            helper=PLAYER_HELPERS.get(sport, DEFAULT_PLAYER_HELPER),
            selected_event_id=state.selected_event_id,
            players=tuple(players),
            tracked=list_for_sport(state.tracked, sport),
        )
    elif active == "ai":
        body = AIView(info=ai_info(state), picks=tuple(state.ai_picks_by_sport.get(sport, ())))
    else:
        body = ProfileView(
            tracked_total=len(state.tracked),
            gateway_url=state.odds_gateway_url,
            preferred_book=state.odds_preferred_book,
        )
    return ViewModel(
        route=active,
        sport=sport,
        last_updated_at=state.last_updated_at,
        body=body,
        errors=errors,
    )

"""Dashboard controller: user actions, provider fetches and the render trigger.

Every mutation goes through the state container, so it is persisted before
any view is re-derived. Provider failures are caught here and turned into a
notification or an inline card error; nothing raised by a provider reaches
the view layer.
"""

from __future__ import annotations

import logging
import random
import time
from collections.abc import Callable, Mapping
from typing import Any

from prop_tracker.catalog import odds_sport_key
from prop_tracker.container import StateContainer
from prop_tracker.errors import (
    BackupImportError,
    GatewayNotConfiguredError,
    OddsGatewayError,
    ScoreboardError,
)
from prop_tracker.freshness import LiveCache, live_cache_fresh, live_events
from prop_tracker.normalize import (
    NormalizedEvent,
    PlayerRef,
    parse_players_from_summary,
    parse_scoreboard,
    parse_ufc_fighters,
)
from prop_tracker.odds_client import OddsGatewayClient
from prop_tracker.picks import generate_picks
from prop_tracker.reducer import (
    AddTracked,
    GamesLoaded,
    PropsLoaded,
    RemoveTracked,
    ReplacePicks,
    ScoreboardRefreshed,
    SelectEvent,
    SetGatewayUrl,
    SetOddsMarket,
    SetPreferredBook,
    SetRoute,
    SetSport,
    UpdateTracked,
)
from prop_tracker.scoreboard import ScoreboardClient
from prop_tracker.state import AppState, GamesCache, Pick, PropsCache, TrackedEntry, odds_market_for
from prop_tracker.sync import SCOPE_GAMES, SCOPE_LIVE, SCOPE_PROPS, SCOPE_SUMMARY, RequestTracker
from prop_tracker.time_utils import Clock, epoch_ms, iso_from_epoch
from prop_tracker.views import ViewModel, derive_view
from prop_tracker.watchlist import list_for_sport

logger = logging.getLogger(__name__)

Notifier = Callable[[str], None]
OddsClientFactory = Callable[[str], OddsGatewayClient]

MSG_REFRESHING = "Refreshing…"
MSG_UPDATED = "Updated"
MSG_LIVE_BLOCKED = "Live feed blocked (demo mode)"
MSG_ADDED = "Added"
MSG_PICKS_UPDATED = "AI picks updated"
MSG_LOADING_LINES = "Loading lines…"
MSG_LINES_UPDATED = "Lines updated."
MSG_LOADING_ODDS = "Loading odds…"
MSG_ODDS_UPDATED = "Odds updated."
MSG_IMPORTED = "Imported"
MSG_CLEARED = "Cleared"
MSG_GATEWAY_SAVED = "Odds gateway saved."
MSG_GATEWAY_CLEARED = "Odds gateway cleared."


def _log_notification(message: str) -> None:
    logger.info("notify: %s", message)


class Dashboard:
    """Coordinates the container, the two providers and view derivation."""

    def __init__(
        self,
        container: StateContainer,
        *,
        scoreboard: ScoreboardClient,
        odds_client_factory: OddsClientFactory,
        clock: Clock = time.time,
        rng: random.Random | None = None,
        notifier: Notifier | None = None,
        on_view: Callable[[ViewModel], None] | None = None,
    ) -> None:
        self.container = container
        self.scoreboard = scoreboard
        self._odds_client_factory = odds_client_factory
        self._clock = clock
        self._rng = rng or random.Random()
        self._notify = notifier or _log_notification
        self._tracker = RequestTracker()
        self.live = LiveCache()
        self.errors: dict[str, str] = {}
        self.players: tuple[PlayerRef, ...] = ()
        self._on_view = on_view
        if on_view is not None:
            container.subscribe(lambda _state: on_view(self.view()))

    def close(self) -> None:
        self.scoreboard.close()

    def __enter__(self) -> Dashboard:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    @property
    def state(self) -> AppState:
        return self.container.state

    def _now_ms(self) -> int:
        return epoch_ms(self._clock)

    def view(self, route: str | None = None) -> ViewModel:
        """Derive the full view model from the current state."""
        return derive_view(
            self.state,
            live=self.live,
            now_ms=self._now_ms(),
            players=self.players,
            errors=self.errors,
            route=route,
        )

    def _render(self) -> None:
        if self._on_view is not None:
            self._on_view(self.view())

    def boot(self) -> ViewModel:
        """Show the stored state, then try a non-forced scoreboard refresh."""
        self._render()
        self.refresh_live(force=False)
        return self.view()

    # -- scoreboard ------------------------------------------------------

    def refresh_live(self, *, force: bool = False) -> tuple[NormalizedEvent, ...]:
        """Refetch the scoreboard for the current sport unless the cache is fresh.

        On failure the previous cache is kept and `last_updated_at` is left
        alone. A response that is no longer the latest for its scope is
        discarded.
        """
        sport = self.state.sport
        if not force and live_cache_fresh(self.live, sport=sport, now_ms=self._now_ms()):
            logger.debug("live cache hit for %s", sport)
            return live_events(self.live, sport)

        token = self._tracker.issue(SCOPE_LIVE)
        self._notify(MSG_REFRESHING)
        try:
            payload = self.scoreboard.get_scoreboard(sport)
        except ScoreboardError as exc:
            logger.warning("scoreboard refresh failed for %s: %s", sport, exc)
            if self._tracker.is_current(SCOPE_LIVE, token):
                self._notify(MSG_LIVE_BLOCKED)
            return live_events(self.live, self.state.sport)

        if not self._tracker.is_current(SCOPE_LIVE, token) or sport != self.state.sport:
            logger.debug("discarding stale scoreboard response for %s (token=%s)", sport, token)
            return live_events(self.live, self.state.sport)

        events = tuple(parse_scoreboard(payload))
        self.live = LiveCache(
            sport=sport, scoreboard=payload, events=events, fetched_at=self._now_ms()
        )
        logger.info("scoreboard %s refreshed: %d events", sport, len(events))
        self.container.dispatch(ScoreboardRefreshed(iso_from_epoch(self._clock())))
        self._notify(MSG_UPDATED)
        return events

    # -- selection -------------------------------------------------------

    def set_route(self, route: str) -> AppState:
        return self.container.dispatch(SetRoute(route))

    def set_sport(self, sport: str) -> AppState:
        """Switch sport, then force a best-effort scoreboard refresh."""
        changed = sport != self.state.sport
        state = self.container.dispatch(SetSport(sport))
        self.players = ()
        if changed:
            self.errors.clear()
        self.refresh_live(force=True)
        return state

    def select_event(self, event_id: str | None) -> AppState:
        state = self.container.dispatch(SelectEvent(event_id))
        self.load_players()
        return state

    def set_gateway_url(self, url: str) -> AppState:
        state = self.container.dispatch(SetGatewayUrl(url))
        self.errors.clear()
        self._notify(MSG_GATEWAY_SAVED if state.odds_gateway_url else MSG_GATEWAY_CLEARED)
        return state

    def set_preferred_book(self, book: str) -> AppState:
        return self.container.dispatch(SetPreferredBook(book))

    def set_odds_market(self, market: str) -> AppState:
        return self.container.dispatch(SetOddsMarket(market))

    # -- odds ------------------------------------------------------------

    def _not_configured(self, scope: str) -> None:
        message = str(GatewayNotConfiguredError())
        self.errors[scope] = message
        self._notify(message)
        self._render()

    def _odds_failed(self, scope: str, exc: OddsGatewayError) -> None:
        logger.warning("odds %s load failed: %s", scope, exc)
        self.errors[scope] = str(exc)
        self._notify(f"Odds error: {exc}")
        self._render()

    def load_props(self, market: str | None = None) -> PropsCache | None:
        """Fetch player-prop lines for the current sport and market.

        Returns the stored cache record, or None when nothing was stored.
        """
        if market is not None:
            self.set_odds_market(market)
        state = self.state
        if not state.odds_gateway_url:
            self._not_configured(SCOPE_PROPS)
            return None

        sport = state.sport
        market_key = odds_market_for(state)
        token = self._tracker.issue(SCOPE_PROPS)
        self._notify(MSG_LOADING_LINES)
        try:
            with self._odds_client_factory(state.odds_gateway_url) as client:
                result = client.get_props(
                    sport_key=odds_sport_key(sport),
                    market=market_key,
                    bookmakers=state.odds_preferred_book,
                )
        except OddsGatewayError as exc:
            if self._tracker.is_current(SCOPE_PROPS, token):
                self._odds_failed(SCOPE_PROPS, exc)
            return None

        current = self.state
        if (
            not self._tracker.is_current(SCOPE_PROPS, token)
            or current.sport != sport
            or odds_market_for(current) != market_key
        ):
            logger.debug("discarding stale props response for %s/%s", sport, market_key)
            return None

        self.errors.pop(SCOPE_PROPS, None)
        cache = PropsCache(
            sport=sport,
            market=market_key,
            fetched_at=self._now_ms(),
            data=tuple(result.data),
            truncated=result.truncated,
        )
        logger.info(
            "props %s/%s loaded: %d events truncated=%s",
            sport,
            market_key,
            len(cache.data),
            cache.truncated,
        )
        self.container.dispatch(PropsLoaded(cache))
        self._notify(MSG_LINES_UPDATED)
        return cache

    def load_game_odds(self, book: str | None = None) -> GamesCache | None:
        """Fetch moneyline/total/spread odds for the current sport and book."""
        if book is not None:
            self.set_preferred_book(book)
        state = self.state
        if not state.odds_gateway_url:
            self._not_configured(SCOPE_GAMES)
            return None

        sport = state.sport
        book_key = state.odds_preferred_book
        token = self._tracker.issue(SCOPE_GAMES)
        self._notify(MSG_LOADING_ODDS)
        try:
            with self._odds_client_factory(state.odds_gateway_url) as client:
                result = client.get_game_odds(sport_key=odds_sport_key(sport), bookmakers=book_key)
        except OddsGatewayError as exc:
            if self._tracker.is_current(SCOPE_GAMES, token):
                self._odds_failed(SCOPE_GAMES, exc)
            return None

        current = self.state
        if (
            not self._tracker.is_current(SCOPE_GAMES, token)
            or current.sport != sport
            or current.odds_preferred_book != book_key
        ):
            logger.debug("discarding stale game odds response for %s/%s", sport, book_key)
            return None

        self.errors.pop(SCOPE_GAMES, None)
        cache = GamesCache(
            sport=sport, book=book_key, fetched_at=self._now_ms(), data=tuple(result.data)
        )
        logger.info("game odds %s/%s loaded: %d events", sport, book_key or "any", len(cache.data))
        self.container.dispatch(GamesLoaded(cache))
        self._notify(MSG_ODDS_UPDATED)
        return cache

    # -- players ---------------------------------------------------------

    def load_players(self) -> tuple[PlayerRef, ...]:
        """Rebuild the automatic player list for the Players view.

        NBA reads the selected event's summary, UFC reads fighters from the
        cached scoreboard. Failures leave an empty list.
        """
        state = self.state
        players: list[PlayerRef] = []
        if state.sport == "UFC":
            if self.live.sport == "UFC":
                players = parse_ufc_fighters(self.live.scoreboard)
        elif state.sport == "NBA" and state.selected_event_id:
            event_id = state.selected_event_id
            token = self._tracker.issue(SCOPE_SUMMARY)
            try:
                payload = self.scoreboard.get_summary(state.sport, event_id)
            except ScoreboardError as exc:
                logger.warning("summary fetch failed for event %s: %s", event_id, exc)
            else:
                if not self._tracker.is_current(SCOPE_SUMMARY, token):
                    return self.players
                players = parse_players_from_summary(payload)
        self.players = tuple(players)
        self._render()
        return self.players

    # -- watch-list and picks -------------------------------------------

    def add_tracked(self, name: str) -> TrackedEntry:
        action = AddTracked(name)
        state = self.container.dispatch(action)
        self._notify(MSG_ADDED)
        return next(entry for entry in state.tracked if entry.id == action.entry_id)

    def update_tracked(self, entry_id: str, changes: Mapping[str, Any]) -> AppState:
        return self.container.dispatch(UpdateTracked(entry_id, dict(changes)))

    def remove_tracked(self, entry_id: str) -> AppState:
        return self.container.dispatch(RemoveTracked(entry_id))

    def tracked_for_sport(self) -> tuple[TrackedEntry, ...]:
        return list_for_sport(self.state.tracked, self.state.sport)

    def regenerate_picks(self) -> tuple[Pick, ...]:
        sport = self.state.sport
        picks = generate_picks(sport, self.tracked_for_sport(), rng=self._rng)
        self.container.dispatch(ReplacePicks(sport, picks))
        self._notify(MSG_PICKS_UPDATED)
        return picks

    # -- backup ----------------------------------------------------------

    def export_backup(self) -> str:
        return self.container.export_backup()

    def import_backup(self, raw: str) -> AppState:
        """Replace state from a backup; a rejected backup is reported and re-raised."""
        try:
            state = self.container.import_backup(raw)
        except BackupImportError as exc:
            self._notify(str(exc))
            raise
        self.players = ()
        self.errors.clear()
        self._notify(MSG_IMPORTED)
        return state

    def reset(self) -> AppState:
        state = self.container.reset()
        self.players = ()
        self.errors.clear()
        self._notify(MSG_CLEARED)
        return state

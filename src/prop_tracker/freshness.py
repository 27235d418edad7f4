"""Read-time freshness checks for the cached data series.

A cache record is usable only when its scoping key matches the current
selection exactly and it is younger than its TTL. Nothing here evicts;
callers treat a stale or mismatched record as absent.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any

from prop_tracker.normalize import NormalizedEvent
from prop_tracker.state import AppState, GamesCache, PropsCache, odds_market_for

PROPS_TTL = timedelta(minutes=15)
GAMES_TTL = timedelta(minutes=10)
LIVE_TTL = timedelta(seconds=30)


@dataclass(frozen=True)
class LiveCache:
    """Process-lifetime scoreboard cache; never persisted."""

    sport: str | None = None
    scoreboard: dict[str, Any] | None = None
    events: tuple[NormalizedEvent, ...] = field(default_factory=tuple)
    fetched_at: int = 0


def _ttl_ms(ttl: timedelta) -> int:
    return int(ttl.total_seconds() * 1000)


def within_ttl(fetched_at: int, now_ms: int, ttl: timedelta) -> bool:
    return now_ms - fetched_at < _ttl_ms(ttl)


def props_cache_fresh(cache: PropsCache | None, *, sport: str, market: str, now_ms: int) -> bool:
    if cache is None:
        return False
    if cache.sport != sport or cache.market != market:
        return False
    return within_ttl(cache.fetched_at, now_ms, PROPS_TTL)


def games_cache_fresh(cache: GamesCache | None, *, sport: str, book: str, now_ms: int) -> bool:
    if cache is None:
        return False
    if cache.sport != sport or cache.book != book:
        return False
    return within_ttl(cache.fetched_at, now_ms, GAMES_TTL)


def live_cache_fresh(cache: LiveCache, *, sport: str, now_ms: int) -> bool:
    """True when the scoreboard may be reused without a refetch."""
    if cache.sport != sport or not cache.events:
        return False
    return within_ttl(cache.fetched_at, now_ms, LIVE_TTL)


def usable_props(state: AppState, now_ms: int) -> PropsCache | None:
    """Props cache for the current (sport, market), or None."""
    cache = state.odds_props_cache
    market = odds_market_for(state)
    if props_cache_fresh(cache, sport=state.sport, market=market, now_ms=now_ms):
        return cache
    return None


def usable_games(state: AppState, now_ms: int) -> GamesCache | None:
    """Game-odds cache for the current (sport, book), or None."""
    cache = state.odds_games_cache
    book = state.odds_preferred_book
    if games_cache_fresh(cache, sport=state.sport, book=book, now_ms=now_ms):
        return cache
    return None


def live_events(cache: LiveCache, sport: str) -> tuple[NormalizedEvent, ...]:
    """Cached events for a sport; a cache for another sport reads as empty."""
    if cache.sport != sport:
        return ()
    return cache.events

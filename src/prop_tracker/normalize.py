"""Normalization of scoreboard, summary and odds payloads.

Provider JSON is untrusted: every read goes through a typed reader that maps a
missing or wrongly-typed value to a documented default, so callers never probe
payload shapes themselves.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

MAX_PROP_OUTCOMES = 120


def _as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def _as_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return ""


def _first_text(*values: Any, default: str = "") -> str:
    for value in values:
        text = _as_text(value)
        if text:
            return text
    return default


def as_score(value: Any) -> int | float:
    """Coerce a provider score to a number; missing or invalid becomes 0."""
    if isinstance(value, bool) or value is None:
        return 0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(number):
        return 0
    return int(number) if number.is_integer() else number


@dataclass(frozen=True)
class TeamLine:
    name: str
    abbr: str
    score: int | float


@dataclass(frozen=True)
class NormalizedEvent:
    """One scoreboard event in the internal shape."""

    id: str
    name: str
    date: str
    state: str
    detail: str
    short_detail: str
    completed: bool
    home: TeamLine
    away: TeamLine

    @property
    def is_live(self) -> bool:
        return self.state == "in" and not self.completed


@dataclass(frozen=True)
class PlayerRef:
    name: str
    team: str


def _team_line(competitor: dict[str, Any], fallback_name: str) -> TeamLine:
    team = _as_dict(competitor.get("team"))
    return TeamLine(
        name=_first_text(
            team.get("displayName"),
            team.get("shortDisplayName"),
            team.get("name"),
            default=fallback_name,
        ),
        abbr=_as_text(team.get("abbreviation")),
        score=as_score(competitor.get("score")),
    )


def _select_side(competitors: list[dict[str, Any]], role: str, position: int) -> dict[str, Any]:
    for competitor in competitors:
        if competitor.get("homeAway") == role:
            return competitor
    if len(competitors) > position:
        return competitors[position]
    return {}


def parse_scoreboard(payload: Any) -> list[NormalizedEvent]:
    """Normalize a scoreboard payload into events.

    Home/away are chosen by the `homeAway` marker, falling back to the first
    and second competitor respectively.
    """
    events: list[NormalizedEvent] = []
    for raw_event in _as_list(_as_dict(payload).get("events")):
        event = _as_dict(raw_event)
        competitions = _as_list(event.get("competitions"))
        competition = _as_dict(competitions[0]) if competitions else {}
        competitors = [_as_dict(row) for row in _as_list(competition.get("competitors"))]
        home = _select_side(competitors, "home", 0)
        away = _select_side(competitors, "away", 1)
        status = _as_dict(_as_dict(competition.get("status")).get("type")) or _as_dict(
            _as_dict(event.get("status")).get("type")
        )
        events.append(
            NormalizedEvent(
                id=_as_text(event.get("id")),
                name=_first_text(event.get("name"), event.get("shortName"), default="Event"),
                date=_as_text(event.get("date")),
                state=_as_text(status.get("state")),
                detail=_as_text(status.get("detail")),
                short_detail=_as_text(status.get("shortDetail")),
                completed=bool(status.get("completed")),
                home=_team_line(home, "Home"),
                away=_team_line(away, "Away"),
            )
        )
    return events


def _dedupe(players: list[PlayerRef], *, by_team: bool) -> list[PlayerRef]:
    seen: set[str] = set()
    out: list[PlayerRef] = []
    for player in players:
        key = f"{player.name}|{player.team}" if by_team else player.name
        if key in seen:
            continue
        seen.add(key)
        out.append(player)
    return out


def parse_players_from_summary(payload: Any) -> list[PlayerRef]:
    """Walk boxscore team -> athlete group -> athlete into unique (name, team) rows."""
    players: list[PlayerRef] = []
    boxscore = _as_dict(_as_dict(payload).get("boxscore"))
    for raw_team in _as_list(boxscore.get("players")):
        team_block = _as_dict(raw_team)
        team = _as_dict(team_block.get("team"))
        team_name = _first_text(team.get("abbreviation"), team.get("displayName"))
        for raw_group in _as_list(team_block.get("athletes")):
            for raw_item in _as_list(_as_dict(raw_group).get("athletes")):
                athlete = _as_dict(_as_dict(raw_item).get("athlete"))
                name = _as_text(athlete.get("displayName"))
                if not name:
                    continue
                players.append(PlayerRef(name=name, team=team_name))
    return _dedupe(players, by_team=True)


def parse_ufc_fighters(payload: Any) -> list[PlayerRef]:
    """Fighters listed on a scoreboard, unique by name."""
    fighters: list[PlayerRef] = []
    for raw_event in _as_list(_as_dict(payload).get("events")):
        competitions = _as_list(_as_dict(raw_event).get("competitions"))
        competition = _as_dict(competitions[0]) if competitions else {}
        for raw_competitor in _as_list(competition.get("competitors")):
            competitor = _as_dict(raw_competitor)
            name = _first_text(
                _as_dict(competitor.get("athlete")).get("displayName"),
                _as_dict(competitor.get("team")).get("displayName"),
            )
            if name:
                fighters.append(PlayerRef(name=name, team="UFC"))
    return _dedupe(fighters, by_team=False)


@dataclass(frozen=True)
class OddsOutcome:
    name: str
    description: str
    point: float | None
    price: float | None


@dataclass(frozen=True)
class GameOdds:
    """Moneyline/total/spread lines for one event from one book."""

    event_id: str
    home_team: str
    away_team: str
    commence_time: str
    book_key: str
    book_title: str
    moneyline: tuple[OddsOutcome, ...]
    totals: tuple[OddsOutcome, ...]
    spreads: tuple[OddsOutcome, ...]


@dataclass(frozen=True)
class PropBoard:
    """One event's outcomes for a single prop market from one book."""

    event_id: str
    home_team: str
    away_team: str
    commence_time: str
    book_key: str
    book_title: str
    market_key: str
    outcomes: tuple[OddsOutcome, ...]


def _as_number(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value


def _outcomes(market: dict[str, Any] | None, limit: int | None = None) -> tuple[OddsOutcome, ...]:
    if not market:
        return ()
    rows = _as_list(market.get("outcomes"))
    if limit is not None:
        rows = rows[:limit]
    outcomes: list[OddsOutcome] = []
    for raw in rows:
        row = _as_dict(raw)
        outcomes.append(
            OddsOutcome(
                name=_as_text(row.get("name")),
                description=_as_text(row.get("description")),
                point=_as_number(row.get("point")),
                price=_as_number(row.get("price")),
            )
        )
    return tuple(outcomes)


def pick_bookmaker(bookmakers: Any, preferred_key: str = "") -> dict[str, Any] | None:
    """Preferred bookmaker when listed, else the first one, else None."""
    books = [_as_dict(row) for row in _as_list(bookmakers)]
    if not books:
        return None
    if preferred_key:
        for book in books:
            if book.get("key") == preferred_key:
                return book
    return books[0]


def pick_market(markets: Any, key: str) -> dict[str, Any] | None:
    for raw in _as_list(markets):
        market = _as_dict(raw)
        if market.get("key") == key:
            return market
    return None


def _book_label(book: dict[str, Any] | None) -> tuple[str, str]:
    if book is None:
        return "", ""
    key = _as_text(book.get("key"))
    return key, _first_text(book.get("title"), key)


def normalize_game_odds(payload: Any, preferred_book: str = "") -> list[GameOdds]:
    """One row per event: h2h/totals/spreads from a single chosen bookmaker."""
    rows: list[GameOdds] = []
    for raw_event in _as_list(payload):
        event = _as_dict(raw_event)
        book = pick_bookmaker(event.get("bookmakers"), preferred_book)
        markets = book.get("markets") if book else None
        book_key, book_title = _book_label(book)
        rows.append(
            GameOdds(
                event_id=_as_text(event.get("id")),
                home_team=_as_text(event.get("home_team")),
                away_team=_as_text(event.get("away_team")),
                commence_time=_as_text(event.get("commence_time")),
                book_key=book_key,
                book_title=book_title,
                moneyline=_outcomes(pick_market(markets, "h2h")),
                totals=_outcomes(pick_market(markets, "totals")),
                spreads=_outcomes(pick_market(markets, "spreads")),
            )
        )
    return rows


def normalize_prop_odds(payload: Any, preferred_book: str = "") -> list[PropBoard]:
    """One row per event: the chosen bookmaker's first market only."""
    rows: list[PropBoard] = []
    for raw_event in _as_list(payload):
        event = _as_dict(raw_event)
        book = pick_bookmaker(event.get("bookmakers"), preferred_book)
        markets = _as_list(book.get("markets")) if book else []
        market = _as_dict(markets[0]) if markets else None
        book_key, book_title = _book_label(book)
        rows.append(
            PropBoard(
                event_id=_as_text(event.get("id")),
                home_team=_as_text(event.get("home_team")),
                away_team=_as_text(event.get("away_team")),
                commence_time=_as_text(event.get("commence_time")),
                book_key=book_key,
                book_title=book_title,
                market_key=_as_text(market.get("key")) if market else "",
                outcomes=_outcomes(market, MAX_PROP_OUTCOMES),
            )
        )
    return rows

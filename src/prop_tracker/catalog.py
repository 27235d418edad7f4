"""Static per-sport vocabularies: markets, provider paths, odds keys, demo rosters."""

from __future__ import annotations

SPORTS: tuple[str, ...] = ("NBA", "NFL", "MLB", "NHL", "EPL", "UFC")
ROUTES: tuple[str, ...] = ("live", "games", "players", "ai", "profile")
LEANS: tuple[str, ...] = ("MORE", "LESS")

DEFAULT_SPORT = "NBA"
DEFAULT_ROUTE = "live"
DEFAULT_BOOK = "fanduel"
FALLBACK_TRACKING_MARKET = "PTS"
FALLBACK_ODDS_MARKET = "player_points"

SPORT_MARKETS: dict[str, tuple[str, ...]] = {
    "NBA": ("PTS", "REB", "AST", "PRA"),
    "NFL": ("PASS_YDS", "RUSH_YDS", "REC_YDS", "TD"),
    "MLB": ("H", "HR", "RBI", "SO"),
    "NHL": ("SOG", "PTS"),
    "EPL": ("SHOTS", "SOG", "GOALS"),
    "UFC": ("KOs", "SUBS", "SIG_STR"),
}

SCOREBOARD_PATHS = {
    "NBA": "basketball/nba",
    "NFL": "football/nfl",
    "MLB": "baseball/mlb",
    "NHL": "hockey/nhl",
    "EPL": "soccer/eng.1",
    "UFC": "mma/ufc",
}

ODDS_SPORT_KEY = {
    "NBA": "basketball_nba",
    "NFL": "americanfootball_nfl",
    "NHL": "icehockey_nhl",
    "MLB": "baseball_mlb",
    "EPL": "soccer_epl",
    "UFC": "mma_mixed_martial_arts",
}

# Player-prop market keys on the paid odds tier, with display labels.
ODDS_MARKETS: dict[str, tuple[tuple[str, str], ...]] = {
    "NBA": (
        ("player_points", "Points"),
        ("player_rebounds", "Rebounds"),
        ("player_assists", "Assists"),
        ("player_threes", "3PT Made"),
        ("player_points_rebounds_assists", "PRA"),
    ),
    "NFL": (
        ("player_pass_tds", "Pass TDs"),
        ("player_pass_yds", "Pass Yds"),
        ("player_rush_yds", "Rush Yds"),
        ("player_rec_yds", "Rec Yds"),
        ("player_receptions", "Receptions"),
    ),
    "NHL": (
        ("player_points", "Points"),
        ("player_goals", "Goals"),
        ("player_assists", "Assists"),
        ("player_shots_on_goal", "Shots"),
    ),
    "MLB": (
        ("batter_hits", "Hits"),
        ("batter_home_runs", "HR"),
        ("batter_rbis", "RBI"),
        ("pitcher_strikeouts", "Ks"),
    ),
    "EPL": (
        ("player_goals", "Goals"),
        ("player_assists", "Assists"),
        ("player_shots_on_target", "Shots on Target"),
    ),
    "UFC": (
        ("fighter_takedowns", "Takedowns"),
        ("fighter_sig_strikes", "Significant Strikes"),
    ),
}

GAME_ODDS_MARKETS: tuple[str, ...] = ("h2h", "totals", "spreads")

BOOKMAKERS: dict[str, str] = {
    "": "Any book",
    "fanduel": "FanDuel",
    "draftkings": "DraftKings",
    "betmgm": "BetMGM",
    "caesars": "Caesars",
}

DEMO_PLAYERS: dict[str, tuple[str, ...]] = {
    "NBA": (
        "Luka Dončić",
        "Nikola Jokić",
        "Jayson Tatum",
        "Shai Gilgeous-Alexander",
        "Giannis Antetokounmpo",
    ),
    "NFL": (
        "Patrick Mahomes",
        "Josh Allen",
        "Christian McCaffrey",
        "Tyreek Hill",
        "Justin Jefferson",
    ),
    "MLB": ("Shohei Ohtani", "Aaron Judge", "Juan Soto", "Mookie Betts", "Ronald Acuña Jr."),
    "NHL": (
        "Connor McDavid",
        "Auston Matthews",
        "Nathan MacKinnon",
        "David Pastrňák",
        "Cale Makar",
    ),
    "EPL": ("Erling Haaland", "Mohamed Salah", "Bukayo Saka", "Kevin De Bruyne", "Son Heung-min"),
    "UFC": ("Jon Jones", "Islam Makhachev", "Sean O'Malley", "Alex Pereira", "Leon Edwards"),
}


def is_sport(value: object) -> bool:
    return isinstance(value, str) and value in SPORTS


def market_vocabulary(sport: str) -> tuple[str, ...]:
    """Tracking markets for a sport, falling back to a single points market."""
    return SPORT_MARKETS.get(sport) or (FALLBACK_TRACKING_MARKET,)


def default_tracking_market(sport: str) -> str:
    return market_vocabulary(sport)[0]


def default_odds_market(sport: str) -> str:
    """Return the first listed odds prop market for a sport."""
    markets = ODDS_MARKETS.get(sport, ())
    if markets:
        return markets[0][0]
    return FALLBACK_ODDS_MARKET


def odds_market_label(sport: str, market: str) -> str:
    for key, label in ODDS_MARKETS.get(sport, ()):
        if key == market:
            return label
    return market


def odds_sport_key(sport: str) -> str:
    return ODDS_SPORT_KEY.get(sport, sport)


def scoreboard_path(sport: str) -> str:
    """Provider path for a sport; unknown sports use the NBA path."""
    return SCOREBOARD_PATHS.get(sport, SCOREBOARD_PATHS[DEFAULT_SPORT])


def demo_roster(sport: str, limit: int = 5) -> tuple[str, ...]:
    return DEMO_PLAYERS.get(sport, ())[:limit]

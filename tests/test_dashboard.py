import json
from dataclasses import replace

import httpx
import pytest

from prop_tracker.container import StateContainer
from prop_tracker.dashboard import Dashboard
from prop_tracker.errors import BackupImportError, ScoreboardError
from prop_tracker.odds_client import OddsGatewayClient
from prop_tracker.reducer import SetSport
from prop_tracker.scoreboard import ScoreboardClient
from prop_tracker.state import AppState, GamesCache, default_state
from prop_tracker.storage import STORAGE_KEY, MemoryStorage, StateStore
from prop_tracker.views import STATUS_EMPTY, STATUS_LOADED, STATUS_NOT_CONFIGURED

START = 1_760_000_000.0


def _scoreboard_payload(count: int, *, state: str = "in") -> dict:
    events = []
    for index in range(count):
        events.append(
            {
                "id": f"40{index}",
                "name": f"Game {index}",
                "competitions": [
                    {
                        "competitors": [
                            {"homeAway": "home", "team": {"abbreviation": f"H{index}"}, "score": "10"},
                            {"homeAway": "away", "team": {"abbreviation": f"A{index}"}, "score": "8"},
                        ],
                        "status": {"type": {"state": state, "completed": False}},
                    }
                ],
            }
        )
    return {"events": events}


class FakeClock:
    def __init__(self, now: float = START) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


class FakeScoreboard:
    def __init__(self, payload: dict | None = None) -> None:
        self.payload = payload if payload is not None else _scoreboard_payload(3)
        self.calls: list[str] = []
        self.summary_calls: list[tuple[str, str]] = []
        self.error: ScoreboardError | None = None
        self.summary: dict = {}
        self.on_call = None

    def get_scoreboard(self, sport: str) -> dict:
        self.calls.append(sport)
        if self.on_call is not None:
            hook, self.on_call = self.on_call, None
            hook()
        if self.error is not None:
            raise self.error
        return self.payload

    def get_summary(self, sport: str, event_id: str) -> dict:
        self.summary_calls.append((sport, event_id))
        if self.error is not None:
            raise self.error
        return self.summary


def _odds_factory(handler, calls: list[str] | None = None):
    def factory(url: str) -> OddsGatewayClient:
        if calls is not None:
            calls.append(url)
        return OddsGatewayClient(url, max_retries=0, transport=httpx.MockTransport(handler))

    return factory


def _never_called(request: httpx.Request) -> httpx.Response:
    raise AssertionError(f"unexpected network call: {request.url}")


def _dashboard(
    *,
    state: AppState | None = None,
    scoreboard=None,
    handler=_never_called,
    factory_calls: list[str] | None = None,
    clock: FakeClock | None = None,
    storage: MemoryStorage | None = None,
):
    storage = storage or MemoryStorage()
    store = StateStore(storage)
    container = StateContainer(store, state=state or default_state())
    notices: list[str] = []
    dashboard = Dashboard(
        container,
        scoreboard=scoreboard or FakeScoreboard(),
        odds_client_factory=_odds_factory(handler, factory_calls),
        clock=clock or FakeClock(),
        notifier=notices.append,
    )
    return dashboard, notices


def test_players_view_without_gateway_never_fetches() -> None:
    factory_calls: list[str] = []
    dashboard, notices = _dashboard(factory_calls=factory_calls)

    view = dashboard.view("players")
    assert view.body.odds.status == STATUS_NOT_CONFIGURED
    assert view.body.odds.button_label == "Load"

    assert dashboard.load_props() is None
    assert dashboard.load_game_odds() is None

    assert factory_calls == []
    assert dashboard.errors["props"].startswith("Odds gateway not set")
    assert dashboard.errors["games"].startswith("Odds gateway not set")
    assert dashboard.view("players").body.odds.error.startswith("Odds gateway not set")
    assert notices.count("Odds gateway not set. Configure the gateway URL first.") == 2


def test_scoreboard_timeout_keeps_cache_and_timestamp() -> None:
    calls = {"count": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        calls["count"] += 1
        if calls["count"] == 1:
            return httpx.Response(200, json=_scoreboard_payload(3))
        raise httpx.ReadTimeout("timed out", request=request)

    clock = FakeClock()
    scoreboard = ScoreboardClient(base_url="https://sb.test", transport=httpx.MockTransport(handler))
    dashboard, notices = _dashboard(scoreboard=scoreboard, clock=clock)

    assert len(dashboard.refresh_live()) == 3
    stamped = dashboard.state.last_updated_at
    assert stamped == "2025-10-09T08:53:20.000Z"

    clock.now += 45
    events = dashboard.refresh_live()

    assert len(events) == 3
    assert dashboard.state.last_updated_at == stamped
    assert notices.count("Live feed blocked (demo mode)") == 1
    assert len(dashboard.view("games").body.events) == 3


def test_fresh_live_cache_skips_fetch() -> None:
    clock = FakeClock()
    scoreboard = FakeScoreboard()
    dashboard, notices = _dashboard(scoreboard=scoreboard, clock=clock)

    dashboard.refresh_live()
    clock.now += 10
    dashboard.refresh_live()
    assert scoreboard.calls == ["NBA"]

    dashboard.refresh_live(force=True)
    assert scoreboard.calls == ["NBA", "NBA"]
    assert notices[:2] == ["Refreshing…", "Updated"]


def test_superseded_scoreboard_response_is_discarded() -> None:
    scoreboard = FakeScoreboard(_scoreboard_payload(2))
    dashboard, _ = _dashboard(scoreboard=scoreboard)
    newer = _scoreboard_payload(5)

    def nested_refresh() -> None:
        scoreboard.payload = newer
        dashboard.refresh_live(force=True)
        scoreboard.payload = _scoreboard_payload(1)

    scoreboard.on_call = nested_refresh
    returned = dashboard.refresh_live(force=True)

    assert len(returned) == 5
    assert len(dashboard.live.events) == 5


def test_sport_switch_forces_refresh_and_scopes_events() -> None:
    scoreboard = FakeScoreboard()
    clock = FakeClock()
    dashboard, _ = _dashboard(scoreboard=scoreboard, clock=clock)
    dashboard.refresh_live()

    dashboard.set_sport("NHL")

    assert scoreboard.calls == ["NBA", "NHL"]
    assert dashboard.live.sport == "NHL"


def test_failed_sport_switch_refresh_shows_no_events_from_old_sport() -> None:
    scoreboard = FakeScoreboard()
    dashboard, notices = _dashboard(scoreboard=scoreboard)
    dashboard.refresh_live()

    scoreboard.error = ScoreboardError("HTTP 500")
    dashboard.set_sport("EPL")

    assert dashboard.view("games").body.events == ()
    assert "Live feed blocked (demo mode)" in notices


def test_load_props_stores_scoped_cache() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json={
                "status": 200,
                "body": [
                    {
                        "id": "evt",
                        "home_team": "Lakers",
                        "away_team": "Celtics",
                        "bookmakers": [
                            {
                                "key": "fanduel",
                                "markets": [
                                    {
                                        "key": "player_rebounds",
                                        "outcomes": [
                                            {"name": "Over", "description": "AD", "point": 11.5, "price": -115}
                                        ],
                                    }
                                ],
                            }
                        ],
                    }
                ],
            },
        )

    state = replace(default_state(), odds_gateway_url="https://gw.test")
    dashboard, notices = _dashboard(state=state, handler=handler)

    cache = dashboard.load_props("player_rebounds")

    assert cache is not None
    assert cache.sport == "NBA"
    assert cache.market == "player_rebounds"
    assert cache.fetched_at == int(START * 1000)
    assert seen[0].url.params["market"] == "player_rebounds"
    assert seen[0].url.params["sport"] == "basketball_nba"
    assert dashboard.state.odds_props_cache == cache
    assert notices[-2:] == ["Loading lines…", "Lines updated."]

    card = dashboard.view("players").body.odds
    assert card.status == STATUS_LOADED
    assert card.button_label == "Refresh"
    assert card.market_label == "Rebounds"
    assert card.props[0].outcomes[0].description == "AD"


def test_props_error_goes_to_inline_region() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"message": "bad key"})

    state = replace(default_state(), odds_gateway_url="https://gw.test")
    dashboard, notices = _dashboard(state=state, handler=handler)

    assert dashboard.load_props() is None

    message = 'Odds gateway error (401). {"message": "bad key"}'
    assert dashboard.errors["props"] == message
    assert notices[-1] == f"Odds error: {message}"
    card = dashboard.view("players").body.odds
    assert card.status == STATUS_EMPTY
    assert card.error == message


def test_successful_load_clears_previous_error() -> None:
    responses = [httpx.Response(500, json={"e": 1}), httpx.Response(200, json=[])]

    def handler(request: httpx.Request) -> httpx.Response:
        return responses.pop(0)

    state = replace(default_state(), odds_gateway_url="https://gw.test")
    dashboard, _ = _dashboard(state=state, handler=handler)

    dashboard.load_game_odds()
    assert "games" in dashboard.errors
    dashboard.load_game_odds()
    assert "games" not in dashboard.errors
    assert dashboard.view("games").body.odds.message == "No odds returned."


def test_game_odds_cache_follows_book_change() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=[{"id": "g", "bookmakers": []}])

    state = replace(default_state(), odds_gateway_url="https://gw.test")
    dashboard, _ = _dashboard(state=state, handler=handler)

    cache = dashboard.load_game_odds()
    assert cache == GamesCache(
        sport="NBA", book="fanduel", fetched_at=int(START * 1000), data=({"id": "g", "bookmakers": []},)
    )

    dashboard.set_preferred_book("betmgm")

    assert dashboard.state.odds_games_cache is None
    assert dashboard.view("games").body.odds.status == STATUS_EMPTY


def test_superseded_props_response_is_discarded() -> None:
    holder: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        if "inner" not in holder:
            holder["inner"] = True
            holder["dashboard"].load_props()
            return httpx.Response(200, json=[{"id": "old"}])
        return httpx.Response(200, json=[{"id": "new"}])

    state = replace(default_state(), odds_gateway_url="https://gw.test")
    dashboard, _ = _dashboard(state=state, handler=handler)
    holder["dashboard"] = dashboard

    assert dashboard.load_props() is None
    assert dashboard.state.odds_props_cache.data == ({"id": "new"},)


def test_gateway_url_change_notifies_and_invalidates() -> None:
    dashboard, notices = _dashboard()

    dashboard.set_gateway_url("  https://gw.test  ")
    assert dashboard.state.odds_gateway_url == "https://gw.test"
    dashboard.set_gateway_url("")

    assert notices == ["Odds gateway saved.", "Odds gateway cleared."]


def test_watchlist_actions_and_picks() -> None:
    dashboard, notices = _dashboard()

    entry = dashboard.add_tracked("Nikola Jokić")
    dashboard.update_tracked(entry.id, {"line": "11.5", "market": "REB"})
    picks = dashboard.regenerate_picks()

    assert notices == ["Added", "AI picks updated"]
    assert len(picks) == 1
    assert picks[0].market == "REB"
    assert picks[0].line == "11.5"
    view = dashboard.view("ai")
    assert view.body.info == "Based on your tracked list."
    assert view.body.picks == picks

    dashboard.set_sport("NFL")
    assert dashboard.tracked_for_sport() == ()
    assert len(dashboard.view("ai").body.picks) == 0
    assert dashboard.view("ai").body.info == "Demo mode (add tracked players to personalize)."
    assert len(dashboard.regenerate_picks()) == 5

    dashboard.remove_tracked(entry.id)
    assert dashboard.state.tracked == ()


def test_nba_players_come_from_selected_event_summary() -> None:
    scoreboard = FakeScoreboard()
    scoreboard.summary = {
        "boxscore": {
            "players": [
                {
                    "team": {"abbreviation": "DEN"},
                    "athletes": [{"athletes": [{"athlete": {"displayName": "Nikola Jokić"}}]}],
                }
            ]
        }
    }
    dashboard, _ = _dashboard(scoreboard=scoreboard)

    dashboard.select_event("401")

    assert scoreboard.summary_calls == [("NBA", "401")]
    body = dashboard.view("players").body
    assert body.selected_event_id == "401"
    assert [(player.name, player.team) for player in body.players] == [("Nikola Jokić", "DEN")]


def test_summary_failure_degrades_to_empty_players() -> None:
    scoreboard = FakeScoreboard()
    scoreboard.error = ScoreboardError("HTTP 404")
    dashboard, _ = _dashboard(scoreboard=scoreboard)

    dashboard.select_event("401")

    assert dashboard.players == ()
    assert dashboard.state.selected_event_id == "401"


def test_ufc_players_come_from_live_scoreboard() -> None:
    scoreboard = FakeScoreboard(
        {
            "events": [
                {
                    "competitions": [
                        {
                            "competitors": [
                                {"athlete": {"displayName": "Alex Pereira"}},
                                {"athlete": {"displayName": "Jiri Prochazka"}},
                            ]
                        }
                    ]
                }
            ]
        }
    )
    dashboard, _ = _dashboard(scoreboard=scoreboard)

    dashboard.set_sport("UFC")
    players = dashboard.load_players()

    assert [player.name for player in players] == ["Alex Pereira", "Jiri Prochazka"]
    assert dashboard.view("players").body.helper.startswith("UFC:")


def test_import_export_reset_flow() -> None:
    storage = MemoryStorage()
    dashboard, notices = _dashboard(storage=storage)
    dashboard.add_tracked("Aaron Judge")
    backup = dashboard.export_backup()

    dashboard.import_backup('{"sport":"MLB"}')
    assert dashboard.state == replace(default_state(), sport="MLB")
    assert json.loads(storage.values[STORAGE_KEY])["sport"] == "MLB"

    with pytest.raises(BackupImportError):
        dashboard.import_backup("not json")
    assert notices[-1] == "That JSON didn't parse."
    assert dashboard.state.sport == "MLB"

    dashboard.import_backup(backup)
    assert [entry.name for entry in dashboard.state.tracked] == ["Aaron Judge"]

    dashboard.reset()
    assert dashboard.state == default_state()
    assert STORAGE_KEY not in storage.values
    assert notices[-1] == "Cleared"


def test_boot_renders_then_refreshes() -> None:
    rendered: list[str | None] = []
    scoreboard = FakeScoreboard()
    store = StateStore(MemoryStorage())
    dashboard = Dashboard(
        StateContainer(store),
        scoreboard=scoreboard,
        odds_client_factory=_odds_factory(_never_called),
        clock=FakeClock(),
        notifier=lambda message: None,
        on_view=lambda view: rendered.append(view.last_updated_at),
    )

    view = dashboard.boot()

    assert rendered[0] is None
    assert rendered[-1] == "2025-10-09T08:53:20.000Z"
    assert scoreboard.calls == ["NBA"]
    assert len(view.body.events) == 3


def test_every_dispatch_triggers_a_render() -> None:
    rendered: list[str] = []
    store = StateStore(MemoryStorage())
    container = StateContainer(store)
    Dashboard(
        container,
        scoreboard=FakeScoreboard(),
        odds_client_factory=_odds_factory(_never_called),
        notifier=lambda message: None,
        on_view=lambda view: rendered.append(view.sport),
    )

    container.dispatch(SetSport("NFL"))
    container.dispatch(SetSport("MLB"))

    assert rendered == ["NFL", "MLB"]


def test_closing_dashboard_closes_scoreboard_client() -> None:
    scoreboard = ScoreboardClient(
        transport=httpx.MockTransport(lambda request: httpx.Response(200, json={"events": []}))
    )
    dashboard, _ = _dashboard(scoreboard=scoreboard)

    with dashboard:
        assert dashboard.refresh_live(force=True) == ()

    assert scoreboard._http.is_closed

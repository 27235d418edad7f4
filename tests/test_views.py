from dataclasses import replace

from prop_tracker.container import StateContainer
from prop_tracker.freshness import LiveCache
from prop_tracker.normalize import NormalizedEvent, TeamLine
from prop_tracker.reducer import AddTracked, SetPreferredBook, SetSport
from prop_tracker.state import PropsCache, default_state
from prop_tracker.storage import STORAGE_KEY, MemoryStorage, StateStore
from prop_tracker.views import (
    STATUS_EMPTY,
    STATUS_LOADED,
    STATUS_NOT_CONFIGURED,
    AIView,
    GamesView,
    LiveView,
    PlayersView,
    ProfileView,
    derive_view,
    event_row,
)

NOW_MS = 1_760_000_000_000


def _event(event_id: str, state: str, *, completed: bool = False, short: str = "") -> NormalizedEvent:
    return NormalizedEvent(
        id=event_id,
        name="Event",
        date="",
        state=state,
        detail="",
        short_detail=short,
        completed=completed,
        home=TeamLine(name="Los Angeles Lakers", abbr="LAL", score=101),
        away=TeamLine(name="Boston Celtics", abbr="", score=98),
    )


def test_event_row_texts() -> None:
    live = event_row(_event("1", "in"))
    final = event_row(_event("2", "post", completed=True))
    scheduled = event_row(_event("3", "pre", short="7:30 PM ET"))
    unknown = event_row(_event("4", "pre"))

    assert live.matchup == "Boston Celtics @ LAL"
    assert live.score == "98–101"
    assert live.pill == "Live"
    assert final.pill == "Final"
    assert final.score == "98–101"
    assert scheduled.score == "—"
    assert scheduled.pill == "7:30 PM ET"
    assert unknown.pill == "Scheduled"


def test_live_route_filters_to_in_progress_events() -> None:
    cache = LiveCache(
        sport="NBA",
        events=(_event("1", "in"), _event("2", "post", completed=True), _event("3", "pre")),
        fetched_at=NOW_MS,
    )
    state = default_state()

    live = derive_view(state, live=cache, now_ms=NOW_MS)
    games = derive_view(state, live=cache, now_ms=NOW_MS, route="games")

    assert isinstance(live.body, LiveView)
    assert [row.event.id for row in live.body.events] == ["1"]
    assert isinstance(games.body, GamesView)
    assert len(games.body.events) == 3
    assert live.body.odds.status == STATUS_NOT_CONFIGURED
    assert live.body.odds.message == "Odds gateway not set."


def test_props_card_states() -> None:
    configured = replace(default_state(), odds_gateway_url="https://gw.test", route="players")

    empty = derive_view(configured, live=LiveCache(), now_ms=NOW_MS)
    assert isinstance(empty.body, PlayersView)
    assert empty.body.odds.status == STATUS_EMPTY
    assert empty.body.odds.message == "Nothing loaded yet."
    assert empty.body.odds.market == "player_points"
    assert empty.body.odds.market_label == "Points"

    loaded_state = replace(
        configured,
        odds_props_cache=PropsCache(
            sport="NBA", market="player_points", fetched_at=NOW_MS, data=(), truncated=True
        ),
    )
    loaded = derive_view(loaded_state, live=LiveCache(), now_ms=NOW_MS)
    assert loaded.body.odds.status == STATUS_LOADED
    assert loaded.body.odds.truncated is True
    assert loaded.body.odds.message == "No odds returned."

    expired = derive_view(loaded_state, live=LiveCache(), now_ms=NOW_MS + 16 * 60 * 1000)
    assert expired.body.odds.status == STATUS_EMPTY


def test_players_view_lists_only_current_sport_entries() -> None:
    state = default_state()
    container = StateContainer(StateStore(MemoryStorage()), state=state)
    container.dispatch(AddTracked("Luka Dončić"))
    container.dispatch(SetSport("NFL"))
    container.dispatch(AddTracked("Josh Allen"))

    view = derive_view(container.state, live=LiveCache(), now_ms=NOW_MS, route="players")

    assert [entry.name for entry in view.body.tracked] == ["Josh Allen"]
    assert view.body.helper.startswith("Player lists are automatic only for NBA")

    profile = derive_view(container.state, live=LiveCache(), now_ms=NOW_MS, route="profile")
    assert isinstance(profile.body, ProfileView)
    assert profile.body.tracked_total == 2
    assert profile.body.gateway_url == ""


def test_ai_view_demo_info() -> None:
    view = derive_view(default_state(), live=LiveCache(), now_ms=NOW_MS, route="ai")

    assert isinstance(view.body, AIView)
    assert view.body.info == "Demo mode (add tracked players to personalize)."
    assert view.body.picks == ()


def test_container_saves_before_notifying() -> None:
    storage = MemoryStorage()
    container = StateContainer(StateStore(storage))
    observed: list[str | None] = []

    def listener(state) -> None:
        observed.append(storage.values.get(STORAGE_KEY))
        assert container.state is state

    unsubscribe = container.subscribe(listener)
    container.dispatch(SetPreferredBook("caesars"))
    unsubscribe()
    container.dispatch(SetPreferredBook("betmgm"))

    assert len(observed) == 1
    assert '"oddsPreferredBook":"caesars"' in observed[0]


def test_container_loads_from_store_when_no_state_given() -> None:
    storage = MemoryStorage({STORAGE_KEY: '{"sport":"EPL"}'})

    container = StateContainer(StateStore(storage))

    assert container.state.sport == "EPL"

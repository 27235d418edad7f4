"""Command line interface for prop-tracker."""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any

from prop_tracker.catalog import BOOKMAKERS, ROUTES, SPORTS
from prop_tracker.container import StateContainer
from prop_tracker.dashboard import Dashboard
from prop_tracker.errors import PropTrackerError
from prop_tracker.odds_client import OddsGatewayClient
from prop_tracker.runtime_config import (
    DEFAULT_CONFIG_PATH,
    load_runtime_config,
    set_current_runtime_config,
)
from prop_tracker.scoreboard import ScoreboardClient
from prop_tracker.settings import Settings
from prop_tracker.state import AppState, default_state
from prop_tracker.storage import FileStorage, StateStore
from prop_tracker.views import (
    AIView,
    GamesView,
    LiveView,
    OddsCard,
    PlayersView,
    ProfileView,
    ViewModel,
)


class CLIError(RuntimeError):
    """User-facing CLI error."""


def _settings(args: argparse.Namespace) -> Settings:
    config = str(getattr(args, "config", "") or "").strip()
    if config:
        set_current_runtime_config(load_runtime_config(Path(config)))
        return Settings.from_runtime()
    if DEFAULT_CONFIG_PATH.exists():
        return Settings.from_runtime()
    return Settings()


def _build_dashboard(args: argparse.Namespace) -> Dashboard:
    settings = _settings(args)
    state_dir = Path(str(getattr(args, "state_dir", "") or settings.state_dir))

    def defaults() -> AppState:
        return replace(default_state(), odds_gateway_url=settings.odds_gateway_url.strip())

    store = StateStore(FileStorage(state_dir), key=settings.storage_key, defaults=defaults)

    def odds_client(url: str) -> OddsGatewayClient:
        return OddsGatewayClient(
            url,
            timeout_s=settings.odds_gateway_timeout_s,
            max_retries=settings.odds_max_retries,
            regions=settings.odds_regions,
            odds_format=settings.odds_format,
            date_format=settings.odds_date_format,
        )

    scoreboard = ScoreboardClient(
        base_url=settings.scoreboard_base_url,
        timeout_s=settings.scoreboard_timeout_s,
    )
    return Dashboard(
        StateContainer(store),
        scoreboard=scoreboard,
        odds_client_factory=odds_client,
        notifier=lambda message: print(f"notice={message}", file=sys.stderr),
    )


def _print_card(card: OddsCard) -> None:
    print(f"odds_status={card.status} book={card.book or 'any'} button={card.button_label}")
    if card.market:
        print(f"market={card.market} label={card.market_label}")
    if card.message:
        print(f"message={card.message}")
    if card.error:
        print(f"error={card.error}")
    if card.fetched_at is not None:
        print(f"fetched_at={card.fetched_at} truncated={str(card.truncated).lower()}")
    for game in card.games:
        ml = " ".join(f"{o.name}:{o.price}" for o in game.moneyline)
        print(f"game={game.away_team} @ {game.home_team} book={game.book_key or '-'} ml={ml}")
    for board in card.props:
        print(f"event={board.away_team} @ {board.home_team} outcomes={len(board.outcomes)}")
        for outcome in board.outcomes:
            print(f"  {outcome.description} {outcome.name} {outcome.point} {outcome.price}")


def _print_view(view: ViewModel) -> None:
    print(f"route={view.route} sport={view.sport} last_updated={view.last_updated_at or 'never'}")
    body = view.body
    if isinstance(body, (LiveView, GamesView)):
        print(f"events={len(body.events)}")
        for row in body.events:
            print(f"{row.event.id}\t{row.matchup}\t{row.score}\t{row.pill}")
        _print_card(body.odds)
    elif isinstance(body, PlayersView):
        print(f"helper={body.helper}")
        print(f"selected_event={body.selected_event_id or 'none'} players={len(body.players)}")
        for player in body.players:
            print(f"player={player.name} team={player.team}")
        for entry in body.tracked:
            print(f"{entry.id}\t{entry.name}\t{entry.market}\t{entry.line}\t{entry.lean}")
        _print_card(body.odds)
    elif isinstance(body, AIView):
        print(f"info={body.info}")
        for pick in body.picks:
            print(f"{pick.player}\t{pick.market}\t{pick.lean}\t{pick.confidence:.2f}")
    elif isinstance(body, ProfileView):
        print(f"tracked_total={body.tracked_total}")
        print(f"gateway_url={body.gateway_url or 'unset'}")
        print(f"preferred_book={body.preferred_book or 'any'}")


def _cmd_show(args: argparse.Namespace) -> int:
    route = str(args.route or "").strip() or None
    if route is not None and route not in ROUTES:
        raise CLIError(f"unknown route: {route}")
    with _build_dashboard(args) as dashboard:
        if not args.offline:
            dashboard.refresh_live()
            if dashboard.state.selected_event_id or dashboard.state.sport == "UFC":
                dashboard.load_players()
        _print_view(dashboard.view(route))
        return 0


def _cmd_sport(args: argparse.Namespace) -> int:
    with _build_dashboard(args) as dashboard:
        state = dashboard.set_sport(args.sport)
        print(f"sport={state.sport}")
        return 0


def _cmd_route(args: argparse.Namespace) -> int:
    with _build_dashboard(args) as dashboard:
        state = dashboard.set_route(args.route)
        print(f"route={state.route}")
        return 0


def _cmd_refresh(args: argparse.Namespace) -> int:
    with _build_dashboard(args) as dashboard:
        events = dashboard.refresh_live(force=True)
        print(f"sport={dashboard.state.sport} events={len(events)}")
        print(f"last_updated={dashboard.state.last_updated_at or 'never'}")
        return 0


def _cmd_gateway(args: argparse.Namespace) -> int:
    url = str(args.url or "").strip()
    if args.clear and url:
        raise CLIError("pass either a gateway URL or --clear, not both")
    if not args.clear and not url:
        raise CLIError("missing gateway URL; pass a URL or --clear")
    with _build_dashboard(args) as dashboard:
        state = dashboard.set_gateway_url(url)
        print(f"gateway_url={state.odds_gateway_url or 'unset'}")
        return 0


def _cmd_book(args: argparse.Namespace) -> int:
    with _build_dashboard(args) as dashboard:
        book = "" if args.book == "any" else args.book
        state = dashboard.set_preferred_book(book)
        print(f"preferred_book={state.odds_preferred_book or 'any'}")
        return 0


def _cmd_market(args: argparse.Namespace) -> int:
    with _build_dashboard(args) as dashboard:
        dashboard.set_odds_market(args.market)
        print(f"sport={dashboard.state.sport} market={args.market}")
        return 0


def _cmd_props(args: argparse.Namespace) -> int:
    with _build_dashboard(args) as dashboard:
        cache = dashboard.load_props(args.market or None)
        _print_view(dashboard.view("players"))
        return 0 if cache is not None else 2


def _cmd_odds(args: argparse.Namespace) -> int:
    with _build_dashboard(args) as dashboard:
        book = None if args.book is None else ("" if args.book == "any" else args.book)
        cache = dashboard.load_game_odds(book)
        _print_view(dashboard.view("games"))
        return 0 if cache is not None else 2


def _cmd_select(args: argparse.Namespace) -> int:
    with _build_dashboard(args) as dashboard:
        state = dashboard.select_event(args.event_id)
        selected = state.selected_event_id or "none"
        print(f"selected_event={selected} players={len(dashboard.players)}")
        return 0


def _cmd_track_add(args: argparse.Namespace) -> int:
    with _build_dashboard(args) as dashboard:
        entry = dashboard.add_tracked(args.name)
        print(f"id={entry.id} sport={entry.sport} name={entry.name} market={entry.market}")
        return 0


def _cmd_track_list(args: argparse.Namespace) -> int:
    with _build_dashboard(args) as dashboard:
        entries = dashboard.state.tracked if args.all else dashboard.tracked_for_sport()
        for entry in entries:
            fields = (entry.id, entry.sport, entry.name, entry.market, entry.line, entry.lean)
            print("\t".join(fields))
        print(f"count={len(entries)}")
        return 0


def _cmd_track_update(args: argparse.Namespace) -> int:
    changes: dict[str, Any] = {}
    for field_name in ("name", "market", "line", "lean"):
        value = getattr(args, field_name)
        if value is not None:
            changes[field_name] = value
    if not changes:
        raise CLIError("nothing to update; pass --name, --market, --line or --lean")
    with _build_dashboard(args) as dashboard:
        dashboard.update_tracked(args.entry_id, changes)
        print(f"updated={args.entry_id}")
        return 0


def _cmd_track_remove(args: argparse.Namespace) -> int:
    with _build_dashboard(args) as dashboard:
        dashboard.remove_tracked(args.entry_id)
        print(f"removed={args.entry_id}")
        return 0


def _cmd_picks(args: argparse.Namespace) -> int:
    with _build_dashboard(args) as dashboard:
        if not args.list:
            dashboard.regenerate_picks()
        _print_view(dashboard.view("ai"))
        return 0


def _cmd_export(args: argparse.Namespace) -> int:
    with _build_dashboard(args) as dashboard:
        payload = dashboard.export_backup()
        if args.out:
            Path(args.out).write_text(payload + "\n", encoding="utf-8")
            print(f"backup={args.out}")
        else:
            print(payload)
        return 0


def _cmd_import(args: argparse.Namespace) -> int:
    raw = sys.stdin.read() if args.path == "-" else Path(args.path).read_text(encoding="utf-8")
    with _build_dashboard(args) as dashboard:
        state = dashboard.import_backup(raw)
        print(f"sport={state.sport} tracked={len(state.tracked)}")
        return 0


def _cmd_reset(args: argparse.Namespace) -> int:
    with _build_dashboard(args) as dashboard:
        state = dashboard.reset()
        print(f"sport={state.sport} route={state.route}")
        return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="prop-tracker")
    parser.add_argument("--state-dir", default="", help="Directory holding the state blob")
    parser.add_argument("--config", default="", help="Runtime config TOML path")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    subparsers = parser.add_subparsers(dest="command")

    show = subparsers.add_parser("show", help="Render the current view")
    show.set_defaults(func=_cmd_show)
    show.add_argument("--route", default="")
    show.add_argument("--offline", action="store_true", help="Skip the scoreboard refresh")

    sport = subparsers.add_parser("sport", help="Switch sport")
    sport.set_defaults(func=_cmd_sport)
    sport.add_argument("sport", choices=list(SPORTS))

    route = subparsers.add_parser("route", help="Switch the active view")
    route.set_defaults(func=_cmd_route)
    route.add_argument("route", choices=list(ROUTES))

    refresh = subparsers.add_parser("refresh", help="Refetch the scoreboard")
    refresh.set_defaults(func=_cmd_refresh)

    gateway = subparsers.add_parser("gateway", help="Set or clear the odds gateway URL")
    gateway.set_defaults(func=_cmd_gateway)
    gateway.add_argument("url", nargs="?", default="")
    gateway.add_argument("--clear", action="store_true")

    book_choices = [key or "any" for key in BOOKMAKERS]
    book = subparsers.add_parser("book", help="Set the preferred bookmaker")
    book.set_defaults(func=_cmd_book)
    book.add_argument("book", choices=book_choices)

    market = subparsers.add_parser("market", help="Set the prop market for the current sport")
    market.set_defaults(func=_cmd_market)
    market.add_argument("market")

    props = subparsers.add_parser("props", help="Load player-prop lines")
    props.set_defaults(func=_cmd_props)
    props.add_argument("--market", default="")

    odds = subparsers.add_parser("odds", help="Load game odds")
    odds.set_defaults(func=_cmd_odds)
    odds.add_argument("--book", default=None, choices=book_choices)

    select = subparsers.add_parser("select", help="Pin an event for the player list")
    select.set_defaults(func=_cmd_select)
    select.add_argument("event_id")

    track = subparsers.add_parser("track", help="Manage tracked players")
    track_subparsers = track.add_subparsers(dest="track_command")

    track_add = track_subparsers.add_parser("add", help="Track a player for the current sport")
    track_add.set_defaults(func=_cmd_track_add)
    track_add.add_argument("name")

    track_list = track_subparsers.add_parser("list", help="List tracked players")
    track_list.set_defaults(func=_cmd_track_list)
    track_list.add_argument("--all", action="store_true", help="Include every sport")

    track_update = track_subparsers.add_parser("update", help="Edit a tracked entry")
    track_update.set_defaults(func=_cmd_track_update)
    track_update.add_argument("entry_id")
    track_update.add_argument("--name", default=None)
    track_update.add_argument("--market", default=None)
    track_update.add_argument("--line", default=None)
    track_update.add_argument("--lean", default=None, choices=["MORE", "LESS"])

    track_remove = track_subparsers.add_parser("remove", help="Stop tracking an entry")
    track_remove.set_defaults(func=_cmd_track_remove)
    track_remove.add_argument("entry_id")

    picks = subparsers.add_parser("picks", help="Regenerate and show AI picks")
    picks.set_defaults(func=_cmd_picks)
    picks.add_argument("--list", action="store_true", help="Show stored picks only")

    export = subparsers.add_parser("export", help="Print a JSON backup of the state")
    export.set_defaults(func=_cmd_export)
    export.add_argument("--out", default="")

    import_cmd = subparsers.add_parser("import", help="Replace state from a JSON backup")
    import_cmd.set_defaults(func=_cmd_import)
    import_cmd.add_argument("path", help="Backup file, or - for stdin")

    reset = subparsers.add_parser("reset", help="Clear stored state")
    reset.set_defaults(func=_cmd_reset)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Run the CLI."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    func = getattr(args, "func", None)
    if func is None:
        parser.print_help()
        return 0
    try:
        return int(func(args))
    except (CLIError, PropTrackerError, FileNotFoundError, ValueError) as exc:
        print(str(exc), file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())

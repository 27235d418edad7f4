"""Watch-list operations over the tracked-entry sequence.

Entries are addressed by their synthetic id, never by position, so a filtered
view and the global sequence cannot disagree about which row is meant.
Duplicate (sport, name, market) rows are allowed.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import replace
from typing import Any

from prop_tracker.catalog import LEANS, default_tracking_market
from prop_tracker.errors import InvalidActionError, UnknownEntryError
from prop_tracker.state import TrackedEntry, new_entry_id

EDITABLE_FIELDS = frozenset({"name", "market", "line", "lean"})


def add_from_name(
    tracked: tuple[TrackedEntry, ...],
    name: str,
    sport: str,
    *,
    entry_id: str | None = None,
) -> tuple[TrackedEntry, ...]:
    """Append an entry with the sport's first market, no line, lean MORE."""
    entry = TrackedEntry(
        id=entry_id or new_entry_id(),
        sport=sport,
        name=name,
        market=default_tracking_market(sport),
        line="",
        lean="MORE",
    )
    return (*tracked, entry)


def _index_of(tracked: tuple[TrackedEntry, ...], entry_id: str) -> int:
    for index, entry in enumerate(tracked):
        if entry.id == entry_id:
            return index
    raise UnknownEntryError(entry_id)


def remove(tracked: tuple[TrackedEntry, ...], entry_id: str) -> tuple[TrackedEntry, ...]:
    index = _index_of(tracked, entry_id)
    return tracked[:index] + tracked[index + 1 :]


def update(
    tracked: tuple[TrackedEntry, ...], entry_id: str, changes: Mapping[str, Any]
) -> tuple[TrackedEntry, ...]:
    """Shallow-merge editable fields into one entry."""
    unknown = sorted(set(changes) - EDITABLE_FIELDS)
    if unknown:
        raise InvalidActionError(f"fields not editable: {','.join(unknown)}")
    if "lean" in changes and changes["lean"] not in LEANS:
        raise InvalidActionError(f"invalid lean: {changes['lean']}")
    index = _index_of(tracked, entry_id)
    clean = {key: "" if value is None else str(value) for key, value in changes.items()}
    updated = replace(tracked[index], **clean)
    return tracked[:index] + (updated,) + tracked[index + 1 :]


def list_for_sport(tracked: tuple[TrackedEntry, ...], sport: str) -> tuple[TrackedEntry, ...]:
    return tuple(entry for entry in tracked if entry.sport == sport)

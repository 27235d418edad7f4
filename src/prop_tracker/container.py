"""Explicit state container: dispatch -> persist -> notify."""

from __future__ import annotations

import logging
from collections.abc import Callable

from prop_tracker.reducer import Action, ReplaceState, reduce
from prop_tracker.state import AppState
from prop_tracker.storage import StateStore, export_backup, import_backup

logger = logging.getLogger(__name__)

Listener = Callable[[AppState], None]


class StateContainer:
    """Owns the current state; every dispatch is saved before listeners run.

    Listeners are the render trigger: each one recomputes whatever it derives
    from the full state. There are no partial updates.
    """

    def __init__(self, store: StateStore, *, state: AppState | None = None) -> None:
        self.store = store
        self._state = state if state is not None else store.load()
        self._listeners: list[Listener] = []

    @property
    def state(self) -> AppState:
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a callable that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _commit(self, state: AppState, *, persist: bool = True) -> AppState:
        if persist:
            self.store.save(state)
        self._state = state
        for listener in list(self._listeners):
            listener(state)
        return state

    def dispatch(self, action: Action) -> AppState:
        """Apply an action, persist the result, then notify listeners."""
        new_state = reduce(self._state, action)
        logger.debug("dispatch %s", type(action).__name__)
        return self._commit(new_state)

    def reset(self) -> AppState:
        """Clear durable storage and return to defaults."""
        return self._commit(self.store.reset(), persist=False)

    def import_backup(self, raw: str) -> AppState:
        """Replace state with a parsed backup merged over defaults."""
        imported = import_backup(raw, self.store.defaults)
        return self.dispatch(ReplaceState(imported))

    def export_backup(self) -> str:
        return export_backup(self._state)

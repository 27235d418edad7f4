"""Durable key/value storage and the persisted application-state store."""

from __future__ import annotations

import json
import logging
import os
import re
import uuid
from collections.abc import Callable
from contextlib import suppress
from pathlib import Path
from typing import Any, Protocol

from prop_tracker.errors import BackupImportError
from prop_tracker.state import AppState, default_state, state_from_dict, state_to_dict

logger = logging.getLogger(__name__)

STORAGE_KEY = "propTracker:v210"


class StoragePort(Protocol):
    """Synchronous string key/value storage."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryStorage:
    """In-process storage, used by tests and throwaway sessions."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.values: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self.values.get(key)

    def set(self, key: str, value: str) -> None:
        self.values[key] = value

    def delete(self, key: str) -> None:
        self.values.pop(key, None)


def _atomic_write_text(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(f".tmp-{path.name}-{uuid.uuid4().hex}")
    try:
        tmp_path.write_text(content, encoding="utf-8")
        os.replace(tmp_path, path)
    except OSError:
        with suppress(FileNotFoundError):
            tmp_path.unlink()
        raise


class FileStorage:
    """One file per key under a root directory."""

    def __init__(self, root: Path | str = Path("data/prop_tracker")) -> None:
        self.root = Path(root)

    def path_for(self, key: str) -> Path:
        safe = re.sub(r"[^A-Za-z0-9._-]+", "-", key).strip("-") or "state"
        return self.root / f"{safe}.json"

    def get(self, key: str) -> str | None:
        path = self.path_for(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        _atomic_write_text(self.path_for(key), value)

    def delete(self, key: str) -> None:
        with suppress(FileNotFoundError):
            self.path_for(key).unlink()


def serialize_state(state: AppState) -> str:
    return json.dumps(state_to_dict(state), ensure_ascii=False, separators=(",", ":"))


def merge_onto_defaults(
    payload: Any, defaults: Callable[[], AppState] = default_state
) -> AppState:
    """Shallow-merge a decoded blob over the default layout."""
    if not isinstance(payload, dict):
        raise ValueError("persisted state must be a JSON object")
    return state_from_dict(payload, defaults)


class StateStore:
    """Load/save lifecycle for the single persisted state blob."""

    def __init__(
        self,
        storage: StoragePort,
        *,
        key: str = STORAGE_KEY,
        defaults: Callable[[], AppState] = default_state,
    ) -> None:
        self.storage = storage
        self.key = key
        self.defaults = defaults

    def load(self) -> AppState:
        """Return stored state merged over defaults; any failure yields defaults."""
        try:
            raw = self.storage.get(self.key)
            if not raw:
                return self.defaults()
            return merge_onto_defaults(json.loads(raw), self.defaults)
        except (OSError, ValueError, TypeError, OverflowError) as exc:
            logger.warning("stored state unreadable, using defaults: %s", exc)
            return self.defaults()

    def save(self, state: AppState) -> None:
        self.storage.set(self.key, serialize_state(state))

    def reset(self) -> AppState:
        """Clear durable storage and return fresh defaults."""
        self.storage.delete(self.key)
        return self.defaults()


def export_backup(state: AppState) -> str:
    """Raw JSON serialization of the whole state."""
    return json.dumps(state_to_dict(state), ensure_ascii=False, sort_keys=True, indent=2)


def import_backup(raw: str, defaults: Callable[[], AppState] = default_state) -> AppState:
    """Parse pasted backup JSON and merge it over defaults."""
    try:
        payload = json.loads(raw)
    except (TypeError, ValueError) as exc:
        raise BackupImportError("That JSON didn't parse.") from exc
    if not isinstance(payload, dict):
        raise BackupImportError("Backup JSON must be an object.")
    return merge_onto_defaults(payload, defaults)

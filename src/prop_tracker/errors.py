"""Error types for prop-tracker flows."""

from __future__ import annotations

from typing import Any


class PropTrackerError(RuntimeError):
    """Base error for prop-tracker operations."""


class ConfigurationError(PropTrackerError):
    """Raised when a required setting is missing."""


class GatewayNotConfiguredError(ConfigurationError):
    """Raised before any network call when the odds gateway URL is empty."""

    def __init__(self) -> None:
        super().__init__("Odds gateway not set. Configure the gateway URL first.")


class ProviderError(PropTrackerError):
    """Raised when an external data provider call fails."""


class ScoreboardError(ProviderError):
    """Raised on scoreboard provider failures (transport, timeout, status)."""


class OddsGatewayError(ProviderError):
    """Raised on odds gateway failures; keeps the HTTP status and parsed body."""

    def __init__(self, message: str, *, status_code: int | None = None, body: Any = None) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(message)


class BackupImportError(PropTrackerError):
    """Raised when a pasted backup does not parse as a JSON object."""


class UnknownEntryError(PropTrackerError, KeyError):
    """Raised when a watch-list entry id does not exist."""

    def __init__(self, entry_id: str) -> None:
        self.entry_id = entry_id
        super().__init__(f"unknown tracked entry: {entry_id}")

    def __str__(self) -> str:
        return str(self.args[0])


class InvalidActionError(PropTrackerError, ValueError):
    """Raised when an action carries a value outside its closed set."""

"""Per-scope request tokens so only the latest response for a scope lands."""

from __future__ import annotations

SCOPE_LIVE = "live"
SCOPE_PROPS = "props"
SCOPE_GAMES = "games"
SCOPE_SUMMARY = "summary"


class RequestTracker:
    """Issues monotonically increasing tokens per cache scope."""

    def __init__(self) -> None:
        self._latest: dict[str, int] = {}

    def issue(self, scope: str) -> int:
        token = self._latest.get(scope, 0) + 1
        self._latest[scope] = token
        return token

    def is_current(self, scope: str, token: int) -> bool:
        return self._latest.get(scope) == token

"""HTTP client for the public scoreboard/summary feed."""

from __future__ import annotations

from typing import Any

import httpx

from prop_tracker import __version__
from prop_tracker.catalog import scoreboard_path
from prop_tracker.errors import ScoreboardError

DEFAULT_BASE_URL = "https://site.web.api.espn.com/apis/v2/sports"
DEFAULT_TIMEOUT_S = 12.0


class ScoreboardClient:
    """Fetches raw scoreboard and summary payloads with a hard timeout."""

    def __init__(
        self,
        *,
        base_url: str = DEFAULT_BASE_URL,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s
        headers = {
            "User-Agent": f"Mozilla/5.0 (compatible; prop-tracker/{__version__})",
            "Accept": "application/json",
            "Cache-Control": "no-store",
        }
        self._http = httpx.Client(
            timeout=timeout_s,
            headers=headers,
            follow_redirects=True,
            transport=transport,
        )

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> ScoreboardClient:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def sport_url(self, sport: str) -> str:
        return f"{self.base_url}/{scoreboard_path(sport)}"

    def _get_json(self, url: str, params: dict[str, str] | None = None) -> dict[str, Any]:
        try:
            response = self._http.get(url, params=params)
            response.raise_for_status()
            payload = response.json()
        except httpx.TimeoutException as exc:
            raise ScoreboardError(f"{url} timed out after {self.timeout_s:g}s") from exc
        except httpx.HTTPStatusError as exc:
            raise ScoreboardError(f"HTTP {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            raise ScoreboardError(f"{url} failed with transport error: {exc}") from exc
        except ValueError as exc:
            raise ScoreboardError(f"{url} returned invalid JSON") from exc
        return payload if isinstance(payload, dict) else {}

    def get_scoreboard(self, sport: str) -> dict[str, Any]:
        """Fetch the raw scoreboard payload for a sport."""
        return self._get_json(f"{self.sport_url(sport)}/scoreboard")

    def get_summary(self, sport: str, event_id: str) -> dict[str, Any]:
        """Fetch the raw event summary (boxscore) payload."""
        return self._get_json(f"{self.sport_url(sport)}/summary", params={"event": event_id})

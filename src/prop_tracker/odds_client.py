"""HTTP client for the odds forwarding gateway.

The gateway wraps The Odds API v4 and injects the secret key, exposing:
- `GET /props` aggregating per-event player-prop odds (one market per call)
- `GET /odds` for featured game markets (h2h, totals, spreads)

Both answer with a `{status, body, rate}` envelope or a raw body.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from email.utils import parsedate_to_datetime
from time import perf_counter
from typing import Any

import httpx
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt

from prop_tracker.catalog import GAME_ODDS_MARKETS
from prop_tracker.errors import GatewayNotConfiguredError, OddsGatewayError

logger = logging.getLogger(__name__)

# The gateway scans at most this many events per /props call and returns no more.
PROPS_EVENT_SCAN_CAP = 20
DEFAULT_TIMEOUT_S = 10.0
RETRY_AFTER_CAP_S = 60.0
BACKOFF_CAP_S = 30.0


def _is_retryable(status_code: int) -> bool:
    return status_code == 429 or 500 <= status_code <= 599


def _retry_after_seconds(response: httpx.Response) -> float | None:
    """Delay requested by a `Retry-After` header (seconds or HTTP date)."""
    raw_value = response.headers.get("Retry-After", "").strip()
    if not raw_value:
        return None
    try:
        return max(0.0, float(raw_value))
    except ValueError:
        pass
    try:
        when = parsedate_to_datetime(raw_value)
    except (TypeError, ValueError):
        return None
    return max(0.0, (when - datetime.now(UTC)).total_seconds())


class RetryableStatusError(RuntimeError):
    """Gateway answered 429 or 5xx; carries the response for the final error."""

    def __init__(self, response: httpx.Response) -> None:
        self.response = response
        super().__init__(f"gateway returned {response.status_code}")


@dataclass(frozen=True)
class GatewayResponse:
    """Unwrapped gateway body and call metadata."""

    data: list[dict[str, Any]]
    status_code: int
    rate: dict[str, str]
    duration_ms: int
    retry_count: int
    truncated: bool = False


def _wait_for_retry(retry_state) -> float:
    """Honor Retry-After when the gateway sends one, else back off exponentially."""
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    if isinstance(exc, RetryableStatusError):
        requested = _retry_after_seconds(exc.response)
        if requested is not None:
            return min(requested, RETRY_AFTER_CAP_S)
    return min(2 ** (retry_state.attempt_number - 1), BACKOFF_CAP_S)


def _parse_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


def _error_for(response: httpx.Response) -> OddsGatewayError:
    body = _parse_body(response)
    detail = json.dumps(body) if body is not None else f"HTTP {response.status_code}"
    return OddsGatewayError(
        f"Odds gateway error ({response.status_code}). {detail}",
        status_code=response.status_code,
        body=body,
    )


def unwrap_envelope(payload: Any) -> tuple[Any, dict[str, Any]]:
    """Split a `{status, body, ...}` envelope into (body, envelope)."""
    if isinstance(payload, dict) and "body" in payload:
        return payload.get("body"), payload
    return payload, {}


class OddsGatewayClient:
    """Thin HTTP client around the odds forwarding gateway."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        max_retries: int = 3,
        regions: str = "us",
        odds_format: str = "american",
        date_format: str = "iso",
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.strip().rstrip("/")
        self.max_retries = max(0, int(max_retries))
        self.regions = regions
        self.odds_format = odds_format
        self.date_format = date_format
        limits = httpx.Limits(max_connections=4, max_keepalive_connections=2)
        self._http = httpx.Client(
            timeout=timeout_s,
            limits=limits,
            headers={"Accept": "application/json"},
            transport=transport,
        )

    @property
    def configured(self) -> bool:
        return bool(self._base_url)

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> OddsGatewayClient:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def _request(self, *, path: str, params: dict[str, str]) -> tuple[Any, GatewayResponse]:
        if not self._base_url:
            raise GatewayNotConfiguredError()
        url = f"{self._base_url}/{path.lstrip('/')}"
        retries = 0
        started = perf_counter()
        response: httpx.Response | None = None
        try:
            for attempt in Retrying(
                stop=stop_after_attempt(self.max_retries + 1),
                retry=retry_if_exception_type(RetryableStatusError),
                wait=_wait_for_retry,
                reraise=True,
            ):
                with attempt:
                    retries = attempt.retry_state.attempt_number - 1
                    response = self._http.get(url, params=params)
                    if _is_retryable(response.status_code):
                        raise RetryableStatusError(response)
        except RetryableStatusError as exc:
            raise _error_for(exc.response) from exc
        except httpx.TimeoutException as exc:
            raise OddsGatewayError(f"Odds gateway timed out: {path}") from exc
        except httpx.HTTPError as exc:
            raise OddsGatewayError(f"Odds gateway transport error: {exc}") from exc
        if response is None:
            raise OddsGatewayError(f"{path} failed without a response")
        if not response.is_success:
            raise _error_for(response)

        payload = _parse_body(response)
        body, envelope = unwrap_envelope(payload)
        if not isinstance(body, list):
            logger.warning("odds gateway %s returned a non-list body; treating as empty", path)
            body = []
        rate = envelope.get("rate") if isinstance(envelope.get("rate"), dict) else {}
        meta = GatewayResponse(
            data=[row for row in body if isinstance(row, dict)],
            status_code=response.status_code,
            rate={str(key): str(value) for key, value in rate.items() if value is not None},
            duration_ms=int((perf_counter() - started) * 1000),
            retry_count=retries,
        )
        return envelope, meta

    def _common_params(self, *, sport_key: str, bookmakers: str) -> dict[str, str]:
        return {
            "sport": sport_key,
            "regions": self.regions,
            "bookmakers": bookmakers,
            "oddsFormat": self.odds_format,
            "dateFormat": self.date_format,
        }

    def get_props(self, *, sport_key: str, market: str, bookmakers: str = "") -> GatewayResponse:
        """Fetch one player-prop market across today's events.

        The gateway slices the event list to `PROPS_EVENT_SCAN_CAP` and never
        returns more. Without an explicit `truncated` flag in the envelope, a
        full page is reported as truncated: exactly 20 events on the slate is
        indistinguishable from a cut list, so the flag can be a false positive.
        """
        params = self._common_params(sport_key=sport_key, bookmakers=bookmakers)
        params["market"] = market
        envelope, meta = self._request(path="/props", params=params)
        flagged = envelope.get("truncated")
        truncated = (
            flagged is True if isinstance(flagged, bool) else len(meta.data) >= PROPS_EVENT_SCAN_CAP
        )
        return GatewayResponse(
            data=meta.data,
            status_code=meta.status_code,
            rate=meta.rate,
            duration_ms=meta.duration_ms,
            retry_count=meta.retry_count,
            truncated=truncated,
        )

    def get_game_odds(
        self,
        *,
        sport_key: str,
        bookmakers: str = "",
        markets: tuple[str, ...] = GAME_ODDS_MARKETS,
    ) -> GatewayResponse:
        """Fetch moneyline/total/spread odds for a sport."""
        params = self._common_params(sport_key=sport_key, bookmakers=bookmakers)
        params["markets"] = ",".join(markets)
        _, meta = self._request(path="/odds", params=params)
        return meta

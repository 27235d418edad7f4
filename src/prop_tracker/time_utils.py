"""Clock helpers: epoch milliseconds for cache stamps, ISO-Z for display."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime

# Returns epoch seconds, like time.time.
Clock = Callable[[], float]


def epoch_ms(clock: Clock) -> int:
    """Read an epoch-seconds clock as integer milliseconds."""
    return int(clock() * 1000)


def iso_from_epoch(seconds: float) -> str:
    """Format epoch seconds as ISO-8601 UTC with milliseconds and a trailing Z."""
    value = datetime.fromtimestamp(seconds, tz=UTC)
    return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")

"""Heuristic confidence picks.

This is a labeled stub, not a prediction engine: confidence is sampled and the
reasoning lines are the same for every pick.
"""

from __future__ import annotations

import random
from collections.abc import Sequence

from prop_tracker.catalog import default_tracking_market, demo_roster, market_vocabulary
from prop_tracker.state import Pick, TrackedEntry

MAX_PICKS = 6
DEMO_ROSTER_SIZE = 5
CONFIDENCE_FLOOR = 0.55
CONFIDENCE_CEILING = 0.86
CONFIDENCE_BASE = 0.58
CONFIDENCE_SPREAD = 0.28

REASONING: tuple[str, ...] = (
    "Role + usage look stable.",
    "Opponent profile matches the market.",
    "Recent form supports the lean.",
)


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def demo_entries(sport: str) -> list[TrackedEntry]:
    """Demo roster entries on the sport's first market, leaning MORE."""
    market = default_tracking_market(sport)
    return [
        TrackedEntry(
            id=f"demo-{index}", sport=sport, name=name, market=market, line="", lean="MORE"
        )
        for index, name in enumerate(demo_roster(sport, DEMO_ROSTER_SIZE))
    ]


def generate_picks(
    sport: str,
    tracked: Sequence[TrackedEntry],
    *,
    rng: random.Random | None = None,
) -> tuple[Pick, ...]:
    """Build up to six picks from the sport's tracked list or its demo roster."""
    rng = rng or random.Random()
    base = list(tracked) or demo_entries(sport)
    markets = market_vocabulary(sport)
    picks: list[Pick] = []
    for index, entry in enumerate(base[:MAX_PICKS]):
        market = entry.market or markets[index % len(markets)]
        lean = entry.lean or ("MORE" if rng.random() > 0.5 else "LESS")
        confidence = _clamp(
            CONFIDENCE_BASE + rng.random() * CONFIDENCE_SPREAD,
            CONFIDENCE_FLOOR,
            CONFIDENCE_CEILING,
        )
        picks.append(
            Pick(
                id=f"{sport}-{entry.name}-{market}-{index}",
                player=entry.name,
                market=market,
                line=entry.line or "",
                lean=lean,
                confidence=confidence,
                reasoning=REASONING,
            )
        )
    return tuple(picks)

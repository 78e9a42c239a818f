"""Segment performance by odds band, officiating context and side.

Answers questions like "do I lose money above 2.10?" or "which
referees am I reading well?".

Usage::

    bands = by_odds_band(wagers)
    refs = by_context(wagers, display_limit=10, top_n=5)
    sides = by_side(wagers)
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from wager_tracker.core.enums import WagerSide, WagerStatus
from wager_tracker.core.models import ZERO, Wager

from .performance import settled_wagers


@dataclass(frozen=True)
class OddsBand:
    """Half-open odds interval ``[lower, upper)``."""

    lower: float
    upper: float = math.inf

    def contains(self, odd: float) -> bool:
        return self.lower <= odd < self.upper

    @property
    def label(self) -> str:
        if math.isinf(self.upper):
            return f"{self.lower:.2f}+"
        return f"{self.lower:.2f}-{self.upper:.2f}"


def bands_from_edges(edges: Sequence[float]) -> list[OddsBand]:
    """Build contiguous bands from ascending lower edges; the last is open."""
    ordered = sorted(edges)
    return [
        OddsBand(lo, ordered[i + 1] if i + 1 < len(ordered) else math.inf)
        for i, lo in enumerate(ordered)
    ]


DEFAULT_ODDS_BANDS: tuple[OddsBand, ...] = tuple(
    bands_from_edges([1.00, 1.60, 1.75, 1.90, 2.10])
)


@dataclass
class SegmentStats:
    """Accumulator for one segment."""

    label: str
    count: int = 0
    wins: int = 0
    losses: int = 0
    stake: Decimal = ZERO
    profit: Decimal = ZERO
    odd_total: Decimal = ZERO

    def record(self, wager: Wager) -> None:
        self.count += 1
        self.stake += wager.stake
        self.profit += wager.profit
        self.odd_total += wager.odd
        if wager.status == WagerStatus.WON:
            self.wins += 1
        elif wager.status == WagerStatus.LOST:
            self.losses += 1

    @property
    def roi(self) -> float:
        if not self.stake:
            return 0.0
        return float(self.profit / self.stake * 100)

    @property
    def win_rate(self) -> float:
        if self.count == 0:
            return 0.0
        return self.wins / self.count * 100

    @property
    def avg_odd(self) -> float:
        if self.count == 0:
            return 0.0
        return float(self.odd_total / self.count)

    def low_confidence(self, min_samples: int) -> bool:
        return self.count < min_samples

    def to_dict(self) -> dict[str, Any]:
        return {
            "label": self.label,
            "count": self.count,
            "wins": self.wins,
            "losses": self.losses,
            "stake": str(self.stake),
            "profit": str(self.profit),
            "roi": round(self.roi, 4),
            "win_rate": round(self.win_rate, 4),
            "avg_odd": round(self.avg_odd, 4),
        }


# ---------------------------------------------------------------------------
# Odds bands
# ---------------------------------------------------------------------------

def by_odds_band(
    wagers: Iterable[Wager],
    bands: Sequence[OddsBand] = DEFAULT_ODDS_BANDS,
    *,
    exclude_void: bool = False,
) -> list[SegmentStats]:
    """Per-band stats. Every band is reported, empty ones included."""
    stats = [SegmentStats(label=b.label) for b in bands]
    for w in settled_wagers(wagers, exclude_void=exclude_void):
        odd = float(w.odd)
        for band, bucket in zip(bands, stats):
            if band.contains(odd):
                bucket.record(w)
                break
    return stats


# ---------------------------------------------------------------------------
# Officiating context
# ---------------------------------------------------------------------------

@dataclass
class ContextBreakdown:
    """Per-context stats sorted by profit, best first."""

    groups: list[SegmentStats] = field(default_factory=list)
    top: list[SegmentStats] = field(default_factory=list)
    bottom: list[SegmentStats] = field(default_factory=list)
    truncated: bool = False

    @property
    def visible(self) -> list[SegmentStats]:
        """Groups a display should show: all of them, or top + bottom."""
        if not self.truncated:
            return self.groups
        return self.top + self.bottom

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_groups": len(self.groups),
            "truncated": self.truncated,
            "visible": [g.to_dict() for g in self.visible],
        }


def by_context(
    wagers: Iterable[Wager],
    *,
    display_limit: int = 10,
    top_n: int = 5,
    exclude_void: bool = False,
) -> ContextBreakdown:
    """Group settled wagers by referee label, sorted by profit descending.

    Above ``display_limit`` groups only the ``top_n`` best and worst are
    surfaced.
    """
    buckets: dict[str, SegmentStats] = {}
    for w in settled_wagers(wagers, exclude_void=exclude_void):
        label = w.referee.strip() or "Unknown"
        if label not in buckets:
            buckets[label] = SegmentStats(label=label)
        buckets[label].record(w)

    groups = sorted(buckets.values(), key=lambda s: (-s.profit, s.label))
    if len(groups) <= display_limit:
        return ContextBreakdown(groups=groups, top=groups, bottom=[])

    n = max(0, min(top_n, len(groups) // 2))
    return ContextBreakdown(
        groups=groups,
        top=groups[:n],
        bottom=groups[len(groups) - n:] if n else [],
        truncated=True,
    )


# ---------------------------------------------------------------------------
# Side
# ---------------------------------------------------------------------------

def by_side(
    wagers: Iterable[Wager], *, exclude_void: bool = False
) -> dict[WagerSide, SegmentStats]:
    """UNDER vs OVER; both sides are always present."""
    stats = {side: SegmentStats(label=side.value) for side in WagerSide}
    for w in settled_wagers(wagers, exclude_void=exclude_void):
        stats[w.side].record(w)
    return stats

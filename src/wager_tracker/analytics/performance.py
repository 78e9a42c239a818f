"""Aggregate statistics: KPIs, cumulative and daily series, volatility.

Only settled wagers feed performance ratios; OPEN wagers still carry
their at-risk stake and are reported separately as open exposure.
Pushes (VOID) count as settled unless ``exclude_void`` is set.

Two drawdown series exist and are kept apart: the per-wager series in
:func:`cumulative_series` and the per-day series in :func:`daily_series`.
Day-granular charts must use the latter.

Usage::

    summary = summarize(wagers)
    print(summary.roi, summary.win_rate, summary.max_drawdown)
    daily = daily_series(wagers, tz=settings.tz)
    vol = rolling_volatility(daily, window=5)
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, tzinfo
from decimal import Decimal
from typing import Any

import numpy as np

from wager_tracker.core.clock import ensure_aware, local_date
from wager_tracker.core.enums import WagerStatus
from wager_tracker.core.models import ZERO, Wager

logger = logging.getLogger(__name__)

CALENDAR_SCALE_FLOOR = Decimal("100")


def _ratio_pct(numerator: float | Decimal, denominator: float | Decimal) -> float:
    if not denominator:
        return 0.0
    return float(numerator) / float(denominator) * 100


# ---------------------------------------------------------------------------
# Slicing
# ---------------------------------------------------------------------------

def filter_wagers(
    wagers: Iterable[Wager],
    *,
    start: datetime | None = None,
    end: datetime | None = None,
    min_edge: float | None = None,
    min_stake: Decimal | None = None,
) -> list[Wager]:
    """Slice wagers by placement time (``[start, end)``), edge and stake."""
    start = ensure_aware(start) if start is not None else None
    end = ensure_aware(end) if end is not None else None
    out = []
    for w in wagers:
        if start is not None and w.placed_at < start:
            continue
        if end is not None and w.placed_at >= end:
            continue
        if min_edge is not None and w.edge < min_edge:
            continue
        if min_stake is not None and w.stake < min_stake:
            continue
        out.append(w)
    return out


def settled_wagers(wagers: Iterable[Wager], *, exclude_void: bool = False) -> list[Wager]:
    """Wagers whose risk has resolved."""
    return [
        w for w in wagers
        if w.status.is_settled
        and not (exclude_void and w.status == WagerStatus.VOID)
    ]


def _chronological(wagers: Iterable[Wager]) -> list[Wager]:
    return sorted(wagers, key=lambda w: (w.placed_at, w.wager_id))


# ---------------------------------------------------------------------------
# Per-wager cumulative series
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class EquityPoint:
    """Cumulative profit after one settled wager."""

    timestamp: datetime
    wager_id: str
    profit: Decimal
    cumulative: Decimal
    peak: Decimal
    drawdown: Decimal  # peak - cumulative, never negative

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "wager_id": self.wager_id,
            "profit": str(self.profit),
            "cumulative": str(self.cumulative),
            "peak": str(self.peak),
            "drawdown": str(self.drawdown),
        }


def cumulative_series(
    wagers: Iterable[Wager], *, exclude_void: bool = False
) -> list[EquityPoint]:
    """Running profit, peak and drawdown over settled wagers in time order.

    The peak starts at zero (the bankroll before the first result), so an
    opening loss already shows as drawdown.
    """
    cumulative = ZERO
    peak = ZERO
    points: list[EquityPoint] = []
    for w in _chronological(settled_wagers(wagers, exclude_void=exclude_void)):
        cumulative += w.profit
        peak = max(peak, cumulative)
        points.append(
            EquityPoint(
                timestamp=w.placed_at,
                wager_id=w.wager_id,
                profit=w.profit,
                cumulative=cumulative,
                peak=peak,
                drawdown=peak - cumulative,
            )
        )
    return points


def max_drawdown(series: Sequence[EquityPoint] | Sequence[DailyPoint]) -> Decimal:
    """Largest peak-to-trough drop over a series (0 when empty)."""
    return max((p.drawdown for p in series), default=ZERO)


# ---------------------------------------------------------------------------
# Summary KPIs
# ---------------------------------------------------------------------------

@dataclass
class PerformanceSummary:
    """Headline KPIs over a slice of wagers."""

    settled_count: int = 0
    wins: int = 0
    losses: int = 0
    voids: int = 0
    open_count: int = 0
    open_stake: Decimal = ZERO
    total_profit: Decimal = ZERO
    total_stakes: Decimal = ZERO
    win_rate: float = 0.0  # percent
    roi: float = 0.0  # percent
    avg_odd: float = 0.0
    avg_edge: float = 0.0  # percent
    edge_realisation: float = 0.0  # ROI per point of claimed edge
    max_drawdown: Decimal = ZERO

    def to_dict(self) -> dict[str, Any]:
        return {
            "settled_count": self.settled_count,
            "wins": self.wins,
            "losses": self.losses,
            "voids": self.voids,
            "open_count": self.open_count,
            "open_stake": str(self.open_stake),
            "total_profit": str(self.total_profit),
            "total_stakes": str(self.total_stakes),
            "win_rate": round(self.win_rate, 4),
            "roi": round(self.roi, 4),
            "avg_odd": round(self.avg_odd, 4),
            "avg_edge": round(self.avg_edge, 4),
            "edge_realisation": round(self.edge_realisation, 4),
            "max_drawdown": str(self.max_drawdown),
        }


def summarize(wagers: Iterable[Wager], *, exclude_void: bool = False) -> PerformanceSummary:
    """Compute profit, ROI, win rate and drawdown over *wagers*.

    Ratios are 0 rather than NaN when nothing has settled.
    """
    wagers = list(wagers)
    settled = settled_wagers(wagers, exclude_void=exclude_void)
    open_wagers = [w for w in wagers if w.status == WagerStatus.OPEN]

    summary = PerformanceSummary(
        open_count=len(open_wagers),
        open_stake=sum((w.stake for w in open_wagers), ZERO),
    )
    if not settled:
        return summary

    summary.settled_count = len(settled)
    summary.wins = sum(1 for w in settled if w.status == WagerStatus.WON)
    summary.losses = sum(1 for w in settled if w.status == WagerStatus.LOST)
    summary.voids = sum(1 for w in settled if w.status == WagerStatus.VOID)
    summary.total_profit = sum((w.profit for w in settled), ZERO)
    summary.total_stakes = sum((w.stake for w in settled), ZERO)
    summary.win_rate = _ratio_pct(summary.wins, summary.settled_count)
    summary.roi = _ratio_pct(summary.total_profit, summary.total_stakes)
    summary.avg_odd = float(sum((w.odd for w in settled), ZERO)) / len(settled)
    summary.avg_edge = sum(w.edge for w in settled) / len(settled)
    summary.edge_realisation = summary.roi / (summary.avg_edge or 1.0)
    summary.max_drawdown = max_drawdown(
        cumulative_series(settled, exclude_void=exclude_void)
    )
    return summary


# ---------------------------------------------------------------------------
# Daily aggregation
# ---------------------------------------------------------------------------

@dataclass
class DailyPoint:
    """One calendar day of settled results, with day-level drawdown."""

    day: date
    profit: Decimal = ZERO
    volume: Decimal = ZERO  # Total stake settled that day
    count: int = 0
    wins: int = 0
    cumulative: Decimal = ZERO
    peak: Decimal = ZERO
    drawdown: Decimal = ZERO

    @property
    def win_rate(self) -> float:
        return _ratio_pct(self.wins, self.count)

    def to_dict(self) -> dict[str, Any]:
        return {
            "day": self.day.isoformat(),
            "profit": str(self.profit),
            "volume": str(self.volume),
            "count": self.count,
            "wins": self.wins,
            "win_rate": round(self.win_rate, 4),
            "cumulative": str(self.cumulative),
            "peak": str(self.peak),
            "drawdown": str(self.drawdown),
        }


def _bucket_by_day(
    wagers: Iterable[Wager], tz: tzinfo | None
) -> dict[date, DailyPoint]:
    buckets: dict[date, DailyPoint] = {}
    for w in wagers:
        day = local_date(w.placed_at, tz)
        point = buckets.get(day)
        if point is None:
            point = buckets[day] = DailyPoint(day=day)
        point.profit += w.profit
        point.volume += w.stake
        point.count += 1
        if w.status == WagerStatus.WON:
            point.wins += 1
    return buckets


def daily_series(
    wagers: Iterable[Wager],
    *,
    tz: tzinfo | None = None,
    exclude_void: bool = False,
) -> list[DailyPoint]:
    """Per-day profit/volume with cumulative, peak and drawdown re-derived
    over the daily totals."""
    buckets = _bucket_by_day(settled_wagers(wagers, exclude_void=exclude_void), tz)
    cumulative = ZERO
    peak = ZERO
    series = []
    for day in sorted(buckets):
        point = buckets[day]
        cumulative += point.profit
        peak = max(peak, cumulative)
        point.cumulative = cumulative
        point.peak = peak
        point.drawdown = peak - cumulative
        series.append(point)
    return series


@dataclass(frozen=True)
class VolatilityPoint:
    day: date
    volatility: float  # Std dev of daily profit over the trailing window
    window: int  # Days actually in the window (clipped at series start)

    def to_dict(self) -> dict[str, Any]:
        return {
            "day": self.day.isoformat(),
            "volatility": round(self.volatility, 4),
            "window": self.window,
        }


def rolling_volatility(
    daily: Sequence[DailyPoint], window: int = 5
) -> list[VolatilityPoint]:
    """Trailing population std dev of daily profit.

    Each window is clipped at day 0, so early points use fewer days.
    """
    if window < 1:
        raise ValueError(f"window must be >= 1, got {window}")
    profits = np.array([float(p.profit) for p in daily], dtype=float)
    out = []
    for i, point in enumerate(daily):
        lo = max(0, i - window + 1)
        chunk = profits[lo:i + 1]
        out.append(
            VolatilityPoint(day=point.day, volatility=float(np.std(chunk)), window=len(chunk))
        )
    return out


# ---------------------------------------------------------------------------
# Profit calendar
# ---------------------------------------------------------------------------

@dataclass
class CalendarDay:
    day: date
    profit: Decimal = ZERO
    count: int = 0
    wins: int = 0

    def intensity(self, scale: Decimal) -> float:
        """Magnitude of the day's result relative to *scale*, capped at 1."""
        if self.count == 0 or not scale:
            return 0.0
        return min(float(abs(self.profit) / scale), 1.0)

    def to_dict(self) -> dict[str, Any]:
        return {
            "day": self.day.isoformat(),
            "profit": str(self.profit),
            "count": self.count,
            "wins": self.wins,
        }


@dataclass
class ProfitCalendar:
    days: list[CalendarDay] = field(default_factory=list)

    @property
    def scale(self) -> Decimal:
        """Largest absolute daily result, never below the floor."""
        return max(
            [abs(d.profit) for d in self.days] + [CALENDAR_SCALE_FLOOR]
        )

    def to_dict(self) -> dict[str, Any]:
        scale = self.scale
        return {
            "scale": str(scale),
            "days": [
                {**d.to_dict(), "intensity": round(d.intensity(scale), 4)}
                for d in self.days
            ],
        }


def profit_calendar(
    wagers: Iterable[Wager],
    *,
    end: date,
    days: int = 70,
    tz: tzinfo | None = None,
    exclude_void: bool = False,
) -> ProfitCalendar:
    """Zero-filled trailing calendar of ``days`` days ending on *end*."""
    buckets = _bucket_by_day(settled_wagers(wagers, exclude_void=exclude_void), tz)
    cells = []
    for offset in range(days - 1, -1, -1):
        day = end - timedelta(days=offset)
        point = buckets.get(day)
        if point is None:
            cells.append(CalendarDay(day=day))
        else:
            cells.append(
                CalendarDay(day=day, profit=point.profit, count=point.count, wins=point.wins)
            )
    return ProfitCalendar(days=cells)

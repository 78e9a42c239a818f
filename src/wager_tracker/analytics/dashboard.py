"""Bundle every computed view the presentation layer consumes.

The presentation layer receives :class:`DashboardSnapshot` (or its
``to_dict()``) and does no arithmetic of its own.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timedelta, tzinfo
from typing import Any

from wager_tracker.core.clock import local_date
from wager_tracker.core.config import StatsConfig
from wager_tracker.core.enums import WagerSide
from wager_tracker.core.models import CashMovement, Wager
from wager_tracker.ledger.bankroll import BalanceSnapshot, bankroll_snapshot

from .accuracy import AccuracyReport, model_accuracy
from .performance import (
    DailyPoint,
    EquityPoint,
    PerformanceSummary,
    ProfitCalendar,
    VolatilityPoint,
    cumulative_series,
    daily_series,
    profit_calendar,
    rolling_volatility,
    summarize,
)
from .segmentation import (
    ContextBreakdown,
    SegmentStats,
    bands_from_edges,
    by_context,
    by_odds_band,
    by_side,
)


@dataclass
class DashboardSnapshot:
    balance: BalanceSnapshot
    summary: PerformanceSummary
    equity: list[EquityPoint] = field(default_factory=list)
    daily: list[DailyPoint] = field(default_factory=list)
    volatility: list[VolatilityPoint] = field(default_factory=list)
    calendar: ProfitCalendar = field(default_factory=ProfitCalendar)
    accuracy: AccuracyReport = field(default_factory=AccuracyReport)
    odds_bands: list[SegmentStats] = field(default_factory=list)
    contexts: ContextBreakdown = field(default_factory=ContextBreakdown)
    sides: dict[WagerSide, SegmentStats] = field(default_factory=dict)
    min_band_samples: int = 5

    def to_dict(self) -> dict[str, Any]:
        return {
            "balance": self.balance.to_dict(),
            "summary": self.summary.to_dict(),
            "equity": [p.to_dict() for p in self.equity],
            "daily": [p.to_dict() for p in self.daily],
            "volatility": [p.to_dict() for p in self.volatility],
            "calendar": self.calendar.to_dict(),
            "accuracy": self.accuracy.to_dict(),
            "odds_bands": [
                {**b.to_dict(), "low_confidence": b.low_confidence(self.min_band_samples)}
                for b in self.odds_bands
            ],
            "contexts": self.contexts.to_dict(),
            "sides": {side.value: s.to_dict() for side, s in self.sides.items()},
        }


def build_dashboard(
    movements: Iterable[CashMovement],
    all_wagers: Iterable[Wager],
    *,
    now: datetime,
    tz: tzinfo | None = None,
    stats: StatsConfig | None = None,
    wagers: Iterable[Wager] | None = None,
) -> DashboardSnapshot:
    """Compute every dashboard view.

    The balance always uses *all_wagers*; performance views use the
    optional *wagers* slice (date range, minimum edge, ...) when given.
    """
    stats = stats or StatsConfig()
    all_wagers = list(all_wagers)
    view = list(wagers) if wagers is not None else all_wagers

    daily = daily_series(view, tz=tz, exclude_void=stats.exclude_void)
    return DashboardSnapshot(
        balance=bankroll_snapshot(
            movements,
            all_wagers,
            now,
            tz=tz,
            skew=timedelta(seconds=stats.balance_skew_seconds),
        ),
        summary=summarize(view, exclude_void=stats.exclude_void),
        equity=cumulative_series(view, exclude_void=stats.exclude_void),
        daily=daily,
        volatility=rolling_volatility(daily, window=stats.volatility_window),
        calendar=profit_calendar(
            view,
            end=local_date(now, tz),
            days=stats.calendar_days,
            tz=tz,
            exclude_void=stats.exclude_void,
        ),
        accuracy=model_accuracy(view),
        odds_bands=by_odds_band(
            view, bands_from_edges(stats.odds_bands), exclude_void=stats.exclude_void
        ),
        contexts=by_context(
            view,
            display_limit=stats.context_display_limit,
            top_n=stats.context_top_n,
            exclude_void=stats.exclude_void,
        ),
        sides=by_side(view, exclude_void=stats.exclude_void),
        min_band_samples=stats.min_band_samples,
    )

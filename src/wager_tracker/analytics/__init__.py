"""Performance analytics over wager snapshots.

Key components
--------------
summarize            Profit, ROI, win rate and drawdown KPIs
cumulative_series    Per-wager cumulative profit / peak / drawdown
daily_series         Calendar-day buckets with day-level drawdown
rolling_volatility   Trailing std dev of daily profit
profit_calendar      Zero-filled trailing calendar of daily results
model_accuracy       Model vs bookmaker mean absolute error
by_odds_band         Odds-range segmentation
by_context           Referee / officiating-context segmentation
by_side              UNDER vs OVER segmentation
"""

from .accuracy import AccuracyReport, model_accuracy
from .dashboard import DashboardSnapshot, build_dashboard
from .performance import (
    CalendarDay,
    DailyPoint,
    EquityPoint,
    PerformanceSummary,
    ProfitCalendar,
    VolatilityPoint,
    cumulative_series,
    daily_series,
    filter_wagers,
    max_drawdown,
    profit_calendar,
    rolling_volatility,
    settled_wagers,
    summarize,
)
from .segmentation import (
    DEFAULT_ODDS_BANDS,
    ContextBreakdown,
    OddsBand,
    SegmentStats,
    by_context,
    by_odds_band,
    by_side,
)

__all__ = [
    "AccuracyReport",
    "model_accuracy",
    "DashboardSnapshot",
    "build_dashboard",
    "CalendarDay",
    "DailyPoint",
    "EquityPoint",
    "PerformanceSummary",
    "ProfitCalendar",
    "VolatilityPoint",
    "cumulative_series",
    "daily_series",
    "filter_wagers",
    "max_drawdown",
    "profit_calendar",
    "rolling_volatility",
    "settled_wagers",
    "summarize",
    "DEFAULT_ODDS_BANDS",
    "ContextBreakdown",
    "OddsBand",
    "SegmentStats",
    "by_context",
    "by_odds_band",
    "by_side",
]

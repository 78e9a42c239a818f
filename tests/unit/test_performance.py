"""Tests for performance KPIs, equity and daily series."""

import math
from datetime import date, timedelta
from decimal import Decimal
from zoneinfo import ZoneInfo

import pytest

from wager_tracker.analytics.performance import (
    cumulative_series,
    daily_series,
    filter_wagers,
    max_drawdown,
    profit_calendar,
    rolling_volatility,
    settled_wagers,
    summarize,
)
from wager_tracker.core.enums import WagerSide


@pytest.fixture
def split_pair(make_wager, base_time):
    """One UNDER win and one OVER loss on the same line, observed 9."""
    return [
        make_wager(side=WagerSide.UNDER, observed=9, wager_id="w1",
                   placed_at=base_time - timedelta(hours=2)),
        make_wager(side=WagerSide.OVER, observed=9, wager_id="w2",
                   placed_at=base_time - timedelta(hours=1)),
    ]


class TestSummarize:
    def test_empty_is_all_zero(self):
        s = summarize([])
        assert s.settled_count == 0
        assert s.win_rate == 0.0
        assert s.roi == 0.0
        assert s.max_drawdown == Decimal("0")

    def test_only_open_wagers(self, make_wager):
        s = summarize([make_wager(stake="30"), make_wager(stake="20")])
        assert s.settled_count == 0
        assert s.roi == 0.0
        assert s.open_count == 2
        assert s.open_stake == Decimal("50")

    def test_split_pair(self, split_pair):
        s = summarize(split_pair)
        assert s.settled_count == 2
        assert s.wins == 1
        assert s.losses == 1
        assert s.total_profit == Decimal("-10")
        assert s.total_stakes == Decimal("200")
        assert s.win_rate == 50.0
        assert s.roi == -5.0
        assert s.avg_odd == pytest.approx(1.9)
        assert s.avg_edge == pytest.approx(5.0)
        assert s.edge_realisation == pytest.approx(-1.0)
        assert s.max_drawdown == Decimal("100")

    def test_open_wagers_excluded_from_ratios(self, split_pair, make_wager):
        s = summarize(split_pair + [make_wager()])
        assert s.settled_count == 2
        assert s.roi == -5.0
        assert s.open_count == 1

    def test_void_counts_as_settled_by_default(self, make_wager):
        wagers = [make_wager(observed=9), make_wager(observed=10)]
        assert summarize(wagers).settled_count == 2
        assert summarize(wagers).win_rate == 50.0
        excluded = summarize(wagers, exclude_void=True)
        assert excluded.settled_count == 1
        assert excluded.win_rate == 100.0

    def test_zero_edge_does_not_divide_by_zero(self, make_wager):
        s = summarize([make_wager(observed=9, edge=0.0)])
        assert s.edge_realisation == s.roi

    def test_to_dict_serialises_money_as_strings(self, split_pair):
        data = summarize(split_pair).to_dict()
        assert data["total_profit"] == "-10.00"
        assert data["roi"] == -5.0


class TestCumulativeSeries:
    def test_peak_and_drawdown(self, split_pair):
        points = cumulative_series(split_pair)
        assert [p.wager_id for p in points] == ["w1", "w2"]
        assert [p.cumulative for p in points] == [Decimal("90"), Decimal("-10")]
        assert [p.peak for p in points] == [Decimal("90"), Decimal("90")]
        assert [p.drawdown for p in points] == [Decimal("0"), Decimal("100")]

    def test_opening_loss_is_drawdown(self, make_wager):
        points = cumulative_series([make_wager(observed=11)])
        assert points[0].peak == Decimal("0")
        assert points[0].drawdown == Decimal("100")

    def test_open_wagers_skipped(self, make_wager):
        assert cumulative_series([make_wager()]) == []

    def test_max_drawdown_empty(self):
        assert max_drawdown([]) == Decimal("0")


class TestDailySeries:
    def test_daily_drawdown_is_rederived(self, split_pair):
        daily = daily_series(split_pair)
        assert len(daily) == 1
        day = daily[0]
        assert day.profit == Decimal("-10")
        assert day.volume == Decimal("200")
        assert day.count == 2
        assert day.wins == 1
        assert day.win_rate == 50.0
        # Intraday swing is invisible at day granularity
        assert day.drawdown == Decimal("10")
        assert max_drawdown(cumulative_series(split_pair)) == Decimal("100")

    def test_days_sorted_and_accumulated(self, make_wager, base_time):
        wagers = [
            make_wager(observed=11, placed_at=base_time),
            make_wager(observed=9, placed_at=base_time - timedelta(days=1)),
        ]
        daily = daily_series(wagers)
        assert [d.day for d in daily] == [date(2024, 3, 9), date(2024, 3, 10)]
        assert [d.cumulative for d in daily] == [Decimal("90"), Decimal("-10")]
        assert [d.peak for d in daily] == [Decimal("90"), Decimal("90")]

    def test_bucketing_uses_timezone(self, make_wager, base_time):
        wagers = [make_wager(observed=9, placed_at=base_time.replace(hour=2))]
        assert daily_series(wagers)[0].day == date(2024, 3, 10)
        local = daily_series(wagers, tz=ZoneInfo("America/Sao_Paulo"))
        assert local[0].day == date(2024, 3, 9)


class TestRollingVolatility:
    def _daily(self, make_wager, base_time, outcomes):
        wagers = [
            make_wager(observed=observed, placed_at=base_time + timedelta(days=i))
            for i, observed in enumerate(outcomes)
        ]
        return daily_series(wagers)

    def test_window_clipped_at_start(self, make_wager, base_time):
        # +90, -100, +90
        daily = self._daily(make_wager, base_time, [9, 11, 9])
        vol = rolling_volatility(daily, window=2)
        assert [v.window for v in vol] == [1, 2, 2]
        assert vol[0].volatility == 0.0
        assert vol[1].volatility == pytest.approx(95.0)
        assert vol[2].volatility == pytest.approx(95.0)

    def test_population_std(self, make_wager, base_time):
        daily = self._daily(make_wager, base_time, [9, 11, 10])
        vol = rolling_volatility(daily, window=5)
        mean = -10 / 3
        expected = math.sqrt(((90 - mean) ** 2 + (-100 - mean) ** 2 + mean ** 2) / 3)
        assert vol[-1].volatility == pytest.approx(expected)

    def test_empty(self):
        assert rolling_volatility([]) == []

    def test_invalid_window(self):
        with pytest.raises(ValueError):
            rolling_volatility([], window=0)


class TestFilterWagers:
    def test_date_range_half_open(self, make_wager, base_time):
        before = make_wager(placed_at=base_time - timedelta(days=1), wager_id="before")
        at_start = make_wager(placed_at=base_time, wager_id="start")
        at_end = make_wager(placed_at=base_time + timedelta(days=1), wager_id="end")
        out = filter_wagers(
            [before, at_start, at_end], start=base_time, end=base_time + timedelta(days=1)
        )
        assert [w.wager_id for w in out] == ["start"]

    def test_min_edge_and_stake(self, make_wager):
        wagers = [
            make_wager(edge=2.0, stake="100", wager_id="low-edge"),
            make_wager(edge=8.0, stake="10", wager_id="small"),
            make_wager(edge=8.0, stake="100", wager_id="keep"),
        ]
        out = filter_wagers(wagers, min_edge=5.0, min_stake=Decimal("50"))
        assert [w.wager_id for w in out] == ["keep"]

    def test_settled_wagers(self, make_wager):
        wagers = [make_wager(), make_wager(observed=9), make_wager(observed=10)]
        assert len(settled_wagers(wagers)) == 2
        assert len(settled_wagers(wagers, exclude_void=True)) == 1


class TestProfitCalendar:
    def test_zero_filled_trailing_days(self, make_wager, base_time):
        cal = profit_calendar([make_wager(observed=9)], end=date(2024, 3, 10), days=7)
        assert len(cal.days) == 7
        assert cal.days[0].day == date(2024, 3, 4)
        assert cal.days[-1].day == date(2024, 3, 10)
        assert cal.days[-1].profit == Decimal("90")
        assert cal.days[0].count == 0

    def test_scale_floor_and_intensity(self, make_wager):
        cal = profit_calendar([make_wager(observed=9)], end=date(2024, 3, 10), days=3)
        assert cal.scale == Decimal("100")
        assert cal.days[-1].intensity(cal.scale) == pytest.approx(0.9)
        assert cal.days[0].intensity(cal.scale) == 0.0

    def test_scale_follows_largest_day(self, make_wager, base_time):
        wagers = [
            make_wager(observed=11, stake="250", placed_at=base_time - timedelta(days=1)),
            make_wager(observed=9),
        ]
        cal = profit_calendar(wagers, end=date(2024, 3, 10), days=3)
        assert cal.scale == Decimal("250")
        assert cal.to_dict()["days"][1]["intensity"] == 1.0

"""Tests for model vs market accuracy."""

import math

import pytest

from wager_tracker.analytics.accuracy import AccuracyReport, model_accuracy
from wager_tracker.core.enums import WagerSide


class TestModelAccuracy:
    def test_mae_of_model_and_line(self, make_wager):
        wagers = [
            make_wager(prediction=8.0, line=10.0, observed=9),
            make_wager(side=WagerSide.OVER, prediction=12.0, line=10.0, observed=13),
        ]
        report = model_accuracy(wagers)
        assert report.sample_count == 2
        assert report.model_mae == pytest.approx(1.0)
        assert report.market_mae == pytest.approx(2.0)
        assert report.relative_efficiency == pytest.approx(2.0)
        assert report.model_is_sharper

    def test_skips_missing_values(self, make_wager):
        wagers = [
            make_wager(prediction=None, observed=9),
            make_wager(),  # open, nothing observed
            make_wager(prediction=9.5, observed=9),
        ]
        report = model_accuracy(wagers)
        assert report.sample_count == 1
        assert report.model_mae == pytest.approx(0.5)

    def test_empty(self):
        report = model_accuracy([])
        assert report.sample_count == 0
        assert report.relative_efficiency == 0.0
        assert not report.model_is_sharper

    def test_perfect_model(self, make_wager):
        report = model_accuracy([make_wager(prediction=9.0, observed=9)])
        assert math.isinf(report.relative_efficiency)
        assert report.to_dict()["relative_efficiency"] is None

    def test_both_perfect(self):
        report = AccuracyReport(sample_count=3, model_mae=0.0, market_mae=0.0)
        assert report.relative_efficiency == 1.0
        assert not report.model_is_sharper

"""Model vs market accuracy.

Compares how close the model's projection and the bookmaker's line each
landed to the observed outcome. Wagers missing any of the three values
are left out of this comparison only; they still count for profit.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from wager_tracker.core.models import Wager


@dataclass(frozen=True)
class AccuracyReport:
    sample_count: int = 0
    model_mae: float = 0.0
    market_mae: float = 0.0

    @property
    def relative_efficiency(self) -> float:
        """Market MAE over model MAE; above 1.0 the model is sharper."""
        if self.sample_count == 0:
            return 0.0
        if self.model_mae == 0:
            return math.inf if self.market_mae > 0 else 1.0
        return self.market_mae / self.model_mae

    @property
    def model_is_sharper(self) -> bool:
        return self.sample_count > 0 and self.model_mae < self.market_mae

    def to_dict(self) -> dict[str, Any]:
        eff = self.relative_efficiency
        return {
            "sample_count": self.sample_count,
            "model_mae": round(self.model_mae, 4),
            "market_mae": round(self.market_mae, 4),
            "relative_efficiency": None if math.isinf(eff) else round(eff, 4),
            "model_is_sharper": self.model_is_sharper,
        }


def model_accuracy(wagers: Iterable[Wager]) -> AccuracyReport:
    """Mean absolute error of model prediction and bookmaker line."""
    model_err = 0.0
    market_err = 0.0
    n = 0
    for w in wagers:
        if w.model_prediction is None or w.observed_outcome is None:
            continue
        model_err += abs(w.model_prediction - w.observed_outcome)
        market_err += abs(w.bookie_line - w.observed_outcome)
        n += 1
    if n == 0:
        return AccuracyReport()
    return AccuracyReport(sample_count=n, model_mae=model_err / n, market_mae=market_err / n)

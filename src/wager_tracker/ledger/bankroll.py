"""Bankroll calculator.

A wager's stake leaves the bankroll when it is placed and its gross
payout (stake x odd on a win, the stake on a push) comes back when it
settles. Net, a losing wager costs exactly its stake.

Usage::

    snap = bankroll_snapshot(movements, wagers, now=clock.now(), tz=clock.tz)
    print(snap.balance, snap.delta_pct)
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta, tzinfo
from decimal import Decimal
from typing import Any

from wager_tracker.core.clock import ensure_aware, start_of_day
from wager_tracker.core.enums import MovementKind, Trend, WagerStatus
from wager_tracker.core.models import ZERO, CashMovement, Wager

DEFAULT_SKEW = timedelta(seconds=10)


def cash_balance_as_of(movements: Iterable[CashMovement], cutoff: datetime) -> Decimal:
    """Deposits minus withdrawals strictly before *cutoff*."""
    cutoff = ensure_aware(cutoff)
    return sum(
        (m.signed_amount for m in movements if m.created_at < cutoff),
        ZERO,
    )


def balance_as_of(
    movements: Iterable[CashMovement],
    wagers: Iterable[Wager],
    cutoff: datetime,
) -> Decimal:
    """Net bankroll at *cutoff*: cash - stakes placed + payouts received."""
    cutoff = ensure_aware(cutoff)
    relevant = [w for w in wagers if w.placed_at < cutoff]
    stakes = sum((w.stake for w in relevant), ZERO)
    payouts = sum((w.payout for w in relevant), ZERO)
    return cash_balance_as_of(movements, cutoff) - stakes + payouts


def current_cutoff(now: datetime, skew: timedelta = DEFAULT_SKEW) -> datetime:
    """Cutoff for "current" balance; the skew includes same-instant events."""
    return ensure_aware(now) + skew


def percent_change(current: Decimal, previous: Decimal) -> float:
    """Percentage change vs *previous*; 0.0 when previous is zero."""
    if previous == 0:
        return 0.0
    return float((current - previous) / previous * 100)


@dataclass(frozen=True)
class BalanceSnapshot:
    """Current vs start-of-day bankroll plus exposure figures."""

    balance: Decimal
    previous_balance: Decimal
    open_exposure: Decimal
    total_deposited: Decimal
    total_withdrawn: Decimal
    as_of: datetime

    @property
    def delta(self) -> Decimal:
        return self.balance - self.previous_balance

    @property
    def delta_pct(self) -> float:
        return percent_change(self.balance, self.previous_balance)

    @property
    def trend(self) -> Trend:
        if self.delta > 0:
            return Trend.UP
        if self.delta < 0:
            return Trend.DOWN
        return Trend.NEUTRAL

    def to_dict(self) -> dict[str, Any]:
        return {
            "balance": str(self.balance),
            "previous_balance": str(self.previous_balance),
            "delta": str(self.delta),
            "delta_pct": round(self.delta_pct, 4),
            "trend": self.trend.value,
            "open_exposure": str(self.open_exposure),
            "total_deposited": str(self.total_deposited),
            "total_withdrawn": str(self.total_withdrawn),
            "as_of": self.as_of.isoformat(),
        }


def bankroll_snapshot(
    movements: Iterable[CashMovement],
    wagers: Iterable[Wager],
    now: datetime,
    *,
    tz: tzinfo | None = None,
    skew: timedelta = DEFAULT_SKEW,
) -> BalanceSnapshot:
    """Balance now vs at local midnight, with open exposure and cash totals."""
    movements = list(movements)
    wagers = list(wagers)
    balance = balance_as_of(movements, wagers, current_cutoff(now, skew))
    previous = balance_as_of(movements, wagers, start_of_day(now, tz))
    return BalanceSnapshot(
        balance=balance,
        previous_balance=previous,
        open_exposure=sum(
            (w.stake for w in wagers if w.status == WagerStatus.OPEN), ZERO
        ),
        total_deposited=sum(
            (m.amount for m in movements if m.kind == MovementKind.DEPOSIT), ZERO
        ),
        total_withdrawn=sum(
            (m.amount for m in movements if m.kind == MovementKind.WITHDRAWAL), ZERO
        ),
        as_of=ensure_aware(now),
    )

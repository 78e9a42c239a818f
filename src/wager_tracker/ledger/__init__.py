"""Settlement and bankroll arithmetic over wager / cash-movement snapshots."""

from .bankroll import BalanceSnapshot, balance_as_of, bankroll_snapshot, percent_change
from .settlement import profit_for, reprice, reset_to_open, resolve_status, settle

__all__ = [
    "BalanceSnapshot",
    "balance_as_of",
    "bankroll_snapshot",
    "percent_change",
    "profit_for",
    "reprice",
    "reset_to_open",
    "resolve_status",
    "settle",
]

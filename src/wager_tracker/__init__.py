"""Personal wager tracker: settlement, bankroll and performance analytics."""

__version__ = "0.1.0"

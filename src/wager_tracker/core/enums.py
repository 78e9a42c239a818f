"""Enumerations used across the wager tracker."""

from enum import Enum


class WagerSide(str, Enum):
    UNDER = "UNDER"
    OVER = "OVER"


class WagerStatus(str, Enum):
    OPEN = "OPEN"
    WON = "WON"
    LOST = "LOST"
    VOID = "VOID"  # Push / refund

    @property
    def is_settled(self) -> bool:
        return self is not WagerStatus.OPEN


class MovementKind(str, Enum):
    DEPOSIT = "DEPOSIT"
    WITHDRAWAL = "WITHDRAWAL"


class SessionState(str, Enum):
    """Lifecycle of the in-memory application state."""

    LOADING = "loading"
    READY = "ready"
    LOAD_FAILED = "load_failed"


class Trend(str, Enum):
    UP = "up"
    DOWN = "down"
    NEUTRAL = "neutral"

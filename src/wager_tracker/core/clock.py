"""Clock abstraction for "now" and calendar-day boundaries.

WallClock: real wall-clock time in the configured timezone
SimClock: settable time for tests and replays

Same-day rules and the "start of today" balance cutoff are computed in
the clock's timezone, never from a bare datetime.now().
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone, tzinfo
from typing import Protocol


class IClock(Protocol):
    """Clock interface used by all time-dependent code."""

    tz: tzinfo

    def now(self) -> datetime:
        """Current time as a timezone-aware datetime."""
        ...


class WallClock:
    """Real wall-clock time."""

    def __init__(self, tz: tzinfo | None = None) -> None:
        self.tz = tz or timezone.utc

    def now(self) -> datetime:
        return datetime.now(self.tz)


class SimClock:
    """Simulated clock. Time advances only when explicitly set."""

    def __init__(self, start: datetime | None = None, tz: tzinfo | None = None) -> None:
        self.tz = tz or timezone.utc
        self._time = start or datetime(2024, 1, 1, 12, tzinfo=self.tz)
        if self._time.tzinfo is None:
            self._time = self._time.replace(tzinfo=self.tz)

    def now(self) -> datetime:
        return self._time

    def set_time(self, t: datetime) -> None:
        if t.tzinfo is None:
            t = t.replace(tzinfo=self.tz)
        self._time = t

    def advance(self, **kwargs: float) -> None:
        """Advance time, e.g. ``clock.advance(days=1)``."""
        self._time = self._time + timedelta(**kwargs)


def ensure_aware(ts: datetime) -> datetime:
    """Interpret naive datetimes as UTC."""
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts


def local_date(ts: datetime, tz: tzinfo | None = None):
    """Calendar date of *ts* in *tz* (or in its own offset when tz is None)."""
    ts = ensure_aware(ts)
    if tz is not None:
        ts = ts.astimezone(tz)
    return ts.date()


def start_of_day(now: datetime, tz: tzinfo | None = None) -> datetime:
    """Local midnight of the day containing *now*."""
    now = ensure_aware(now)
    if tz is not None:
        now = now.astimezone(tz)
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


def is_same_day(ts: datetime, now: datetime, tz: tzinfo | None = None) -> bool:
    """True when *ts* falls on the same local calendar day as *now*."""
    zone = tz or ensure_aware(now).tzinfo
    return local_date(ts, zone) == local_date(now, zone)

"""Shared fixtures for the wager-tracker test suite."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from wager_tracker.core.clock import SimClock
from wager_tracker.core.config import Settings
from wager_tracker.core.enums import MovementKind, WagerSide
from wager_tracker.core.models import CandidateMatch, CashMovement, Wager
from wager_tracker.ledger.settlement import settle
from wager_tracker.storage.local_store import LocalStore
from wager_tracker.storage.repository import WagerRepository


# ---------------------------------------------------------------------------
# Time
# ---------------------------------------------------------------------------

@pytest.fixture
def base_time() -> datetime:
    return datetime(2024, 3, 10, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock(base_time) -> SimClock:
    return SimClock(base_time)


# ---------------------------------------------------------------------------
# Record factories
# ---------------------------------------------------------------------------

@pytest.fixture
def make_wager(base_time):
    """Factory for wagers; pass ``observed`` to get a settled one."""

    def _make(
        *,
        side: WagerSide = WagerSide.UNDER,
        line: float = 10.0,
        odd: str = "1.90",
        stake: str = "100",
        observed: float | None = None,
        placed_at: datetime | None = None,
        referee: str = "Ref A",
        prediction: float | None = 8.0,
        edge: float = 5.0,
        wager_id: str | None = None,
    ) -> Wager:
        wager = Wager.open(
            stake=Decimal(stake),
            placed_at=placed_at or base_time,
            wager_id=wager_id,
            side=side,
            bookie_line=line,
            odd=Decimal(odd),
            model_prediction=prediction,
            edge=edge,
            referee=referee,
            home_team="Home FC",
            away_team="Away FC",
        )
        if observed is not None:
            wager = settle(wager, observed)
        return wager

    return _make


@pytest.fixture
def make_movement(base_time):
    def _make(
        amount: str,
        kind: MovementKind = MovementKind.DEPOSIT,
        created_at: datetime | None = None,
    ) -> CashMovement:
        return CashMovement(
            kind=kind,
            amount=Decimal(amount),
            created_at=created_at or base_time,
        )

    return _make


@pytest.fixture
def make_candidate():
    def _make(
        side: WagerSide = WagerSide.UNDER,
        line: float = 10.0,
        prediction: float = 8.0,
        odd: str = "1.9",
        referee: str = "Ref A",
    ) -> CandidateMatch:
        return CandidateMatch(
            home_team="Home FC",
            away_team="Away FC",
            referee=referee,
            side=side,
            bookie_line=line,
            model_prediction=prediction,
            odd=Decimal(odd),
            edge=5.0,
        )

    return _make


# ---------------------------------------------------------------------------
# Storage / settings
# ---------------------------------------------------------------------------

@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(storage={"data_dir": str(tmp_path)})


@pytest.fixture
def local_store(tmp_path) -> LocalStore:
    return LocalStore(tmp_path)


@pytest.fixture
def repository(local_store) -> WagerRepository:
    return WagerRepository(local_store)

"""Application-state container for one tracker session.

Owns the in-memory wager and cash-movement collections, gates saves on
a completed initial load, and is the single entry point for every
mutation. Statistics are recomputed from the full collections on
demand; nothing is cached between changes.

State machine::

    LOADING --load ok--> READY
    LOADING --load error--> LOAD_FAILED --load ok--> READY

Saves only happen in READY. Until then mutations stay in memory and a
warning is logged, so an empty or partial collection can never
overwrite previously persisted data.

Usage::

    session = TrackerSession(repository, settings=settings)
    await session.load()
    await session.deposit("1000")
    await session.place_wagers(parse_free_text(text), stake="100")
    snapshot = session.dashboard()
"""

from __future__ import annotations

import asyncio
import logging
import math
from collections.abc import Sequence
from datetime import datetime, timedelta
from decimal import Decimal, InvalidOperation

from wager_tracker.analytics.dashboard import DashboardSnapshot, build_dashboard
from wager_tracker.analytics.performance import filter_wagers
from wager_tracker.core.clock import IClock, WallClock, is_same_day
from wager_tracker.core.config import Settings
from wager_tracker.core.enums import MovementKind, SessionState
from wager_tracker.core.errors import (
    InsufficientFundsError,
    InvalidInputError,
    SessionNotReadyError,
    StoreLoadError,
    TemporalPolicyError,
    WagerNotFoundError,
)
from wager_tracker.core.ids import new_id
from wager_tracker.core.models import ONE, ZERO, CandidateMatch, CashMovement, Wager, to_decimal
from wager_tracker.ledger.bankroll import BalanceSnapshot, bankroll_snapshot
from wager_tracker.ledger.settlement import reprice, reset_to_open, settle
from wager_tracker.storage.repository import SaveReport, WagerRepository

logger = logging.getLogger(__name__)


def _positive_amount(value: Decimal | float | str, what: str) -> Decimal:
    try:
        amount = to_decimal(value)
    except (InvalidOperation, ValueError) as exc:
        raise InvalidInputError(f"Invalid {what}: {value!r}") from exc
    if not amount.is_finite() or amount <= ZERO:
        raise InvalidInputError(f"Invalid {what}: {value!r} (must be greater than zero)")
    return amount


class TrackerSession:
    """In-memory collections plus load-gated persistence.

    Args:
        repository: Persistence collaborator.
        settings: Application settings (timezone, stats config).
        clock: Time source; defaults to a wall clock in the settings timezone.
    """

    def __init__(
        self,
        repository: WagerRepository,
        *,
        settings: Settings | None = None,
        clock: IClock | None = None,
    ) -> None:
        self._repo = repository
        self._settings = settings or Settings()
        self._clock = clock or WallClock(self._settings.tz)
        self._wagers: list[Wager] = []
        self._movements: list[CashMovement] = []
        self.state = SessionState.LOADING
        self.notices: list[str] = []

    # ------------------------------------------------------------------ #
    # Lifecycle                                                            #
    # ------------------------------------------------------------------ #

    @property
    def ready(self) -> bool:
        return self.state == SessionState.READY

    async def load(self) -> None:
        """Load both collections; on failure stay unsaveable and re-raise."""
        try:
            wagers, movements = await asyncio.gather(
                self._repo.load_wagers(), self._repo.load_cash_movements()
            )
        except StoreLoadError:
            self.state = SessionState.LOAD_FAILED
            logger.error(
                "Initial load failed; saving is blocked to avoid overwriting stored data",
                exc_info=True,
            )
            raise
        self._wagers = list(wagers)
        self._movements = list(movements)
        self.state = SessionState.READY
        logger.info(
            "Session ready: %d wagers, %d cash movements",
            len(self._wagers), len(self._movements),
        )

    def require_ready(self) -> None:
        if not self.ready:
            raise SessionNotReadyError(f"Session is {self.state.value}, not ready")

    async def _save_wagers(self) -> SaveReport | None:
        if not self.ready:
            logger.warning("Wager save suppressed: session is %s", self.state.value)
            return None
        return self._record(await self._repo.save_wagers(self._wagers))

    async def _save_movements(self) -> SaveReport | None:
        if not self.ready:
            logger.warning("Cash movement save suppressed: session is %s", self.state.value)
            return None
        return self._record(await self._repo.save_cash_movements(self._movements))

    def _record(self, report: SaveReport) -> SaveReport:
        if report.notice:
            self.notices.append(report.notice)
        return report

    # ------------------------------------------------------------------ #
    # Queries                                                              #
    # ------------------------------------------------------------------ #

    @property
    def wagers(self) -> tuple[Wager, ...]:
        return tuple(self._wagers)

    @property
    def movements(self) -> tuple[CashMovement, ...]:
        return tuple(self._movements)

    @property
    def open_wagers(self) -> list[Wager]:
        return [w for w in self._wagers if not w.is_settled]

    @property
    def settled_wagers(self) -> list[Wager]:
        return sorted(
            (w for w in self._wagers if w.is_settled),
            key=lambda w: w.placed_at,
            reverse=True,
        )

    def get(self, wager_id: str) -> Wager:
        for w in self._wagers:
            if w.wager_id == wager_id:
                return w
        raise WagerNotFoundError(f"No wager with id {wager_id!r}")

    def balance(self) -> BalanceSnapshot:
        return bankroll_snapshot(
            self._movements,
            self._wagers,
            self._clock.now(),
            tz=self._clock.tz,
            skew=timedelta(seconds=self._settings.stats.balance_skew_seconds),
        )

    def dashboard(
        self,
        *,
        start: datetime | None = None,
        end: datetime | None = None,
        min_edge: float | None = None,
        min_stake: Decimal | None = None,
    ) -> DashboardSnapshot:
        """Every computed view, with performance limited to the given slice."""
        view = filter_wagers(
            self._wagers, start=start, end=end, min_edge=min_edge, min_stake=min_stake
        )
        return build_dashboard(
            self._movements,
            self._wagers,
            now=self._clock.now(),
            tz=self._clock.tz,
            stats=self._settings.stats,
            wagers=view,
        )

    # ------------------------------------------------------------------ #
    # Cash movements                                                       #
    # ------------------------------------------------------------------ #

    async def _add_movement(self, kind: MovementKind, amount, description: str) -> CashMovement:
        movement = CashMovement(
            movement_id=new_id("tx"),
            created_at=self._clock.now(),
            kind=kind,
            amount=_positive_amount(amount, "amount"),
            description=description,
        )
        self._movements.append(movement)
        logger.info("Recorded %s of %s", kind.value.lower(), movement.amount)
        await self._save_movements()
        return movement

    async def deposit(self, amount, description: str = "Manual deposit") -> CashMovement:
        return await self._add_movement(MovementKind.DEPOSIT, amount, description)

    async def withdraw(self, amount, description: str = "Withdrawal") -> CashMovement:
        return await self._add_movement(MovementKind.WITHDRAWAL, amount, description)

    async def reverse_movement(self, movement_id: str) -> CashMovement:
        """Cancel a movement by appending its opposite; history is never edited."""
        original = next(
            (m for m in self._movements if m.movement_id == movement_id), None
        )
        if original is None:
            raise InvalidInputError(f"No cash movement with id {movement_id!r}")
        if any(m.reverses == movement_id for m in self._movements):
            raise InvalidInputError(f"Cash movement {movement_id} is already reversed")
        if original.reverses is not None:
            raise InvalidInputError(f"Cash movement {movement_id} is itself a reversal")

        kind = (
            MovementKind.WITHDRAWAL
            if original.kind == MovementKind.DEPOSIT
            else MovementKind.DEPOSIT
        )
        reversal = CashMovement(
            movement_id=new_id("tx"),
            created_at=self._clock.now(),
            kind=kind,
            amount=original.amount,
            description=f"Reversal of {movement_id}",
            reverses=movement_id,
        )
        self._movements.append(reversal)
        logger.info("Reversed cash movement %s", movement_id)
        await self._save_movements()
        return reversal

    # ------------------------------------------------------------------ #
    # Wagers                                                               #
    # ------------------------------------------------------------------ #

    async def place_wagers(
        self, candidates: Sequence[CandidateMatch], stake
    ) -> list[Wager]:
        """Stake the same amount on each candidate.

        Raises:
            InvalidInputError: no candidates or a non-positive stake.
            InsufficientFundsError: total stake exceeds the current balance.
        """
        if not candidates:
            raise InvalidInputError("No matches selected")
        stake_d = _positive_amount(stake, "stake")
        total = stake_d * len(candidates)
        available = self.balance().balance
        if total > available:
            raise InsufficientFundsError(total, available)

        now = self._clock.now()
        placed = [
            c.promote(stake_d, placed_at=now, wager_id=new_id("wager"))
            for c in candidates
        ]
        self._wagers.extend(placed)
        logger.info("Placed %d wagers, total stake %s", len(placed), total)
        await self._save_wagers()
        return placed

    def _replace(self, updated: Wager) -> None:
        for i, w in enumerate(self._wagers):
            if w.wager_id == updated.wager_id:
                self._wagers[i] = updated
                return
        raise WagerNotFoundError(f"No wager with id {updated.wager_id!r}")

    def _require_same_day(self, wager: Wager, action: str) -> None:
        if not is_same_day(wager.placed_at, self._clock.now(), self._clock.tz):
            raise TemporalPolicyError(
                f"Cannot {action} wager {wager.wager_id}: only wagers placed today can be changed"
            )

    async def settle_wager(self, wager_id: str, observed) -> Wager:
        try:
            observed_f = float(observed)
        except (TypeError, ValueError) as exc:
            raise InvalidInputError(f"Invalid observed outcome: {observed!r}") from exc
        if not math.isfinite(observed_f):
            raise InvalidInputError(f"Invalid observed outcome: {observed!r} (must be finite)")
        updated = settle(self.get(wager_id), observed_f)
        self._replace(updated)
        await self._save_wagers()
        return updated

    async def reset_wager(self, wager_id: str) -> Wager:
        wager = self.get(wager_id)
        self._require_same_day(wager, "reset")
        updated = reset_to_open(wager)
        self._replace(updated)
        logger.info("Reset wager %s to OPEN", wager_id)
        await self._save_wagers()
        return updated

    async def reprice_wager(self, wager_id: str, new_odd) -> Wager:
        """Correct a wager's odd. Odds below 1.0 are ignored."""
        try:
            odd = to_decimal(new_odd)
        except (InvalidOperation, ValueError) as exc:
            raise InvalidInputError(f"Invalid odd: {new_odd!r}") from exc
        if not odd.is_finite():
            raise InvalidInputError(f"Invalid odd: {new_odd!r}")

        wager = self.get(wager_id)
        self._require_same_day(wager, "edit")
        if odd < ONE:
            return wager
        updated = reprice(wager, odd)
        self._replace(updated)
        await self._save_wagers()
        return updated

    async def delete_wager(self, wager_id: str) -> Wager:
        """Remove a wager placed today; its stake returns to the balance."""
        wager = self.get(wager_id)
        self._require_same_day(wager, "delete")
        self._wagers = [w for w in self._wagers if w.wager_id != wager_id]
        logger.info("Deleted wager %s", wager_id)
        await self._save_wagers()
        return wager

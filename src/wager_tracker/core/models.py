"""Core record models: Wager, CashMovement and CandidateMatch.

These are the canonical shapes for every component. Importers
normalise whatever they read into these models at the boundary so the
statistics engine never probes alternative field names.

Money (stake, odd, profit, amount) is ``Decimal``; measured quantities
(model prediction, bookmaker line, observed outcome, edge) are ``float``.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .clock import ensure_aware
from .enums import MovementKind, WagerSide, WagerStatus
from .ids import new_id, utc_now

ONE = Decimal("1")
ZERO = Decimal("0")


def to_decimal(value: float | int | str | Decimal) -> Decimal:
    """Convert via ``str`` so 1.9 stays 1.9 rather than its binary expansion."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def profit_for(status: WagerStatus, stake: Decimal, odd: Decimal) -> Decimal:
    """Realised profit for a status. OPEN counts the stake as at risk."""
    if status == WagerStatus.WON:
        return stake * (odd - ONE)
    if status == WagerStatus.VOID:
        return ZERO
    return -stake


# ---------------------------------------------------------------------------
# Market context
# ---------------------------------------------------------------------------

class MarketContext(BaseModel):
    """Fields shared by a candidate match and the wager placed on it."""

    league: str = "Unknown"
    home_team: str = "Unknown"
    away_team: str = "Unknown"
    referee: str = ""  # Officiating-context label used for segmentation
    side: WagerSide
    model_prediction: float | None = None
    bookie_line: float
    odd: Decimal = Field(ge=ONE)
    edge: float = 0.0  # Model-vs-market edge, percent
    fixture_id: str | None = None

    @property
    def fixture(self) -> str:
        return f"{self.home_team} x {self.away_team}"


# ---------------------------------------------------------------------------
# Candidate match (transient, pre-wager)
# ---------------------------------------------------------------------------

class CandidateMatch(MarketContext):
    """A parsed projection waiting for the user to commit a stake."""

    match_id: str = Field(default_factory=lambda: new_id("match"))
    listed_at: datetime = Field(default_factory=utc_now)

    @field_validator("listed_at")
    @classmethod
    def _aware(cls, v: datetime) -> datetime:
        return ensure_aware(v)

    def promote(
        self,
        stake: Decimal,
        *,
        placed_at: datetime | None = None,
        wager_id: str | None = None,
    ) -> Wager:
        """Turn this candidate into an OPEN wager."""
        context = self.model_dump(exclude={"match_id", "listed_at"})
        return Wager.open(
            stake=stake,
            placed_at=placed_at,
            wager_id=wager_id,
            **context,
        )


# ---------------------------------------------------------------------------
# Wager
# ---------------------------------------------------------------------------

class Wager(MarketContext):
    """One placed bet.

    While OPEN the stake is at risk, so ``profit == -stake``. A stored
    profit that contradicts ``status`` and ``odd`` fails validation;
    settlement functions in :mod:`wager_tracker.ledger.settlement` keep
    the two in step.
    """

    wager_id: str = Field(default_factory=lambda: new_id("wager"))
    placed_at: datetime = Field(default_factory=utc_now)
    stake: Decimal = Field(gt=ZERO)
    status: WagerStatus = WagerStatus.OPEN
    observed_outcome: float | None = None
    profit: Decimal = ZERO  # Derived from status, stake and odd when omitted

    @field_validator("placed_at")
    @classmethod
    def _aware(cls, v: datetime) -> datetime:
        return ensure_aware(v)

    @model_validator(mode="after")
    def profit_matches_status(self) -> Wager:
        """Derive profit when omitted; reject one that contradicts status and odd."""
        expected = profit_for(self.status, self.stake, self.odd)
        if "profit" not in self.model_fields_set:
            self.profit = expected
        elif self.profit != expected:
            raise ValueError(
                f"profit {self.profit} does not match {self.status.value} "
                f"at stake {self.stake} and odd {self.odd} (expected {expected})"
            )
        return self

    @classmethod
    def open(
        cls,
        *,
        stake: Decimal | float | str,
        placed_at: datetime | None = None,
        wager_id: str | None = None,
        **context,
    ) -> Wager:
        """Create an OPEN wager with the at-risk profit invariant applied."""
        stake_d = to_decimal(stake)
        fields = dict(context)
        fields["stake"] = stake_d
        fields["status"] = WagerStatus.OPEN
        fields["profit"] = -stake_d
        if placed_at is not None:
            fields["placed_at"] = placed_at
        if wager_id is not None:
            fields["wager_id"] = wager_id
        return cls(**fields)

    @property
    def is_settled(self) -> bool:
        return self.status.is_settled

    @property
    def payout(self) -> Decimal:
        """Gross amount credited back to the bankroll."""
        if self.status == WagerStatus.WON:
            return self.stake * self.odd
        if self.status == WagerStatus.VOID:
            return self.stake
        return ZERO


# ---------------------------------------------------------------------------
# Cash movement
# ---------------------------------------------------------------------------

class CashMovement(BaseModel):
    """Deposit or withdrawal. Append-only: corrections are reversing entries."""

    model_config = ConfigDict(frozen=True)

    movement_id: str = Field(default_factory=lambda: new_id("tx"))
    created_at: datetime = Field(default_factory=utc_now)
    kind: MovementKind
    amount: Decimal = Field(gt=ZERO)
    description: str = ""
    reverses: str | None = None  # movement_id this entry cancels out

    @field_validator("created_at")
    @classmethod
    def _aware(cls, v: datetime) -> datetime:
        return ensure_aware(v)

    @property
    def signed_amount(self) -> Decimal:
        if self.kind == MovementKind.DEPOSIT:
            return self.amount
        return -self.amount

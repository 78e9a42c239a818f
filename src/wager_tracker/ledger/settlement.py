"""Settlement engine.

Turns an OPEN wager plus an observed outcome into a terminal status and
realised profit. Functions return updated copies; the caller swaps the
copy into its collection.
"""

from __future__ import annotations

import logging
import math
from decimal import Decimal, InvalidOperation

from wager_tracker.core.enums import WagerSide, WagerStatus
from wager_tracker.core.errors import InvalidInputError, WagerStateError
from wager_tracker.core.models import ONE, Wager, profit_for, to_decimal

logger = logging.getLogger(__name__)


def resolve_status(side: WagerSide, bookie_line: float, observed: float) -> WagerStatus:
    """Terminal status for a side given the line and the observed value.

    UNDER wins below the line, OVER wins above it; landing exactly on
    the line is a push.
    """
    if observed == bookie_line:
        return WagerStatus.VOID
    if side == WagerSide.UNDER:
        return WagerStatus.WON if observed < bookie_line else WagerStatus.LOST
    return WagerStatus.WON if observed > bookie_line else WagerStatus.LOST


def settle(wager: Wager, observed: float) -> Wager:
    """Settle an OPEN wager against the observed outcome."""
    if wager.status != WagerStatus.OPEN:
        raise WagerStateError(
            f"Wager {wager.wager_id} is already {wager.status.value}; reset it first"
        )
    observed = float(observed)
    if not math.isfinite(observed):
        raise InvalidInputError(
            f"Observed outcome for {wager.wager_id} must be a finite number, got {observed}"
        )

    status = resolve_status(wager.side, wager.bookie_line, observed)
    profit = profit_for(status, wager.stake, wager.odd)
    logger.info(
        "Settled wager %s: side=%s line=%s observed=%s -> %s profit=%s",
        wager.wager_id, wager.side.value, wager.bookie_line, observed,
        status.value, profit,
    )
    return wager.model_copy(
        update={"status": status, "observed_outcome": observed, "profit": profit}
    )


def reset_to_open(wager: Wager) -> Wager:
    """Undo a settlement: clear the outcome and put the stake back at risk."""
    return wager.model_copy(
        update={
            "status": WagerStatus.OPEN,
            "observed_outcome": None,
            "profit": -wager.stake,
        }
    )


def reprice(wager: Wager, new_odd: Decimal | float | str) -> Wager:
    """Correct the odd and recompute profit under the current status.

    Odds below 1.0 (or unparseable) are ignored and the wager is
    returned unchanged.
    """
    try:
        odd = to_decimal(new_odd)
    except (InvalidOperation, ValueError):
        return wager
    if not odd.is_finite() or odd < ONE:
        logger.debug("Ignoring reprice of %s to %s", wager.wager_id, new_odd)
        return wager
    return wager.model_copy(
        update={"odd": odd, "profit": profit_for(wager.status, wager.stake, odd)}
    )

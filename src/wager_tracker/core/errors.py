"""Custom exception hierarchy for the wager tracker."""


class TrackerError(Exception):
    """Base exception for all tracker errors."""


# --- Configuration ---
class ConfigError(TrackerError):
    """Invalid or missing configuration."""


# --- Input validation ---
class InvalidInputError(TrackerError):
    """A value supplied at the boundary was rejected (odd, stake, amount)."""


class InvalidImportError(InvalidInputError):
    """Import text produced no usable candidate matches."""


# --- Wager lifecycle ---
class WagerError(TrackerError):
    """Wager lifecycle error."""


class WagerNotFoundError(WagerError):
    """No wager with the requested id."""


class WagerStateError(WagerError):
    """Operation not allowed in the wager's current status."""


class InsufficientFundsError(WagerError):
    """Total stake exceeds the current bankroll balance."""

    def __init__(self, required, available):
        self.required = required
        self.available = available
        super().__init__(
            f"Insufficient funds: stake total {required} exceeds balance {available}"
        )


class TemporalPolicyError(WagerError):
    """Edit or delete attempted on a wager placed before the current day."""


# --- Persistence ---
class PersistenceError(TrackerError):
    """Storage layer error."""


class StoreLoadError(PersistenceError):
    """Initial load failed; saving is unsafe until a load succeeds."""


class RemoteMirrorError(PersistenceError):
    """Remote mirror unreachable, misconfigured, or rejected the request."""


class SessionNotReadyError(PersistenceError):
    """The session has not completed its initial load."""

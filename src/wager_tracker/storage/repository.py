"""Repository for the two persisted collections.

The local store is the durable source of truth. When a remote mirror is
configured it is read first on load (falling back to the local copy if
the row does not exist yet) and written after every local save on a
best-effort basis: a failed mirror write is logged and reported, never
rolled back.

A mirror that cannot be reached during load is a load failure. The
session must not save over data it never saw.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, TypeAdapter, ValidationError

from wager_tracker.core.config import RemoteConfig, Settings
from wager_tracker.core.errors import RemoteMirrorError, StoreLoadError
from wager_tracker.core.models import CashMovement, Wager

from .local_store import LocalStore
from .remote_mirror import RemoteMirror

logger = logging.getLogger(__name__)

WAGERS_KEY = "bets"
MOVEMENTS_KEY = "transactions"
SYNC_CONFIG_KEY = "sync_config"

# Row ids in the mirror table
WAGERS_RECORD = "bets_data"
MOVEMENTS_RECORD = "transactions_data"

_WAGER_LIST = TypeAdapter(list[Wager])
_MOVEMENT_LIST = TypeAdapter(list[CashMovement])


class SyncConfig(BaseModel):
    """Mirror credentials saved from the CLI, overriding settings."""

    url: str
    key: str


@dataclass(frozen=True)
class SaveReport:
    """Outcome of one save. ``notice`` carries a non-fatal mirror failure."""

    local_ok: bool = True
    mirrored: bool = False
    notice: str | None = None


class WagerRepository:
    """Load/save wagers and cash movements.

    Args:
        local: Local blob store.
        mirror: Optional remote mirror.
    """

    def __init__(self, local: LocalStore, mirror: RemoteMirror | None = None) -> None:
        self._local = local
        self._mirror = mirror

    @property
    def local(self) -> LocalStore:
        return self._local

    @property
    def mirrored(self) -> bool:
        return self._mirror is not None

    # -- load ----------------------------------------------------------------

    async def _load_raw(self, key: str, record_id: str) -> Any:
        if self._mirror is not None:
            try:
                content = await self._mirror.fetch(record_id)
            except RemoteMirrorError as exc:
                raise StoreLoadError(f"Remote load of {record_id} failed: {exc}") from exc
            if content is not None:
                return content
            logger.info("Mirror has no %s yet, using local copy", record_id)
        return self._local.get(key) or []

    async def load_wagers(self) -> list[Wager]:
        raw = await self._load_raw(WAGERS_KEY, WAGERS_RECORD)
        try:
            return _WAGER_LIST.validate_python(raw)
        except ValidationError as exc:
            raise StoreLoadError(f"Stored wagers are invalid: {exc}") from exc

    async def load_cash_movements(self) -> list[CashMovement]:
        raw = await self._load_raw(MOVEMENTS_KEY, MOVEMENTS_RECORD)
        try:
            return _MOVEMENT_LIST.validate_python(raw)
        except ValidationError as exc:
            raise StoreLoadError(f"Stored cash movements are invalid: {exc}") from exc

    # -- save ----------------------------------------------------------------

    async def _save_raw(self, key: str, record_id: str, payload: list[Any]) -> SaveReport:
        self._local.put(key, payload)
        if self._mirror is None:
            return SaveReport()
        try:
            await self._mirror.upsert(record_id, payload)
        except RemoteMirrorError as exc:
            logger.warning("Mirror write failed, local copy kept: %s", exc)
            return SaveReport(notice=str(exc))
        return SaveReport(mirrored=True)

    async def save_wagers(self, wagers: list[Wager]) -> SaveReport:
        payload = _WAGER_LIST.dump_python(wagers, mode="json")
        return await self._save_raw(WAGERS_KEY, WAGERS_RECORD, payload)

    async def save_cash_movements(self, movements: list[CashMovement]) -> SaveReport:
        payload = _MOVEMENT_LIST.dump_python(movements, mode="json")
        return await self._save_raw(MOVEMENTS_KEY, MOVEMENTS_RECORD, payload)


# ---------------------------------------------------------------------------
# Sync config
# ---------------------------------------------------------------------------

def load_sync_config(local: LocalStore) -> SyncConfig | None:
    raw = local.get(SYNC_CONFIG_KEY)
    if not raw:
        return None
    try:
        return SyncConfig.model_validate(raw)
    except ValidationError:
        logger.warning("Ignoring malformed sync config in %s", local.data_dir)
        return None


def save_sync_config(local: LocalStore, config: SyncConfig | None) -> None:
    """Store mirror credentials, or clear them when *config* is None."""
    if config is None:
        local.delete(SYNC_CONFIG_KEY)
    else:
        local.put(SYNC_CONFIG_KEY, config.model_dump())


def build_repository(settings: Settings) -> WagerRepository:
    """Repository for *settings*; stored sync config wins over settings."""
    local = LocalStore(settings.data_path)
    remote: RemoteConfig = settings.remote
    stored = load_sync_config(local)
    if stored is not None:
        remote = remote.model_copy(update={"url": stored.url, "key": stored.key})

    mirror = None
    if remote.enabled:
        mirror = RemoteMirror(
            remote.url,
            remote.key,
            table=remote.table,
            timeout_seconds=remote.timeout_seconds,
        )
    return WagerRepository(local, mirror)

"""Tests for the wager repository and its optional mirror."""

from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from wager_tracker.core.config import Settings
from wager_tracker.core.enums import WagerStatus
from wager_tracker.core.errors import RemoteMirrorError, StoreLoadError
from wager_tracker.storage.local_store import LocalStore
from wager_tracker.storage.remote_mirror import RemoteMirror
from wager_tracker.storage.repository import (
    MOVEMENTS_KEY,
    WAGERS_KEY,
    WAGERS_RECORD,
    SyncConfig,
    WagerRepository,
    build_repository,
    load_sync_config,
    save_sync_config,
)


@pytest.fixture
def mirror():
    m = AsyncMock(spec=RemoteMirror)
    m.fetch.return_value = None
    return m


class TestLocalOnly:
    @pytest.mark.asyncio
    async def test_empty_store_loads_empty(self, repository):
        assert await repository.load_wagers() == []
        assert await repository.load_cash_movements() == []

    @pytest.mark.asyncio
    async def test_save_and_reload(self, repository, make_wager, make_movement):
        wagers = [make_wager(observed=9), make_wager()]
        movements = [make_movement("1000")]
        report = await repository.save_wagers(wagers)
        await repository.save_cash_movements(movements)

        assert report.local_ok and not report.mirrored and report.notice is None
        loaded = await repository.load_wagers()
        assert [w.wager_id for w in loaded] == [w.wager_id for w in wagers]
        assert loaded[0].status == WagerStatus.WON
        assert loaded[0].profit == Decimal("90")
        assert (await repository.load_cash_movements())[0].amount == Decimal("1000")

    @pytest.mark.asyncio
    async def test_invalid_records_fail_load(self, local_store):
        local_store.put(WAGERS_KEY, [{"stake": "-5"}])
        with pytest.raises(StoreLoadError):
            await WagerRepository(local_store).load_wagers()

    @pytest.mark.asyncio
    async def test_profit_contradicting_status_fails_load(self, local_store, make_wager):
        record = make_wager().model_dump(mode="json")
        record["profit"] = "0"
        local_store.put(WAGERS_KEY, [record])
        with pytest.raises(StoreLoadError):
            await WagerRepository(local_store).load_wagers()

    @pytest.mark.asyncio
    async def test_corrupt_file_fails_load(self, local_store, tmp_path):
        (tmp_path / f"{MOVEMENTS_KEY}.json").write_text("[[[")
        with pytest.raises(StoreLoadError):
            await WagerRepository(local_store).load_cash_movements()


class TestWithMirror:
    @pytest.mark.asyncio
    async def test_mirror_content_wins(self, local_store, mirror, make_wager):
        remote = make_wager(wager_id="remote").model_dump(mode="json")
        local_store.put(WAGERS_KEY, [make_wager(wager_id="local").model_dump(mode="json")])
        mirror.fetch.return_value = [remote]

        loaded = await WagerRepository(local_store, mirror).load_wagers()
        assert [w.wager_id for w in loaded] == ["remote"]
        mirror.fetch.assert_awaited_once_with(WAGERS_RECORD)

    @pytest.mark.asyncio
    async def test_absent_row_falls_back_to_local(self, local_store, mirror, make_wager):
        local_store.put(WAGERS_KEY, [make_wager(wager_id="local").model_dump(mode="json")])
        loaded = await WagerRepository(local_store, mirror).load_wagers()
        assert [w.wager_id for w in loaded] == ["local"]

    @pytest.mark.asyncio
    async def test_unreachable_mirror_fails_load(self, local_store, mirror):
        mirror.fetch.side_effect = RemoteMirrorError("connection refused")
        with pytest.raises(StoreLoadError, match="connection refused"):
            await WagerRepository(local_store, mirror).load_wagers()

    @pytest.mark.asyncio
    async def test_save_mirrors_after_local(self, local_store, mirror, make_wager):
        report = await WagerRepository(local_store, mirror).save_wagers([make_wager()])
        assert report.mirrored
        assert len(local_store.get(WAGERS_KEY)) == 1
        record_id, content = mirror.upsert.await_args.args
        assert record_id == WAGERS_RECORD
        assert content == local_store.get(WAGERS_KEY)

    @pytest.mark.asyncio
    async def test_mirror_write_failure_keeps_local(self, local_store, mirror, make_wager):
        mirror.upsert.side_effect = RemoteMirrorError("status=500")
        report = await WagerRepository(local_store, mirror).save_wagers([make_wager()])
        assert report.local_ok
        assert not report.mirrored
        assert "status=500" in report.notice
        assert len(local_store.get(WAGERS_KEY)) == 1


class TestSyncConfig:
    def test_roundtrip_and_clear(self, local_store):
        assert load_sync_config(local_store) is None
        save_sync_config(local_store, SyncConfig(url="https://x.example", key="k"))
        assert load_sync_config(local_store) == SyncConfig(url="https://x.example", key="k")
        save_sync_config(local_store, None)
        assert load_sync_config(local_store) is None

    def test_malformed_is_ignored(self, local_store):
        local_store.put("sync_config", {"url": "only"})
        assert load_sync_config(local_store) is None

    def test_build_repository_local_only(self, settings):
        assert not build_repository(settings).mirrored

    def test_stored_config_enables_mirror(self, settings):
        save_sync_config(LocalStore(settings.data_path), SyncConfig(url="https://x.example", key="k"))
        assert build_repository(settings).mirrored

    def test_settings_enable_mirror(self, tmp_path):
        settings = Settings(
            storage={"data_dir": str(tmp_path)},
            remote={"url": "https://x.example", "key": "k"},
        )
        assert build_repository(settings).mirrored

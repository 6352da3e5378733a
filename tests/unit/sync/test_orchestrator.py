"""Unit tests for sync orchestration."""

from __future__ import annotations

from datetime import datetime, timezone

from core.errors import PreconditionNotMetError, StorageWriteError
from core.types import CatalogCollections, Snapshot, SyncState
from remote.live_catalog import LiveCatalog
from store.offline_storage import OfflineStorage
from sync.connectivity import ConnectivityMonitor
from sync.orchestrator import SyncOrchestrator
from sync.status_tracker import SyncStatusTracker

_FIXED_NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
_FIXED_STAMP = "2026-03-01T12:00:00.000+00:00"


def _build(
    storage: OfflineStorage,
    online: bool = True,
    live: LiveCatalog | None = None,
) -> tuple[SyncOrchestrator, SyncStatusTracker, ConnectivityMonitor, LiveCatalog]:
    tracker = SyncStatusTracker(storage)
    monitor = ConnectivityMonitor(initial=online)
    live = live or LiveCatalog()
    orchestrator = SyncOrchestrator(storage, tracker, monitor, live, clock=lambda: _FIXED_NOW)
    return orchestrator, tracker, monitor, live


def _loaded_live(fake_source) -> LiveCatalog:
    live = LiveCatalog()
    live.refresh(fake_source)
    return live


def test_sync_persists_denormalized_snapshot(storage, fake_source) -> None:
    """Sync should store every record with categories embedded."""
    orchestrator, tracker, _, _ = _build(storage, live=_loaded_live(fake_source))

    result = orchestrator.sync_to_offline()
    snapshot = orchestrator.load_offline_data()

    assert (
        result is True
        and snapshot is not None
        and len(snapshot.equipments) == 3
        and [item.category.name if item.category else None for item in snapshot.accessories]
        == ["Cases", None]
        and snapshot.last_sync == _FIXED_STAMP
        and tracker.get().last_sync == _FIXED_STAMP
    )


def test_sync_embeds_equipment_brand_and_type(storage, fake_source) -> None:
    """Equipments should carry their resolved brand and type."""
    orchestrator, _, _, _ = _build(storage, live=_loaded_live(fake_source))
    orchestrator.sync_to_offline()

    snapshot = orchestrator.load_offline_data()

    assert snapshot is not None and {
        (item.brand.name, item.equipment_type.name) for item in snapshot.equipments
    } == {("Samsung", "Battery")}


def test_load_without_saved_snapshot_returns_none(storage) -> None:
    """Nothing synced yet should load as None."""
    orchestrator, _, _, _ = _build(storage)

    assert orchestrator.load_offline_data() is None


def test_offline_hybrid_read_returns_saved_snapshot(storage, snapshot_factory) -> None:
    """Offline reads should serve the exact cached snapshot."""
    saved: Snapshot = snapshot_factory()
    storage.save_snapshot(saved)
    orchestrator, _, _, _ = _build(storage, online=False)

    hybrid = orchestrator.get_hybrid_data()

    assert (
        hybrid.collections == saved.collections
        and hybrid.is_offline is True
        and hybrid.has_offline_data is True
        and hybrid.last_sync == saved.last_sync
    )


def test_hybrid_read_prefers_live_data(storage, fake_source, snapshot_factory) -> None:
    """Online with loaded live data should ignore the cache."""
    storage.save_snapshot(snapshot_factory())
    orchestrator, _, _, live = _build(storage, live=_loaded_live(fake_source))

    hybrid = orchestrator.get_hybrid_data()

    assert hybrid.is_offline is False and hybrid.collections == live.snapshot()


def test_hybrid_read_without_any_data_reports_loading(storage) -> None:
    """No live and no cached data should report loading."""
    orchestrator, _, _, _ = _build(storage, online=False)

    hybrid = orchestrator.get_hybrid_data()

    assert (
        hybrid.is_loading is True
        and hybrid.has_offline_data is False
        and hybrid.collections == CatalogCollections()
    )


def test_sync_while_offline_is_skipped(storage, fake_source) -> None:
    """Missing connectivity should skip the sync and mark offline."""
    orchestrator, tracker, _, _ = _build(storage, online=False, live=_loaded_live(fake_source))

    result = orchestrator.sync_to_offline()

    assert result is False and tracker.get().state is SyncState.OFFLINE


def test_sync_before_live_load_is_skipped(storage) -> None:
    """Unloaded live collections should skip the sync without writing."""
    orchestrator, tracker, _, _ = _build(storage)

    result = orchestrator.sync_to_offline()

    assert (
        result is False
        and tracker.get().state is SyncState.OFFLINE
        and storage.load_snapshot() is None
    )


def test_failed_write_ends_in_error_not_syncing(storage, fake_source, monkeypatch) -> None:
    """A write failure should leave the tracker in error with a message."""
    orchestrator, tracker, _, _ = _build(storage, live=_loaded_live(fake_source))

    def _fail(snapshot: Snapshot) -> None:
        raise StorageWriteError("quota exceeded")

    monkeypatch.setattr(storage, "save_snapshot", _fail)

    result = orchestrator.sync_to_offline()

    assert (
        result is False
        and tracker.get().state is SyncState.ERROR
        and tracker.get().error == "quota exceeded"
    )


def test_sync_rejected_while_syncing(storage, fake_source) -> None:
    """A second sync should be rejected while one is running."""
    orchestrator, tracker, _, _ = _build(storage, live=_loaded_live(fake_source))
    tracker.set(SyncState.SYNCING)

    result = orchestrator.sync_to_offline()

    assert (
        result is False
        and tracker.get().state is SyncState.SYNCING
        and storage.load_snapshot() is None
    )


def test_failed_sync_keeps_previous_snapshot(
    storage, fake_source, snapshot_factory, monkeypatch
) -> None:
    """A failed sync must not replace or remove the last good snapshot."""
    previous = snapshot_factory()
    storage.save_snapshot(previous)
    orchestrator, _, _, _ = _build(storage, live=_loaded_live(fake_source))

    def _fail(snapshot: Snapshot) -> None:
        raise StorageWriteError("disk full")

    monkeypatch.setattr(storage, "save_snapshot", _fail)
    orchestrator.sync_to_offline()

    assert orchestrator.load_offline_data() == previous


def test_auto_sync_runs_when_live_data_loads(storage, fake_source) -> None:
    """Becoming fully loaded while online should trigger one sync."""
    orchestrator, tracker, _, live = _build(storage)
    orchestrator.start()

    live.refresh(fake_source)

    assert tracker.get().state is SyncState.SYNCED


def test_auto_sync_runs_on_reconnect(storage, fake_source) -> None:
    """Coming back online with loaded data should trigger the sync."""
    orchestrator, tracker, monitor, _ = _build(
        storage, online=False, live=_loaded_live(fake_source)
    )
    orchestrator.start()

    monitor.set_online(True)

    assert tracker.get().state is SyncState.SYNCED


def test_auto_sync_happens_at_most_once(storage, fake_source) -> None:
    """After one automatic attempt, later triggers should not sync again."""
    orchestrator, tracker, monitor, _ = _build(storage, live=_loaded_live(fake_source))
    orchestrator.start()
    orchestrator.clear_offline_data()

    monitor.set_online(False)
    monitor.set_online(True)

    assert tracker.get().state is SyncState.NEVER_SYNCED and storage.load_snapshot() is None


def test_auto_sync_does_not_retry_after_error(storage, fake_source, monkeypatch) -> None:
    """A failed automatic sync should not be retried automatically."""
    calls: list[Snapshot] = []

    def _fail(snapshot: Snapshot) -> None:
        calls.append(snapshot)
        raise StorageWriteError("disk full")

    monkeypatch.setattr(storage, "save_snapshot", _fail)
    orchestrator, tracker, monitor, _ = _build(storage, live=_loaded_live(fake_source))
    orchestrator.start()

    monitor.set_online(False)
    monitor.set_online(True)

    assert len(calls) == 1 and tracker.get().state is SyncState.ERROR


def test_auto_sync_skipped_when_already_synced(storage, fake_source, snapshot_factory) -> None:
    """A persisted synced status should suppress the automatic sync."""
    setup_tracker = SyncStatusTracker(storage)
    setup_tracker.set(SyncState.SYNCING)
    setup_tracker.set(SyncState.SYNCED, last_sync="2026-01-01T00:00:00.000+00:00")
    orchestrator, _, _, _ = _build(storage, live=_loaded_live(fake_source))

    result = orchestrator.maybe_auto_sync()

    assert result is False and storage.load_snapshot() is None


def test_close_releases_triggers(storage, fake_source) -> None:
    """Closing should stop reacting to live-data and connectivity events."""
    orchestrator, tracker, _, live = _build(storage)
    orchestrator.start()
    orchestrator.close()

    live.refresh(fake_source)

    assert tracker.get().state is SyncState.NEVER_SYNCED


def test_clear_resets_status_and_data(storage, fake_source) -> None:
    """Clearing should remove the snapshot and reset to never-synced."""
    orchestrator, tracker, _, _ = _build(storage, live=_loaded_live(fake_source))
    orchestrator.sync_to_offline()

    result = orchestrator.clear_offline_data()

    assert (
        result is True
        and orchestrator.load_offline_data() is None
        and tracker.get().state is SyncState.NEVER_SYNCED
        and tracker.get().last_sync is None
    )


def test_status_write_failure_at_sync_start_ends_in_error(
    storage, fake_source, monkeypatch
) -> None:
    """A failed syncing-status write should not raise or leave the state syncing."""
    orchestrator, tracker, _, _ = _build(storage, live=_loaded_live(fake_source))

    def _fail(status) -> None:
        raise StorageWriteError("disk full")

    monkeypatch.setattr(storage, "save_sync_status", _fail)

    result = orchestrator.sync_to_offline()

    assert (
        result is False
        and tracker.get().state is SyncState.ERROR
        and tracker.get().error == "disk full"
    )


def test_sync_recovers_after_status_write_failure(storage, fake_source, monkeypatch) -> None:
    """Once status writes work again, the next sync should succeed."""
    orchestrator, tracker, _, _ = _build(storage, live=_loaded_live(fake_source))

    def _fail(status) -> None:
        raise StorageWriteError("disk full")

    monkeypatch.setattr(storage, "save_sync_status", _fail)
    orchestrator.sync_to_offline()
    monkeypatch.undo()

    result = orchestrator.sync_to_offline()

    assert result is True and tracker.get().state is SyncState.SYNCED


def test_status_write_failure_on_synced_keeps_snapshot(storage, fake_source, monkeypatch) -> None:
    """A failed synced-status write should still report the saved snapshot."""
    orchestrator, tracker, _, _ = _build(storage, live=_loaded_live(fake_source))
    save_status = storage.save_sync_status

    def _fail_on_synced(status) -> None:
        if status.state is SyncState.SYNCED:
            raise StorageWriteError("disk full")
        save_status(status)

    monkeypatch.setattr(storage, "save_sync_status", _fail_on_synced)

    result = orchestrator.sync_to_offline()

    assert (
        result is True
        and tracker.get().state is SyncState.SYNCED
        and orchestrator.load_offline_data() is not None
    )


def test_skip_does_not_overwrite_concurrent_sync(storage, fake_source, monkeypatch) -> None:
    """A precondition skip racing with another sync should leave it syncing."""
    orchestrator, tracker, _, live = _build(storage, live=_loaded_live(fake_source))

    def _racing_snapshot():
        tracker.set(SyncState.SYNCING)
        raise PreconditionNotMetError("Live collections not loaded yet: brands.")

    monkeypatch.setattr(live, "snapshot", _racing_snapshot)

    result = orchestrator.sync_to_offline()

    assert result is False and tracker.get().state is SyncState.SYNCING

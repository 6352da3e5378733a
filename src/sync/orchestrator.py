"""Sync orchestration between live catalog data and the offline store.

The orchestrator builds denormalized snapshots from live data, commits
them through the storage adapter, and decides what the UI should show.
Public methods report failure through return values instead of raising.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable

from core.constants import SNAPSHOT_VERSION
from core.errors import CatalogCacheError, PreconditionNotMetError
from core.logging_config import get_logger
from core.types import CatalogCollections, HybridData, Snapshot, StorageInfo, SyncState
from remote.live_catalog import LiveCatalog
from store.offline_storage import OfflineStorage
from sync.connectivity import ConnectivityMonitor, Subscription
from sync.denormalize import embed_accessory_categories
from sync.status_tracker import SyncStatusTracker

_LOGGER = get_logger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SyncOrchestrator:
    """Coordinates syncing, cached reads, and the auto-sync policy."""

    def __init__(
        self,
        storage: OfflineStorage,
        tracker: SyncStatusTracker,
        monitor: ConnectivityMonitor,
        live: LiveCatalog,
        clock: Clock = utc_now,
    ) -> None:
        """Create an orchestrator over injected collaborators.

        Args:
            storage: Initialized storage adapter.
            tracker: Sync status tracker sharing the same storage.
            monitor: Connectivity monitor.
            live: Live catalog collections.
            clock: Source of the current UTC time.
        """
        self._storage = storage
        self._tracker = tracker
        self._monitor = monitor
        self._live = live
        self._clock = clock
        self._auto_sync_attempted = False
        self._subscriptions: list[Subscription] = []

    def start(self) -> None:
        """Register the live-loaded and reconnect auto-sync triggers."""
        if self._subscriptions:
            return
        self._subscriptions = [
            self._live.subscribe_loaded(self.maybe_auto_sync),
            self._monitor.subscribe(self._on_connectivity_change),
        ]
        self.maybe_auto_sync()

    def close(self) -> None:
        """Release every trigger registered by ``start``."""
        for subscription in self._subscriptions:
            subscription.unsubscribe()
        self._subscriptions = []

    def sync_to_offline(self) -> bool:
        """Snapshot the live collections into the offline store.

        Returns:
            ``True`` when a new snapshot was persisted.
        """
        if self._tracker.get().state is SyncState.SYNCING:
            _LOGGER.info("sync_rejected_already_running")
            return False
        try:
            collections = self._require_sync_preconditions()
        except PreconditionNotMetError as error:
            _LOGGER.info("sync_skipped", reason=str(error))
            if not self._mark_offline_unless_syncing():
                _LOGGER.info("sync_rejected_already_running")
            return False
        try:
            began = self._tracker.try_begin_sync()
        except CatalogCacheError as error:
            _LOGGER.error("sync_failed", error=str(error))
            self._set_state_quietly(SyncState.ERROR, error=str(error))
            return False
        if not began:
            _LOGGER.info("sync_rejected_already_running")
            return False
        try:
            snapshot = self._build_snapshot(collections)
            self._storage.save_snapshot(snapshot)
        except Exception as error:
            _LOGGER.error("sync_failed", error=str(error))
            self._set_state_quietly(SyncState.ERROR, error=str(error) or type(error).__name__)
            return False
        self._set_state_quietly(SyncState.SYNCED, last_sync=snapshot.last_sync)
        _LOGGER.info(
            "sync_completed",
            last_sync=snapshot.last_sync,
            equipments=len(snapshot.equipments),
            accessories=len(snapshot.accessories),
        )
        return True

    def load_offline_data(self) -> Snapshot | None:
        """Return the cached snapshot, or ``None`` when absent or unreadable."""
        try:
            return self._storage.load_snapshot()
        except CatalogCacheError as error:
            _LOGGER.error("offline_data_load_failed", error=str(error))
            return None

    def clear_offline_data(self) -> bool:
        """Delete all cached data and reset the status to never-synced.

        Returns:
            ``True`` when no cached snapshot remains afterwards.
        """
        try:
            self._storage.clear()
        except CatalogCacheError as error:
            _LOGGER.error("offline_data_clear_failed", error=str(error))
        if self.load_offline_data() is not None:
            return False
        return self._set_state_quietly(SyncState.NEVER_SYNCED)

    def get_hybrid_data(self) -> HybridData:
        """Return live data when available, else cached data, else nothing."""
        if self._monitor.current() and self._live.is_loaded():
            return HybridData(collections=self._live.snapshot(), is_offline=False)
        snapshot = self.load_offline_data()
        if snapshot is not None:
            return HybridData(
                collections=snapshot.collections,
                is_offline=True,
                last_sync=snapshot.last_sync,
                has_offline_data=True,
            )
        return HybridData(is_offline=False, is_loading=True)

    def maybe_auto_sync(self) -> bool:
        """Run the single automatic sync attempt when its conditions hold.

        The attempt happens at most once per orchestrator, only while the
        status is never-synced; failures are never retried automatically.

        Returns:
            Whether an automatic sync ran and succeeded.
        """
        if self._auto_sync_attempted:
            return False
        if not (self._live.is_loaded() and self._monitor.current()):
            return False
        if self._tracker.get().state is not SyncState.NEVER_SYNCED:
            return False
        self._auto_sync_attempted = True
        _LOGGER.info("auto_sync_triggered")
        return self.sync_to_offline()

    def storage_info(self) -> StorageInfo:
        return self._storage.get_storage_info()

    def _on_connectivity_change(self, online: bool) -> None:
        if online:
            self.maybe_auto_sync()

    def _require_sync_preconditions(self) -> CatalogCollections:
        if not self._monitor.current():
            raise PreconditionNotMetError("No network connectivity.")
        return self._live.snapshot()

    def _build_snapshot(self, collections: CatalogCollections) -> Snapshot:
        return Snapshot(
            equipments=collections.equipments,
            accessories=embed_accessory_categories(
                collections.accessories, collections.accessory_categories
            ),
            brands=collections.brands,
            equipment_types=collections.equipment_types,
            accessory_categories=collections.accessory_categories,
            last_sync=self._clock().isoformat(timespec="milliseconds"),
            version=SNAPSHOT_VERSION,
        )

    def _set_state_quietly(
        self,
        state: SyncState,
        last_sync: str | None = None,
        error: str | None = None,
    ) -> bool:
        """Transition the tracker, logging instead of raising on failure."""
        try:
            self._tracker.set(state, last_sync=last_sync, error=error)
        except CatalogCacheError as tracker_error:
            _LOGGER.error(
                "sync_status_update_failed",
                state=state.value,
                error=str(tracker_error),
            )
            return False
        return True

    def _mark_offline_unless_syncing(self) -> bool:
        """Record a skipped sync without overwriting a running one."""
        try:
            return self._tracker.set_unless_syncing(SyncState.OFFLINE)
        except CatalogCacheError as tracker_error:
            _LOGGER.error(
                "sync_status_update_failed",
                state=SyncState.OFFLINE.value,
                error=str(tracker_error),
            )
            return True

"""Python SDK for the catalog offline cache.

This module wires storage, status tracking, connectivity, live data,
and orchestration from one runtime config.
"""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path

from core.config import CatalogCacheConfig
from core.logging_config import configure_logging
from core.types import HybridData, Snapshot, StorageCapabilities, StorageInfo, SyncStatus
from remote.convex_source import ConvexHttpSource
from remote.live_catalog import CatalogSource, LiveCatalog
from store.offline_storage import OfflineStorage
from sync.connectivity import ConnectivityMonitor, default_route_probe
from sync.orchestrator import SyncOrchestrator
from sync.status_tracker import SyncStatusTracker


class CatalogCacheClient:
    """Primary SDK entry point for offline cache workflows."""

    def __init__(
        self,
        config: CatalogCacheConfig | None = None,
        source: CatalogSource | None = None,
        monitor: ConnectivityMonitor | None = None,
        storage: OfflineStorage | None = None,
    ) -> None:
        """Create and initialize the cache client.

        Args:
            config: Optional runtime configuration.
            source: Remote catalog source; built from config on first use.
            monitor: Connectivity monitor; probes the default route if omitted.
            storage: Storage adapter; SQLite plus JSON blob under the data root if omitted.

        Raises:
            StorageUnavailableError: If no offline store can be opened.
        """
        self._config = config or CatalogCacheConfig.from_env()
        configure_logging(self._config.log_level)
        self._source = source
        self._storage = storage or OfflineStorage.from_config(self._config)
        self._storage.initialize()
        self._monitor = monitor or ConnectivityMonitor(
            default_route_probe(self._config.probe_host, self._config.probe_port)
        )
        self._live = LiveCatalog()
        self._tracker = SyncStatusTracker(self._storage)
        self._orchestrator = SyncOrchestrator(
            self._storage, self._tracker, self._monitor, self._live
        )

    @property
    def config(self) -> CatalogCacheConfig:
        return self._config

    @property
    def monitor(self) -> ConnectivityMonitor:
        return self._monitor

    @property
    def live(self) -> LiveCatalog:
        return self._live

    @property
    def orchestrator(self) -> SyncOrchestrator:
        return self._orchestrator

    def start(self) -> None:
        """Enable automatic sync on first load and on reconnect."""
        self._orchestrator.start()

    def close(self) -> None:
        """Release automatic sync triggers."""
        self._orchestrator.close()

    def refresh_live_data(self) -> bool:
        """Query the remote backend for every collection.

        Returns:
            Whether all live collections are loaded.

        Raises:
            CacheConfigError: If no source was given and no remote URL is configured.
        """
        if self._source is None:
            self._source = ConvexHttpSource.from_config(self._config)
        return self._live.refresh(self._source)

    def sync(self) -> bool:
        """Refresh live data when online, then snapshot it offline."""
        if self._monitor.poll():
            self.refresh_live_data()
        return self._orchestrator.sync_to_offline()

    def status(self) -> SyncStatus:
        return self._tracker.get()

    def load_offline_data(self) -> Snapshot | None:
        return self._orchestrator.load_offline_data()

    def hybrid_data(self) -> HybridData:
        return self._orchestrator.get_hybrid_data()

    def clear(self) -> bool:
        return self._orchestrator.clear_offline_data()

    def storage_info(self) -> StorageInfo:
        return self._orchestrator.storage_info()

    def capabilities(self) -> StorageCapabilities:
        return self._storage.capabilities()

    def with_data_root(self, data_root: str) -> "CatalogCacheClient":
        """Clone the client with a different local data root.

        Args:
            data_root: New data root path.

        Returns:
            New SDK client instance sharing the same source and monitor.
        """
        resolved_root = Path(data_root).expanduser().resolve()
        updated_config = replace(self._config, data_root=resolved_root)
        return CatalogCacheClient(updated_config, source=self._source, monitor=self._monitor)

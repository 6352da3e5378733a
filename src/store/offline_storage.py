"""Offline storage adapter.

This module owns all physical persistence of the offline snapshot and
the sync status. It prefers the transactional primary store and falls
back to the flat blob store, recovering primary failures locally.
"""

from __future__ import annotations

import threading
from datetime import datetime, timezone

from core.config import CatalogCacheConfig
from core.constants import LAST_SYNC_KEY, SQLITE_FILE_NAME, SYNC_STATUS_KEY
from core.errors import (
    CatalogCacheError,
    StorageReadError,
    StorageUnavailableError,
    StorageWriteError,
)
from core.logging_config import get_logger
from core.types import Snapshot, StorageCapabilities, StorageInfo, SyncState, SyncStatus
from store.backends import SnapshotBackend
from store.blob_backend import JsonBlobBackend
from store.sqlite_backend import SqliteSnapshotBackend
from store.storage_estimate import estimate_storage

_LOGGER = get_logger(__name__)


class OfflineStorage:
    """Storage adapter over a primary and a fallback snapshot backend.

    Writes are serialized by an internal lock so a newer snapshot can
    never be overwritten by an older write that is still completing.
    """

    def __init__(
        self,
        primary: SnapshotBackend | None,
        fallback: SnapshotBackend | None,
        config: CatalogCacheConfig | None = None,
    ) -> None:
        """Create an adapter from explicit backends.

        Args:
            primary: Transactional store tried first, if any.
            fallback: Flat key/value store used when the primary fails.
            config: Runtime config, used for storage estimates.
        """
        self._candidates = (primary, fallback)
        self._primary: SnapshotBackend | None = None
        self._fallback: SnapshotBackend | None = None
        self._config = config
        self._initialized = False
        self._write_lock = threading.Lock()

    @classmethod
    def from_config(cls, config: CatalogCacheConfig) -> "OfflineStorage":
        """Build the default SQLite plus JSON blob adapter under the data root."""
        offline_dir = config.offline_dir
        return cls(
            primary=SqliteSnapshotBackend(offline_dir / SQLITE_FILE_NAME),
            fallback=JsonBlobBackend(offline_dir),
            config=config,
        )

    def initialize(self) -> StorageCapabilities:
        """Open both stores, keeping whichever succeed.

        Returns:
            Which stores are usable.

        Raises:
            StorageUnavailableError: If neither store can be opened.
        """
        if self._initialized:
            return self.capabilities()
        primary_candidate, fallback_candidate = self._candidates
        self._primary = _open_backend(primary_candidate)
        self._fallback = _open_backend(fallback_candidate)
        if self._primary is None and self._fallback is None:
            raise StorageUnavailableError(
                "No offline store could be opened: both the primary and the fallback "
                "store failed. Check the data root location and its permissions."
            )
        self._initialized = True
        capabilities = self.capabilities()
        _LOGGER.info(
            "offline_storage_initialized",
            primary=capabilities.primary,
            fallback=capabilities.fallback,
        )
        return capabilities

    def capabilities(self) -> StorageCapabilities:
        """Report which stores opened during initialization."""
        return StorageCapabilities(
            primary=self._primary is not None,
            fallback=self._fallback is not None,
        )

    def save_snapshot(self, snapshot: Snapshot) -> None:
        """Replace the stored snapshot as a whole.

        Args:
            snapshot: Snapshot to persist.

        Raises:
            StorageWriteError: If every usable store fails.
        """
        self._require_initialized()
        with self._write_lock:
            if self._primary is not None:
                try:
                    self._primary.write_snapshot(snapshot)
                    _LOGGER.info(
                        "snapshot_saved",
                        backend=self._primary.name,
                        last_sync=snapshot.last_sync,
                    )
                    return
                except CatalogCacheError as error:
                    _LOGGER.warning(
                        "primary_store_write_failed",
                        backend=self._primary.name,
                        error=str(error),
                    )
            if self._fallback is None:
                raise StorageWriteError(
                    "Failed to save offline snapshot: the primary store failed and no "
                    "fallback store is available."
                )
            self._fallback.write_snapshot(snapshot)
            self._discard_stale_primary()
            _LOGGER.info(
                "snapshot_saved",
                backend=self._fallback.name,
                last_sync=snapshot.last_sync,
            )

    def load_snapshot(self) -> Snapshot | None:
        """Return the most recently saved snapshot.

        When both stores hold a snapshot, the one with the later
        ``last_sync`` wins; ties go to the primary store.

        Returns:
            Stored snapshot, or ``None`` when nothing is stored.

        Raises:
            StorageReadError: If the fallback read fails and the primary has no snapshot.
        """
        self._require_initialized()
        primary_snapshot = self._read_primary_snapshot()
        if self._fallback is None:
            return primary_snapshot
        if primary_snapshot is None:
            return self._fallback.read_snapshot()
        try:
            fallback_snapshot = self._fallback.read_snapshot()
        except CatalogCacheError as error:
            _LOGGER.warning(
                "fallback_store_read_failed",
                backend=self._fallback.name,
                error=str(error),
            )
            return primary_snapshot
        if fallback_snapshot is not None and _is_newer(fallback_snapshot, primary_snapshot):
            _LOGGER.info(
                "fallback_snapshot_newer",
                primary_last_sync=primary_snapshot.last_sync,
                fallback_last_sync=fallback_snapshot.last_sync,
            )
            return fallback_snapshot
        return primary_snapshot

    def clear(self) -> None:
        """Delete snapshots and metadata from every store.

        Every store is attempted even if an earlier one fails.

        Raises:
            StorageWriteError: Naming each store that could not be cleared.
        """
        self._require_initialized()
        failures: list[str] = []
        with self._write_lock:
            for backend in (self._primary, self._fallback):
                if backend is None:
                    continue
                try:
                    backend.clear()
                except CatalogCacheError as error:
                    _LOGGER.error("store_clear_failed", backend=backend.name, error=str(error))
                    failures.append(backend.name)
        if failures:
            raise StorageWriteError(
                f"Failed to clear offline stores: {', '.join(failures)}. "
                "Remaining data may still be loadable."
            )
        _LOGGER.info("offline_storage_cleared")

    def save_sync_status(self, status: SyncStatus) -> None:
        """Persist the sync state and last-sync timestamp.

        Raises:
            StorageWriteError: If the status store cannot be written.
        """
        backend = self._status_backend()
        with self._write_lock:
            backend.write_value(SYNC_STATUS_KEY, status.state.value)
            if status.last_sync:
                backend.write_value(LAST_SYNC_KEY, status.last_sync)
            else:
                backend.delete_value(LAST_SYNC_KEY)

    def load_sync_status(self) -> SyncStatus | None:
        """Read the persisted sync status.

        Returns:
            Persisted status, or ``None`` when no state was ever persisted.

        Raises:
            StorageReadError: If the status store cannot be read.
        """
        backend = self._status_backend()
        raw_state = backend.read_value(SYNC_STATUS_KEY)
        last_sync = backend.read_value(LAST_SYNC_KEY)
        if raw_state is None and last_sync is None:
            return None
        try:
            state = SyncState(raw_state) if raw_state else SyncState.OFFLINE
        except ValueError as error:
            raise StorageReadError(
                f"Unknown persisted sync status '{raw_state}'. Clear offline data to reset it."
            ) from error
        return SyncStatus(state=state, last_sync=last_sync or None)

    def get_storage_info(self) -> StorageInfo:
        """Return best-effort usage figures; zeros when unavailable."""
        if not self._initialized:
            return StorageInfo()
        files = [
            path
            for backend in (self._primary, self._fallback)
            if backend is not None
            for path in backend.files()
        ]
        if self._config is None:
            root = files[0].parent if files else None
        else:
            root = self._config.offline_dir
        if root is None:
            return StorageInfo()
        return estimate_storage(files, root)

    def _status_backend(self) -> SnapshotBackend:
        self._require_initialized()
        backend = self._fallback or self._primary
        if backend is None:
            raise StorageUnavailableError("No offline store is available for sync status.")
        return backend

    def _read_primary_snapshot(self) -> Snapshot | None:
        if self._primary is None:
            return None
        try:
            return self._primary.read_snapshot()
        except CatalogCacheError as error:
            _LOGGER.warning(
                "primary_store_read_failed",
                backend=self._primary.name,
                error=str(error),
            )
            return None

    def _discard_stale_primary(self) -> None:
        """Best-effort removal of an older primary copy that would shadow the fallback."""
        if self._primary is None:
            return
        try:
            self._primary.clear()
        except CatalogCacheError as error:
            _LOGGER.warning(
                "stale_primary_snapshot_not_cleared",
                backend=self._primary.name,
                error=str(error),
            )

    def _require_initialized(self) -> None:
        if not self._initialized:
            raise StorageUnavailableError(
                "Offline storage is not initialized. Call initialize() before use."
            )


def _open_backend(backend: SnapshotBackend | None) -> SnapshotBackend | None:
    """Open a backend, returning ``None`` when it is absent or fails."""
    if backend is None:
        return None
    try:
        backend.open()
    except CatalogCacheError as error:
        _LOGGER.warning("offline_store_unavailable", backend=backend.name, error=str(error))
        return None
    return backend


def _is_newer(candidate: Snapshot, current: Snapshot) -> bool:
    """Return whether ``candidate`` was synced strictly after ``current``."""
    candidate_time = _parse_sync_time(candidate.last_sync)
    current_time = _parse_sync_time(current.last_sync)
    if candidate_time is None or current_time is None:
        return False
    return candidate_time > current_time


def _parse_sync_time(value: str) -> datetime | None:
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed

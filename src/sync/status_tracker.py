"""Sync status state holder with a persisted mirror.

Every transition is written through the storage adapter before
``set`` returns, so the persisted state always matches the last
completed transition.
"""

from __future__ import annotations

import threading

from core.errors import CatalogCacheError, SyncStateError
from core.logging_config import get_logger
from core.types import SyncState, SyncStatus
from store.offline_storage import OfflineStorage

_LOGGER = get_logger(__name__)

INTERRUPTED_SYNC_MESSAGE = "Previous sync was interrupted before completion"

_ALLOWED_TRANSITIONS: dict[SyncState, frozenset[SyncState]] = {
    SyncState.NEVER_SYNCED: frozenset({SyncState.SYNCING}),
    SyncState.SYNCED: frozenset({SyncState.SYNCING}),
    SyncState.ERROR: frozenset({SyncState.SYNCING}),
    SyncState.OFFLINE: frozenset({SyncState.SYNCING}),
    SyncState.SYNCING: frozenset({SyncState.SYNCED, SyncState.ERROR}),
}
# Reachable from any state: explicit clear and the precondition skip.
_ALWAYS_ALLOWED = frozenset({SyncState.NEVER_SYNCED, SyncState.OFFLINE})


class SyncStatusTracker:
    """Long-lived holder of the current ``SyncStatus``."""

    def __init__(self, storage: OfflineStorage) -> None:
        self._storage = storage
        self._lock = threading.Lock()
        try:
            persisted = storage.load_sync_status()
        except CatalogCacheError as error:
            _LOGGER.warning("sync_status_load_failed", error=str(error))
            persisted = None
        self._status = _initial_status(persisted)

    def get(self) -> SyncStatus:
        """Return the current status."""
        return self._status

    def set(
        self,
        state: SyncState,
        last_sync: str | None = None,
        error: str | None = None,
    ) -> SyncStatus:
        """Transition to ``state`` and persist it before returning.

        Args:
            state: Target sync state.
            last_sync: New last-sync timestamp; the previous one is kept
                when omitted, except on reset to ``never-synced``.
            error: Failure message, kept only for the ``error`` state.

        Returns:
            The new status.

        Raises:
            SyncStateError: If the transition is not allowed.
            StorageWriteError: If the status cannot be persisted.
        """
        with self._lock:
            return self._transition(state, last_sync, error)

    def set_unless_syncing(
        self,
        state: SyncState,
        last_sync: str | None = None,
        error: str | None = None,
    ) -> bool:
        """Transition to ``state`` unless a sync is running.

        The check and the transition happen under one lock, so a
        concurrent caller's ``syncing`` state is never overwritten.

        Returns:
            ``False`` when the state is ``syncing`` and nothing changed.

        Raises:
            SyncStateError: If the transition is not allowed.
            StorageWriteError: If the status cannot be persisted.
        """
        with self._lock:
            if self._status.state is SyncState.SYNCING:
                return False
            self._transition(state, last_sync, error)
        return True

    def try_begin_sync(self) -> bool:
        """Atomically move to ``syncing`` unless a sync is already running.

        Returns:
            ``False`` when the state already is ``syncing``.
        """
        try:
            self.set(SyncState.SYNCING)
        except SyncStateError:
            return False
        return True

    def _transition(
        self,
        state: SyncState,
        last_sync: str | None,
        error: str | None,
    ) -> SyncStatus:
        """Apply one transition; the caller holds the lock."""
        current = self._status
        if not _is_allowed(current.state, state):
            raise SyncStateError(
                f"Illegal sync status transition {current.state.value} -> {state.value}."
            )
        if state is SyncState.NEVER_SYNCED:
            resolved_last_sync = None
        else:
            resolved_last_sync = last_sync or current.last_sync
        updated = SyncStatus(
            state=state,
            last_sync=resolved_last_sync,
            error=error if state is SyncState.ERROR else None,
        )
        try:
            self._storage.save_sync_status(updated)
        finally:
            # In-memory state follows the transition even if persisting fails.
            self._status = updated
        _LOGGER.debug(
            "sync_status_changed",
            previous=current.state.value,
            state=state.value,
            last_sync=updated.last_sync,
        )
        return updated


def _is_allowed(current: SyncState, target: SyncState) -> bool:
    if target in _ALWAYS_ALLOWED:
        return True
    return target in _ALLOWED_TRANSITIONS[current]


def _initial_status(persisted: SyncStatus | None) -> SyncStatus:
    """Derive the startup status from persisted state."""
    if persisted is None or not persisted.last_sync:
        return SyncStatus(state=SyncState.NEVER_SYNCED)
    if persisted.state is SyncState.SYNCING:
        return SyncStatus(
            state=SyncState.ERROR,
            last_sync=persisted.last_sync,
            error=INTERRUPTED_SYNC_MESSAGE,
        )
    return persisted

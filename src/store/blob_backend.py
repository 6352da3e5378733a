"""Flat JSON key/value fallback store.

This module keeps one file per key under a directory. The whole
snapshot lives under a single key, and every write replaces the file
atomically through a temporary sibling and ``os.replace``.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
import tempfile

from core.constants import FALLBACK_STORAGE_KEYS, LAST_SYNC_KEY, OFFLINE_DATA_KEY
from core.errors import StorageReadError, StorageWriteError
from core.types import Snapshot
from store.backends import SnapshotBackend
from store.record_payload import snapshot_from_payload, snapshot_to_payload


class JsonBlobBackend(SnapshotBackend):
    """Non-transactional key/value store backed by small files."""

    name = "json_blob"

    def __init__(self, root_dir: Path) -> None:
        self._root_dir = root_dir

    def open(self) -> None:
        """Create the key directory and check that it is writable.

        Raises:
            StorageWriteError: If the directory cannot be used.
        """
        try:
            self._root_dir.mkdir(parents=True, exist_ok=True)
        except OSError as error:
            raise StorageWriteError(
                f"Failed to create fallback store directory {self._root_dir}: {error}."
            ) from error
        if not os.access(self._root_dir, os.W_OK):
            raise StorageWriteError(
                f"Fallback store directory {self._root_dir} is not writable. "
                "Fix directory permissions or choose another data root."
            )

    def write_snapshot(self, snapshot: Snapshot) -> None:
        """Overwrite the snapshot blob and its last-sync key."""
        blob = json.dumps(snapshot_to_payload(snapshot), sort_keys=True)
        self.write_value(OFFLINE_DATA_KEY, blob)
        self.write_value(LAST_SYNC_KEY, snapshot.last_sync)

    def read_snapshot(self) -> Snapshot | None:
        """Parse the snapshot blob.

        Returns:
            Stored snapshot, or ``None`` when no blob exists.

        Raises:
            StorageReadError: If the blob is unreadable or malformed.
        """
        blob = self.read_value(OFFLINE_DATA_KEY)
        if blob is None:
            return None
        try:
            payload = json.loads(blob)
        except json.JSONDecodeError as error:
            raise StorageReadError(
                f"Failed to parse offline data blob in {self._root_dir}: {error.msg}. "
                "Clear offline data and sync again."
            ) from error
        if not isinstance(payload, dict):
            raise StorageReadError(
                f"Invalid offline data blob in {self._root_dir}: expected a JSON object."
            )
        try:
            return snapshot_from_payload(payload)
        except (ValueError, TypeError, AttributeError) as error:
            raise StorageReadError(
                f"Invalid offline data blob in {self._root_dir}: {error}."
            ) from error

    def clear(self) -> None:
        """Remove every fixed key, attempting all of them before failing."""
        failures: list[str] = []
        for key in FALLBACK_STORAGE_KEYS:
            try:
                self.delete_value(key)
            except StorageWriteError as error:
                failures.append(str(error))
        if failures:
            raise StorageWriteError("; ".join(failures))

    def write_value(self, key: str, value: str) -> None:
        """Replace one key file atomically.

        Raises:
            StorageWriteError: If the file cannot be written.
        """
        target = self._key_path(key)
        try:
            fd, temp_name = tempfile.mkstemp(dir=self._root_dir, prefix=f".{key}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(value)
                    handle.flush()
                    os.fsync(handle.fileno())
                os.replace(temp_name, target)
            except BaseException:
                Path(temp_name).unlink(missing_ok=True)
                raise
        except OSError as error:
            raise StorageWriteError(
                f"Failed to write fallback key '{key}' at {target}: {error}. "
                "Check write permissions and available disk space."
            ) from error

    def read_value(self, key: str) -> str | None:
        target = self._key_path(key)
        try:
            return target.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as error:
            raise StorageReadError(
                f"Failed to read fallback key '{key}' at {target}: {error}."
            ) from error

    def delete_value(self, key: str) -> None:
        target = self._key_path(key)
        try:
            target.unlink(missing_ok=True)
        except OSError as error:
            raise StorageWriteError(
                f"Failed to delete fallback key '{key}' at {target}: {error}."
            ) from error

    def files(self) -> list[Path]:
        return [path for path in map(self._key_path, FALLBACK_STORAGE_KEYS) if path.exists()]

    def _key_path(self, key: str) -> Path:
        return self._root_dir / key

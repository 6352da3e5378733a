"""Transactional SQLite snapshot store.

This module is the primary offline store. Each catalog collection is
one table keyed by document id, plus a key/value metadata table. A
snapshot write clears and refills every table inside one transaction.
"""

from __future__ import annotations

from contextlib import closing, contextmanager
import json
from pathlib import Path
import sqlite3
from typing import Any, Iterator

from core.constants import (
    COLLECTION_NAMES,
    METADATA_LAST_SYNC,
    METADATA_VERSION,
    SNAPSHOT_VERSION,
    SQLITE_BUSY_TIMEOUT_SECONDS,
)
from core.errors import StorageReadError, StorageWriteError
from core.types import Snapshot
from store.backends import SnapshotBackend
from store.record_payload import snapshot_from_payload, snapshot_to_payload


class SqliteSnapshotBackend(SnapshotBackend):
    """SQLite-backed snapshot store running in WAL mode."""

    name = "sqlite"

    def __init__(self, db_path: Path) -> None:
        self._db_path = db_path

    def open(self) -> None:
        """Create the database file and schema if needed.

        Raises:
            StorageWriteError: If the database cannot be created.
        """
        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            with self._connection() as conn:
                conn.execute("PRAGMA journal_mode=WAL")
                for collection in COLLECTION_NAMES:
                    conn.execute(
                        f'CREATE TABLE IF NOT EXISTS "{collection}" ('
                        "id TEXT PRIMARY KEY, "
                        "position INTEGER NOT NULL, "
                        "payload TEXT NOT NULL)"
                    )
                conn.execute(
                    "CREATE TABLE IF NOT EXISTS metadata (key TEXT PRIMARY KEY, value TEXT)"
                )
        except (OSError, sqlite3.Error) as error:
            raise StorageWriteError(
                f"Failed to open SQLite offline store at {self._db_path}: {error}. "
                "Check directory permissions or delete a corrupted database file."
            ) from error

    def write_snapshot(self, snapshot: Snapshot) -> None:
        """Replace every collection and the snapshot metadata in one transaction.

        Raises:
            StorageWriteError: If the transaction fails; nothing is changed.
        """
        payload = snapshot_to_payload(snapshot)
        try:
            with self._transaction("BEGIN IMMEDIATE") as conn:
                for collection in COLLECTION_NAMES:
                    conn.execute(f'DELETE FROM "{collection}"')
                    conn.executemany(
                        f'INSERT INTO "{collection}" (id, position, payload) VALUES (?, ?, ?)',
                        [
                            (str(item["_id"]), position, json.dumps(item, sort_keys=True))
                            for position, item in enumerate(payload[collection])
                        ],
                    )
                conn.executemany(
                    "INSERT OR REPLACE INTO metadata (key, value) VALUES (?, ?)",
                    [
                        (METADATA_LAST_SYNC, snapshot.last_sync),
                        (METADATA_VERSION, snapshot.version),
                    ],
                )
        except sqlite3.Error as error:
            raise StorageWriteError(
                f"Failed to write snapshot to SQLite store at {self._db_path}: {error}."
            ) from error

    def read_snapshot(self) -> Snapshot | None:
        """Read every collection inside one read transaction.

        Returns:
            Stored snapshot, or ``None`` if no sync timestamp is stored.

        Raises:
            StorageReadError: If the database or a payload is unreadable.
        """
        try:
            with self._transaction("BEGIN") as conn:
                metadata = dict(conn.execute("SELECT key, value FROM metadata").fetchall())
                if not metadata.get(METADATA_LAST_SYNC):
                    return None
                payload: dict[str, Any] = {
                    collection: [
                        json.loads(row[0])
                        for row in conn.execute(
                            f'SELECT payload FROM "{collection}" ORDER BY position'
                        )
                    ]
                    for collection in COLLECTION_NAMES
                }
        except sqlite3.Error as error:
            raise StorageReadError(
                f"Failed to read snapshot from SQLite store at {self._db_path}: {error}."
            ) from error
        except json.JSONDecodeError as error:
            raise StorageReadError(
                f"Corrupted record payload in SQLite store at {self._db_path}: {error.msg}."
            ) from error
        payload["lastSync"] = metadata[METADATA_LAST_SYNC]
        payload["version"] = metadata.get(METADATA_VERSION) or SNAPSHOT_VERSION
        try:
            return snapshot_from_payload(payload)
        except (ValueError, TypeError, AttributeError) as error:
            raise StorageReadError(
                f"Invalid snapshot contents in SQLite store at {self._db_path}: {error}."
            ) from error

    def clear(self) -> None:
        """Empty every collection table and the metadata table.

        Raises:
            StorageWriteError: If the tables cannot be emptied.
        """
        try:
            with self._transaction("BEGIN IMMEDIATE") as conn:
                for collection in COLLECTION_NAMES:
                    conn.execute(f'DELETE FROM "{collection}"')
                conn.execute("DELETE FROM metadata")
        except sqlite3.Error as error:
            raise StorageWriteError(
                f"Failed to clear SQLite store at {self._db_path}: {error}."
            ) from error

    def write_value(self, key: str, value: str) -> None:
        try:
            with self._connection() as conn:
                conn.execute(
                    "INSERT OR REPLACE INTO metadata (key, value) VALUES (?, ?)", (key, value)
                )
        except sqlite3.Error as error:
            raise StorageWriteError(
                f"Failed to write '{key}' to SQLite store at {self._db_path}: {error}."
            ) from error

    def read_value(self, key: str) -> str | None:
        try:
            with self._connection() as conn:
                row = conn.execute("SELECT value FROM metadata WHERE key = ?", (key,)).fetchone()
        except sqlite3.Error as error:
            raise StorageReadError(
                f"Failed to read '{key}' from SQLite store at {self._db_path}: {error}."
            ) from error
        return str(row[0]) if row and row[0] is not None else None

    def delete_value(self, key: str) -> None:
        try:
            with self._connection() as conn:
                conn.execute("DELETE FROM metadata WHERE key = ?", (key,))
        except sqlite3.Error as error:
            raise StorageWriteError(
                f"Failed to delete '{key}' from SQLite store at {self._db_path}: {error}."
            ) from error

    def files(self) -> list[Path]:
        candidates = [
            self._db_path,
            self._db_path.with_name(self._db_path.name + "-wal"),
            self._db_path.with_name(self._db_path.name + "-shm"),
        ]
        return [path for path in candidates if path.exists()]

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        """Open an autocommit connection scoped to one operation."""
        conn = sqlite3.connect(
            str(self._db_path),
            timeout=SQLITE_BUSY_TIMEOUT_SECONDS,
            isolation_level=None,
        )
        with closing(conn):
            yield conn

    @contextmanager
    def _transaction(self, begin_statement: str) -> Iterator[sqlite3.Connection]:
        """Run the body inside an explicit transaction, rolling back on failure."""
        with self._connection() as conn:
            conn.execute(begin_statement)
            try:
                yield conn
            except BaseException:
                if conn.in_transaction:
                    conn.execute("ROLLBACK")
                raise
            conn.execute("COMMIT")

"""Unit tests for the SQLite snapshot store."""

from __future__ import annotations

from dataclasses import replace
import sqlite3

import pytest

from core.constants import SQLITE_FILE_NAME
from core.errors import StorageReadError, StorageWriteError
from store.sqlite_backend import SqliteSnapshotBackend


def _open_backend(tmp_path) -> SqliteSnapshotBackend:
    backend = SqliteSnapshotBackend(tmp_path / SQLITE_FILE_NAME)
    backend.open()
    return backend


def test_open_is_idempotent(tmp_path) -> None:
    """Opening an existing database should keep the schema usable."""
    backend = _open_backend(tmp_path)
    backend.open()

    assert backend.read_snapshot() is None


def test_write_then_read_preserves_order(tmp_path, snapshot_factory) -> None:
    """Records should come back in the order they were written."""
    backend = _open_backend(tmp_path)
    base = snapshot_factory()
    brands = (
        replace(base.brands[0], id="brand-z", name="Zte"),
        replace(base.brands[0], id="brand-a", name="Alcatel"),
    )
    backend.write_snapshot(replace(base, brands=brands))

    loaded = backend.read_snapshot()

    assert loaded is not None and [brand.id for brand in loaded.brands] == ["brand-z", "brand-a"]


def test_duplicate_ids_roll_back_whole_write(tmp_path, snapshot_factory) -> None:
    """A failed write should leave the previous snapshot intact."""
    backend = _open_backend(tmp_path)
    original = snapshot_factory()
    backend.write_snapshot(original)
    broken = replace(original, brands=original.brands * 2, last_sync="later")

    with pytest.raises(StorageWriteError):
        backend.write_snapshot(broken)

    assert backend.read_snapshot() == original


def test_clear_removes_snapshot(tmp_path, snapshot_factory) -> None:
    """Clear should empty collections and metadata."""
    backend = _open_backend(tmp_path)
    backend.write_snapshot(snapshot_factory())

    backend.clear()

    assert backend.read_snapshot() is None


def test_metadata_values_roundtrip(tmp_path) -> None:
    """Key/value metadata should support write, read, and delete."""
    backend = _open_backend(tmp_path)
    backend.write_value("k", "v")
    first = backend.read_value("k")
    backend.delete_value("k")

    assert first == "v" and backend.read_value("k") is None


def test_corrupted_payload_raises_read_error(tmp_path, snapshot_factory) -> None:
    """Unparseable rows should surface as a read error."""
    backend = _open_backend(tmp_path)
    backend.write_snapshot(snapshot_factory())
    with sqlite3.connect(tmp_path / SQLITE_FILE_NAME) as conn:
        conn.execute('UPDATE "brands" SET payload = ?', ("{not json",))

    with pytest.raises(StorageReadError):
        backend.read_snapshot()

    assert backend.files()

"""Common interface for offline snapshot stores.

Both the transactional SQLite store and the flat JSON blob store
implement this interface so the storage adapter can treat them alike.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path

from core.types import Snapshot


class SnapshotBackend(ABC):
    """One physical store able to hold a whole snapshot plus metadata values.

    Implementations must make ``write_snapshot`` all-or-nothing: a
    concurrent ``read_snapshot`` sees either the previous snapshot or the
    new one, never a mix.
    """

    name: str = "backend"

    @abstractmethod
    def open(self) -> None:
        """Open or create the store. Must be idempotent."""

    @abstractmethod
    def write_snapshot(self, snapshot: Snapshot) -> None:
        """Replace the stored snapshot with ``snapshot``."""

    @abstractmethod
    def read_snapshot(self) -> Snapshot | None:
        """Return the stored snapshot, or ``None`` when empty."""

    @abstractmethod
    def clear(self) -> None:
        """Delete the snapshot and every metadata value."""

    @abstractmethod
    def write_value(self, key: str, value: str) -> None:
        """Store one metadata value."""

    @abstractmethod
    def read_value(self, key: str) -> str | None:
        """Return one metadata value, or ``None`` when absent."""

    @abstractmethod
    def delete_value(self, key: str) -> None:
        """Remove one metadata value if present."""

    @abstractmethod
    def files(self) -> list[Path]:
        """Return on-disk files owned by the store, for usage estimates."""

"""Catalog cache exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Each subsystem raises a specific error type for debuggability.
"""

from __future__ import annotations


class CatalogCacheError(Exception):
    """Base exception for all catalog cache failures."""


class CacheConfigError(CatalogCacheError):
    """Raised for invalid runtime configuration."""


class CacheDependencyError(CatalogCacheError):
    """Raised when an optional runtime dependency is missing."""


class StorageUnavailableError(CatalogCacheError):
    """Raised when neither the primary nor the fallback store can be opened."""


class StorageWriteError(CatalogCacheError):
    """Raised when a snapshot or status write fails on every usable store."""


class StorageReadError(CatalogCacheError):
    """Raised when a snapshot read fails on every usable store."""


class PreconditionNotMetError(CatalogCacheError):
    """Raised when a sync is attempted without connectivity or complete live data."""


class DanglingReferenceError(CatalogCacheError):
    """Raised by strict denormalization when a reference does not resolve."""


class SyncStateError(CatalogCacheError):
    """Raised for illegal sync status transitions."""


class RemoteSourceError(CatalogCacheError):
    """Raised when the remote catalog backend cannot be queried."""

"""Public SDK surface for the catalog offline cache.

This module provides a stable import path for application code.
It re-exports the client, the core components, and typed models.
"""

from __future__ import annotations

from core.config import CatalogCacheConfig
from core.types import (
    Accessory,
    AccessoryCategory,
    Brand,
    CatalogCollections,
    Equipment,
    EquipmentType,
    EquipmentVariant,
    HybridData,
    Snapshot,
    StorageInfo,
    SyncState,
    SyncStatus,
)
from remote.convex_source import ConvexHttpSource
from remote.live_catalog import NOT_LOADED, LiveCatalog
from store.offline_storage import OfflineStorage
from sync.cache_client import CatalogCacheClient
from sync.connectivity import ConnectivityMonitor
from sync.orchestrator import SyncOrchestrator
from sync.status_tracker import SyncStatusTracker

__all__ = [
    "Accessory",
    "AccessoryCategory",
    "Brand",
    "CatalogCacheClient",
    "CatalogCacheConfig",
    "CatalogCollections",
    "ConnectivityMonitor",
    "ConvexHttpSource",
    "Equipment",
    "EquipmentType",
    "EquipmentVariant",
    "HybridData",
    "LiveCatalog",
    "NOT_LOADED",
    "OfflineStorage",
    "Snapshot",
    "StorageInfo",
    "SyncOrchestrator",
    "SyncState",
    "SyncStatus",
    "SyncStatusTracker",
]

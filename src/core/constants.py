"""Core constants used across catalog cache modules.

This module centralizes storage keys, collection names, and defaults.
Keeping values here avoids magic literals in business logic.
"""

from __future__ import annotations

from pathlib import Path

DEFAULT_DATA_ROOT = Path(".catalog-cache")
OFFLINE_DIR_NAME = "offline"
SQLITE_FILE_NAME = "catalog.sqlite3"
SNAPSHOT_VERSION = "1.0"

OFFLINE_DATA_KEY = "phone-equipements-offline-data"
LAST_SYNC_KEY = "phone-equipements-last-sync"
SYNC_STATUS_KEY = "phone-equipements-sync-status"
FALLBACK_STORAGE_KEYS = (OFFLINE_DATA_KEY, LAST_SYNC_KEY, SYNC_STATUS_KEY)

METADATA_LAST_SYNC = "lastSync"
METADATA_VERSION = "version"

EQUIPMENTS = "equipments"
ACCESSORIES = "accessories"
BRANDS = "brands"
EQUIPMENT_TYPES = "equipmentTypes"
ACCESSORY_CATEGORIES = "accessoryCategories"
COLLECTION_NAMES = (EQUIPMENTS, ACCESSORIES, BRANDS, EQUIPMENT_TYPES, ACCESSORY_CATEGORIES)

DEFAULT_REMOTE_TIMEOUT_SECONDS = 30.0
DEFAULT_FETCH_LIMIT = 1000
DEFAULT_PROBE_HOST = "8.8.8.8"
DEFAULT_PROBE_PORT = 53
DEFAULT_LOG_LEVEL = "info"
SQLITE_BUSY_TIMEOUT_SECONDS = 5.0

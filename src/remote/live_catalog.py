"""Live catalog collections pulled from the remote backend.

Each collection is either ``NOT_LOADED`` or a tuple of records, which
may be empty. "Not yet loaded" and "loaded, empty" are kept distinct.
"""

from __future__ import annotations

import threading
from typing import Any, Callable, Mapping, Protocol, Sequence

from core.constants import (
    ACCESSORIES,
    ACCESSORY_CATEGORIES,
    BRANDS,
    COLLECTION_NAMES,
    EQUIPMENT_TYPES,
    EQUIPMENTS,
)
from core.errors import PreconditionNotMetError, RemoteSourceError
from core.logging_config import get_logger
from core.types import CatalogCollections
from store.record_payload import (
    accessory_category_from_payload,
    accessory_from_payload,
    brand_from_payload,
    equipment_from_payload,
    equipment_type_from_payload,
)
from sync.connectivity import Subscription
from sync.denormalize import embed_equipment_references

_LOGGER = get_logger(__name__)

_PARSERS: dict[str, Callable[[Mapping[str, Any]], object]] = {
    EQUIPMENTS: equipment_from_payload,
    ACCESSORIES: accessory_from_payload,
    BRANDS: brand_from_payload,
    EQUIPMENT_TYPES: equipment_type_from_payload,
    ACCESSORY_CATEGORIES: accessory_category_from_payload,
}


class _NotLoaded:
    """Sentinel type for a collection whose first query has not resolved."""

    def __repr__(self) -> str:
        return "NOT_LOADED"


NOT_LOADED = _NotLoaded()


class CatalogSource(Protocol):
    """Remote read access to the five catalog collections."""

    def fetch_collection(self, collection: str) -> list[Mapping[str, Any]]:
        """Return the collection's document payloads in backend order."""
        ...


class LiveCatalog:
    """Holder of the current live collections."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._collections: dict[str, tuple[object, ...] | _NotLoaded] = {
            name: NOT_LOADED for name in COLLECTION_NAMES
        }
        self._loaded_callbacks: dict[int, Callable[[], None]] = {}
        self._next_token = 0

    def collection(self, name: str) -> tuple[object, ...] | _NotLoaded:
        """Return one collection or ``NOT_LOADED``."""
        return self._collections[_known(name)]

    def is_loaded(self) -> bool:
        """Return whether every collection resolved at least once."""
        return all(value is not NOT_LOADED for value in self._collections.values())

    def set_collection(self, name: str, records: Sequence[object]) -> None:
        """Publish a resolved collection, notifying when all become loaded."""
        with self._lock:
            was_loaded = self.is_loaded()
            self._collections[_known(name)] = tuple(records)
            became_loaded = not was_loaded and self.is_loaded()
            callbacks = list(self._loaded_callbacks.values()) if became_loaded else []
        if became_loaded:
            _LOGGER.info("live_catalog_loaded")
        for callback in callbacks:
            callback()

    def reset(self) -> None:
        """Mark every collection as not loaded."""
        with self._lock:
            for name in COLLECTION_NAMES:
                self._collections[name] = NOT_LOADED

    def snapshot(self) -> CatalogCollections:
        """Return all collections, with equipment references joined.

        Raises:
            PreconditionNotMetError: If any collection is not loaded.
        """
        with self._lock:
            values = dict(self._collections)
        missing = [name for name, value in values.items() if value is NOT_LOADED]
        if missing:
            raise PreconditionNotMetError(
                f"Live collections not loaded yet: {', '.join(missing)}."
            )
        brands = values[BRANDS]
        equipment_types = values[EQUIPMENT_TYPES]
        return CatalogCollections(
            equipments=embed_equipment_references(
                values[EQUIPMENTS], brands, equipment_types  # type: ignore[arg-type]
            ),
            accessories=values[ACCESSORIES],  # type: ignore[arg-type]
            brands=brands,  # type: ignore[arg-type]
            equipment_types=equipment_types,  # type: ignore[arg-type]
            accessory_categories=values[ACCESSORY_CATEGORIES],  # type: ignore[arg-type]
        )

    def refresh(self, source: CatalogSource) -> bool:
        """Query every collection from ``source``.

        A failed query keeps that collection's previous value.

        Returns:
            Whether every collection is loaded afterwards.
        """
        for name in COLLECTION_NAMES:
            try:
                payloads = source.fetch_collection(name)
                records = [_PARSERS[name](payload) for payload in payloads]
            except (RemoteSourceError, ValueError, TypeError, AttributeError) as error:
                _LOGGER.error("live_collection_fetch_failed", collection=name, error=str(error))
                continue
            self.set_collection(name, records)
            _LOGGER.debug("live_collection_loaded", collection=name, record_count=len(records))
        return self.is_loaded()

    def subscribe_loaded(self, callback: Callable[[], None]) -> Subscription:
        """Register ``callback`` for the transition to fully loaded."""
        with self._lock:
            token = self._next_token
            self._next_token += 1
            self._loaded_callbacks[token] = callback
        return Subscription(lambda: self._remove(token))

    def _remove(self, token: int) -> None:
        with self._lock:
            self._loaded_callbacks.pop(token, None)


def _known(name: str) -> str:
    if name not in COLLECTION_NAMES:
        raise KeyError(f"Unknown catalog collection '{name}'")
    return name

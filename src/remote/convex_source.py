"""HTTP client for the hosted catalog backend.

Queries go through the backend's public HTTP query endpoint
(``POST {deployment}/api/query``) using a shared requests session.
"""

from __future__ import annotations

from typing import Any, Mapping

import requests

from core.config import CatalogCacheConfig
from core.constants import (
    ACCESSORIES,
    ACCESSORY_CATEGORIES,
    BRANDS,
    EQUIPMENT_TYPES,
    EQUIPMENTS,
)
from core.errors import CacheConfigError, RemoteSourceError
from core.logging_config import get_logger

_LOGGER = get_logger(__name__)

QUERY_PATHS = {
    EQUIPMENTS: "equipments:getAllEquipments",
    ACCESSORIES: "accessories:getAllAccessories",
    BRANDS: "brands:getAllBrands",
    EQUIPMENT_TYPES: "equipmentTypes:getAllEquipmentTypes",
    ACCESSORY_CATEGORIES: "accessoryCategories:getAllAccessoryCategories",
}
_LIMITED_COLLECTIONS = (EQUIPMENTS, ACCESSORIES)


class ConvexHttpSource:
    """Catalog source backed by the hosted backend's HTTP query API."""

    def __init__(
        self,
        base_url: str,
        timeout: float,
        fetch_limit: int,
        session: requests.Session | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._fetch_limit = fetch_limit
        self._session = session or requests.Session()
        self._session.headers.update({"Content-Type": "application/json"})

    @classmethod
    def from_config(cls, config: CatalogCacheConfig) -> "ConvexHttpSource":
        """Build a source from runtime config.

        Raises:
            CacheConfigError: If no remote URL is configured.
        """
        if not config.remote_url:
            raise CacheConfigError(
                "No remote catalog URL configured. Set CATALOG_CACHE_REMOTE_URL "
                "or 'remote_url' in the config file."
            )
        return cls(config.remote_url, config.remote_timeout, config.fetch_limit)

    def fetch_collection(self, collection: str) -> list[Mapping[str, Any]]:
        """Run the listing query of one collection.

        Args:
            collection: Catalog collection name.

        Returns:
            Document payloads in backend order.

        Raises:
            RemoteSourceError: If the request or the query fails.
        """
        if collection not in QUERY_PATHS:
            raise RemoteSourceError(f"No remote query is defined for collection '{collection}'.")
        args: dict[str, object] = {}
        if collection in _LIMITED_COLLECTIONS:
            args["limit"] = self._fetch_limit
        value = self._query(QUERY_PATHS[collection], args)
        if not isinstance(value, list) or not all(isinstance(item, Mapping) for item in value):
            raise RemoteSourceError(
                f"Query '{QUERY_PATHS[collection]}' returned an unexpected payload; "
                "expected a list of documents."
            )
        return value

    def _query(self, path: str, args: Mapping[str, object]) -> object:
        url = f"{self._base_url}/api/query"
        try:
            response = self._session.post(
                url,
                json={"path": path, "args": dict(args), "format": "json"},
                timeout=self._timeout,
            )
            response.raise_for_status()
            body = response.json()
        except requests.exceptions.RequestException as error:
            raise RemoteSourceError(f"Remote query '{path}' failed: {error}.") from error
        except ValueError as error:
            raise RemoteSourceError(
                f"Remote query '{path}' returned a non-JSON response."
            ) from error
        if not isinstance(body, Mapping) or body.get("status") != "success":
            message = body.get("errorMessage") if isinstance(body, Mapping) else None
            raise RemoteSourceError(
                f"Remote query '{path}' reported an error: {message or 'unknown error'}."
            )
        _LOGGER.debug("remote_query_succeeded", path=path)
        return body.get("value")

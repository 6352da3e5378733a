"""Shared typed models.

This module defines immutable catalog records, the offline snapshot,
and sync bookkeeping types used by the store, sync, and SDK layers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping

from core.constants import SNAPSHOT_VERSION


@dataclass(frozen=True)
class Brand:
    """Phone manufacturer.

    Attributes:
        id: Backend document id.
        name: Display name.
        logo: Optional storage id of the brand logo.
        created_at: Creation time in epoch milliseconds.
        updated_at: Last update time in epoch milliseconds.
        creation_time: Backend system creation time, when provided.
    """

    id: str
    name: str
    logo: str | None = None
    created_at: float = 0.0
    updated_at: float = 0.0
    creation_time: float | None = None


@dataclass(frozen=True)
class EquipmentType:
    """Kind of spare part, such as screen, battery, or back cover."""

    id: str
    name: str
    description: str | None = None
    created_at: float = 0.0
    updated_at: float = 0.0
    creation_time: float | None = None


@dataclass(frozen=True)
class AccessoryCategory:
    """Accessory grouping, such as chargers or cases."""

    id: str
    name: str
    description: str | None = None
    icon: str | None = None
    created_at: float = 0.0
    updated_at: float = 0.0
    creation_time: float | None = None


@dataclass(frozen=True)
class EquipmentVariant:
    """One purchasable variant of an equipment.

    Attributes:
        label: Variant name, such as a model or color.
        price: Variant price.
        sku: Optional stock keeping unit.
        in_stock: Optional availability flag.
        stock: Optional free-form stock note.
        attributes: Optional color, size, material, and compatibility values.
    """

    label: str
    price: float
    sku: str | None = None
    in_stock: bool | None = None
    stock: str | None = None
    attributes: Mapping[str, object] | None = None


@dataclass(frozen=True)
class Equipment:
    """Spare part product with its resolved brand and type.

    Attributes:
        id: Backend document id.
        label: Product title.
        description: Product description.
        brand_id: Referenced brand id.
        equipment_type_id: Referenced equipment type id.
        variants: Purchasable variants.
        created_at: Creation time in epoch milliseconds.
        updated_at: Last update time in epoch milliseconds.
        brand: Resolved brand, ``None`` when the reference dangles.
        equipment_type: Resolved type, ``None`` when the reference dangles.
        creation_time: Backend system creation time, when provided.
    """

    id: str
    label: str
    description: str
    brand_id: str
    equipment_type_id: str
    variants: tuple[EquipmentVariant, ...] = ()
    created_at: float = 0.0
    updated_at: float = 0.0
    brand: Brand | None = None
    equipment_type: EquipmentType | None = None
    creation_time: float | None = None


@dataclass(frozen=True)
class Accessory:
    """Accessory product with its resolved category.

    Attributes:
        id: Backend document id.
        label: Product name.
        description: Optional description.
        category_id: Referenced accessory category id.
        price: Price in cents.
        images: Storage ids of product images.
        sku: Optional stock keeping unit.
        in_stock: Optional availability flag.
        features: Marketing feature bullet points.
        specifications: Optional technical specification values.
        created_at: Creation time in epoch milliseconds.
        updated_at: Last update time in epoch milliseconds.
        category: Resolved category, ``None`` when the reference dangles.
        creation_time: Backend system creation time, when provided.
    """

    id: str
    label: str
    category_id: str
    price: float
    description: str | None = None
    images: tuple[str, ...] = ()
    sku: str | None = None
    in_stock: bool | None = None
    features: tuple[str, ...] = ()
    specifications: Mapping[str, object] | None = None
    created_at: float = 0.0
    updated_at: float = 0.0
    category: AccessoryCategory | None = None
    creation_time: float | None = None


@dataclass(frozen=True)
class CatalogCollections:
    """The five catalog collections as one value."""

    equipments: tuple[Equipment, ...] = ()
    accessories: tuple[Accessory, ...] = ()
    brands: tuple[Brand, ...] = ()
    equipment_types: tuple[EquipmentType, ...] = ()
    accessory_categories: tuple[AccessoryCategory, ...] = ()


@dataclass(frozen=True)
class Snapshot:
    """Point-in-time offline copy of every catalog collection.

    References embedded in equipments and accessories are resolved at
    sync time and never re-resolved once cached.

    Attributes:
        equipments: Equipments with embedded brand and type.
        accessories: Accessories with embedded category.
        brands: Brand reference collection.
        equipment_types: Equipment type reference collection.
        accessory_categories: Accessory category reference collection.
        last_sync: ISO-8601 timestamp of the sync that produced it.
        version: Snapshot schema version tag.
    """

    equipments: tuple[Equipment, ...]
    accessories: tuple[Accessory, ...]
    brands: tuple[Brand, ...]
    equipment_types: tuple[EquipmentType, ...]
    accessory_categories: tuple[AccessoryCategory, ...]
    last_sync: str
    version: str = SNAPSHOT_VERSION

    @property
    def collections(self) -> CatalogCollections:
        """Return the snapshot contents without bookkeeping fields."""
        return CatalogCollections(
            equipments=self.equipments,
            accessories=self.accessories,
            brands=self.brands,
            equipment_types=self.equipment_types,
            accessory_categories=self.accessory_categories,
        )


class SyncState(str, Enum):
    """Rolling state of the offline synchronization."""

    NEVER_SYNCED = "never-synced"
    SYNCING = "syncing"
    SYNCED = "synced"
    ERROR = "error"
    OFFLINE = "offline"


@dataclass(frozen=True)
class SyncStatus:
    """Current sync state with its last successful timestamp.

    Attributes:
        state: Current sync state.
        last_sync: ISO-8601 timestamp of the last successful sync.
        error: Failure message when state is ``error``.
    """

    state: SyncState
    last_sync: str | None = None
    error: str | None = None


@dataclass(frozen=True)
class StorageInfo:
    """Best-effort storage usage figures for the offline stores."""

    used: int = 0
    available: int = 0
    percentage: float = 0.0
    formatted_used: str = "0 Bytes"
    formatted_available: str = "0 Bytes"


@dataclass(frozen=True)
class StorageCapabilities:
    """Which offline stores opened during initialization."""

    primary: bool
    fallback: bool


@dataclass(frozen=True)
class HybridData:
    """Data the UI should show right now.

    Attributes:
        collections: Live data, cached data, or empty collections.
        is_offline: ``True`` only when serving a cached snapshot.
        last_sync: Timestamp of the served snapshot, ``None`` for live data.
        is_loading: ``True`` when neither live nor cached data exists yet.
        has_offline_data: Whether a cached snapshot was found.
    """

    collections: CatalogCollections = field(default_factory=CatalogCollections)
    is_offline: bool = False
    last_sync: str | None = None
    is_loading: bool = False
    has_offline_data: bool = False

"""Pytest configuration and shared catalog fixtures."""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path
import sys
from typing import Any, Callable, Mapping

import pytest

_SRC_PATH = Path(__file__).resolve().parent.parent / "src"
if str(_SRC_PATH) not in sys.path:
    sys.path.insert(0, str(_SRC_PATH))

from core.config import CatalogCacheConfig  # noqa: E402
from core.types import (  # noqa: E402
    Accessory,
    AccessoryCategory,
    Brand,
    Equipment,
    EquipmentType,
    EquipmentVariant,
    Snapshot,
)
from store.offline_storage import OfflineStorage  # noqa: E402


class FakeCatalogSource:
    """In-memory catalog source returning fixed document payloads."""

    def __init__(self, payloads: Mapping[str, list[dict[str, Any]]]) -> None:
        self.payloads = dict(payloads)
        self.calls: list[str] = []

    def fetch_collection(self, collection: str) -> list[Mapping[str, Any]]:
        self.calls.append(collection)
        value = self.payloads[collection]
        if isinstance(value, Exception):
            raise value
        return value


def build_snapshot(last_sync: str = "2026-01-01T00:00:00.000+00:00", tag: str = "a") -> Snapshot:
    """Build a small but fully populated snapshot."""
    brand = Brand(id=f"brand-{tag}", name=f"Apple {tag}", created_at=1.0, updated_at=2.0)
    equipment_type = EquipmentType(id=f"type-{tag}", name="Screen", description="OLED panels")
    category = AccessoryCategory(id=f"cat-{tag}", name="Chargers", icon="plug")
    equipment = Equipment(
        id=f"eq-{tag}",
        label="iPhone 14 screen",
        description="Replacement screen",
        brand_id=brand.id,
        equipment_type_id=equipment_type.id,
        variants=(
            EquipmentVariant(
                label="Black",
                price=129.0,
                in_stock=True,
                attributes={"color": "black", "compatibility": ["iPhone 14"]},
            ),
        ),
        brand=brand,
        equipment_type=equipment_type,
    )
    accessory = Accessory(
        id=f"acc-{tag}",
        label="USB-C charger",
        category_id=category.id,
        price=1999.0,
        images=("storage-1",),
        features=("20W",),
        specifications={"connectivity": ["USB-C"]},
        category=category,
    )
    return Snapshot(
        equipments=(equipment,),
        accessories=(accessory,),
        brands=(brand,),
        equipment_types=(equipment_type,),
        accessory_categories=(category,),
        last_sync=last_sync,
    )


def catalog_payloads() -> dict[str, list[dict[str, Any]]]:
    """Remote payloads: 3 equipments, 2 accessories (one dangling), 1 of each reference."""
    brand = {"_id": "b1", "name": "Samsung", "createdAt": 1, "updatedAt": 1}
    equipment_type = {"_id": "t1", "name": "Battery", "createdAt": 1, "updatedAt": 1}
    category = {"_id": "c1", "name": "Cases", "createdAt": 1, "updatedAt": 1}
    equipments = [
        {
            "_id": f"e{index}",
            "label": f"Galaxy part {index}",
            "description": "Spare part",
            "brandId": "b1",
            "equipmentTypeId": "t1",
            "variants": [{"label": "Standard", "price": 10 * index}],
            "createdAt": 1,
            "updatedAt": 1,
        }
        for index in range(1, 4)
    ]
    accessories = [
        {"_id": "a1", "label": "Clear case", "categoryId": "c1", "price": 999},
        {"_id": "a2", "label": "Orphan cable", "categoryId": "missing", "price": 499},
    ]
    return {
        "equipments": equipments,
        "accessories": accessories,
        "brands": [brand],
        "equipmentTypes": [equipment_type],
        "accessoryCategories": [category],
    }


@pytest.fixture
def config(tmp_path: Path) -> CatalogCacheConfig:
    """Config rooted in a temporary directory."""
    return replace(CatalogCacheConfig.from_env(), data_root=tmp_path, remote_url=None)


@pytest.fixture
def storage(config: CatalogCacheConfig) -> OfflineStorage:
    """Initialized SQLite plus JSON blob storage adapter."""
    adapter = OfflineStorage.from_config(config)
    adapter.initialize()
    return adapter


@pytest.fixture
def snapshot_factory() -> Callable[..., Snapshot]:
    return build_snapshot


@pytest.fixture
def fake_source() -> FakeCatalogSource:
    return FakeCatalogSource(catalog_payloads())

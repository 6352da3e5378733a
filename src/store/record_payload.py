"""Shared JSON serialization for catalog records and snapshots.

This module maps typed records onto the backend document shape
(``_id`` plus camelCase fields). It is reused by the remote source,
the SQLite store, and the JSON blob store.
"""

from __future__ import annotations

from typing import Any, Mapping

from core.constants import (
    ACCESSORIES,
    ACCESSORY_CATEGORIES,
    BRANDS,
    EQUIPMENT_TYPES,
    EQUIPMENTS,
    SNAPSHOT_VERSION,
)
from core.types import (
    Accessory,
    AccessoryCategory,
    Brand,
    Equipment,
    EquipmentType,
    EquipmentVariant,
    Snapshot,
)


def brand_to_payload(brand: Brand) -> dict[str, object]:
    """Serialize a brand into a document payload."""
    payload: dict[str, object] = {
        "_id": brand.id,
        "name": brand.name,
        "createdAt": brand.created_at,
        "updatedAt": brand.updated_at,
    }
    _put_optional(payload, "logo", brand.logo)
    _put_optional(payload, "_creationTime", brand.creation_time)
    return payload


def brand_from_payload(payload: Mapping[str, Any]) -> Brand:
    """Deserialize a brand document payload."""
    return Brand(
        id=_required_str(payload, "_id"),
        name=str(payload.get("name", "")),
        logo=_optional_str(payload, "logo"),
        created_at=float(payload.get("createdAt", 0.0)),
        updated_at=float(payload.get("updatedAt", 0.0)),
        creation_time=_optional_float(payload, "_creationTime"),
    )


def equipment_type_to_payload(equipment_type: EquipmentType) -> dict[str, object]:
    """Serialize an equipment type into a document payload."""
    payload: dict[str, object] = {
        "_id": equipment_type.id,
        "name": equipment_type.name,
        "createdAt": equipment_type.created_at,
        "updatedAt": equipment_type.updated_at,
    }
    _put_optional(payload, "description", equipment_type.description)
    _put_optional(payload, "_creationTime", equipment_type.creation_time)
    return payload


def equipment_type_from_payload(payload: Mapping[str, Any]) -> EquipmentType:
    """Deserialize an equipment type document payload."""
    return EquipmentType(
        id=_required_str(payload, "_id"),
        name=str(payload.get("name", "")),
        description=_optional_str(payload, "description"),
        created_at=float(payload.get("createdAt", 0.0)),
        updated_at=float(payload.get("updatedAt", 0.0)),
        creation_time=_optional_float(payload, "_creationTime"),
    )


def accessory_category_to_payload(category: AccessoryCategory) -> dict[str, object]:
    """Serialize an accessory category into a document payload."""
    payload: dict[str, object] = {
        "_id": category.id,
        "name": category.name,
        "createdAt": category.created_at,
        "updatedAt": category.updated_at,
    }
    _put_optional(payload, "description", category.description)
    _put_optional(payload, "icon", category.icon)
    _put_optional(payload, "_creationTime", category.creation_time)
    return payload


def accessory_category_from_payload(payload: Mapping[str, Any]) -> AccessoryCategory:
    """Deserialize an accessory category document payload."""
    return AccessoryCategory(
        id=_required_str(payload, "_id"),
        name=str(payload.get("name", "")),
        description=_optional_str(payload, "description"),
        icon=_optional_str(payload, "icon"),
        created_at=float(payload.get("createdAt", 0.0)),
        updated_at=float(payload.get("updatedAt", 0.0)),
        creation_time=_optional_float(payload, "_creationTime"),
    )


def equipment_to_payload(equipment: Equipment) -> dict[str, object]:
    """Serialize an equipment, including its embedded references."""
    payload: dict[str, object] = {
        "_id": equipment.id,
        "label": equipment.label,
        "description": equipment.description,
        "brandId": equipment.brand_id,
        "equipmentTypeId": equipment.equipment_type_id,
        "variants": [_variant_to_payload(variant) for variant in equipment.variants],
        "createdAt": equipment.created_at,
        "updatedAt": equipment.updated_at,
        "brand": brand_to_payload(equipment.brand) if equipment.brand else None,
        "equipmentType": (
            equipment_type_to_payload(equipment.equipment_type)
            if equipment.equipment_type
            else None
        ),
    }
    _put_optional(payload, "_creationTime", equipment.creation_time)
    return payload


def equipment_from_payload(payload: Mapping[str, Any]) -> Equipment:
    """Deserialize an equipment document, keeping any embedded references."""
    brand_payload = payload.get("brand")
    type_payload = payload.get("equipmentType")
    return Equipment(
        id=_required_str(payload, "_id"),
        label=str(payload.get("label", "")),
        description=str(payload.get("description", "")),
        brand_id=str(payload.get("brandId", "")),
        equipment_type_id=str(payload.get("equipmentTypeId", "")),
        variants=tuple(
            _variant_from_payload(item) for item in payload.get("variants") or ()
        ),
        created_at=float(payload.get("createdAt", 0.0)),
        updated_at=float(payload.get("updatedAt", 0.0)),
        brand=brand_from_payload(brand_payload) if isinstance(brand_payload, Mapping) else None,
        equipment_type=(
            equipment_type_from_payload(type_payload)
            if isinstance(type_payload, Mapping)
            else None
        ),
        creation_time=_optional_float(payload, "_creationTime"),
    )


def accessory_to_payload(accessory: Accessory) -> dict[str, object]:
    """Serialize an accessory, including its embedded category."""
    payload: dict[str, object] = {
        "_id": accessory.id,
        "label": accessory.label,
        "categoryId": accessory.category_id,
        "price": accessory.price,
        "images": list(accessory.images),
        "features": list(accessory.features),
        "createdAt": accessory.created_at,
        "updatedAt": accessory.updated_at,
        "category": (
            accessory_category_to_payload(accessory.category) if accessory.category else None
        ),
    }
    _put_optional(payload, "description", accessory.description)
    _put_optional(payload, "sku", accessory.sku)
    _put_optional(payload, "inStock", accessory.in_stock)
    _put_optional(
        payload,
        "specifications",
        dict(accessory.specifications) if accessory.specifications is not None else None,
    )
    _put_optional(payload, "_creationTime", accessory.creation_time)
    return payload


def accessory_from_payload(payload: Mapping[str, Any]) -> Accessory:
    """Deserialize an accessory document, keeping any embedded category."""
    category_payload = payload.get("category")
    specifications = payload.get("specifications")
    return Accessory(
        id=_required_str(payload, "_id"),
        label=str(payload.get("label", "")),
        category_id=str(payload.get("categoryId", "")),
        price=float(payload.get("price", 0.0)),
        description=_optional_str(payload, "description"),
        images=tuple(str(item) for item in payload.get("images") or ()),
        sku=_optional_str(payload, "sku"),
        in_stock=_optional_bool(payload, "inStock"),
        features=tuple(str(item) for item in payload.get("features") or ()),
        specifications=dict(specifications) if isinstance(specifications, Mapping) else None,
        created_at=float(payload.get("createdAt", 0.0)),
        updated_at=float(payload.get("updatedAt", 0.0)),
        category=(
            accessory_category_from_payload(category_payload)
            if isinstance(category_payload, Mapping)
            else None
        ),
        creation_time=_optional_float(payload, "_creationTime"),
    )


def snapshot_to_payload(snapshot: Snapshot) -> dict[str, object]:
    """Serialize a whole snapshot into one JSON-safe blob."""
    return {
        EQUIPMENTS: [equipment_to_payload(item) for item in snapshot.equipments],
        ACCESSORIES: [accessory_to_payload(item) for item in snapshot.accessories],
        BRANDS: [brand_to_payload(item) for item in snapshot.brands],
        EQUIPMENT_TYPES: [equipment_type_to_payload(item) for item in snapshot.equipment_types],
        ACCESSORY_CATEGORIES: [
            accessory_category_to_payload(item) for item in snapshot.accessory_categories
        ],
        "lastSync": snapshot.last_sync,
        "version": snapshot.version,
    }


def snapshot_from_payload(payload: Mapping[str, Any]) -> Snapshot:
    """Deserialize a snapshot blob.

    Raises:
        ValueError: If the blob is missing its sync timestamp or holds
            malformed records.
    """
    last_sync = payload.get("lastSync")
    if not isinstance(last_sync, str) or not last_sync:
        raise ValueError("Snapshot payload is missing 'lastSync'")
    return Snapshot(
        equipments=tuple(equipment_from_payload(item) for item in _items(payload, EQUIPMENTS)),
        accessories=tuple(accessory_from_payload(item) for item in _items(payload, ACCESSORIES)),
        brands=tuple(brand_from_payload(item) for item in _items(payload, BRANDS)),
        equipment_types=tuple(
            equipment_type_from_payload(item) for item in _items(payload, EQUIPMENT_TYPES)
        ),
        accessory_categories=tuple(
            accessory_category_from_payload(item)
            for item in _items(payload, ACCESSORY_CATEGORIES)
        ),
        last_sync=last_sync,
        version=str(payload.get("version") or SNAPSHOT_VERSION),
    )


def _variant_to_payload(variant: EquipmentVariant) -> dict[str, object]:
    payload: dict[str, object] = {"label": variant.label, "price": variant.price}
    _put_optional(payload, "sku", variant.sku)
    _put_optional(payload, "inStock", variant.in_stock)
    _put_optional(payload, "stock", variant.stock)
    _put_optional(
        payload,
        "attributes",
        dict(variant.attributes) if variant.attributes is not None else None,
    )
    return payload


def _variant_from_payload(payload: Mapping[str, Any]) -> EquipmentVariant:
    attributes = payload.get("attributes")
    return EquipmentVariant(
        label=str(payload.get("label", "")),
        price=float(payload.get("price", 0.0)),
        sku=_optional_str(payload, "sku"),
        in_stock=_optional_bool(payload, "inStock"),
        stock=_optional_str(payload, "stock"),
        attributes=dict(attributes) if isinstance(attributes, Mapping) else None,
    )


def _items(payload: Mapping[str, Any], key: str) -> list[Mapping[str, Any]]:
    items = payload.get(key) or []
    if not isinstance(items, list):
        raise ValueError(f"Snapshot collection '{key}' must be a list")
    return items


def _put_optional(payload: dict[str, object], key: str, value: object) -> None:
    if value is not None:
        payload[key] = value


def _required_str(payload: Mapping[str, Any], key: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str) or not value:
        raise ValueError(f"Record payload is missing required '{key}'")
    return value


def _optional_str(payload: Mapping[str, Any], key: str) -> str | None:
    value = payload.get(key)
    return str(value) if value is not None else None


def _optional_float(payload: Mapping[str, Any], key: str) -> float | None:
    value = payload.get(key)
    return float(value) if value is not None else None


def _optional_bool(payload: Mapping[str, Any], key: str) -> bool | None:
    value = payload.get(key)
    return bool(value) if value is not None else None

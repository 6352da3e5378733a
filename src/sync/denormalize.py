"""Reference resolution for cached catalog records.

Resolved references are embedded into the records once, at sync time.
Cached records are never re-resolved afterwards.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Iterable, Protocol, TypeVar

from core.errors import DanglingReferenceError
from core.logging_config import get_logger
from core.types import Accessory, AccessoryCategory, Brand, Equipment, EquipmentType

_LOGGER = get_logger(__name__)


class _Identified(Protocol):
    id: str


RecordT = TypeVar("RecordT", bound=_Identified)


def index_by_id(records: Iterable[RecordT]) -> dict[str, RecordT]:
    """Map record ids onto records; later duplicates win."""
    return {record.id: record for record in records}


def embed_accessory_categories(
    accessories: Iterable[Accessory],
    categories: Iterable[AccessoryCategory],
    strict: bool = False,
) -> tuple[Accessory, ...]:
    """Embed each accessory's category, resolved by id.

    Args:
        accessories: Accessories to resolve.
        categories: Category collection loaded alongside.
        strict: Raise instead of embedding ``None`` for dangling ids.

    Returns:
        Accessories with ``category`` set, or ``None`` when dangling.

    Raises:
        DanglingReferenceError: In strict mode, for an unknown category id.
    """
    categories_by_id = index_by_id(categories)
    resolved: list[Accessory] = []
    for accessory in accessories:
        category = categories_by_id.get(accessory.category_id)
        if category is None:
            _report_dangling("accessory", accessory.id, "category", accessory.category_id, strict)
        resolved.append(replace(accessory, category=category))
    return tuple(resolved)


def embed_equipment_references(
    equipments: Iterable[Equipment],
    brands: Iterable[Brand],
    equipment_types: Iterable[EquipmentType],
) -> tuple[Equipment, ...]:
    """Fill in brand and type for equipments that do not carry them yet.

    References already embedded by the remote query are kept as-is.
    """
    brands_by_id = index_by_id(brands)
    types_by_id = index_by_id(equipment_types)
    resolved: list[Equipment] = []
    for equipment in equipments:
        brand = equipment.brand or brands_by_id.get(equipment.brand_id)
        equipment_type = equipment.equipment_type or types_by_id.get(equipment.equipment_type_id)
        if brand is None:
            _report_dangling("equipment", equipment.id, "brand", equipment.brand_id, False)
        if equipment_type is None:
            _report_dangling(
                "equipment", equipment.id, "equipment_type", equipment.equipment_type_id, False
            )
        resolved.append(replace(equipment, brand=brand, equipment_type=equipment_type))
    return tuple(resolved)


def _report_dangling(
    record_kind: str,
    record_id: str,
    reference: str,
    reference_id: str,
    strict: bool,
) -> None:
    if strict:
        raise DanglingReferenceError(
            f"{record_kind} '{record_id}' references unknown {reference} '{reference_id}'."
        )
    _LOGGER.warning(
        "dangling_reference",
        record_kind=record_kind,
        record_id=record_id,
        reference=reference,
        reference_id=reference_id,
    )

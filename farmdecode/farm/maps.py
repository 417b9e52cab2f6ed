"""Decoders for the three FARM index maps.

  label map      u16 count, count x (string label, u16 geometry, u16 category)
  category map   u16 count, count x (u16 category, Feature: 6 x i32)
  attribute map  u16 count, count x (i32 code, Attribute: string label,
                 i32 code, i32 data kind, i32 units, i32 editability)

Index-addressed maps grow on demand: the backing list is padded with None up
to the new index before the write, so holes stay None.
"""
from __future__ import annotations

import logging
from typing import Optional, TypeVar

from farmdecode.farm.constants import MAX_ATTRIBUTE_CODE
from farmdecode.farm.cursor import ByteCursor
from farmdecode.farm.enums import DataKind, Geometry, Units
from farmdecode.farm.errors import InvalidEnumValue, InvalidGeometryDiscriminant, InvalidMapIndex
from farmdecode.farm.records import Attribute, Feature, FeatureKey

log = logging.getLogger(__name__)

T = TypeVar("T")


def _read_geometry(value: int, offset: int) -> Geometry:
    try:
        return Geometry(value)
    except ValueError:
        raise InvalidGeometryDiscriminant(value, offset) from None


def _store(target: list[Optional[T]], index: int, value: T) -> None:
    """Write value at index, extending target with None as needed."""
    if index >= len(target):
        target.extend([None] * (index + 1 - len(target)))
    target[index] = value


def decode_label_map(cursor: ByteCursor) -> dict[FeatureKey, int]:
    """Read the (label, geometry) -> category map. Duplicate keys overwrite."""
    count = cursor.read_u16()
    result: dict[FeatureKey, int] = {}
    for _ in range(count):
        label = cursor.read_string()
        geom_pos = cursor.position
        geometry = _read_geometry(cursor.read_u16(), geom_pos)
        category = cursor.read_u16()

        key = FeatureKey(label, geometry)
        if key in result:
            log.debug("Label map: %s/%s remapped from category %d to %d",
                      label, geometry.name, result[key], category)
        result[key] = category
    return result


def read_feature(cursor: ByteCursor) -> Feature:
    category = cursor.read_i32()
    code = cursor.read_i32()
    geom_pos = cursor.position
    geometry = _read_geometry(cursor.read_i32(), geom_pos)
    usage = cursor.read_i32()
    precedence = cursor.read_i32()
    overlay_size = cursor.read_i32()
    return Feature(
        category=category,
        code=code,
        geometry=geometry,
        usage_bitmask=usage,
        precedence=precedence,
        attribute_overlay_size=overlay_size,
    )


def decode_category_map(cursor: ByteCursor) -> list[Optional[Feature]]:
    """Read the category -> Feature map into a category-indexed list."""
    count = cursor.read_u16()
    result: list[Optional[Feature]] = []
    for _ in range(count):
        category = cursor.read_u16()
        feature = read_feature(cursor)
        if feature.category != category:
            log.warning("Category map: key %d holds feature with category %d",
                        category, feature.category)
        _store(result, category, feature)
    return result


def read_attribute(cursor: ByteCursor) -> Attribute:
    label = cursor.read_string()
    code = cursor.read_i32()

    kind_pos = cursor.position
    kind_value = cursor.read_i32()
    try:
        data_kind = DataKind(kind_value)
    except ValueError:
        raise InvalidEnumValue("data kind", kind_value, kind_pos) from None

    units_pos = cursor.position
    units_value = cursor.read_i32()
    try:
        units = Units(units_value)
    except ValueError:
        raise InvalidEnumValue("units", units_value, units_pos) from None

    editable = cursor.read_i32() != 0
    return Attribute(label=label, code=code, data_kind=data_kind, units=units, editable=editable)


def decode_attribute_map(cursor: ByteCursor) -> list[Optional[Attribute]]:
    """Read the code -> Attribute map into a code-indexed list."""
    count = cursor.read_u16()
    result: list[Optional[Attribute]] = []
    for _ in range(count):
        code_pos = cursor.position
        code = cursor.read_i32()
        if not 0 <= code <= MAX_ATTRIBUTE_CODE:
            raise InvalidMapIndex("attribute map", code, code_pos)
        attribute = read_attribute(cursor)
        if attribute.code != code:
            log.warning("Attribute map: key %d holds attribute %r with code %d",
                        code, attribute.label, attribute.code)
        _store(result, code, attribute)
    return result

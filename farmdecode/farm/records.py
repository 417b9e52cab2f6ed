"""Dataclasses for the decoded FARM model."""
from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import ClassVar, Iterator, Mapping, Optional, Union

from farmdecode.farm.enums import ByteOrder, DataKind, Geometry, Units
from farmdecode.farm.errors import InvalidEnumDefault


@dataclass(frozen=True, slots=True)
class Version:
    major: int
    format: int
    update: int

    def as_tuple(self) -> tuple[int, int, int]:
        return (self.major, self.format, self.update)

    def __str__(self) -> str:
        return f"{self.major}.{self.format}.{self.update}"


@dataclass(frozen=True, slots=True)
class FeatureKey:
    """Composite key of the label map: (feature label, geometry)."""
    label: str
    geometry: Geometry


@dataclass(frozen=True, slots=True)
class Feature:
    """A terrain feature type, keyed by category."""
    category: int
    code: int
    geometry: Geometry
    usage_bitmask: int         # Raw flags, see enums.UsageBitmask
    precedence: int            # Tie-break among overlapping features
    attribute_overlay_size: int  # Bytes of per-instance attribute storage


@dataclass(frozen=True, slots=True)
class Attribute:
    """A named, typed property that features may carry."""
    label: str
    code: int
    data_kind: DataKind
    units: Units
    editable: bool


# -- data type specifications ----------------------------------------------
# One class per DataKind a table cell may hold. Consumers dispatch on the
# class (or on ``kind``); there is no generic "payload" field.


@dataclass(frozen=True, slots=True)
class NoValue:
    """The feature does not carry this attribute."""
    kind: ClassVar[DataKind] = DataKind.NO_TYPE


NO_VALUE = NoValue()


@dataclass(frozen=True, slots=True)
class BoundedInt:
    offset: int
    default: int
    min: int
    max: int
    kind: ClassVar[DataKind] = DataKind.INT32


@dataclass(frozen=True, slots=True)
class BoundedFloat:
    offset: int
    default: float
    min: float
    max: float
    kind: ClassVar[DataKind] = DataKind.FLOAT64


@dataclass(frozen=True, slots=True)
class StringRef:
    offset: int
    kind: ClassVar[DataKind] = DataKind.STRING


@dataclass(frozen=True, slots=True, order=True)
class Enumerant:
    """One enumeration value: (attribute code, enumerant code)."""
    attribute_code: int
    enumerant_code: int

    def __str__(self) -> str:
        return f"{self.attribute_code}:{self.enumerant_code}"


@dataclass(frozen=True, slots=True)
class EnumRef:
    offset: int
    default: Enumerant
    valid_set: frozenset[Enumerant]
    kind: ClassVar[DataKind] = DataKind.ENUMERATION

    def __post_init__(self):
        if self.default not in self.valid_set:
            raise InvalidEnumDefault(self.default)


@dataclass(frozen=True, slots=True)
class BoolRef:
    offset: int
    default: bool
    kind: ClassVar[DataKind] = DataKind.BOOLEAN


@dataclass(frozen=True, slots=True)
class UuidRef:
    offset: int
    kind: ClassVar[DataKind] = DataKind.UUID


DataTypeSpec = Union[NoValue, BoundedInt, BoundedFloat, StringRef, EnumRef, BoolRef, UuidRef]


@dataclass(frozen=True, slots=True)
class FarmTable:
    """Feature x attribute matrix of data type specifications.

    Each row is indexed by attribute *code*, not by the column position in the
    file, and has max(attribute_codes) + 1 slots. Codes that are not declared
    hold NO_VALUE.
    """
    feature_count: int
    attribute_count: int
    attribute_codes: tuple[int, ...]
    rows: tuple[tuple[DataTypeSpec, ...], ...]

    @property
    def width(self) -> int:
        return max(self.attribute_codes) + 1 if self.attribute_codes else 0

    def cell_at(self, row: int, code: int) -> DataTypeSpec:
        """Spec stored for (row, attribute code); NO_VALUE if code not declared."""
        if not 0 <= row < len(self.rows):
            raise IndexError(f"FARM table row {row} out of range (0..{len(self.rows) - 1})")
        if code < 0:
            raise IndexError(f"Negative attribute code {code}")
        cells = self.rows[row]
        if code >= len(cells):
            return NO_VALUE
        return cells[code]

    def row(self, row: int) -> dict[int, DataTypeSpec]:
        """Non-empty cells of a row, keyed by attribute code in column order."""
        cells: dict[int, DataTypeSpec] = {}
        for code in self.attribute_codes:
            spec = self.cell_at(row, code)
            if not isinstance(spec, NoValue):
                cells[code] = spec
        return cells

    def declared_cells(self) -> Iterator[tuple[int, int, DataTypeSpec]]:
        """Yield (row, code, spec) for every non-empty cell."""
        for r in range(len(self.rows)):
            for code, spec in self.row(r).items():
                yield r, code, spec


@dataclass(frozen=True)
class FarmModel:
    """The immutable result of one decode session."""
    byte_order: ByteOrder
    version: Version
    table: FarmTable
    label_map: Mapping[FeatureKey, int]
    category_map: tuple[Optional[Feature], ...]
    attribute_map: tuple[Optional[Attribute], ...]
    _attributes_by_label: Mapping[str, Attribute] = field(
        init=False, repr=False, compare=False, hash=False
    )

    def __post_init__(self):
        if not isinstance(self.label_map, MappingProxyType):
            object.__setattr__(self, "label_map", MappingProxyType(dict(self.label_map)))
        by_label = {a.label: a for a in self.attribute_map if a is not None}
        object.__setattr__(self, "_attributes_by_label", MappingProxyType(by_label))

    # -- lookups -----------------------------------------------------------

    def feature_by_category(self, category: int) -> Optional[Feature]:
        if 0 <= category < len(self.category_map):
            return self.category_map[category]
        return None

    def feature_by_label_and_geometry(self, label: str, geometry: Geometry) -> Optional[Feature]:
        category = self.label_map.get(FeatureKey(label, Geometry(geometry)))
        if category is None:
            return None
        return self.feature_by_category(category)

    def feature_geometry(self, category: int) -> Optional[Geometry]:
        feature = self.feature_by_category(category)
        return feature.geometry if feature is not None else None

    def attribute_by_code(self, code: int) -> Optional[Attribute]:
        if 0 <= code < len(self.attribute_map):
            return self.attribute_map[code]
        return None

    def attribute_by_label(self, label: str) -> Optional[Attribute]:
        return self._attributes_by_label.get(label)

    def cell_at(self, row: int, code: int) -> DataTypeSpec:
        return self.table.cell_at(row, code)

    def labels_for_category(self, category: int) -> list[FeatureKey]:
        """Label-map keys that resolve to a category, sorted by label."""
        keys = [k for k, c in self.label_map.items() if c == category]
        return sorted(keys, key=lambda k: (k.label, k.geometry))

    def features(self) -> list[Feature]:
        return [f for f in self.category_map if f is not None]

    def attributes(self) -> list[Attribute]:
        return [a for a in self.attribute_map if a is not None]

    def summary(self) -> dict[str, int]:
        return {
            "labels": len(self.label_map),
            "features": len(self.features()),
            "attributes": len(self.attributes()),
            "rows": self.table.feature_count,
            "columns": self.table.attribute_count,
            "cells": sum(1 for _ in self.table.declared_cells()),
        }

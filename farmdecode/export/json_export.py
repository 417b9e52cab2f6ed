"""Export a decoded FARM model as JSON."""
from __future__ import annotations

import json
from typing import Any

from farmdecode.farm.enums import (
    DATA_KIND_NAMES,
    GEOMETRY_NAMES,
    UNITS_NAMES,
    lookup_enum,
    usage_flag_names,
)
from farmdecode.farm.records import (
    BoolRef,
    BoundedFloat,
    BoundedInt,
    DataTypeSpec,
    EnumRef,
    FarmModel,
    NoValue,
    StringRef,
    UuidRef,
)


def spec_fields(spec: DataTypeSpec) -> dict[str, Any]:
    """Flatten a data type spec into plain JSON-able fields."""
    entry: dict[str, Any] = {"dataType": spec.kind.name}
    if isinstance(spec, NoValue):
        return entry
    entry["offset"] = spec.offset
    if isinstance(spec, (BoundedInt, BoundedFloat)):
        entry.update(default=spec.default, min=spec.min, max=spec.max)
    elif isinstance(spec, EnumRef):
        entry["default"] = [spec.default.attribute_code, spec.default.enumerant_code]
        entry["validValues"] = [[e.attribute_code, e.enumerant_code] for e in sorted(spec.valid_set)]
    elif isinstance(spec, BoolRef):
        entry["default"] = spec.default
    elif isinstance(spec, (StringRef, UuidRef)):
        pass
    else:
        raise TypeError(f"Unhandled data type spec {type(spec).__name__}")
    return entry


def build_document(model: FarmModel, include_cells: bool = False) -> dict[str, Any]:
    """Build the export document. Top-level keys are fixed."""
    table = model.table
    doc: dict[str, Any] = {
        "endianness": model.byte_order.label,
        "version": {
            "version": model.version.major,
            "format": model.version.format,
            "update": model.version.update,
        },
        "farmTable": {
            "featureCount": table.feature_count,
            "attributeCount": table.attribute_count,
            "attributeCodes": list(table.attribute_codes),
        },
        "features": [],
        "attributes": [],
        "featureLabelAndGeometryMap": [],
    }

    for category, feature in enumerate(model.category_map):
        if feature is None:
            continue
        doc["features"].append({
            "category": category,
            "code": feature.code,
            "geometryEnum": int(feature.geometry),
            "geometryType": lookup_enum(GEOMETRY_NAMES, feature.geometry),
            "usageBitmask": feature.usage_bitmask,
            "usageFlags": usage_flag_names(feature.usage_bitmask),
            "precedence": feature.precedence,
            "attributeOverlaySize": feature.attribute_overlay_size,
        })

    for code, attribute in enumerate(model.attribute_map):
        if attribute is None:
            continue
        doc["attributes"].append({
            "code": code,
            "label": attribute.label,
            "dataTypeEnum": int(attribute.data_kind),
            "dataType": lookup_enum(DATA_KIND_NAMES, attribute.data_kind),
            "unitsEnum": int(attribute.units),
            "units": lookup_enum(UNITS_NAMES, attribute.units),
            "editability": attribute.editable,
        })

    for key, category in model.label_map.items():
        doc["featureLabelAndGeometryMap"].append({
            "label": key.label,
            "geometryEnum": int(key.geometry),
            "geometryType": lookup_enum(GEOMETRY_NAMES, key.geometry),
            "categoryId": category,
        })

    if include_cells:
        doc["cells"] = [
            {"row": row, "attributeCode": code, **spec_fields(spec)}
            for row, code, spec in table.declared_cells()
        ]

    return doc


def export_json(model: FarmModel, include_cells: bool = False) -> str:
    """Export a model as a JSON string."""
    return json.dumps(build_document(model, include_cells), indent=2)

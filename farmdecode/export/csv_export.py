"""Export FARM table cells as CSV."""
from __future__ import annotations

import csv
import io

from farmdecode.export.json_export import spec_fields
from farmdecode.farm.records import FarmModel


def export_csv(model: FarmModel) -> str:
    """One row per non-empty table cell."""
    output = io.StringIO()
    writer = csv.writer(output)

    # Header
    writer.writerow([
        "row", "attribute_code", "attribute_label", "data_kind",
        "offset", "default", "min", "max", "valid_values",
    ])

    for row, code, spec in model.table.declared_cells():
        attribute = model.attribute_by_code(code)
        fields = spec_fields(spec)

        default = fields.get("default", "")
        if isinstance(default, list):
            default = f"{default[0]}:{default[1]}"
        valid = " ".join(f"{a}:{e}" for a, e in fields.get("validValues", []))

        writer.writerow([
            row,
            code,
            attribute.label if attribute else "",
            fields["dataType"],
            fields.get("offset", ""),
            default,
            fields.get("min", ""),
            fields.get("max", ""),
            valid,
        ])

    return output.getvalue()

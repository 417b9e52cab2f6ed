"""JSON, DOT and CSV export of a decoded model."""
from __future__ import annotations

import csv
import io
import json

from farm_builder import build_farm, sample_farm
from farmdecode.export.csv_export import export_csv
from farmdecode.export.dot_export import export_dot
from farmdecode.export.json_export import export_json, spec_fields
from farmdecode.farm.reader import decode_bytes
from farmdecode.farm.records import NO_VALUE, BoolRef, Enumerant, EnumRef, StringRef


def _enum_farm() -> bytes:
    enum = EnumRef(offset=0, default=Enumerant(2, 1),
                   valid_set=frozenset({Enumerant(2, 1), Enumerant(2, 3)}))
    return build_farm(
        ">",
        codes=[2, 4],
        rows=[[enum, BoolRef(4, False)], [NO_VALUE, StringRef(8)]],
        labels=[("RIVER", 2, 1), ("HUT", 1, 0)],
        features=[(0, (0, 11, 1, 0x4, 1, 12)), (1, (1, 22, 2, 0x100000, 4, 4))],
        attributes=[(2, ("MATERIAL", 2, 4, 11, True)), (4, ("RUINED", 4, 5, 0, False))],
    )


def test_json_top_level_keys_are_stable():
    doc = json.loads(export_json(decode_bytes(sample_farm())))
    assert list(doc) == [
        "endianness", "version", "farmTable", "features", "attributes",
        "featureLabelAndGeometryMap",
    ]


def test_json_content():
    doc = json.loads(export_json(decode_bytes(sample_farm())))
    assert doc["endianness"] == "LITTLE_ENDIAN"
    assert doc["version"] == {"version": 8, "format": 0, "update": 0}
    assert doc["farmTable"] == {"featureCount": 1, "attributeCount": 1, "attributeCodes": [5]}
    assert doc["features"] == [{
        "category": 0, "code": 7, "geometryEnum": 1, "geometryType": "POINT",
        "usageBitmask": 1, "usageFlags": ["AVENUE"], "precedence": 3,
        "attributeOverlaySize": 16,
    }]
    assert doc["attributes"] == [{
        "code": 5, "label": "WIDTH", "dataTypeEnum": 1, "dataType": "INT32",
        "unitsEnum": 1, "units": "METERS", "editability": True,
    }]
    assert doc["featureLabelAndGeometryMap"] == [
        {"label": "AVENUE", "geometryEnum": 1, "geometryType": "POINT", "categoryId": 0},
    ]


def test_json_cells_on_request():
    doc = json.loads(export_json(decode_bytes(_enum_farm()), include_cells=True))
    assert doc["endianness"] == "BIG_ENDIAN"
    assert doc["cells"] == [
        {"row": 0, "attributeCode": 2, "dataType": "ENUMERATION", "offset": 0,
         "default": [2, 1], "validValues": [[2, 1], [2, 3]]},
        {"row": 0, "attributeCode": 4, "dataType": "BOOLEAN", "offset": 4, "default": False},
        {"row": 1, "attributeCode": 4, "dataType": "STRING", "offset": 8},
    ]


def test_spec_fields_for_no_value():
    assert spec_fields(NO_VALUE) == {"dataType": "NO_TYPE"}


def test_csv_rows_per_cell():
    rows = list(csv.reader(io.StringIO(export_csv(decode_bytes(_enum_farm())))))
    assert rows[0][:4] == ["row", "attribute_code", "attribute_label", "data_kind"]
    assert rows[1] == ["0", "2", "MATERIAL", "ENUMERATION", "0", "2:1", "", "", "2:1 2:3"]
    assert rows[2] == ["0", "4", "RUINED", "BOOLEAN", "4", "False", "", "", ""]
    assert rows[3] == ["1", "4", "RUINED", "STRING", "8", "", "", "", ""]
    assert len(rows) == 4


def test_dot_graph_structure():
    dot = export_dot(decode_bytes(_enum_farm()))
    assert dot.startswith("digraph FarmStructure {")
    assert dot.rstrip().endswith("}")
    assert "farm -> farmTable;" in dot
    assert "categoryMap -> feature0;" in dot
    assert "attributeMap -> attribute4;" in dot
    assert "feature0 -> attribute2;" in dot
    assert "feature1 -> attribute4;" in dot
    assert "feature1 -> attribute2;" not in dot
    assert "version: 8.0.0" in dot


def test_dot_escapes_backslashes_and_quotes_in_labels():
    data = build_farm(
        "<",
        labels=[("ROAD\\", 2, 0)],
        features=[(0, (0, 1, 2, 0, 0, 0))],
        attributes=[(0, ('SIGN "A"', 0, 3, 0, False))],
    )
    dot = export_dot(decode_bytes(data))
    assert 'feature0 [label="feature ROAD\\\\\\ncode: 1' in dot
    assert 'attribute0 [label="attribute SIGN \\"A\\"\\ncode: 0' in dot


def test_dot_limits_nodes():
    features = [(i, (i, i, 1, 0, 0, 0)) for i in range(8)]
    dot = export_dot(decode_bytes(build_farm("<", features=features)), max_nodes=3)
    assert "feature2 [" in dot
    assert "feature3 [" not in dot

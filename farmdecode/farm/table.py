"""Decoder for the FARM feature x attribute table."""
from __future__ import annotations

import logging

from farmdecode.farm.cursor import ByteCursor
from farmdecode.farm.datatypes import decode_data_type
from farmdecode.farm.records import NO_VALUE, DataTypeSpec, FarmTable

log = logging.getLogger(__name__)


def decode_farm_table(cursor: ByteCursor) -> FarmTable:
    """Read dimensions, the attribute code list, then rows x columns cells.

    Cells are stored at the index of their attribute code, so every row has
    max(code) + 1 slots and undeclared codes stay NO_VALUE.
    """
    num_rows = cursor.read_u16()
    num_columns = cursor.read_u16()
    codes = tuple(cursor.read_u16() for _ in range(num_columns))

    if len(set(codes)) != len(codes):
        log.warning("FARM table declares duplicate attribute codes; later columns win")

    width = max(codes) + 1 if codes else 0
    log.debug("FARM table: %d rows x %d columns, row width %d", num_rows, num_columns, width)

    rows: list[tuple[DataTypeSpec, ...]] = []
    for _ in range(num_rows):
        row: list[DataTypeSpec] = [NO_VALUE] * width
        for code in codes:
            row[code] = decode_data_type(cursor)
        rows.append(tuple(row))

    return FarmTable(
        feature_count=num_rows,
        attribute_count=num_columns,
        attribute_codes=codes,
        rows=tuple(rows),
    )

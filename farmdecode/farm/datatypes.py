"""Decoder for data type specification records (one FARM table cell).

Each record is a u16 discriminant followed by a kind-specific payload:

  0 no type      (nothing)
  1 int32        offset(i32) + default(i32) + min(i32) + max(i32)
  2 float64      offset(i32) + default(f64) + min(f64) + max(f64)
  3 string       offset(i32)
  4 enumeration  offset(i32) + default(i32 attr, i32 enum) + count(i32)
                 + count x (i32 attr, i32 enum)
  5 boolean      offset(i32) + default(i32, non-zero is true)
  6 uuid         offset(i32)

Payload length depends on the discriminant, so an unknown discriminant
cannot be skipped and aborts the decode.
"""
from __future__ import annotations

from typing import Callable

from farmdecode.farm.cursor import ByteCursor
from farmdecode.farm.enums import DataKind
from farmdecode.farm.errors import FarmFormatError, UnsupportedDataKind
from farmdecode.farm.records import (
    NO_VALUE,
    BoolRef,
    BoundedFloat,
    BoundedInt,
    DataTypeSpec,
    Enumerant,
    EnumRef,
    StringRef,
    UuidRef,
)


def decode_data_type(cursor: ByteCursor) -> DataTypeSpec:
    """Read one discriminant + payload and return the matching spec."""
    offset = cursor.position
    kind = cursor.read_u16()
    decoder = _DECODERS.get(kind)
    if decoder is None:
        raise UnsupportedDataKind(kind, offset)
    return decoder(cursor)


def _decode_no_type(cursor: ByteCursor) -> DataTypeSpec:
    return NO_VALUE


def _decode_int32(cursor: ByteCursor) -> DataTypeSpec:
    offset = cursor.read_i32()
    default = cursor.read_i32()
    lo = cursor.read_i32()
    hi = cursor.read_i32()
    return BoundedInt(offset=offset, default=default, min=lo, max=hi)


def _decode_float64(cursor: ByteCursor) -> DataTypeSpec:
    offset = cursor.read_i32()
    default = cursor.read_f64()
    lo = cursor.read_f64()
    hi = cursor.read_f64()
    return BoundedFloat(offset=offset, default=default, min=lo, max=hi)


def _decode_string(cursor: ByteCursor) -> DataTypeSpec:
    return StringRef(offset=cursor.read_i32())


def _read_enumerant(cursor: ByteCursor) -> Enumerant:
    attribute_code = cursor.read_i32()
    enumerant_code = cursor.read_i32()
    return Enumerant(attribute_code, enumerant_code)


def _decode_enumeration(cursor: ByteCursor) -> DataTypeSpec:
    offset = cursor.read_i32()
    default = _read_enumerant(cursor)
    count_pos = cursor.position
    count = cursor.read_i32()
    if count < 0:
        raise FarmFormatError(f"Negative enumerant count {count}", count_pos)
    # The default is a member whether or not the file repeats it in the list
    valid = {default}
    for _ in range(count):
        valid.add(_read_enumerant(cursor))
    return EnumRef(offset=offset, default=default, valid_set=frozenset(valid))


def _decode_boolean(cursor: ByteCursor) -> DataTypeSpec:
    offset = cursor.read_i32()
    return BoolRef(offset=offset, default=cursor.read_i32() != 0)


def _decode_uuid(cursor: ByteCursor) -> DataTypeSpec:
    return UuidRef(offset=cursor.read_i32())


_DECODERS: dict[int, Callable[[ByteCursor], DataTypeSpec]] = {
    DataKind.NO_TYPE: _decode_no_type,
    DataKind.INT32: _decode_int32,
    DataKind.FLOAT64: _decode_float64,
    DataKind.STRING: _decode_string,
    DataKind.ENUMERATION: _decode_enumeration,
    DataKind.BOOLEAN: _decode_boolean,
    DataKind.UUID: _decode_uuid,
}

"""End-to-end decoding, byte order, sessions and error propagation."""
from __future__ import annotations

import logging

import pytest

from farm_builder import SAMPLE_CELL, FarmBuilder, build_farm, sample_farm
from farmdecode.farm.enums import ByteOrder, DataKind, Geometry, Units
from farmdecode.farm.errors import (
    FarmIOError,
    InvalidByteOrderMarker,
    InvalidGeometryDiscriminant,
    InvalidMapIndex,
    UnexpectedEof,
    UnsupportedDataKind,
)
from farmdecode.farm.reader import FarmCache, FarmSession, decode_bytes, load_farm
from farmdecode.farm.records import (
    NO_VALUE,
    Attribute,
    BoolRef,
    BoundedFloat,
    Enumerant,
    EnumRef,
    Feature,
    StringRef,
    UuidRef,
    Version,
)


def _rich_farm(order: str) -> bytes:
    enum = EnumRef(offset=8, default=Enumerant(12, 1),
                   valid_set=frozenset({Enumerant(12, 1), Enumerant(12, 2), Enumerant(12, 4)}))
    return build_farm(
        order,
        codes=[12, 3, 0],
        rows=[
            [enum, BoundedFloat(0, 2.5, 0.0, 10.0), NO_VALUE],
            [NO_VALUE, StringRef(16), UuidRef(32)],
            [enum, NO_VALUE, BoolRef(48, True)],
        ],
        labels=[("AVENUE", 2, 0), ("BUILDING", 3, 1), ("TREE", 1, 2), ("ALLEY", 2, 0)],
        features=[
            (2, (2, 300, 1, 0x10, 1, 8)),
            (0, (0, 100, 2, 0x1, 5, 24)),
            (1, (1, 200, 3, 0x4 | 0x2000, 9, 64)),
        ],
        attributes=[
            (12, ("SURFACE", 12, 4, 11, True)),
            (3, ("HEIGHT", 3, 2, 1, False)),
            (0, ("ID", 0, 6, 0, False)),
        ],
    )


def test_end_to_end_sample():
    model = decode_bytes(sample_farm("<"))

    assert model.byte_order is ByteOrder.LITTLE
    assert model.version == Version(8, 0, 0)
    assert model.feature_by_label_and_geometry("AVENUE", Geometry.POINT) == Feature(
        category=0, code=7, geometry=Geometry.POINT, usage_bitmask=1,
        precedence=3, attribute_overlay_size=16,
    )
    assert model.cell_at(0, 5) == SAMPLE_CELL
    assert model.attribute_by_code(5) == Attribute(
        label="WIDTH", code=5, data_kind=DataKind.INT32, units=Units.METERS, editable=True,
    )
    for code in range(5):
        assert model.cell_at(0, code) == NO_VALUE


def test_both_byte_orders_decode_to_identical_models():
    little = decode_bytes(_rich_farm("<"))
    big = decode_bytes(_rich_farm(">"))
    assert little.byte_order is ByteOrder.LITTLE
    assert big.byte_order is ByteOrder.BIG
    assert little.table == big.table
    assert little.label_map == big.label_map
    assert little.category_map == big.category_map
    assert little.attribute_map == big.attribute_map
    assert little.version == big.version


def test_decoding_is_deterministic():
    data = _rich_farm("<")
    assert decode_bytes(data) == decode_bytes(data)


def test_rich_model_lookups():
    model = decode_bytes(_rich_farm(">"))
    assert model.feature_by_label_and_geometry("ALLEY", Geometry.LINEAR).code == 100
    assert model.feature_by_label_and_geometry("AVENUE", Geometry.POINT) is None
    assert model.feature_by_category(1).precedence == 9
    assert model.feature_by_category(7) is None
    assert model.feature_geometry(2) is Geometry.POINT
    assert model.attribute_by_label("HEIGHT").code == 3
    assert model.attribute_by_code(1) is None
    assert [k.label for k in model.labels_for_category(0)] == ["ALLEY", "AVENUE"]
    assert model.cell_at(2, 0) == BoolRef(48, True)
    assert model.cell_at(1, 12) == NO_VALUE
    assert model.summary() == {
        "labels": 4, "features": 3, "attributes": 3, "rows": 3, "columns": 3, "cells": 6,
    }


def test_model_is_read_only():
    model = decode_bytes(sample_farm())
    with pytest.raises(TypeError):
        model.label_map["X"] = 1
    with pytest.raises(AttributeError):
        model.version = Version(1, 0, 0)


def test_marker_must_be_one_or_zero():
    data = bytearray(sample_farm("<"))
    data[0:2] = b"\x02\x00"
    with pytest.raises(InvalidByteOrderMarker):
        decode_bytes(bytes(data))


def test_big_endian_encoded_one_is_rejected():
    data = bytearray(sample_farm("<"))
    data[0:2] = b"\x00\x01"
    with pytest.raises(InvalidByteOrderMarker):
        decode_bytes(bytes(data))


def test_explicit_byte_order_must_agree_with_marker():
    with pytest.raises(InvalidByteOrderMarker):
        FarmSession(sample_farm("<"), byte_order=ByteOrder.BIG).decode()
    model = FarmSession(sample_farm(">"), byte_order=ByteOrder.BIG).decode()
    assert model.byte_order is ByteOrder.BIG


def test_version_mismatch_warns_and_continues(caplog):
    session = FarmSession(build_farm("<", version=(7, 1, 2)))
    with caplog.at_level(logging.WARNING, logger="farmdecode"):
        model = session.decode()
    assert model.version == Version(7, 1, 2)
    assert session.initialized
    assert any("7.1.2" in w and "8.0.0" in w for w in session.warnings)
    assert any("7.1.2" in r.message for r in caplog.records)


def test_progress_is_logged(caplog):
    with caplog.at_level(logging.INFO, logger="farmdecode"):
        decode_bytes(sample_farm())
    messages = " ".join(r.message for r in caplog.records)
    assert "Byte order: LITTLE_ENDIAN" in messages
    assert "FARM decode complete" in messages


def test_trailing_bytes_warn():
    session = FarmSession(sample_farm() + b"\x00\x00")
    session.decode()
    assert any("trailing" in w for w in session.warnings)


def _label_section_farm(pad: bool) -> bytes:
    b = FarmBuilder(">").marker().version().table([], [])
    b.u16(1).string("ABC", pad=pad).u16(1).u16(0)
    b.u16(0).u16(0)
    return b.build()


def test_pad_byte_presence_changes_outcome():
    model = decode_bytes(_label_section_farm(pad=True))
    assert len(model.label_map) == 1
    with pytest.raises(InvalidGeometryDiscriminant):
        decode_bytes(_label_section_farm(pad=False))


def test_missing_pad_at_end_of_little_endian_file_is_eof():
    b = FarmBuilder("<").marker().version().table([], [])
    b.u16(1).string("ABC", pad=False).u16(0).u16(0)
    b.u16(0).u16(0)
    with pytest.raises(UnexpectedEof):
        decode_bytes(b.build())


def test_unsupported_kind_in_table_aborts():
    b = FarmBuilder("<").marker().version().u16(1).u16(1).u16(0).u16(9)
    with pytest.raises(UnsupportedDataKind):
        decode_bytes(b.build())


def test_huge_attribute_key_fails_as_format_error():
    data = build_farm("<", attributes=[(0x7FFFFFF0, ("X", 0, 1, 0, False))])
    with pytest.raises(InvalidMapIndex) as info:
        decode_bytes(data)
    assert info.value.code == "InvalidMapIndex"
    assert info.value.offset == 2 + 6 + 4 + 2 + 2 + 2


@pytest.mark.parametrize("cut", [1, 3, 8, 20, 40])
def test_truncated_file_fails(cut):
    data = sample_farm()
    with pytest.raises(UnexpectedEof):
        decode_bytes(data[:cut])


def test_failed_session_exposes_no_model():
    session = FarmSession(sample_farm()[:-3])
    with pytest.raises(UnexpectedEof):
        session.decode()
    assert not session.initialized
    assert session.model is None


def test_second_decode_returns_same_object_without_reading(tmp_path):
    path = tmp_path / "farm.dat"
    path.write_bytes(sample_farm())
    session = FarmSession(path)
    first = session.decode()
    path.unlink()
    assert session.decode() is first
    assert session.initialized


def test_cache_is_keyed_by_resolved_path(tmp_path, monkeypatch):
    path = tmp_path / "farm.dat"
    path.write_bytes(sample_farm())
    cache = FarmCache()
    first = cache.load(path)
    monkeypatch.chdir(tmp_path)
    assert cache.load("farm.dat") is first
    assert path in cache
    assert len(cache) == 1


def test_load_farm_missing_file(tmp_path):
    with pytest.raises(FarmIOError):
        load_farm(tmp_path / "missing.dat")

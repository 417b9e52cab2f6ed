"""FARM file decoder: reads every section in file order into a FarmModel."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

from farmdecode.farm.constants import (
    MARKER_BIG_ENDIAN,
    MARKER_LITTLE_ENDIAN,
    SUPPORTED_VERSION,
)
from farmdecode.farm.cursor import ByteCursor
from farmdecode.farm.enums import ByteOrder
from farmdecode.farm.errors import InvalidByteOrderMarker, VersionMismatch
from farmdecode.farm.maps import decode_attribute_map, decode_category_map, decode_label_map
from farmdecode.farm.records import FarmModel, Version
from farmdecode.farm.table import decode_farm_table

log = logging.getLogger(__name__)

_MARKER_FOR_ORDER = {
    ByteOrder.LITTLE: MARKER_LITTLE_ENDIAN,
    ByteOrder.BIG: MARKER_BIG_ENDIAN,
}


class FarmDecoder:
    """Single-pass decoder over one cursor.

    Nothing read here is visible to callers until decode() returns, so a
    failure at any stage leaves no partial model behind.
    """

    def __init__(self, cursor: ByteCursor):
        self.cursor = cursor
        self.warnings: list[str] = []

    def decode(self) -> FarmModel:
        cur = self.cursor
        log.info("Decoding FARM data from %s (%d bytes)", cur.name, cur.size)

        byte_order = self._read_byte_order()
        version = self._read_version()

        table = decode_farm_table(cur)
        log.info("FARM table: %d features x %d attributes",
                 table.feature_count, table.attribute_count)

        label_map = decode_label_map(cur)
        log.info("Label map: %d entries", len(label_map))

        category_map = decode_category_map(cur)
        log.info("Category map: %d slots, %d features",
                 len(category_map), sum(1 for f in category_map if f is not None))

        attribute_map = decode_attribute_map(cur)
        log.info("Attribute map: %d slots, %d attributes",
                 len(attribute_map), sum(1 for a in attribute_map if a is not None))

        if not cur.at_end():
            msg = f"{cur.remaining} trailing bytes after attribute map at offset 0x{cur.position:X}"
            log.warning(msg)
            self.warnings.append(msg)

        model = FarmModel(
            byte_order=byte_order,
            version=version,
            table=table,
            label_map=label_map,
            category_map=tuple(category_map),
            attribute_map=tuple(attribute_map),
        )
        log.info("FARM decode complete")
        return model

    def _read_byte_order(self) -> ByteOrder:
        cur = self.cursor
        if cur.byte_order_set:
            order = cur.byte_order
        else:
            order = cur.detect_byte_order()
        offset = cur.position
        marker = cur.read_u16()
        if marker != _MARKER_FOR_ORDER[order]:
            raise InvalidByteOrderMarker(marker, offset)
        log.info("Byte order: %s (marker %d)", order.label, marker)
        return order

    def _read_version(self) -> Version:
        cur = self.cursor
        version = Version(cur.read_u16(), cur.read_u16(), cur.read_u16())
        log.info("FARM version %s", version)
        if version.as_tuple() != SUPPORTED_VERSION:
            mismatch = VersionMismatch(version.as_tuple(), SUPPORTED_VERSION)
            log.warning("%s; continuing", mismatch)
            self.warnings.append(str(mismatch))
        return version


Source = Union[str, Path, bytes, bytearray]


class FarmSession:
    """One decode of one source, run at most once.

    decode() returns the model; later calls return the same object without
    re-reading the source. initialized is only true after a successful
    decode. A failed decode can be retried.
    """

    def __init__(self, source: Source, byte_order: Optional[ByteOrder] = None):
        self.source = source
        self.byte_order = byte_order
        self.warnings: list[str] = []
        self._model: Optional[FarmModel] = None

    @property
    def initialized(self) -> bool:
        return self._model is not None

    @property
    def model(self) -> Optional[FarmModel]:
        return self._model

    def _open(self) -> ByteCursor:
        if isinstance(self.source, (bytes, bytearray)):
            cursor = ByteCursor(self.source)
        else:
            cursor = ByteCursor.from_path(Path(self.source))
        if self.byte_order is not None:
            cursor.set_byte_order(self.byte_order)
        return cursor

    def decode(self) -> FarmModel:
        if self._model is not None:
            return self._model
        decoder = FarmDecoder(self._open())
        model = decoder.decode()
        self.warnings = decoder.warnings
        self._model = model
        return model


class FarmCache:
    """Caller-held map from source identity (resolved path) to its session."""

    def __init__(self):
        self._sessions: dict[Path, FarmSession] = {}

    def session(self, path: Union[str, Path]) -> FarmSession:
        key = Path(path).resolve()
        sess = self._sessions.get(key)
        if sess is None:
            sess = FarmSession(key)
            self._sessions[key] = sess
        return sess

    def load(self, path: Union[str, Path]) -> FarmModel:
        return self.session(path).decode()

    def __contains__(self, path) -> bool:
        sess = self._sessions.get(Path(path).resolve())
        return sess is not None and sess.initialized

    def __len__(self) -> int:
        return len(self._sessions)


def load_farm(path: Union[str, Path]) -> FarmModel:
    """Decode a FARM file from disk."""
    return FarmSession(Path(path)).decode()


def decode_bytes(data: bytes) -> FarmModel:
    """Decode a FARM image already in memory."""
    return FarmSession(data).decode()


def read_farm_header(path: Union[str, Path]) -> tuple[ByteOrder, Version]:
    """Check the byte-order marker and read the version, nothing else."""
    decoder = FarmDecoder(ByteCursor.from_path(Path(path)))
    return decoder._read_byte_order(), decoder._read_version()


def main():
    """Quick test: decode a FARM file and print section counts."""
    import sys
    import time
    if len(sys.argv) < 2:
        print("Usage: python -m farmdecode.farm.reader <path/to/farm.dat>")
        sys.exit(1)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    path = Path(sys.argv[1])
    start = time.perf_counter()
    model = load_farm(path)
    elapsed = time.perf_counter() - start

    print(f"\nDecoded {path} in {elapsed * 1000:.1f} ms\n")
    for name, count in model.summary().items():
        print(f"  {name:<12} {count:>8,}")


if __name__ == "__main__":
    main()

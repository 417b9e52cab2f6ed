"""Sequential, endianness-aware reader over an in-memory FARM byte source."""
from __future__ import annotations

import struct
import uuid
from pathlib import Path
from typing import Optional

from farmdecode.farm.constants import MARKER_BYTES_BIG, MARKER_BYTES_LITTLE, UUID_SIZE
from farmdecode.farm.enums import ByteOrder
from farmdecode.farm.errors import FarmIOError, InvalidByteOrderMarker, UnexpectedEof


def _formats(prefix: str) -> dict[str, struct.Struct]:
    return {
        "u16": struct.Struct(prefix + "H"),
        "i16": struct.Struct(prefix + "h"),
        "u32": struct.Struct(prefix + "I"),
        "i32": struct.Struct(prefix + "i"),
        "i64": struct.Struct(prefix + "q"),
        "f64": struct.Struct(prefix + "d"),
        "uuid": struct.Struct(prefix + "IHH8s"),  # time_low(4) + time_mid(2) + time_hi(2) + clock/node(8)
    }


_STRUCTS = {
    ByteOrder.LITTLE: _formats("<"),
    ByteOrder.BIG: _formats(">"),
}


class ByteCursor:
    """Reads primitives from a byte buffer, tracking position.

    The byte order is set once per decode session, either explicitly or via
    detect_byte_order(). Until then multi-byte reads use big-endian, which
    is the network order the format falls back to.
    """

    def __init__(self, data: bytes, byte_order: Optional[ByteOrder] = None, name: str = "<buffer>"):
        self._data = memoryview(bytes(data))
        self._size = len(self._data)
        self._pos = 0
        self.name = name
        self._order_set = byte_order is not None
        self._order = byte_order if byte_order is not None else ByteOrder.BIG
        self._fmt = _STRUCTS[self._order]

    @classmethod
    def from_path(cls, path: Path) -> "ByteCursor":
        """Read a whole file into a cursor. Raises FarmIOError if unreadable."""
        path = Path(path)
        try:
            with open(path, "rb") as f:
                data = f.read()
        except OSError as exc:
            raise FarmIOError(path, exc.strerror or str(exc)) from exc
        return cls(data, name=str(path))

    # -- byte order --------------------------------------------------------

    @property
    def byte_order(self) -> ByteOrder:
        return self._order

    @property
    def byte_order_set(self) -> bool:
        return self._order_set

    def set_byte_order(self, order: ByteOrder) -> None:
        self._order = ByteOrder(order)
        self._fmt = _STRUCTS[self._order]
        self._order_set = True

    def detect_byte_order(self) -> ByteOrder:
        """Peek at the next two bytes and configure the byte order from them.

        ``01 00`` means little-endian, ``00 00`` big-endian. The bytes are not
        consumed, so the marker field itself is read afterwards through the
        configured order.
        """
        self._require(2)
        marker = bytes(self._data[self._pos:self._pos + 2])
        if marker == MARKER_BYTES_LITTLE:
            order = ByteOrder.LITTLE
        elif marker == MARKER_BYTES_BIG:
            order = ByteOrder.BIG
        else:
            raise InvalidByteOrderMarker(marker, self._pos)
        self.set_byte_order(order)
        return order

    # -- position ----------------------------------------------------------

    @property
    def position(self) -> int:
        return self._pos

    @property
    def size(self) -> int:
        return self._size

    @property
    def remaining(self) -> int:
        return self._size - self._pos

    def at_end(self) -> bool:
        return self._pos >= self._size

    def _require(self, n: int) -> None:
        if self._size - self._pos < n:
            raise UnexpectedEof(n, self._size - self._pos, self._pos)

    def skip(self, n: int) -> None:
        self._require(n)
        self._pos += n

    def read_bytes(self, n: int) -> bytes:
        self._require(n)
        raw = bytes(self._data[self._pos:self._pos + n])
        self._pos += n
        return raw

    # -- primitives --------------------------------------------------------

    def _unpack(self, key: str):
        fmt = self._fmt[key]
        self._require(fmt.size)
        value = fmt.unpack_from(self._data, self._pos)[0]
        self._pos += fmt.size
        return value

    def read_u16(self) -> int:
        return self._unpack("u16")

    def read_i16(self) -> int:
        return self._unpack("i16")

    def read_u32(self) -> int:
        return self._unpack("u32")

    def read_i32(self) -> int:
        return self._unpack("i32")

    def read_i64(self) -> int:
        return self._unpack("i64")

    def read_f64(self) -> float:
        return self._unpack("f64")

    def read_bool(self) -> bool:
        """Single byte, non-zero is true."""
        self._require(1)
        value = self._data[self._pos] != 0
        self._pos += 1
        return value

    def read_uuid(self) -> uuid.UUID:
        """16-byte UUID; the first three fields follow the session byte order."""
        fmt = self._fmt["uuid"]
        self._require(UUID_SIZE)
        time_low, time_mid, time_hi, tail = fmt.unpack_from(self._data, self._pos)
        self._pos += UUID_SIZE
        return uuid.UUID(fields=(time_low, time_mid, time_hi, tail[0], tail[1], int.from_bytes(tail[2:], "big")))

    def read_string(self) -> str:
        """u16 length + UTF-8 bytes + one pad byte when the length is odd."""
        length = self.read_u16()
        raw = self.read_bytes(length)
        if length % 2:
            self.skip(1)
        return raw.decode("utf-8", errors="replace")

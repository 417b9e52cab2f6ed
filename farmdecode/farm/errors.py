"""Errors raised while decoding a FARM file.

Every decode failure aborts the whole session. Format errors carry the byte
offset at which the problem was detected so corrupt input can be located
with a hex viewer. The ``code`` attribute is stable and is what the CLI and
tests compare against.
"""
from __future__ import annotations

from typing import Optional


class FarmError(Exception):
    """Base class for all FARM decoding errors."""

    code = "FarmError"


class FarmIOError(FarmError):
    """The byte source could not be opened or read."""

    code = "IoFailure"

    def __init__(self, path, reason: str):
        super().__init__(f"Cannot read FARM file {path}: {reason}")
        self.path = path
        self.reason = reason


class FarmFormatError(FarmError):
    """The byte stream does not follow the FARM layout."""

    code = "FormatError"

    def __init__(self, message: str, offset: Optional[int] = None):
        if offset is not None:
            message = f"{message} (at offset 0x{offset:X})"
        super().__init__(message)
        self.offset = offset


class UnexpectedEof(FarmFormatError):
    code = "UnexpectedEof"

    def __init__(self, requested: int, available: int, offset: int):
        super().__init__(
            f"Unexpected end of data: needed {requested} bytes, {available} available",
            offset,
        )
        self.requested = requested
        self.available = available


class InvalidByteOrderMarker(FarmFormatError):
    code = "InvalidByteOrderMarker"

    def __init__(self, found, offset: int = 0):
        shown = found.hex(" ") if isinstance(found, (bytes, bytearray)) else str(found)
        super().__init__(f"Invalid byte-order marker {shown} (expected 1 or 0)", offset)
        self.found = found


class InvalidGeometryDiscriminant(FarmFormatError):
    code = "InvalidGeometryDiscriminant"

    def __init__(self, value: int, offset: Optional[int] = None):
        super().__init__(f"Invalid geometry discriminant {value} (expected 0-3)", offset)
        self.value = value


class UnsupportedDataKind(FarmFormatError):
    code = "UnsupportedDataKind"

    def __init__(self, value: int, offset: Optional[int] = None):
        super().__init__(f"Unsupported data kind {value} in data type specification", offset)
        self.value = value


class InvalidEnumValue(FarmFormatError):
    """An integer-coded attribute field holds a value outside its enumeration."""

    code = "InvalidEnumValue"

    def __init__(self, enum_name: str, value: int, offset: Optional[int] = None):
        super().__init__(f"Invalid {enum_name} value {value}", offset)
        self.enum_name = enum_name
        self.value = value


class InvalidMapIndex(FarmFormatError):
    code = "InvalidMapIndex"

    def __init__(self, map_name: str, index: int, offset: Optional[int] = None):
        super().__init__(f"Invalid index {index} in {map_name}", offset)
        self.map_name = map_name
        self.index = index


class InvalidEnumDefault(FarmFormatError):
    """An enumeration spec whose default is not one of its valid values."""

    code = "InvalidEnumDefault"

    def __init__(self, default, offset: Optional[int] = None):
        super().__init__(f"Enumeration default {default} is not in its valid set", offset)
        self.default = default


class VersionMismatch(FarmError):
    """File version differs from the supported one. Logged, never raised by the decoder."""

    code = "VersionMismatch"

    def __init__(self, found: tuple[int, int, int], expected: tuple[int, int, int]):
        super().__init__(
            "FARM file version {} differs from supported version {}".format(
                ".".join(map(str, found)), ".".join(map(str, expected))
            )
        )
        self.found = found
        self.expected = expected

"""Enumerations for integer-coded FARM fields, plus display tables."""
from __future__ import annotations

from enum import IntEnum, IntFlag


def lookup_enum(table: dict[int, str], value: int) -> str:
    """Return human-readable name for an enum value, or UNKNOWN(n) for unknowns."""
    return table.get(value, f"UNKNOWN({value})")


class ByteOrder(IntEnum):
    BIG = 0
    LITTLE = 1

    @property
    def struct_prefix(self) -> str:
        return "<" if self is ByteOrder.LITTLE else ">"

    @property
    def label(self) -> str:
        return "LITTLE_ENDIAN" if self is ByteOrder.LITTLE else "BIG_ENDIAN"


class Geometry(IntEnum):
    NONE = 0
    POINT = 1
    LINEAR = 2
    AREAL = 3

    @classmethod
    def parse(cls, text: str) -> "Geometry":
        """Parse a geometry name as typed on the command line (case-insensitive)."""
        try:
            return cls[text.strip().upper()]
        except KeyError:
            valid = ", ".join(g.name.lower() for g in cls)
            raise ValueError(f"Invalid geometry '{text}'. Valid: {valid}") from None


class DataKind(IntEnum):
    NO_TYPE = 0
    INT32 = 1
    FLOAT64 = 2
    STRING = 3
    ENUMERATION = 4
    BOOLEAN = 5
    UUID = 6
    DELETED = 7


class Units(IntEnum):
    UNITLESS = 0
    METERS = 1
    METERS_PER_SECOND = 2
    SQUARE_METERS = 3
    DEGREES = 4
    KILOGRAMS = 5
    KILOGRAMS_PER_CUBIC_METER = 6
    CELSIUS = 7
    LITERS = 8
    LUX = 9
    PASCALS = 10
    ENUMERATION = 11
    MILLISECONDS = 12


class UsageBitmask(IntFlag):
    """Feature usage flags. The decoder keeps the raw int; this is for display."""
    AVENUE = 0x0000001
    APERTURE = 0x0000002
    BUILDING = 0x0000004
    AGRICULTURE_FARM = 0x0000008
    FOREST = 0x0000010
    FURNITURE = 0x0000020
    RAISED_COMBAT_POS = 0x0000040
    DUG_IN_COMBAT_POS = 0x0000080
    LANE = 0x0000100
    MULTI_BLDG = 0x0000200
    LF_SML_VEH_OBSTACLE = 0x0000400
    VEH_OBSTACLE = 0x0000800
    AIR_VEH_OBSTACLE = 0x0001000
    URBAN = 0x0002000
    NBC = 0x0004000
    BLOCKS_L_SML_VEH_LOS = 0x0008000
    BLOCKS_VEH_LOS = 0x0010000
    BLOCKS_LOS = 0x0020000
    PROTECTS_L_SML_VEH = 0x0040000
    PROTECTS_VEH = 0x0080000
    BODY_OF_WATER = 0x0100000


def usage_flag_names(bitmask: int) -> list[str]:
    """Names of the known usage bits set in bitmask, lowest bit first."""
    return [flag.name for flag in UsageBitmask if bitmask & flag.value]


# Display tables (JSON/DOT/CLI output)
GEOMETRY_NAMES: dict[int, str] = {g.value: g.name for g in Geometry}
DATA_KIND_NAMES: dict[int, str] = {k.value: k.name for k in DataKind}
UNITS_NAMES: dict[int, str] = {u.value: u.name for u in Units}

# Short unit suffixes for human-readable summaries
UNITS_SYMBOLS: dict[int, str] = {
    0: "",
    1: "m",
    2: "m/s",
    3: "m^2",
    4: "deg",
    5: "kg",
    6: "kg/m^3",
    7: "C",
    8: "L",
    9: "lx",
    10: "Pa",
    11: "enum",
    12: "ms",
}

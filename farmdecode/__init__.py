"""farmdecode - decoder for FARM (Feature-Attribute Relationship Model) terrain files."""
from farmdecode.farm.enums import ByteOrder, DataKind, Geometry, Units, UsageBitmask
from farmdecode.farm.errors import FarmError, FarmFormatError, FarmIOError
from farmdecode.farm.reader import FarmCache, FarmSession, decode_bytes, load_farm
from farmdecode.farm.records import (
    NO_VALUE,
    Attribute,
    BoolRef,
    BoundedFloat,
    BoundedInt,
    Enumerant,
    EnumRef,
    FarmModel,
    FarmTable,
    Feature,
    FeatureKey,
    NoValue,
    StringRef,
    UuidRef,
    Version,
)

__version__ = "0.1.0"

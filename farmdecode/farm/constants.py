"""FARM format constants, markers, and file naming."""

# Byte-order marker (first u16 of the file)
MARKER_LITTLE_ENDIAN = 1
MARKER_BIG_ENDIAN = 0

# Raw first two bytes for each marker value
MARKER_BYTES_LITTLE = b"\x01\x00"
MARKER_BYTES_BIG = b"\x00\x00"

# The only version this decoder is written against (major, format, update)
SUPPORTED_VERSION = (8, 0, 0)

# Where a terrain database keeps its FARM file
FARM_FILE_LABEL = "farm.dat"
FARM_SUBDIR = "otf"

# UUID fields: time_low(4) + time_mid(2) + time_hi(2) + clock_seq/node(8)
UUID_SIZE = 16

# Attribute codes are u16 in the FARM table, so no larger key can be referenced
MAX_ATTRIBUTE_CODE = 0xFFFF

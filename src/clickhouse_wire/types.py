"""Element types with a registered column codec."""

from __future__ import annotations

from enum import Enum


class ColumnType(Enum):
    """Element types that an Array can hold, named by their wire type."""

    INT8 = "Int8"
    INT16 = "Int16"
    INT32 = "Int32"
    INT64 = "Int64"
    UINT8 = "UInt8"
    UINT16 = "UInt16"
    UINT32 = "UInt32"
    UINT64 = "UInt64"
    FLOAT32 = "Float32"
    FLOAT64 = "Float64"
    STRING = "String"
    DATETIME = "DateTime"

    @property
    def size_bytes(self) -> int:
        """Return the fixed wire size in bytes, or 0 for variable-width types."""
        sizes = {
            ColumnType.INT8: 1,
            ColumnType.INT16: 2,
            ColumnType.INT32: 4,
            ColumnType.INT64: 8,
            ColumnType.UINT8: 1,
            ColumnType.UINT16: 2,
            ColumnType.UINT32: 4,
            ColumnType.UINT64: 8,
            ColumnType.FLOAT32: 4,
            ColumnType.FLOAT64: 8,
            ColumnType.STRING: 0,
            ColumnType.DATETIME: 4,  # uint32 seconds since epoch
        }
        return sizes[self]

    @property
    def struct_format(self) -> str | None:
        """Return the little-endian struct format, or None for non-numeric types."""
        return NUMERIC_FORMATS.get(self)

    @property
    def is_numeric(self) -> bool:
        return self in NUMERIC_FORMATS

    @property
    def envelope_id(self) -> int:
        """Return the stable type tag used in persisted envelopes.

        Tags are never reused; new element types get new tags.
        """
        return ENVELOPE_IDS[self]


NUMERIC_FORMATS: dict[ColumnType, str] = {
    ColumnType.INT8: "<b",
    ColumnType.INT16: "<h",
    ColumnType.INT32: "<i",
    ColumnType.INT64: "<q",
    ColumnType.UINT8: "<B",
    ColumnType.UINT16: "<H",
    ColumnType.UINT32: "<I",
    ColumnType.UINT64: "<Q",
    ColumnType.FLOAT32: "<f",
    ColumnType.FLOAT64: "<d",
}

ENVELOPE_IDS: dict[ColumnType, int] = {
    ColumnType.INT8: 1,
    ColumnType.INT16: 2,
    ColumnType.INT32: 3,
    ColumnType.INT64: 4,
    ColumnType.UINT8: 5,
    ColumnType.UINT16: 6,
    ColumnType.UINT32: 7,
    ColumnType.UINT64: 8,
    ColumnType.FLOAT32: 9,
    ColumnType.FLOAT64: 10,
    ColumnType.STRING: 11,
    ColumnType.DATETIME: 12,
}

# Reverse mapping for envelope decoding
COLUMN_TYPES_BY_ENVELOPE_ID: dict[int, ColumnType] = {v: k for k, v in ENVELOPE_IDS.items()}

# Mapping from wire type names to ColumnType enum values
COLUMN_TYPE_NAMES: dict[str, ColumnType] = {ct.value: ct for ct in ColumnType}

# array.array typecodes mapped by (signed, item size)
_INT_TYPES: dict[tuple[bool, int], ColumnType] = {
    (True, 1): ColumnType.INT8,
    (True, 2): ColumnType.INT16,
    (True, 4): ColumnType.INT32,
    (True, 8): ColumnType.INT64,
    (False, 1): ColumnType.UINT8,
    (False, 2): ColumnType.UINT16,
    (False, 4): ColumnType.UINT32,
    (False, 8): ColumnType.UINT64,
}


def column_type_for_typecode(typecode: str, itemsize: int) -> ColumnType | None:
    """Map an ``array.array`` typecode to a ColumnType.

    The C integer typecodes vary in width across platforms, so the item size
    decides the wire type.
    """
    if typecode == "f":
        return ColumnType.FLOAT32
    if typecode == "d":
        return ColumnType.FLOAT64
    if typecode in "bhilq":
        return _INT_TYPES.get((True, itemsize))
    if typecode in "BHILQ":
        return _INT_TYPES.get((False, itemsize))
    return None

"""Process-wide codec registry.

Maps each registered element type to its codec. The table is built once at
import time and is read-only afterwards, so lookups need no locking.
"""

from __future__ import annotations

import array
from collections.abc import Mapping
from datetime import datetime, tzinfo
from types import MappingProxyType
from typing import Any

from clickhouse_wire.column import ArrayColumn, Column, DateTime, Numeric, String, factory
from clickhouse_wire.config import default_timezone
from clickhouse_wire.errors import UnsupportedTypeError
from clickhouse_wire.types import ColumnType, column_type_for_typecode

# Python element types of list/tuple sequences
_ELEMENT_TYPES: dict[type, ColumnType] = {
    int: ColumnType.INT64,
    float: ColumnType.FLOAT64,
    str: ColumnType.STRING,
    datetime: ColumnType.DATETIME,
}


def _build_codecs() -> Mapping[ColumnType, Column]:
    codecs: dict[ColumnType, Column] = {}
    for column_type in ColumnType:
        if column_type.is_numeric:
            codecs[column_type] = Numeric(column_type)
    codecs[ColumnType.STRING] = String()
    codecs[ColumnType.DATETIME] = DateTime(default_timezone(), is_full=True)
    return MappingProxyType(codecs)


CODECS: Mapping[ColumnType, Column] = _build_codecs()


def unsupported(values: Any) -> UnsupportedTypeError:
    """Build the error reported for a sequence with no codec."""
    return UnsupportedTypeError(f"unsupported array type {describe_type(values)}")


def describe_type(values: Any) -> str:
    """Name the concrete type of a sequence for error messages."""
    if isinstance(values, array.array):
        return f"array.array('{values.typecode}')"
    if isinstance(values, (list, tuple)):
        element_types = sorted({type(v).__name__ for v in values})
        return f"{type(values).__name__}[{' | '.join(element_types)}]"
    return type(values).__name__


def column_type_of(values: Any) -> ColumnType:
    """Resolve the element type of a native sequence.

    Raises:
        UnsupportedTypeError: The sequence type is not registered.
    """
    if isinstance(values, array.array):
        column_type = column_type_for_typecode(values.typecode, values.itemsize)
        if column_type is not None:
            return column_type
    elif isinstance(values, (list, tuple)) and values:
        element_types = {type(v) for v in values}
        if len(element_types) == 1:
            column_type = _ELEMENT_TYPES.get(element_types.pop())
            if column_type is not None:
                return column_type
    raise unsupported(values)


def lookup(values: Any) -> Column:
    """Return the codec for a native sequence.

    DateTime sequences get a codec in the timezone of their first element
    when it is aware, else the registered default.
    """
    return codec_for(column_type_of(values), values)


def codec_for(column_type: ColumnType, values: Any) -> Column:
    """Return the registered codec for ``column_type`` bound to ``values``."""
    if column_type is ColumnType.DATETIME and values:
        zone = getattr(values[0], "tzinfo", None)
        if zone is not None:
            return DateTime(zone, is_full=True)
    return CODECS[column_type]


def registered_type(column: Column) -> ColumnType:
    """Return the registered element type a codec encodes.

    Raises:
        UnsupportedTypeError: The codec is not one of the registered ones.
    """
    if isinstance(column, Numeric):
        return column.column_type
    if isinstance(column, String):
        return ColumnType.STRING
    if isinstance(column, DateTime) and column.is_full:
        return ColumnType.DATETIME
    raise UnsupportedTypeError(f"unsupported array type {column.ch_type}")


def lookup_name(ch_type: str, timezone: tzinfo | None = None) -> Column:
    """Return the element codec for a declared wire type name.

    ``Array(T)`` resolves to the codec of ``T``.

    Raises:
        UnsupportedTypeError: The type has no codec.
        SyntaxError: The type name cannot be parsed.
    """
    column = factory("", ch_type, timezone)
    if isinstance(column, ArrayColumn):
        column = column.element
    return column

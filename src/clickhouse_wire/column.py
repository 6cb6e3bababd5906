"""Column codecs: encode single values into their wire representation."""

from __future__ import annotations

import functools
import struct
import threading
from datetime import date, datetime, timedelta, tzinfo
from typing import Any, Iterable
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from clickhouse_wire.binary import Decoder, Encoder
from clickhouse_wire.config import default_timezone
from clickhouse_wire.errors import UnexpectedTypeError, UnsupportedTypeError
from clickhouse_wire.parsing import TypeParser, TypeSpec
from clickhouse_wire.types import COLUMN_TYPE_NAMES, ColumnType

_EPOCH_DATE = date(1970, 1, 1)


class Column:
    """Codec for one wire type.

    Codecs hold no per-value state and may be shared between threads.
    """

    ch_type: str = ""

    def __init__(self, name: str = "") -> None:
        self.name = name

    def write(self, encoder: Encoder, value: Any) -> None:
        """Encode a single value."""
        raise NotImplementedError

    def read(self, decoder: Decoder) -> Any:
        """Decode a single value."""
        raise NotImplementedError

    def write_column(self, encoder: Encoder, values: Iterable[Any]) -> None:
        """Encode the data of a whole block column."""
        for value in values:
            self.write(encoder, value)

    def _unexpected(self, value: Any) -> UnexpectedTypeError:
        return UnexpectedTypeError(self.name or self.ch_type, value)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.ch_type!r})"


class Numeric(Column):
    """Fixed-width integer and float codecs."""

    def __init__(self, column_type: ColumnType, name: str = "") -> None:
        super().__init__(name)
        if not column_type.is_numeric:
            raise ValueError(f"{column_type.value} is not a numeric type")
        self.column_type = column_type
        self.ch_type = column_type.value
        self._struct = struct.Struct(column_type.struct_format)  # type: ignore[arg-type]
        self._is_float = column_type in (ColumnType.FLOAT32, ColumnType.FLOAT64)

    def write(self, encoder: Encoder, value: Any) -> None:
        if isinstance(value, bool):
            raise self._unexpected(value)
        if self._is_float:
            if not isinstance(value, (int, float)):
                raise self._unexpected(value)
        elif not isinstance(value, int):
            raise self._unexpected(value)
        try:
            data = self._struct.pack(value)
        except (struct.error, OverflowError):
            raise self._unexpected(value) from None
        encoder.write(data)

    def read(self, decoder: Decoder) -> Any:
        return self._struct.unpack(decoder.read(self._struct.size))[0]


class String(Column):
    """Length-prefixed byte strings; ``str`` values are UTF-8 encoded."""

    ch_type = "String"

    def write(self, encoder: Encoder, value: Any) -> None:
        if not isinstance(value, (str, bytes, bytearray)):
            raise self._unexpected(value)
        encoder.string(bytes(value) if isinstance(value, bytearray) else value)

    def read(self, decoder: Decoder) -> Any:
        return decoder.string()


class FixedString(Column):
    """Strings of exactly ``size`` bytes, zero padded on the right."""

    def __init__(self, size: int, name: str = "") -> None:
        super().__init__(name)
        self.size = size
        self.ch_type = f"FixedString({size})"

    def write(self, encoder: Encoder, value: Any) -> None:
        if isinstance(value, str):
            value = value.encode("utf-8")
        if not isinstance(value, (bytes, bytearray)) or len(value) > self.size:
            raise self._unexpected(value)
        encoder.write(bytes(value).ljust(self.size, b"\x00"))

    def read(self, decoder: Decoder) -> Any:
        return decoder.read(self.size)


class Date(Column):
    """Days since 1970-01-01 as uint16."""

    ch_type = "Date"

    def __init__(self, timezone: tzinfo | None = None, name: str = "") -> None:
        super().__init__(name)
        self.timezone = timezone or default_timezone()

    def write(self, encoder: Encoder, value: Any) -> None:
        if isinstance(value, datetime):
            if value.tzinfo is not None:
                value = value.astimezone(self.timezone)
            days = (value.date() - _EPOCH_DATE).days
        elif isinstance(value, date):
            days = (value - _EPOCH_DATE).days
        elif isinstance(value, str):
            try:
                days = (date.fromisoformat(value) - _EPOCH_DATE).days
            except ValueError:
                raise self._unexpected(value) from None
        elif isinstance(value, int) and not isinstance(value, bool):
            days = value
        else:
            raise self._unexpected(value)
        if not 0 <= days <= 0xFFFF:
            raise self._unexpected(value)
        encoder.uint16(days)

    def read(self, decoder: Decoder) -> Any:
        return _EPOCH_DATE + timedelta(days=decoder.uint16())


class DateTime(Column):
    """Seconds since the epoch as uint32.

    Naive datetimes and ``YYYY-MM-DD HH:MM:SS`` strings are interpreted in
    the codec timezone. ``is_full`` keeps the time of day when reading back;
    otherwise only the date is returned.
    """

    def __init__(self, timezone: tzinfo | None = None, is_full: bool = True, name: str = "") -> None:
        super().__init__(name)
        self.timezone = timezone or default_timezone()
        self.is_full = is_full
        key = getattr(self.timezone, "key", None)
        self.ch_type = f"DateTime('{key}')" if key else "DateTime"

    def write(self, encoder: Encoder, value: Any) -> None:
        if isinstance(value, datetime):
            if value.tzinfo is None:
                value = value.replace(tzinfo=self.timezone)
            timestamp = int(value.timestamp())
        elif isinstance(value, str):
            try:
                parsed = datetime.strptime(value, "%Y-%m-%d %H:%M:%S")
            except ValueError:
                raise self._unexpected(value) from None
            timestamp = int(parsed.replace(tzinfo=self.timezone).timestamp())
        elif isinstance(value, int) and not isinstance(value, bool):
            timestamp = value
        else:
            raise self._unexpected(value)
        if not 0 <= timestamp <= 0xFFFFFFFF:
            raise self._unexpected(value)
        encoder.uint32(timestamp)

    def to_datetime(self, value: Any) -> datetime:
        """Return ``value`` as a datetime; strings and ints land in the codec timezone."""
        if isinstance(value, datetime):
            return value
        if isinstance(value, str):
            try:
                parsed = datetime.strptime(value, "%Y-%m-%d %H:%M:%S")
            except ValueError:
                raise self._unexpected(value) from None
            return parsed.replace(tzinfo=self.timezone)
        if isinstance(value, int) and not isinstance(value, bool):
            try:
                return datetime.fromtimestamp(value, self.timezone)
            except (OverflowError, OSError, ValueError):
                raise self._unexpected(value) from None
        raise self._unexpected(value)

    def read(self, decoder: Decoder) -> Any:
        value = datetime.fromtimestamp(decoder.uint32(), self.timezone)
        if self.is_full:
            return value
        return value.date()


class ArrayColumn(Column):
    """``Array(T)`` columns.

    A single value is written as a uvarint count followed by its elements.
    A block column is written as cumulative uint64 offsets followed by all
    elements of all rows.
    """

    def __init__(self, element: Column, name: str = "") -> None:
        super().__init__(name)
        self.element = element
        self.ch_type = f"Array({element.ch_type})"

    def write(self, encoder: Encoder, value: Any) -> None:
        encoder.uvarint(len(value))
        self._write_elements(encoder, value)

    def read(self, decoder: Decoder) -> Any:
        return [self.element.read(decoder) for _ in range(decoder.uvarint())]

    def write_column(self, encoder: Encoder, values: Iterable[Any]) -> None:
        values = list(values)
        offset = 0
        for value in values:
            offset += len(value)
            encoder.uint64(offset)
        for value in values:
            self._write_elements(encoder, value)

    def _write_elements(self, encoder: Encoder, value: Any) -> None:
        if hasattr(value, "write_array"):
            value.write_array(encoder, self.element)
            return
        for item in value:
            self.element.write(encoder, item)


_parser_lock = threading.Lock()
_parser: TypeParser | None = None


@functools.lru_cache(maxsize=256)
def parse_type(ch_type: str) -> TypeSpec:
    """Parse a wire type name, caching the result."""
    global _parser
    with _parser_lock:
        if _parser is None:
            _parser = TypeParser()
        return _parser.parse(ch_type)


def factory(name: str, ch_type: str, timezone: tzinfo | None = None) -> Column:
    """Build the codec for a declared wire type name.

    Args:
        name: Column name, used in error messages.
        ch_type: Wire type name, e.g. ``Int32`` or ``DateTime('UTC')``.
        timezone: Timezone for date/time types without an explicit one.

    Raises:
        UnsupportedTypeError: The type has no codec.
        SyntaxError: The type name cannot be parsed.
    """
    return _build(name, parse_type(ch_type), timezone)


def _build(name: str, spec: TypeSpec, timezone: tzinfo | None) -> Column:
    column_type = COLUMN_TYPE_NAMES.get(spec.name)
    if column_type is not None and column_type.is_numeric and not spec.args:
        return Numeric(column_type, name)
    if spec.name == "String" and not spec.args:
        return String(name)
    if spec.name == "FixedString" and len(spec.args) == 1 and isinstance(spec.args[0], int):
        return FixedString(spec.args[0], name)
    if spec.name == "Date" and not spec.args:
        return Date(timezone, name)
    if spec.name == "DateTime" and len(spec.args) <= 1:
        if spec.args:
            if not isinstance(spec.args[0], str):
                raise UnsupportedTypeError(f"unsupported column type {spec}")
            timezone = _zone(spec.args[0])
        return DateTime(timezone, is_full=True, name=name)
    if spec.name == "Array" and len(spec.args) == 1 and isinstance(spec.args[0], TypeSpec):
        return ArrayColumn(_build(name, spec.args[0], timezone), name)
    raise UnsupportedTypeError(f"unsupported column type {spec}")


def _zone(key: str) -> tzinfo:
    try:
        return ZoneInfo(key)
    except (ZoneInfoNotFoundError, ValueError):
        raise UnsupportedTypeError(f"unknown timezone '{key}'") from None

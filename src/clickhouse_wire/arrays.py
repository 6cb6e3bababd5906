"""Array values: homogeneous sequences bound to their column codec.

An Array is either valid (values plus codec) or failed (a stored error).
The state is fixed at construction. Every operation on a failed Array
re-raises the stored exception before doing any work, so factories can hand
out an Array without raising and callers check it when they use it.
"""

from __future__ import annotations

import array
import io
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from clickhouse_wire import registry
from clickhouse_wire.binary import Decoder, Encoder
from clickhouse_wire.column import Column
from clickhouse_wire.errors import EnvelopeError, UnsupportedTypeError
from clickhouse_wire.types import COLUMN_TYPES_BY_ENVELOPE_ID, ColumnType

logger = logging.getLogger(__name__)

# Envelope header
ENVELOPE_MAGIC = b"CHWA"
ENVELOPE_VERSION = 1

# Envelope container kinds
CONTAINER_LIST = 0
CONTAINER_TUPLE = 1
CONTAINER_ARRAY = 2


@dataclass(frozen=True)
class _Valid:
    values: Any
    column: Column


@dataclass(frozen=True)
class _Failed:
    error: Exception


_State = Union[_Valid, _Failed]


class Array:
    """A homogeneous sequence ready for wire encoding.

    Build one from a native sequence (``Array([1, 2, 3])``,
    ``Array(array.array("h", ...))``) or from a declared wire type
    (``Array.by_type("UInt8", values)``). Unsupported sequences do not raise
    here; the error is stored and raised by every later operation.
    """

    __slots__ = ("_state",)

    def __init__(self, values: Any) -> None:
        try:
            self._state: _State = _Valid(values, registry.lookup(values))
        except UnsupportedTypeError as e:
            logger.debug("Array construction failed: %s", e)
            self._state = _Failed(e)

    @classmethod
    def by_type(cls, ch_type: str, values: Any) -> Array:
        """Build an Array whose codec comes from a declared wire type name.

        Date/time types without an explicit timezone use the timezone of the
        first value when it is aware, else the process default.
        """
        timezone = None
        if isinstance(values, (list, tuple)) and values and isinstance(values[0], datetime):
            timezone = values[0].tzinfo
        try:
            column = registry.lookup_name(ch_type, timezone)
        except (UnsupportedTypeError, SyntaxError) as e:
            logger.debug("Array construction for %s failed: %s", ch_type, e)
            return cls._from_state(_Failed(e))
        return cls._from_state(_Valid(values, column))

    @classmethod
    def _from_state(cls, state: _State) -> Array:
        instance = cls.__new__(cls)
        instance._state = state
        return instance

    # ── State ──────────────────────────────────────────────────────

    @property
    def error(self) -> Exception | None:
        """Return the stored error, or None for a valid Array."""
        if isinstance(self._state, _Failed):
            return self._state.error
        return None

    @property
    def ok(self) -> bool:
        return isinstance(self._state, _Valid)

    def _valid(self) -> _Valid:
        if isinstance(self._state, _Failed):
            raise self._state.error
        return self._state

    @property
    def values(self) -> Any:
        """Return the wrapped sequence."""
        return self._valid().values

    @property
    def column(self) -> Column:
        """Return the resolved codec."""
        return self._valid().column

    def __len__(self) -> int:
        return len(self._valid().values)

    # ── Wire encoding ──────────────────────────────────────────────

    def value(self) -> bytes:
        """Encode as a uvarint element count followed by every element.

        Raises:
            The stored error, or the first element encoding error. No partial
            buffer is returned in either case.
        """
        state = self._valid()
        buf = io.BytesIO()
        encoder = Encoder(buf)
        encoder.uvarint(len(state.values))
        for item in state.values:
            state.column.write(encoder, item)
        return buf.getvalue()

    def write_array(self, encoder: Encoder, column: Column) -> int:
        """Write only the elements, using the caller's codec.

        Returns:
            The number of elements written.
        """
        state = self._valid()
        count = 0
        for item in state.values:
            column.write(encoder, item)
            count += 1
        return count

    # ── Persisted envelope ─────────────────────────────────────────

    def encode(self) -> bytes:
        """Serialize into a self-describing envelope.

        Layout: magic, uint16 version, uint8 type id of the resolved codec,
        uint8 container kind, the fixed-width ``array.array`` typecode for
        that container, uvarint count and the elements.

        Raises:
            UnsupportedTypeError: The codec is not a registered type.
            UnexpectedTypeError: An element does not fit the codec.
        """
        state = self._valid()
        values = state.values
        column_type = registry.registered_type(state.column)

        buf = io.BytesIO()
        encoder = Encoder(buf)
        encoder.write(ENVELOPE_MAGIC)
        encoder.uint16(ENVELOPE_VERSION)
        encoder.uint8(column_type.envelope_id)
        if isinstance(values, array.array):
            encoder.uint8(CONTAINER_ARRAY)
            encoder.write(_portable_typecode(values).encode("ascii"))
        elif isinstance(values, tuple):
            encoder.uint8(CONTAINER_TUPLE)
        else:
            encoder.uint8(CONTAINER_LIST)
        encoder.uvarint(len(values))

        if column_type is ColumnType.DATETIME:
            for item in values:
                _write_datetime(encoder, state.column.to_datetime(item))  # type: ignore[attr-defined]
        else:
            for item in values:
                state.column.write(encoder, item)
        return buf.getvalue()

    @classmethod
    def decode(cls, data: bytes) -> Array:
        """Rebuild an Array from an envelope.

        The codec is the registered one named by the stored type id, so empty
        arrays and arrays built with ``by_type`` keep their wire type. Never
        raises for bad input: a malformed envelope, a newer version or an
        unregistered type id yields a failed Array holding the error.
        """
        try:
            column_type, values = _read_envelope(Decoder(io.BytesIO(data)))
        except EOFError:
            return cls._decode_failed(EnvelopeError("truncated array envelope"))
        except (EnvelopeError, UnsupportedTypeError) as e:
            return cls._decode_failed(e)
        except (ValueError, TypeError, OverflowError) as e:
            return cls._decode_failed(EnvelopeError(f"invalid array envelope: {e}"))
        return cls._from_state(_Valid(values, registry.codec_for(column_type, values)))

    @classmethod
    def _decode_failed(cls, error: Exception) -> Array:
        logger.debug("Array envelope decoding failed: %s", error)
        return cls._from_state(_Failed(error))

    def __reduce__(self) -> tuple[Any, tuple[bytes]]:
        return (_restore, (self.encode(),))

    # ── Misc ───────────────────────────────────────────────────────

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Array):
            return NotImplemented
        if not (self.ok and other.ok):
            return self._state == other._state
        return self.values == other.values and self.column.ch_type == other.column.ch_type

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        if isinstance(self._state, _Failed):
            return f"Array(error={self._state.error!r})"
        return f"Array({self._state.column.ch_type}, {self._state.values!r})"


def _restore(data: bytes) -> Array:
    return Array.decode(data)


def _read_envelope(decoder: Decoder) -> tuple[ColumnType, Any]:
    """Parse an envelope into its element type and native sequence."""
    magic = decoder.read(len(ENVELOPE_MAGIC))
    if magic != ENVELOPE_MAGIC:
        raise EnvelopeError(f"bad array envelope magic {magic!r}")

    version = decoder.uint16()
    if not 1 <= version <= ENVELOPE_VERSION:
        raise EnvelopeError(f"unsupported array envelope version {version}")

    type_id = decoder.uint8()
    column_type = COLUMN_TYPES_BY_ENVELOPE_ID.get(type_id)
    if column_type is None:
        raise UnsupportedTypeError(f"unsupported array type id {type_id}")

    container = decoder.uint8()
    typecode = None
    if container == CONTAINER_ARRAY:
        typecode = decoder.read(1).decode("ascii")
    elif container not in (CONTAINER_LIST, CONTAINER_TUPLE):
        raise EnvelopeError(f"unknown array container kind {container}")

    count = decoder.uvarint()
    if column_type is ColumnType.DATETIME:
        items = [_read_datetime(decoder) for _ in range(count)]
    else:
        column = registry.CODECS[column_type]
        items = [column.read(decoder) for _ in range(count)]

    if decoder.source.read(1):
        raise EnvelopeError("trailing bytes after array envelope")

    if typecode is not None:
        if typecode not in "fd" and column_type in (ColumnType.FLOAT32, ColumnType.FLOAT64):
            items = [int(item) for item in items]
        return column_type, array.array(typecode, items)
    if container == CONTAINER_TUPLE:
        return column_type, tuple(items)
    return column_type, items


def _portable_typecode(values: array.array) -> str:
    # l and L change width between platforms
    if values.typecode in "lL":
        sized = "q" if values.itemsize == 8 else "i"
        return sized.upper() if values.typecode == "L" else sized
    return values.typecode


def _write_datetime(encoder: Encoder, value: datetime) -> None:
    # Stored as text so microseconds, offsets and zones survive the round trip
    encoder.string(value.isoformat())
    # Zones without a key (ZoneInfo.from_file, custom tzinfo) keep only the offset
    encoder.string(getattr(value.tzinfo, "key", None) or "")


def _read_datetime(decoder: Decoder) -> datetime:
    value = datetime.fromisoformat(decoder.string())
    key = decoder.string()
    if not key:
        return value
    try:
        zone = ZoneInfo(key)
    except ZoneInfoNotFoundError:
        raise EnvelopeError(f"unknown timezone '{key}' in array envelope") from None
    zoned = value.replace(tzinfo=zone)
    if zoned.utcoffset() != value.utcoffset():
        zoned = zoned.replace(fold=1)
    return zoned

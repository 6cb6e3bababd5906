"""Tests for Array values: wire encoding, sticky errors and envelopes."""

import array
import io
import pickle
import struct
from datetime import datetime, timedelta, timezone
from importlib import resources
from zoneinfo import ZoneInfo

import pytest

from clickhouse_wire.arrays import ENVELOPE_MAGIC, Array
from clickhouse_wire.binary import Decoder
from clickhouse_wire.column import Numeric, String
from clickhouse_wire.errors import EnvelopeError, UnexpectedTypeError, UnsupportedTypeError
from clickhouse_wire.types import ColumnType

BERLIN = ZoneInfo("Europe/Berlin")


class TestConstruction:
    """Tests for building Arrays."""

    def test_from_sequence(self):
        """Test resolving the codec from the sequence."""
        arr = Array(array.array("h", [1, 2]))
        assert arr.ok is True
        assert arr.error is None
        assert arr.column.ch_type == "Int16"
        assert len(arr) == 2

    @pytest.mark.parametrize("values", [[], {1, 2}, [True], [1, "a"], [b"x"]])
    def test_unsupported_is_stored(self, values):
        """Test that unsupported sequences do not raise at construction."""
        arr = Array(values)
        assert arr.ok is False
        assert isinstance(arr.error, UnsupportedTypeError)
        assert "unsupported array type" in str(arr.error)

    def test_by_type(self):
        """Test resolving the codec from a type name."""
        arr = Array.by_type("UInt8", [1, 2, 3])
        assert arr.ok is True
        assert arr.column.ch_type == "UInt8"

    def test_by_type_array_name(self):
        """Test that Array(T) names give the element codec."""
        assert Array.by_type("Array(String)", ["a"]).column.ch_type == "String"

    @pytest.mark.parametrize("ch_type", ["Decimal(9, 2)", "Int8(", "DateTime('Nowhere/Land')"])
    def test_by_type_errors_are_stored(self, ch_type):
        """Test that type name errors are stored, not raised."""
        arr = Array.by_type(ch_type, [1])
        assert arr.ok is False
        assert isinstance(arr.error, (UnsupportedTypeError, SyntaxError))

    def test_by_type_takes_value_timezone(self):
        """Test that aware values pick the DateTime timezone."""
        arr = Array.by_type("DateTime", [datetime(2024, 1, 1, tzinfo=BERLIN)])
        assert arr.column.timezone is BERLIN


class TestStickyError:
    """Tests for the failed state."""

    def test_every_operation_raises_same_error(self):
        """Test that the stored exception object is raised each time."""
        arr = Array({1, 2})
        error = arr.error

        for operation in (
            arr.value,
            arr.encode,
            lambda: arr.values,
            lambda: arr.column,
            lambda: len(arr),
        ):
            with pytest.raises(UnsupportedTypeError) as exc_info:
                operation()
            assert exc_info.value is error

        # The state does not change after being observed
        assert arr.error is error

    def test_write_array_writes_nothing(self, sink):
        """Test that a failed Array leaves the encoder untouched."""
        buf, encoder = sink
        arr = Array([])
        with pytest.raises(UnsupportedTypeError) as exc_info:
            arr.write_array(encoder, Numeric(ColumnType.INT8))
        assert exc_info.value is arr.error
        assert buf.getvalue() == b""


class TestValue:
    """Tests for the count-prefixed wire encoding."""

    def test_int64_list(self):
        """Test a list of ints."""
        assert Array([1, 2, 3]).value() == b"\x03" + struct.pack("<qqq", 1, 2, 3)

    def test_uint8_array(self):
        """Test an array.array of bytes."""
        assert Array(array.array("B", [1, 2])).value() == b"\x02\x01\x02"

    def test_strings(self):
        """Test a list of strings."""
        assert Array(["a", "bc"]).value() == b"\x02\x01a\x02bc"

    def test_leading_count(self):
        """Test that the leading varint is the element count."""
        values = array.array("i", range(200))
        data = Array(values).value()
        assert Decoder(io.BytesIO(data)).uvarint() == 200
        assert len(data) == 2 + 200 * 4

    def test_by_type_value(self):
        """Test encoding with a declared type."""
        assert Array.by_type("Array(UInt16)", [1, 2]).value() == b"\x02\x01\x00\x02\x00"

    def test_datetime(self):
        """Test encoding timestamps."""
        arr = Array([datetime(2020, 1, 1, tzinfo=timezone.utc)])
        assert arr.value() == b"\x01" + struct.pack("<I", 1577836800)

    def test_element_failure(self):
        """Test that an element error raises and nothing is returned."""
        arr = Array.by_type("UInt8", [1, 300])
        with pytest.raises(UnexpectedTypeError):
            arr.value()


class TestWriteArray:
    """Tests for writing elements with a caller supplied codec."""

    def test_elements_only(self, sink):
        """Test that no count prefix is written."""
        buf, encoder = sink
        count = Array([1, 2, 3]).write_array(encoder, Numeric(ColumnType.INT8))
        assert count == 3
        assert buf.getvalue() == b"\x01\x02\x03"

    def test_order(self, sink):
        """Test that elements keep their order."""
        buf, encoder = sink
        count = Array(["b", "a", "c"]).write_array(encoder, String())
        assert count == 3
        assert buf.getvalue() == b"\x01b\x01a\x01c"


ROUND_TRIP_CASES = [
    array.array("b", [-128, 0, 127]),
    array.array("h", [-32768, 1, 32767]),
    array.array("i", [-(2**31), 2**31 - 1]),
    array.array("q", [-(2**63), 2**63 - 1]),
    array.array("B", [0, 255]),
    array.array("H", [0, 65535]),
    array.array("I", [0, 2**32 - 1]),
    array.array("Q", [0, 2**64 - 1]),
    array.array("f", [1.5, -0.25, 3.0]),
    array.array("d", [0.1, -1e300]),
    array.array("i"),
    [1, -2, 2**62],
    (7, 8),
    [0.1, 2.5],
    ["", "plain", "ünïcödé"],
    ("x", "y"),
    [datetime(2024, 3, 1, 12, 30, 15, 123456)],
    [datetime(2024, 3, 1, 12, 30, tzinfo=timezone.utc)],
    [datetime(2024, 3, 1, 12, 30, tzinfo=timezone(timedelta(hours=5, minutes=30)))],
    [datetime(2024, 7, 1, 8, 0, tzinfo=BERLIN), datetime(2024, 1, 1, 8, 0, tzinfo=BERLIN)],
]


class TestEnvelope:
    """Tests for the persisted envelope."""

    @pytest.mark.parametrize("values", ROUND_TRIP_CASES)
    def test_round_trip(self, values):
        """Test that decode(encode(x)) reproduces x."""
        decoded = Array.decode(Array(values).encode())
        assert decoded.ok is True
        assert type(decoded.values) is type(values)
        assert decoded.values == values
        if isinstance(values, array.array):
            assert decoded.values.typecode == values.typecode

    def test_zone_preserved(self):
        """Test that ZoneInfo zones survive, not just offsets."""
        values = [datetime(2024, 7, 1, 8, 0, tzinfo=BERLIN)]
        decoded = Array.decode(Array(values).encode())
        assert decoded.values[0].tzinfo is BERLIN
        assert decoded.column.timezone is BERLIN

    def test_ambiguous_time_fold(self):
        """Test the repeated hour at the end of summer time."""
        second = datetime(2024, 10, 27, 2, 30, tzinfo=BERLIN, fold=1)
        decoded = Array.decode(Array([second]).encode())
        assert decoded.values[0].fold == 1
        assert decoded.values[0].utcoffset() == second.utcoffset()

    def test_header(self):
        """Test the magic, version and type id."""
        data = Array(array.array("b", [1])).encode()
        assert data[:4] == ENVELOPE_MAGIC
        assert data[4:6] == b"\x01\x00"
        assert data[6] == ColumnType.INT8.envelope_id

    def test_encode_unregistered_sequence(self):
        """Test that only registered sequence types can be persisted."""
        arr = Array.by_type("FixedString(2)", [b"ab"])
        assert arr.ok is True
        with pytest.raises(UnsupportedTypeError):
            arr.encode()

    def test_bad_magic(self):
        """Test an envelope with the wrong magic bytes."""
        arr = Array.decode(b"NOPE\x01\x00\x01\x00\x00")
        assert isinstance(arr.error, EnvelopeError)

    def test_newer_version(self):
        """Test an envelope from a future version."""
        data = bytearray(Array([1]).encode())
        data[4:6] = b"\x02\x00"
        arr = Array.decode(bytes(data))
        assert isinstance(arr.error, EnvelopeError)
        assert "version" in str(arr.error)

    def test_unknown_type_id(self):
        """Test an envelope for a type outside the registered set."""
        data = bytearray(Array([1]).encode())
        data[6] = 99
        arr = Array.decode(bytes(data))
        assert isinstance(arr.error, UnsupportedTypeError)

        with pytest.raises(UnsupportedTypeError) as exc_info:
            arr.value()
        assert exc_info.value is arr.error

    @pytest.mark.parametrize("cut", [0, 3, 6, 8, 12])
    def test_truncated(self, cut):
        """Test envelopes cut short."""
        data = Array([1, 2]).encode()
        arr = Array.decode(data[:cut])
        assert isinstance(arr.error, EnvelopeError)

    def test_trailing_bytes(self):
        """Test envelopes followed by garbage."""
        arr = Array.decode(Array([1]).encode() + b"\x00")
        assert isinstance(arr.error, EnvelopeError)

    def test_empty_sequence_envelope(self):
        """Test that an empty envelope keeps its stored type."""
        data = ENVELOPE_MAGIC + b"\x01\x00" + bytes([ColumnType.INT64.envelope_id]) + b"\x00\x00"
        arr = Array.decode(data)
        assert arr.ok is True
        assert arr.values == []
        assert arr.column.ch_type == "Int64"

    def test_pickle(self):
        """Test that pickling goes through the envelope."""
        arr = Array(array.array("H", [1, 2, 3]))
        restored = pickle.loads(pickle.dumps(arr))
        assert restored == arr
        assert restored.values.typecode == "H"

    def test_pickle_failed_array(self):
        """Test that failed Arrays cannot be pickled."""
        arr = Array([])
        with pytest.raises(UnsupportedTypeError):
            pickle.dumps(arr)


class TestEquality:
    """Tests for Array comparison."""

    def test_equal(self):
        """Test equal values with equal codecs."""
        assert Array([1, 2]) == Array([1, 2])
        assert Array([1, 2]) != Array([2, 1])

    def test_codec_matters(self):
        """Test that the codec is part of the identity."""
        assert Array.by_type("Int8", [1]) != Array([1])

    def test_failed(self):
        """Test failed Arrays are only equal to themselves."""
        failed = Array([])
        assert failed == failed
        assert failed != Array([])
        assert failed != Array([1])


def _zone_from_file(key):
    """Build a ZoneInfo with no key, as ZoneInfo.from_file does."""
    path = resources.files("tzdata").joinpath("zoneinfo")
    for part in key.split("/"):
        path = path.joinpath(part)
    with path.open("rb") as f:
        return ZoneInfo.from_file(f)


BY_TYPE_CASES = [
    ("Int8", [-128, 127]),
    ("Int16", [-32768, 32767]),
    ("Int32", [-(2**31), 2**31 - 1]),
    ("Int64", [-(2**63), 2**63 - 1]),
    ("UInt8", [0, 255]),
    ("UInt16", [0, 65535]),
    ("UInt32", [0, 2**32 - 1]),
    ("UInt64", [0, 2**64 - 1]),
    ("Float32", [0.5, -2.25]),
    ("Float64", [0.1, 1e300]),
    ("String", ["a", ""]),
    ("DateTime('Europe/Berlin')", [datetime(2024, 7, 1, 8, 0, tzinfo=BERLIN)]),
    ("Array(UInt16)", (1, 2)),
    ("UInt32", array.array("L", [1, 2])),
    ("String", []),
    ("UInt8", []),
    ("Float32", ()),
    ("DateTime", []),
]


class TestEnvelopeCodec:
    """Tests for envelopes of Arrays built from declared types."""

    @pytest.mark.parametrize("ch_type, values", BY_TYPE_CASES)
    def test_by_type_round_trip(self, ch_type, values):
        """Test that the declared codec survives encode and decode."""
        arr = Array.by_type(ch_type, values)
        decoded = Array.decode(arr.encode())
        assert decoded.ok is True
        assert decoded == arr
        assert decoded.column.ch_type == arr.column.ch_type
        assert type(decoded.values) is type(values)

    def test_type_id_follows_codec(self):
        """Test that the stored type id is the codec's, not the values'."""
        data = Array.by_type("UInt64", [2**64 - 1]).encode()
        assert data[6] == ColumnType.UINT64.envelope_id

    def test_element_out_of_codec_range(self):
        """Test that elements are checked against the declared codec."""
        with pytest.raises(UnexpectedTypeError):
            Array.by_type("UInt8", [256]).encode()

    def test_float_codec_in_int_container(self):
        """Test float codecs over integer array.array values."""
        values = array.array("i", [1, -2])
        decoded = Array.decode(Array.by_type("Float64", values).encode())
        assert decoded.values == values
        assert decoded.values.typecode == "i"
        assert decoded.column.ch_type == "Float64"

    def test_datetime_strings(self):
        """Test that string timestamps are stored as aware datetimes."""
        arr = Array.by_type("DateTime('UTC')", ["2024-01-01 12:00:00"])
        decoded = Array.decode(arr.encode())
        assert decoded.values == [datetime(2024, 1, 1, 12, 0, tzinfo=ZoneInfo("UTC"))]
        assert decoded.column.ch_type == "DateTime('UTC')"
        assert decoded.value() == arr.value()

    def test_datetime_bad_string(self):
        """Test a DateTime element that cannot be parsed."""
        with pytest.raises(UnexpectedTypeError):
            Array.by_type("DateTime('UTC')", ["yesterday"]).encode()

    def test_zone_without_key(self):
        """Test zones loaded from a file, which carry no key."""
        zone = _zone_from_file("Europe/Berlin")
        assert zone.key is None
        values = [datetime(2024, 1, 1, tzinfo=zone), datetime(2024, 7, 1, tzinfo=zone)]

        decoded = Array.decode(Array(values).encode())
        assert decoded.ok is True
        assert decoded.values == values
        assert [v.utcoffset() for v in decoded.values] == [timedelta(hours=1), timedelta(hours=2)]

    @pytest.mark.parametrize("typecode, portable", [("l", {"i", "q"}), ("L", {"I", "Q"})])
    def test_platform_typecodes_are_fixed_width(self, typecode, portable):
        """Test that l and L are stored as fixed-width typecodes."""
        values = array.array(typecode, [1, 2])
        data = Array(values).encode()
        stored = chr(data[8])
        assert stored in portable
        assert array.array(stored).itemsize == values.itemsize

        decoded = Array.decode(data)
        assert list(decoded.values) == [1, 2]
        assert decoded.values.itemsize == values.itemsize

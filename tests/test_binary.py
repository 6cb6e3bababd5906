"""Tests for the binary primitives and the write buffer."""

import io

import pytest

from clickhouse_wire.binary import Decoder, Encoder
from clickhouse_wire.buffer import WriteBuffer


class TestEncoder:
    """Tests for the Encoder."""

    @pytest.mark.parametrize(
        "value, expected",
        [
            (0, b"\x00"),
            (1, b"\x01"),
            (127, b"\x7f"),
            (128, b"\x80\x01"),
            (300, b"\xac\x02"),
            (54213, b"\xc5\xa7\x03"),
        ],
    )
    def test_uvarint(self, sink, value, expected):
        """Test unsigned varint encoding."""
        buf, encoder = sink
        encoder.uvarint(value)
        assert buf.getvalue() == expected

    def test_uvarint_negative(self, sink):
        """Test that negative varints are rejected."""
        _, encoder = sink
        with pytest.raises(ValueError):
            encoder.uvarint(-1)

    def test_string(self, sink):
        """Test length-prefixed strings."""
        buf, encoder = sink
        encoder.string("")
        encoder.string("abc")
        encoder.string("é")
        encoder.string(b"\x00\xff")
        assert buf.getvalue() == b"\x00\x03abc\x02\xc3\xa9\x02\x00\xff"

    def test_fixed_width_little_endian(self, sink):
        """Test fixed-width numbers are little-endian."""
        buf, encoder = sink
        encoder.uint16(1)
        encoder.int32(-1)
        encoder.uint64(2)
        encoder.bool(True)
        assert buf.getvalue() == (
            b"\x01\x00" + b"\xff\xff\xff\xff" + b"\x02" + b"\x00" * 7 + b"\x01"
        )


class TestDecoder:
    """Tests for the Decoder."""

    def test_uvarint(self):
        """Test reading varints back."""
        decoder = Decoder(io.BytesIO(b"\x00\x7f\xac\x02\xc5\xa7\x03"))
        assert [decoder.uvarint() for _ in range(4)] == [0, 127, 300, 54213]

    def test_string(self):
        """Test reading strings back."""
        decoder = Decoder(io.BytesIO(b"\x03abc\x00"))
        assert decoder.string() == "abc"
        assert decoder.string() == ""

    def test_fixed_width(self):
        """Test reading fixed-width numbers."""
        decoder = Decoder(io.BytesIO(b"\xff\x01\x00\x00\x00\x00\x00\xc0\x3f"))
        assert decoder.int8() == -1
        assert decoder.uint32() == 1
        assert decoder.float32() == 1.5

    def test_short_read(self):
        """Test that truncated input raises EOFError."""
        decoder = Decoder(io.BytesIO(b"\x05ab"))
        with pytest.raises(EOFError):
            decoder.string()

    def test_unterminated_uvarint(self):
        """Test a varint whose continuation bit never clears."""
        decoder = Decoder(io.BytesIO(b"\x80\x80"))
        with pytest.raises(EOFError):
            decoder.uvarint()


class TestWriteBuffer:
    """Tests for the WriteBuffer."""

    def test_stages_until_flush(self):
        """Test that nothing reaches the transport before flush."""
        transport = io.BytesIO()
        buffer = WriteBuffer(transport)
        buffer.write(b"abc")
        buffer.write(b"de")

        assert transport.getvalue() == b""
        assert len(buffer) == 5

        buffer.flush()
        assert transport.getvalue() == b"abcde"
        assert len(buffer) == 0

    def test_reset(self):
        """Test discarding staged bytes."""
        buffer = WriteBuffer(io.BytesIO())
        buffer.write(b"abc")
        buffer.reset()
        assert buffer.getvalue() == b""

    def test_flush_without_transport(self):
        """Test flushing a buffer that has nowhere to go."""
        buffer = WriteBuffer()
        buffer.write(b"x")
        with pytest.raises(RuntimeError):
            buffer.flush()

"""Binary primitives of the native protocol.

All multi-byte numbers are little-endian. Strings are a uvarint byte length
followed by the UTF-8 bytes.
"""

from __future__ import annotations

import struct
from typing import Any, BinaryIO


class Encoder:
    """Writes protocol primitives to a binary stream."""

    def __init__(self, output: BinaryIO) -> None:
        self.output = output

    def write(self, data: bytes) -> None:
        """Write raw bytes."""
        self.output.write(data)

    def uvarint(self, value: int) -> None:
        """Write an unsigned LEB128 integer."""
        if value < 0:
            raise ValueError(f"uvarint cannot encode negative value {value}")
        buf = bytearray()
        while value >= 0x80:
            buf.append((value & 0x7F) | 0x80)
            value >>= 7
        buf.append(value)
        self.output.write(bytes(buf))

    def string(self, value: str | bytes) -> None:
        """Write a length-prefixed string."""
        data = value.encode("utf-8") if isinstance(value, str) else value
        self.uvarint(len(data))
        self.output.write(data)

    def bool(self, value: bool) -> None:
        self._pack("<?", value)

    def int8(self, value: int) -> None:
        self._pack("<b", value)

    def int16(self, value: int) -> None:
        self._pack("<h", value)

    def int32(self, value: int) -> None:
        self._pack("<i", value)

    def int64(self, value: int) -> None:
        self._pack("<q", value)

    def uint8(self, value: int) -> None:
        self._pack("<B", value)

    def uint16(self, value: int) -> None:
        self._pack("<H", value)

    def uint32(self, value: int) -> None:
        self._pack("<I", value)

    def uint64(self, value: int) -> None:
        self._pack("<Q", value)

    def float32(self, value: float) -> None:
        self._pack("<f", value)

    def float64(self, value: float) -> None:
        self._pack("<d", value)

    def _pack(self, fmt: str, value: Any) -> None:
        self.output.write(struct.pack(fmt, value))


class Decoder:
    """Reads protocol primitives from a binary stream.

    Short reads raise EOFError.
    """

    def __init__(self, source: BinaryIO) -> None:
        self.source = source

    def read(self, n: int) -> bytes:
        """Read exactly n raw bytes."""
        data = self.source.read(n)
        if len(data) != n:
            raise EOFError(f"expected {n} bytes, got {len(data)}")
        return data

    def uvarint(self) -> int:
        """Read an unsigned LEB128 integer."""
        result = 0
        shift = 0
        while True:
            byte = self.read(1)[0]
            result |= (byte & 0x7F) << shift
            if byte < 0x80:
                return result
            shift += 7
            if shift > 63:
                raise ValueError("uvarint overflows 64 bits")

    def raw_string(self) -> bytes:
        """Read a length-prefixed string as bytes."""
        return self.read(self.uvarint())

    def string(self) -> str:
        """Read a length-prefixed UTF-8 string."""
        return self.raw_string().decode("utf-8")

    def bool(self) -> bool:
        return self._unpack("<?")

    def int8(self) -> int:
        return self._unpack("<b")

    def int16(self) -> int:
        return self._unpack("<h")

    def int32(self) -> int:
        return self._unpack("<i")

    def int64(self) -> int:
        return self._unpack("<q")

    def uint8(self) -> int:
        return self._unpack("<B")

    def uint16(self) -> int:
        return self._unpack("<H")

    def uint32(self) -> int:
        return self._unpack("<I")

    def uint64(self) -> int:
        return self._unpack("<Q")

    def float32(self) -> float:
        return self._unpack("<f")

    def float64(self) -> float:
        return self._unpack("<d")

    def _unpack(self, fmt: str) -> Any:
        return struct.unpack(fmt, self.read(struct.calcsize(fmt)))[0]

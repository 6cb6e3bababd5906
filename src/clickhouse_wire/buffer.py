"""Staging buffer between the encoder and the transport."""

from __future__ import annotations

from typing import BinaryIO


class WriteBuffer:
    """Collects encoded bytes in memory until flushed to the transport.

    The transport is any binary stream with ``write``; its ``flush`` is called
    too when it has one. Bytes written before a failed frame stay staged and
    must not be flushed by the caller.
    """

    def __init__(self, transport: BinaryIO | None = None) -> None:
        self.transport = transport
        self._buf = bytearray()

    def write(self, data: bytes) -> int:
        """Stage bytes for the next flush."""
        self._buf.extend(data)
        return len(data)

    def getvalue(self) -> bytes:
        """Return the staged bytes."""
        return bytes(self._buf)

    def reset(self) -> None:
        """Discard all staged bytes."""
        del self._buf[:]

    def flush(self) -> None:
        """Send staged bytes to the transport and clear the buffer."""
        if self.transport is None:
            raise RuntimeError("WriteBuffer has no transport to flush to")
        if self._buf:
            self.transport.write(bytes(self._buf))
            del self._buf[:]
        transport_flush = getattr(self.transport, "flush", None)
        if transport_flush is not None:
            transport_flush()

    def __len__(self) -> int:
        return len(self._buf)

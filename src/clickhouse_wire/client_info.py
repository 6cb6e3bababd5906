"""Client and server identity exchanged on a connection."""

from __future__ import annotations

from dataclasses import dataclass

from clickhouse_wire.binary import Encoder
from clickhouse_wire.protocol import (
    CLIENT_NAME,
    CLIENT_REVISION,
    CLIENT_VERSION_MAJOR,
    CLIENT_VERSION_MINOR,
)


@dataclass
class ClientInfo:
    """Client identity written into every query frame."""

    client_name: str = CLIENT_NAME
    version_major: int = CLIENT_VERSION_MAJOR
    version_minor: int = CLIENT_VERSION_MINOR
    revision: int = CLIENT_REVISION

    def write(self, encoder: Encoder) -> None:
        """Write name, major version, minor version and revision."""
        encoder.string(self.client_name)
        encoder.uvarint(self.version_major)
        encoder.uvarint(self.version_minor)
        encoder.uvarint(self.revision)


@dataclass(frozen=True)
class ServerInfo:
    """Server identity as negotiated by the handshake.

    The revision is fixed for the life of the connection and decides which
    optional fields are sent.
    """

    name: str
    version_major: int
    version_minor: int
    revision: int
    timezone: str | None = None

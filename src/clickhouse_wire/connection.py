"""Outbound query frames on an established connection."""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from typing import BinaryIO, Protocol

from clickhouse_wire.binary import Encoder
from clickhouse_wire.block import Block
from clickhouse_wire.buffer import WriteBuffer
from clickhouse_wire.client_info import ClientInfo, ServerInfo
from clickhouse_wire.config import ConnectionConfig
from clickhouse_wire.protocol import (
    CLIENT_DATA,
    CLIENT_QUERY,
    COMPRESS_DISABLE,
    COMPRESS_ENABLE,
    DBMS_MIN_REVISION_WITH_QUOTA_KEY_IN_CLIENT_INFO,
    DBMS_MIN_REVISION_WITH_TEMPORARY_TABLES,
    INTERFACE_TCP,
    LOOPBACK_PEER_ADDRESS,
    QUERY_KIND_INITIAL,
    STATE_COMPLETE,
)

logger = logging.getLogger(__name__)


class Compressor(Protocol):
    """Compresses block bodies when compression is enabled."""

    def compress(self, data: bytes) -> bytes: ...


@dataclass(frozen=True)
class Query:
    """A query ready to be framed, bound to its connection's state."""

    text: str
    compress: bool
    client_info: ClientInfo
    revision: int
    hostname: str


def write_query(encoder: Encoder, query: Query) -> None:
    """Write the query packet, up to and including the query text.

    The first failing write raises and nothing after it is written.
    """
    encoder.uvarint(CLIENT_QUERY)
    encoder.string("")  # query id

    # client info
    encoder.uvarint(QUERY_KIND_INITIAL)
    encoder.string("")  # initial user
    encoder.string("")  # initial query id
    encoder.string(LOOPBACK_PEER_ADDRESS)
    encoder.uvarint(INTERFACE_TCP)
    encoder.string(query.hostname)  # client hostname
    encoder.string(query.hostname)  # initial hostname
    query.client_info.write(encoder)
    if query.revision >= DBMS_MIN_REVISION_WITH_QUOTA_KEY_IN_CLIENT_INFO:
        encoder.string("")  # quota key

    encoder.string("")  # settings
    encoder.uvarint(STATE_COMPLETE)
    encoder.uvarint(COMPRESS_ENABLE if query.compress else COMPRESS_DISABLE)
    encoder.string(query.text)


class Connection:
    """Frame writer for one handshaken connection.

    Not safe for concurrent use: callers must serialise every frame-writing
    call on a connection.
    """

    def __init__(
        self,
        transport: BinaryIO,
        server_info: ServerInfo,
        config: ConnectionConfig | None = None,
        client_info: ClientInfo | None = None,
        compressor: Compressor | None = None,
    ) -> None:
        """Initialize the connection.

        Args:
            transport: Writable binary stream connected to the server.
            server_info: Result of the handshake.
            config: Client identity and preferences.
            client_info: Client identity block; built from ``config`` if None.
            compressor: Required when ``config.compress`` is set.
        """
        self.config = config or ConnectionConfig()
        if self.config.compress and compressor is None:
            raise ValueError("Compression is enabled but no compressor was given")
        self.server_info = server_info
        self.client_info = client_info or ClientInfo(client_name=self.config.client_name)
        self.compressor = compressor
        self.buffer = WriteBuffer(transport)
        self.encoder = Encoder(self.buffer)

    @property
    def revision(self) -> int:
        return self.server_info.revision

    def send_query(self, query: str) -> None:
        """Send a query followed by an empty data block, then flush.

        Any failure propagates unchanged and the transport is not flushed.
        """
        logger.debug("[send query] %s", query)
        write_query(
            self.encoder,
            Query(
                text=query,
                compress=self.config.compress,
                client_info=self.client_info,
                revision=self.revision,
                hostname=self.config.hostname,
            ),
        )
        self.write_block(Block())
        self.buffer.flush()

    def send_block(self, block: Block) -> None:
        """Send a data block (e.g. rows for an INSERT) and flush."""
        self.write_block(block)
        self.buffer.flush()

    def write_block(self, block: Block) -> None:
        """Write a client data packet without flushing."""
        logger.debug(
            "[write block] columns=%d rows=%d", block.num_columns, block.num_rows
        )
        self.encoder.uvarint(CLIENT_DATA)
        if self.revision >= DBMS_MIN_REVISION_WITH_TEMPORARY_TABLES:
            self.encoder.string("")  # temporary table name
        if self.config.compress:
            body = io.BytesIO()
            block.write(Encoder(body), self.revision)
            self.encoder.write(self.compressor.compress(body.getvalue()))  # type: ignore[union-attr]
        else:
            block.write(self.encoder, self.revision)

"""clickhouse_wire - Client-side encoding for the ClickHouse native protocol."""

from clickhouse_wire.arrays import Array
from clickhouse_wire.binary import Decoder, Encoder
from clickhouse_wire.block import Block, BlockColumn
from clickhouse_wire.buffer import WriteBuffer
from clickhouse_wire.client_info import ClientInfo, ServerInfo
from clickhouse_wire.column import Column, factory
from clickhouse_wire.config import ConnectionConfig, Settings, load_config, setup_logging
from clickhouse_wire.connection import Connection, Query, write_query
from clickhouse_wire.errors import (
    ClickHouseWireError,
    EnvelopeError,
    UnexpectedTypeError,
    UnsupportedTypeError,
)
from clickhouse_wire.types import ColumnType

__all__ = [
    # Main API
    "Connection",
    "Query",
    "write_query",
    "Array",
    "Block",
    "BlockColumn",
    # Identity
    "ClientInfo",
    "ServerInfo",
    # Codecs
    "Column",
    "ColumnType",
    "factory",
    # Binary primitives
    "Encoder",
    "Decoder",
    "WriteBuffer",
    # Configuration
    "ConnectionConfig",
    "Settings",
    "load_config",
    "setup_logging",
    # Errors
    "ClickHouseWireError",
    "EnvelopeError",
    "UnexpectedTypeError",
    "UnsupportedTypeError",
]

__version__ = "0.1.0"

"""Shared fixtures for clickhouse_wire tests."""

import io

import pytest

from clickhouse_wire.binary import Encoder
from clickhouse_wire.client_info import ServerInfo
from clickhouse_wire.config import ConnectionConfig


@pytest.fixture
def sink():
    """An in-memory stream and an encoder writing to it."""
    buf = io.BytesIO()
    return buf, Encoder(buf)


@pytest.fixture
def server_info():
    """Server info for a revision that has every optional field."""
    return ServerInfo(name="ClickHouse", version_major=23, version_minor=8, revision=54213)


@pytest.fixture
def config():
    """Connection config with a fixed hostname."""
    return ConnectionConfig(hostname="testhost")

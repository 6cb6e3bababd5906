"""Native protocol constants for ClickHouse."""

from __future__ import annotations

# ── Client packet types ────────────────────────────────────────────
CLIENT_HELLO = 0
CLIENT_QUERY = 1
CLIENT_DATA = 2
CLIENT_CANCEL = 3
CLIENT_PING = 4

# ── Query processing stages ────────────────────────────────────────
STATE_FETCH_COLUMNS = 0
STATE_WITH_MERGEABLE_STATE = 1
STATE_COMPLETE = 2

# ── Compression flag ───────────────────────────────────────────────
COMPRESS_DISABLE = 0
COMPRESS_ENABLE = 1

# ── Client info ────────────────────────────────────────────────────
QUERY_KIND_NO_QUERY = 0
QUERY_KIND_INITIAL = 1
QUERY_KIND_SECONDARY = 2

INTERFACE_TCP = 1
INTERFACE_HTTP = 2

# Placeholder peer address sent as the initial client address
LOOPBACK_PEER_ADDRESS = "[::ffff:127.0.0.1]:0"

# ── Revisions gating optional fields ───────────────────────────────
DBMS_MIN_REVISION_WITH_TEMPORARY_TABLES = 50264
DBMS_MIN_REVISION_WITH_TOTAL_ROWS_IN_PROGRESS = 51554
DBMS_MIN_REVISION_WITH_BLOCK_INFO = 51903
DBMS_MIN_REVISION_WITH_CLIENT_INFO = 54032
DBMS_MIN_REVISION_WITH_SERVER_TIMEZONE = 54058
DBMS_MIN_REVISION_WITH_QUOTA_KEY_IN_CLIENT_INFO = 54060

# ── This client ────────────────────────────────────────────────────
CLIENT_NAME = "clickhouse-wire"
CLIENT_VERSION_MAJOR = 1
CLIENT_VERSION_MINOR = 1
CLIENT_REVISION = 54213

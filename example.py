"""Example usage of the clickhouse_wire library."""

import array
import io
from datetime import datetime, timezone

from clickhouse_wire import Array, Block, Connection, ConnectionConfig, ServerInfo

# A transport stand-in; any writable binary stream works
transport = io.BytesIO()
server = ServerInfo(name="ClickHouse", version_major=23, version_minor=8, revision=54213)

conn = Connection(transport, server, ConnectionConfig(hostname="example"))

print("Sending query...")
conn.send_query("SELECT 1")
print(f"  {len(transport.getvalue())} bytes on the wire")

# Arrays resolve their codec from the sequence type
ids = Array(array.array("H", [1, 2, 3]))
print(f"\n{ids!r}: {ids.value().hex()}")

# Unsupported sequences fail on use, not on construction
broken = Array([1, "two"])
print(f"{broken!r}")

# Persisted envelopes round-trip
stamps = Array([datetime(2024, 1, 1, tzinfo=timezone.utc)])
assert Array.decode(stamps.encode()) == stamps

# Inline rows for an INSERT
block = Block()
block.add_column("id", "UInt16", [1, 2])
block.add_column("tags", "Array(String)", [Array(["a"]), ["b", "c"]])
conn.send_query("INSERT INTO t VALUES")
conn.send_block(block)
print(f"\nSent {block.num_rows} rows in {len(transport.getvalue())} bytes total")

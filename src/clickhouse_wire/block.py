"""Data blocks sent after a query."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import tzinfo
from typing import Any, Sequence

from clickhouse_wire.binary import Encoder
from clickhouse_wire.column import Column, factory
from clickhouse_wire.protocol import DBMS_MIN_REVISION_WITH_BLOCK_INFO


@dataclass
class BlockColumn:
    """A named column of a block with one value per row."""

    name: str
    column: Column
    values: Sequence[Any]


@dataclass
class Block:
    """A columnar batch of rows.

    An empty block (no columns, no rows) tells the server that no inline
    data follows the query.
    """

    columns: list[BlockColumn] = field(default_factory=list)
    is_overflows: bool = False
    bucket_num: int = -1

    @property
    def num_columns(self) -> int:
        return len(self.columns)

    @property
    def num_rows(self) -> int:
        if not self.columns:
            return 0
        return len(self.columns[0].values)

    def add_column(
        self,
        name: str,
        ch_type: str,
        values: Sequence[Any],
        timezone: tzinfo | None = None,
    ) -> BlockColumn:
        """Append a column built from a declared wire type name."""
        if self.columns and len(values) != self.num_rows:
            raise ValueError(
                f"Column '{name}' has {len(values)} rows, block has {self.num_rows}"
            )
        block_column = BlockColumn(name=name, column=factory(name, ch_type, timezone), values=values)
        self.columns.append(block_column)
        return block_column

    def write(self, encoder: Encoder, revision: int) -> None:
        """Write the block body.

        Layout: optional block info, uvarint column count, uvarint row count,
        then name, type and data of every column.
        """
        num_rows = self.num_rows
        for block_column in self.columns:
            if len(block_column.values) != num_rows:
                raise ValueError(
                    f"Column '{block_column.name}' has {len(block_column.values)} rows, "
                    f"block has {num_rows}"
                )

        if revision >= DBMS_MIN_REVISION_WITH_BLOCK_INFO:
            self._write_info(encoder)
        encoder.uvarint(self.num_columns)
        encoder.uvarint(num_rows)
        for block_column in self.columns:
            encoder.string(block_column.name)
            encoder.string(block_column.column.ch_type)
            block_column.column.write_column(encoder, block_column.values)

    def _write_info(self, encoder: Encoder) -> None:
        # field 1: is_overflows, field 2: bucket_num, 0 terminates
        encoder.uvarint(1)
        encoder.bool(self.is_overflows)
        encoder.uvarint(2)
        encoder.int32(self.bucket_num)
        encoder.uvarint(0)

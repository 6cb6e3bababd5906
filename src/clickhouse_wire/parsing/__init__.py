"""Parsing of ClickHouse type names."""

from clickhouse_wire.parsing.type_parser import TypeParser, TypeSpec

__all__ = [
    "TypeParser",
    "TypeSpec",
]

"""Exceptions raised by the clickhouse_wire library."""


class ClickHouseWireError(Exception):
    """Base class for all library errors."""


class UnsupportedTypeError(ClickHouseWireError, TypeError):
    """A sequence, element or type name has no registered codec."""


class UnexpectedTypeError(ClickHouseWireError, TypeError):
    """A value cannot be encoded by the codec it was given to."""

    def __init__(self, column: str, value: object) -> None:
        super().__init__(f"column {column}: unexpected value {value!r} ({type(value).__name__})")
        self.column = column
        self.value = value


class EnvelopeError(ClickHouseWireError, ValueError):
    """A persisted array envelope is malformed or from a newer version."""

"""
store/errors.py -- Exception hierarchy for the pair tables and stores.

Every failure a caller may want to branch on has its own type so that a
duplicate registration can be told apart from a generic database failure.
"""

from __future__ import annotations


class StoreError(Exception):
    """Base exception for all store errors."""


class UniqueViolation(StoreError):
    """Raised when an insert or replacement would duplicate a unique column value."""

    def __init__(self, table: str, column: str, value: str | None) -> None:
        self.table = table
        self.column = column
        self.value = value
        super().__init__(f"{table}.{column} already contains {value!r}")


class NotFound(StoreError):
    """Raised when an operation addresses a row that does not exist."""

    def __init__(self, table: str, column: str, value: object) -> None:
        self.table = table
        self.column = column
        self.value = value
        super().__init__(f"no row in {table} with {column}={value!r}")


class ValueTooLong(StoreError, ValueError):
    """Raised when a value exceeds its column's VARCHAR bound."""

    def __init__(self, column: str, limit: int, length: int) -> None:
        self.column = column
        self.limit = limit
        self.length = length
        super().__init__(f"{column} is limited to {limit} characters, got {length}")


class SchemaInitError(StoreError):
    """Raised when schema creation fails for a reason other than 'already exists'."""

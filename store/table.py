"""
store/table.py -- In-memory pair table with unique indexes.

UniquePairTable keeps rows in a dict keyed by surrogate id plus one value
index per column. Every operation, reads included, runs under a single
per-table RLock, so an index entry and its row are always added and removed
together and racing inserts on one unique value resolve to exactly one winner.

NULL semantics follow SQL unique indexes: None is stored but never indexed,
so two None values never collide and a lookup by None matches nothing.

Usage:
    table = UniquePairTable(SECRETS)
    row = table.insert("svc-a", "tok-123")
    table.lookup_by_right("tok-123")      # Row(id=1, left='svc-a', right='tok-123')
    table.replace_right(row.id, "tok-456")
    table.delete(row.id)
"""

from __future__ import annotations

import threading
from typing import Protocol

from store.errors import NotFound, UniqueViolation
from store.models import PairSpec, Row


class PairTable(Protocol):
    """What HostKeyStore and SecretStore need from a table backend."""

    spec: PairSpec

    def insert(self, left: str | None, right: str | None) -> Row: ...

    def replace_right(self, row_id: int, value: str | None) -> Row: ...

    def delete(self, row_id: int) -> bool: ...

    def delete_by_left(self, value: str | None) -> int: ...

    def delete_by_right(self, value: str | None) -> int: ...

    def get(self, row_id: int) -> Row | None: ...

    def lookup_by_left(self, value: str | None) -> list[Row] | Row | None: ...

    def lookup_by_right(self, value: str | None) -> Row | None: ...

    def rows(self) -> list[Row]: ...

    def __len__(self) -> int: ...


class UniquePairTable:
    def __init__(self, spec: PairSpec) -> None:
        self.spec = spec
        self._lock = threading.RLock()
        self._rows: dict[int, Row] = {}
        self._left: dict[str, list[int]] = {}
        self._right: dict[str, list[int]] = {}
        # Only ever moves forward; ids of deleted rows are not handed out again.
        self._last_id = 0

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def insert(self, left: str | None, right: str | None) -> Row:
        """Append a new row and return it. Raises UniqueViolation on a duplicate."""
        self.spec.check_lengths(left, right)
        with self._lock:
            if self.spec.left_unique and self._taken(self._left, left):
                raise UniqueViolation(self.spec.table, self.spec.left, left)
            if self.spec.right_unique and self._taken(self._right, right):
                raise UniqueViolation(self.spec.table, self.spec.right, right)
            self._last_id += 1
            row = Row(id=self._last_id, left=left, right=right)
            self._rows[row.id] = row
            _index_add(self._left, left, row.id)
            _index_add(self._right, right, row.id)
            return row

    def replace_right(self, row_id: int, value: str | None) -> Row:
        """Swap the right value of an existing row in one step.

        Raises NotFound if the row is gone and UniqueViolation if another row
        already owns value. On failure the row is left exactly as it was.
        """
        self.spec.check_lengths(None, value)
        with self._lock:
            current = self._rows.get(row_id)
            if current is None:
                raise NotFound(self.spec.table, "id", row_id)
            if current.right == value:
                return current
            if self.spec.right_unique and self._taken(self._right, value):
                raise UniqueViolation(self.spec.table, self.spec.right, value)
            updated = Row(id=current.id, left=current.left, right=value)
            _index_remove(self._right, current.right, row_id)
            _index_add(self._right, value, row_id)
            self._rows[row_id] = updated
            return updated

    def delete(self, row_id: int) -> bool:
        """Remove a row and its index entries. Returns False if it did not exist."""
        with self._lock:
            row = self._rows.pop(row_id, None)
            if row is None:
                return False
            _index_remove(self._left, row.left, row_id)
            _index_remove(self._right, row.right, row_id)
            return True

    def delete_by_left(self, value: str | None) -> int:
        """Delete every row whose left value equals value. Returns the count removed."""
        with self._lock:
            ids = list(self._left.get(value, ())) if value is not None else []
            for row_id in ids:
                self.delete(row_id)
            return len(ids)

    def delete_by_right(self, value: str | None) -> int:
        """Delete every row whose right value equals value. Returns the count removed."""
        with self._lock:
            ids = list(self._right.get(value, ())) if value is not None else []
            for row_id in ids:
                self.delete(row_id)
            return len(ids)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get(self, row_id: int) -> Row | None:
        with self._lock:
            return self._rows.get(row_id)

    def lookup_by_left(self, value: str | None) -> list[Row] | Row | None:
        """Rows whose left value equals value.

        Returns a single Row (or None) when the left column is unique, and a
        list in insertion order otherwise.
        """
        with self._lock:
            rows = self._matching(self._left, value)
        if self.spec.left_unique:
            return rows[0] if rows else None
        return rows

    def lookup_by_right(self, value: str | None) -> Row | None:
        with self._lock:
            rows = self._matching(self._right, value)
        return rows[0] if rows else None

    def rows(self) -> list[Row]:
        """Snapshot of all rows in id order."""
        with self._lock:
            return list(self._rows.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._rows)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _matching(self, index: dict[str, list[int]], value: str | None) -> list[Row]:
        if value is None:
            return []
        return [self._rows[row_id] for row_id in index.get(value, ())]

    @staticmethod
    def _taken(index: dict[str, list[int]], value: str | None) -> bool:
        return value is not None and bool(index.get(value))


def _index_add(index: dict[str, list[int]], value: str | None, row_id: int) -> None:
    if value is None:
        return
    # ids only grow, so appending keeps each bucket in insertion order.
    index.setdefault(value, []).append(row_id)


def _index_remove(index: dict[str, list[int]], value: str | None, row_id: int) -> None:
    if value is None:
        return
    bucket = index.get(value)
    if bucket is None:
        return
    bucket.remove(row_id)
    if not bucket:
        del index[value]

"""
store/sql.py -- SQLAlchemy-backed pair table.

Uses SQLAlchemy Core (not ORM) so store/models.py stays the authoritative
domain representation. Swapping SQLite for PostgreSQL is a connection string
change, not a rewrite.

Uniqueness is enforced by the database's unique indexes, not by a
check-then-insert in Python: each mutation runs in one transaction
(engine.begin()) and an IntegrityError is translated into UniqueViolation.
Two racing inserts of the same api_key therefore produce exactly one row,
however many processes share the database.

Security: all queries use bound parameters. No f-strings in SQL.

Usage:
    engine = create_engine("postgresql://user:pw@host/db")
    init_schema(engine)
    table = SqlPairTable(engine, LOC_AUTH)
    table.insert("test.example.com", "abc12345")
"""

from __future__ import annotations

from contextlib import contextmanager, nullcontext

from sqlalchemy import func, select
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import IntegrityError

from store.errors import NotFound, UniqueViolation
from store.models import PairSpec, Row
from store.schema import table_for


class SqlPairTable:
    """Same contract as store.table.UniquePairTable, persisted through SQLAlchemy."""

    def __init__(self, engine: Engine, spec: PairSpec, lock=None) -> None:
        self.engine = engine
        # Set when every thread shares one DBAPI connection (in-memory SQLite):
        # transactions on that connection must not interleave.
        self._lock = lock if lock is not None else nullcontext()
        self.spec = spec
        self._table = table_for(spec)
        self._id = self._table.c.id
        self._left = self._table.c[spec.left]
        self._right = self._table.c[spec.right]

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def insert(self, left: str | None, right: str | None) -> Row:
        """Insert a new row and return it. Raises UniqueViolation on a duplicate."""
        self.spec.check_lengths(left, right)
        stmt = self._table.insert().values({self.spec.left: left, self.spec.right: right})
        try:
            with self._begin() as conn:
                row_id = conn.execute(stmt).inserted_primary_key[0]
        except IntegrityError as exc:
            raise self._violation(left, right) from exc
        return Row(id=row_id, left=left, right=right)

    def replace_right(self, row_id: int, value: str | None) -> Row:
        """Swap the right value of an existing row inside one transaction.

        The read and the UPDATE share a transaction, and the unique index
        rejects a taken value before commit, so there is no moment where the
        old value is gone but the new one is not yet in place.
        """
        self.spec.check_lengths(None, value)
        try:
            with self._begin() as conn:
                current = self._fetch_by_id(conn, row_id)
                if current is None:
                    raise NotFound(self.spec.table, "id", row_id)
                if current.right == value:
                    return current
                conn.execute(self._table.update().where(self._id == row_id).values({self.spec.right: value}))
        except IntegrityError as exc:
            raise UniqueViolation(self.spec.table, self.spec.right, value) from exc
        return Row(id=current.id, left=current.left, right=value)

    def delete(self, row_id: int) -> bool:
        """Delete a row by id. Returns True if deleted, False if not found."""
        with self._begin() as conn:
            result = conn.execute(self._table.delete().where(self._id == row_id))
        return result.rowcount > 0

    def delete_by_left(self, value: str | None) -> int:
        if value is None:
            return 0
        with self._begin() as conn:
            result = conn.execute(self._table.delete().where(self._left == value))
        return result.rowcount

    def delete_by_right(self, value: str | None) -> int:
        if value is None:
            return 0
        with self._begin() as conn:
            result = conn.execute(self._table.delete().where(self._right == value))
        return result.rowcount

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get(self, row_id: int) -> Row | None:
        with self._connect() as conn:
            return self._fetch_by_id(conn, row_id)

    def lookup_by_left(self, value: str | None) -> list[Row] | Row | None:
        """Rows whose left value equals value.

        Returns a single Row (or None) when the left column is unique, and a
        list ordered by id (insertion order) otherwise.
        """
        # column == None would compile to IS NULL; NULL never equals anything here.
        if value is None:
            rows: list[Row] = []
        else:
            with self._connect() as conn:
                result = conn.execute(self._select().where(self._left == value).order_by(self._id)).fetchall()
            rows = [_row_to_pair(r) for r in result]
        if self.spec.left_unique:
            return rows[0] if rows else None
        return rows

    def lookup_by_right(self, value: str | None) -> Row | None:
        if value is None:
            return None
        with self._connect() as conn:
            row = conn.execute(self._select().where(self._right == value).order_by(self._id)).first()
        return _row_to_pair(row) if row is not None else None

    def rows(self) -> list[Row]:
        """All rows ordered by id."""
        with self._connect() as conn:
            result = conn.execute(self._select().order_by(self._id)).fetchall()
        return [_row_to_pair(r) for r in result]

    def __len__(self) -> int:
        with self._connect() as conn:
            count = conn.execute(select(func.count()).select_from(self._table)).scalar()
        return count or 0

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @contextmanager
    def _begin(self):
        with self._lock, self.engine.begin() as conn:
            yield conn

    @contextmanager
    def _connect(self):
        with self._lock, self.engine.connect() as conn:
            yield conn

    def _select(self):
        return select(self._id, self._left.label("left"), self._right.label("right"))

    def _fetch_by_id(self, conn: Connection, row_id: int) -> Row | None:
        row = conn.execute(self._select().where(self._id == row_id)).first()
        return _row_to_pair(row) if row is not None else None

    def _violation(self, left: str | None, right: str | None) -> UniqueViolation:
        """Work out which unique column an IntegrityError was about.

        Drivers word constraint errors differently, so ask the table instead of
        parsing the message. If the conflicting row vanished in the meantime,
        blame the right column (the one unique in every table).
        """
        if self.spec.left_unique and left is not None:
            with self._connect() as conn:
                hit = conn.execute(select(self._id).where(self._left == left)).first()
            if hit is not None:
                return UniqueViolation(self.spec.table, self.spec.left, left)
        return UniqueViolation(self.spec.table, self.spec.right, right)


# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_pair(row) -> Row:
    return Row(id=row.id, left=row.left, right=row.right)

"""
store/secret_tokens.py -- Identifier <-> secret token mapping (secrets).

Strict 1:1 in both directions: an ident has at most one token, and a token
is never shared by two idents. A row's ident is fixed for its lifetime; only
its token can change, and only through rotate().
"""

from __future__ import annotations

from store.errors import NotFound
from store.models import SECRETS, Row
from store.table import PairTable


class SecretStore:
    """Repository for secrets rows.

    Usage:
        secrets = SecretStore(handle.secrets_table)
        secrets.put("svc-a", "tok-123")
        secrets.get_by_ident("svc-a")        # "tok-123"
        secrets.get_by_token("tok-123")      # "svc-a"
        secrets.rotate("svc-a", "tok-456")
        secrets.delete("svc-a")              # True
    """

    def __init__(self, table: PairTable) -> None:
        if table.spec != SECRETS:
            raise ValueError(f"SecretStore needs a secrets table, got {table.spec.table!r}")
        self._table = table

    def put(self, ident: str | None, token: str | None) -> Row:
        """Store a new ident/token pair.

        Raises UniqueViolation if either the ident or the token is already
        present on any row. Existing rows are never overwritten.
        """
        return self._table.insert(ident, token)

    def find(self, ident: str | None) -> Row | None:
        """The full row (id, ident, token) for ident, or None."""
        return self._table.lookup_by_left(ident)

    def get_by_id(self, row_id: int) -> Row | None:
        return self._table.get(row_id)

    def get_by_ident(self, ident: str | None) -> str | None:
        row = self._table.lookup_by_left(ident)
        return row.right if row is not None else None

    def get_by_token(self, token: str | None) -> str | None:
        """Reverse lookup: which ident does this token belong to."""
        row = self._table.lookup_by_right(token)
        return row.left if row is not None else None

    def rotate(self, ident: str | None, new_token: str | None) -> Row:
        """Replace the token of an existing ident.

        All-or-nothing: on success the old token no longer resolves and the
        new one does; on failure both the ident and its old token are
        untouched.

        Raises NotFound if ident has no row (including when it is deleted
        concurrently) and UniqueViolation if new_token belongs to another ident.
        """
        row = self._table.lookup_by_left(ident)
        if row is None:
            raise NotFound(SECRETS.table, SECRETS.left, ident)
        try:
            return self._table.replace_right(row.id, new_token)
        except NotFound:
            raise NotFound(SECRETS.table, SECRETS.left, ident) from None

    def delete(self, ident: str | None) -> bool:
        """Remove ident and its token. Returns False if ident was not present."""
        return self._table.delete_by_left(ident) > 0

    def __len__(self) -> int:
        return len(self._table)

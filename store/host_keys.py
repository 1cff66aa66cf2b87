"""
store/host_keys.py -- Host -> API key authorization mapping (loc_auth).

A host may hold any number of keys, but a key belongs to at most one host.
Callers validate a presented key with find_by_key() and recover its origin;
when a host has several keys, picking one is the caller's policy.
"""

from __future__ import annotations

from store.models import LOC_AUTH, Row
from store.table import PairTable


class HostKeyStore:
    """Repository for loc_auth rows.

    Usage:
        keys = HostKeyStore(handle.loc_auth_table)
        keys.register("test.example.com", "abc12345")
        keys.find_by_key("abc12345")            # "test.example.com"
        keys.find_by_host("test.example.com")   # ["abc12345"]
        keys.revoke("abc12345")                 # True
    """

    def __init__(self, table: PairTable) -> None:
        if table.spec != LOC_AUTH:
            raise ValueError(f"HostKeyStore needs a loc_auth table, got {table.spec.table!r}")
        self._table = table

    def register(self, host: str | None, api_key: str | None) -> Row:
        """Record api_key as valid for host.

        Raises UniqueViolation if api_key is already registered, to this host
        or any other. The row count is unchanged on failure.
        """
        return self._table.insert(host, api_key)

    def find_by_host(self, host: str | None) -> list[str | None]:
        """Every key registered for host, oldest first. Empty if none."""
        return [row.right for row in self._table.lookup_by_left(host)]

    def find_by_key(self, api_key: str | None) -> str | None:
        """The host that owns api_key, or None if the key is unknown."""
        row = self._table.lookup_by_right(api_key)
        return row.left if row is not None else None

    def is_valid(self, api_key: str | None) -> bool:
        return self._table.lookup_by_right(api_key) is not None

    def revoke(self, api_key: str | None) -> bool:
        """Remove api_key. Returns False if it was not registered."""
        return self._table.delete_by_right(api_key) > 0

    def __len__(self) -> int:
        return len(self._table)

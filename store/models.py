"""
store/models.py -- Domain dataclasses for the pair tables.

Pattern: Data class (pure data containers). Tables and stores do
the work; these only describe shape.

Layer rule: no imports from core/ or main.py.
"""

from __future__ import annotations

from dataclasses import dataclass

from store.errors import ValueTooLong


@dataclass(frozen=True)
class Row:
    """One stored pair.

    id is the surrogate identity assigned by the table at insert time. It is
    strictly increasing and never reused, even after the row is deleted.
    left/right are None when the caller stored a NULL.
    """

    id: int
    left: str | None
    right: str | None


@dataclass(frozen=True)
class PairSpec:
    """Column layout and uniqueness rules for one pair table.

    Both backends read the same PairSpec, so the in-memory table and the SQL
    table enforce identical bounds and constraints.
    """

    table: str
    left: str  # column name of the left value, e.g. "host"
    right: str  # column name of the right value, e.g. "api_key"
    left_length: int
    right_length: int
    left_unique: bool
    right_unique: bool = True

    def check_lengths(self, left: str | None, right: str | None) -> None:
        """Raise ValueTooLong if either value overruns its VARCHAR bound."""
        if left is not None and len(left) > self.left_length:
            raise ValueTooLong(self.left, self.left_length, len(left))
        if right is not None and len(right) > self.right_length:
            raise ValueTooLong(self.right, self.right_length, len(right))


# host is indexed but NOT unique; one host may hold many keys.
LOC_AUTH = PairSpec(
    table="loc_auth",
    left="host",
    right="api_key",
    left_length=1024,
    right_length=256,
    left_unique=False,
)

# ident and token are both unique: a strict 1:1 mapping.
SECRETS = PairSpec(
    table="secrets",
    left="ident",
    right="token",
    left_length=4096,
    right_length=128,
    left_unique=True,
)

"""Tests for store/secret_tokens.py -- SecretStore (secrets).

Covers:
- put / get_by_ident / get_by_token round trip
- duplicate ident and duplicate token are both rejected
- rotate: success, unknown ident, token owned by another ident
- delete, find, get_by_id
"""

from __future__ import annotations

import pytest

from store.errors import NotFound, UniqueViolation
from store.models import LOC_AUTH
from store.secret_tokens import SecretStore
from store.table import UniquePairTable


def test_round_trip(secrets):
    secrets.put("svc-a", "tok-123")
    assert secrets.get_by_ident("svc-a") == "tok-123"
    assert secrets.get_by_token("tok-123") == "svc-a"


def test_same_token_for_second_ident_fails(secrets):
    secrets.put("svc-a", "tok-123")
    with pytest.raises(UniqueViolation) as exc_info:
        secrets.put("svc-b", "tok-123")
    assert exc_info.value.column == "token"
    assert secrets.get_by_ident("svc-b") is None


def test_second_token_for_same_ident_fails(secrets):
    secrets.put("svc-a", "tok-123")
    with pytest.raises(UniqueViolation) as exc_info:
        secrets.put("svc-a", "tok-999")
    assert exc_info.value.column == "ident"
    assert secrets.get_by_ident("svc-a") == "tok-123"
    assert secrets.get_by_token("tok-999") is None


def test_rotate(secrets):
    secrets.put("svc-a", "tok-123")
    row = secrets.rotate("svc-a", "tok-456")
    assert row.left == "svc-a"
    assert row.right == "tok-456"
    assert secrets.get_by_token("tok-123") is None
    assert secrets.get_by_token("tok-456") == "svc-a"
    assert secrets.get_by_ident("svc-a") == "tok-456"


def test_rotate_keeps_row_id(secrets):
    original = secrets.put("svc-a", "tok-123")
    assert secrets.rotate("svc-a", "tok-456").id == original.id


def test_rotate_to_token_owned_by_other_ident_fails(secrets):
    secrets.put("svc-a", "tok-123")
    secrets.put("svc-b", "tok-456")
    with pytest.raises(UniqueViolation):
        secrets.rotate("svc-a", "tok-456")
    assert secrets.get_by_ident("svc-a") == "tok-123"
    assert secrets.get_by_token("tok-123") == "svc-a"
    assert secrets.get_by_token("tok-456") == "svc-b"


def test_rotate_unknown_ident(secrets):
    with pytest.raises(NotFound) as exc_info:
        secrets.rotate("ghost", "tok-1")
    assert exc_info.value.column == "ident"
    assert secrets.get_by_token("tok-1") is None


def test_delete(secrets):
    secrets.put("svc-a", "tok-123")
    assert secrets.delete("svc-a") is True
    assert secrets.get_by_ident("svc-a") is None
    assert secrets.get_by_token("tok-123") is None
    assert secrets.delete("svc-a") is False


def test_delete_unknown_returns_false(secrets):
    assert secrets.delete("never-stored") is False


def test_find_and_get_by_id(secrets):
    stored = secrets.put("test_ident", "abc123")
    found = secrets.find("test_ident")
    assert found == stored
    by_id = secrets.get_by_id(found.id)
    assert (by_id.left, by_id.right) == ("test_ident", "abc123")
    assert secrets.find("other") is None


def test_rejects_loc_auth_table():
    with pytest.raises(ValueError):
        SecretStore(UniquePairTable(LOC_AUTH))

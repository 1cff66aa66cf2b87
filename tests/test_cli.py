"""Tests for main.py -- the admin CLI.

Covers:
- add-key generates an alphanumeric key of API_KEY_LENGTH and stores it
- add-key --key with a taken key exits 1 without a second row
- add-key --key "" is rejected instead of generating a key
- invalid settings (API_KEY_LENGTH out of range) exit 1 instead of a traceback
- check-key / list-keys / revoke-key
- the secret subcommands end to end
- init-db is repeatable
- no subcommand prints help and exits 2
"""

from __future__ import annotations

import re

import pytest

from main import generate_api_key, main
from store.handle import StoreHandle


def _run(db_url: str, *argv: str) -> int:
    return main(["--db-url", db_url, *argv])


def test_add_key_generates_key(db_url, capsys, monkeypatch):
    monkeypatch.setenv("API_KEY_LENGTH", "40")
    assert _run(db_url, "add-key", "test.example.com") == 0
    out = capsys.readouterr().out
    match = re.search(r"New API key for test\.example\.com: ([A-Za-z0-9]+)$", out.strip())
    assert match is not None
    key = match.group(1)
    assert len(key) == 40

    handle = StoreHandle.from_url(db_url)
    assert handle.host_keys.find_by_key(key) == "test.example.com"
    handle.close()


def test_add_key_duplicate_exits_1(db_url, capsys):
    assert _run(db_url, "add-key", "a.example.com", "--key", "k" * 32) == 0
    assert _run(db_url, "add-key", "b.example.com", "--key", "k" * 32) == 1
    handle = StoreHandle.from_url(db_url)
    assert len(handle.host_keys) == 1
    handle.close()


def test_check_list_and_revoke(db_url, capsys):
    _run(db_url, "add-key", "a.example.com", "--key", "key-one")
    _run(db_url, "add-key", "a.example.com", "--key", "key-two")
    capsys.readouterr()

    assert _run(db_url, "check-key", "key-one") == 0
    assert capsys.readouterr().out.strip() == "a.example.com"

    assert _run(db_url, "list-keys", "a.example.com") == 0
    assert capsys.readouterr().out.split() == ["key-one", "key-two"]

    assert _run(db_url, "revoke-key", "key-one") == 0
    assert _run(db_url, "revoke-key", "key-one") == 1
    assert _run(db_url, "check-key", "key-one") == 1


def test_secret_commands(db_url, capsys):
    assert _run(db_url, "put-secret", "svc-a", "tok-123") == 0
    assert _run(db_url, "put-secret", "svc-b", "tok-123") == 1
    capsys.readouterr()

    assert _run(db_url, "get-secret", "svc-a") == 0
    assert capsys.readouterr().out.strip() == "tok-123"

    assert _run(db_url, "rotate-secret", "svc-a", "tok-456") == 0
    assert _run(db_url, "rotate-secret", "ghost", "tok-789") == 1
    capsys.readouterr()
    assert _run(db_url, "get-secret", "svc-a") == 0
    assert capsys.readouterr().out.strip() == "tok-456"

    assert _run(db_url, "delete-secret", "svc-a") == 0
    assert _run(db_url, "delete-secret", "svc-a") == 1
    assert _run(db_url, "get-secret", "svc-a") == 1


def test_init_db_repeatable(db_url, capsys):
    assert _run(db_url, "init-db") == 0
    assert _run(db_url, "init-db") == 0
    assert capsys.readouterr().out.count("Schema ready.") == 2


def test_no_command_prints_help(capsys):
    assert main([]) == 2
    assert "usage:" in capsys.readouterr().out


def test_unknown_command_is_usage_error():
    with pytest.raises(SystemExit) as exc_info:
        main(["frobnicate"])
    assert exc_info.value.code == 2


def test_generate_api_key_alphabet():
    key = generate_api_key(64)
    assert len(key) == 64
    assert key.isalnum()
    assert generate_api_key(64) != key


def test_add_key_rejects_empty_key(db_url):
    assert _run(db_url, "add-key", "a.example.com", "--key", "") == 1
    handle = StoreHandle.from_url(db_url)
    assert len(handle.host_keys) == 0
    handle.close()


def test_invalid_settings_exit_1(db_url, monkeypatch):
    monkeypatch.setenv("API_KEY_LENGTH", "5")
    assert _run(db_url, "add-key", "a.example.com") == 1

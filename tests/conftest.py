"""
tests/conftest.py -- Shared fixtures for the gauth store tests.

This module provides:
  - handle: a fresh StoreHandle, parametrized over the in-memory backend and
    the SQLAlchemy backend (plain sqlite:///:memory:), so every contract test
    runs against both
  - host_keys / secrets: the two stores of that handle
  - db_url: a SQLite file URL under tmp_path for tests that reopen a database

DATABASE_URL is pinned to an in-memory SQLite URL before any core import so
get_settings() never points a test at the default on-disk database.
"""

from __future__ import annotations

import os
from collections.abc import Generator

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest

from core.config import get_settings
from store.handle import StoreHandle
from store.host_keys import HostKeyStore
from store.secret_tokens import SecretStore


@pytest.fixture(params=["memory", "sqlite"])
def handle(request) -> Generator[StoreHandle, None, None]:
    """Isolated StoreHandle for one test, once per backend."""
    if request.param == "memory":
        h = StoreHandle.in_memory()
    else:
        h = StoreHandle.from_url("sqlite:///:memory:")
    yield h
    h.close()


@pytest.fixture
def host_keys(handle: StoreHandle) -> HostKeyStore:
    return handle.host_keys


@pytest.fixture
def secrets(handle: StoreHandle) -> SecretStore:
    return handle.secrets


@pytest.fixture
def db_url(tmp_path) -> str:
    return f"sqlite:///{tmp_path / 'gauth_test.db'}"


@pytest.fixture(autouse=True)
def _fresh_settings() -> Generator[None, None, None]:
    """Drop the cached Settings so monkeypatched env vars take effect."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()

"""
store/handle.py -- The injected store handle.

A StoreHandle owns one pair of tables (loc_auth + secrets) and whatever
resource backs them. Components receive a handle instead of reaching for a
process-wide database, so every test can build an isolated one.

Plain in-memory SQLite (sqlite:// or sqlite:///:memory:) is one database per
DBAPI connection. A handle shared by several threads must therefore keep a
single connection (StaticPool) and run one transaction at a time on it;
otherwise each thread would see its own blank schema.

Usage:
    handle = StoreHandle.in_memory()
    handle = StoreHandle.from_url("sqlite:///gauth.db")
    handle = StoreHandle.from_url("postgresql://user:pw@host/gauth")
    handle.host_keys.register("test.example.com", "abc12345")
    handle.close()
"""

from __future__ import annotations

import threading

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.pool import StaticPool

from store.host_keys import HostKeyStore
from store.models import LOC_AUTH, SECRETS
from store.schema import init_schema
from store.secret_tokens import SecretStore
from store.sql import SqlPairTable
from store.table import PairTable, UniquePairTable


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode so readers do not block behind a writer.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def _is_private_memory_db(db_url: str) -> bool:
    """True for SQLite URLs whose database lives inside a single connection.

    Named shared-cache URIs (file:name?mode=memory&cache=shared) are excluded:
    every connection to them already sees the same database.
    """
    url = make_url(db_url)
    return url.get_backend_name() == "sqlite" and url.database in (None, "", ":memory:")


class StoreHandle:
    """The two tables of one database and the stores built on them.

    loc_auth_table / secrets_table are the raw pair tables; host_keys /
    secrets are the repositories callers normally use. engine is None for
    the in-memory backend.
    """

    def __init__(self, loc_auth_table: PairTable, secrets_table: PairTable, engine: Engine | None = None) -> None:
        self.loc_auth_table = loc_auth_table
        self.secrets_table = secrets_table
        self.engine = engine
        self.host_keys = HostKeyStore(loc_auth_table)
        self.secrets = SecretStore(secrets_table)

    @classmethod
    def in_memory(cls) -> StoreHandle:
        """Fresh, empty, process-local tables. Nothing survives close()."""
        return cls(UniquePairTable(LOC_AUTH), UniquePairTable(SECRETS))

    @classmethod
    def from_url(cls, db_url: str, *, create_schema: bool = True) -> StoreHandle:
        """Open a database by SQLAlchemy URL and (by default) create the schema.

        Schema creation is idempotent; pass create_schema=False when a
        separate startup step already ran init_schema().
        """
        engine_kwargs: dict = {}
        connect_args: dict = {}
        lock = None
        is_sqlite = db_url.startswith("sqlite")
        if is_sqlite:
            connect_args["check_same_thread"] = False
        if is_sqlite and _is_private_memory_db(db_url):
            engine_kwargs["poolclass"] = StaticPool
            lock = threading.RLock()
        engine = create_engine(db_url, connect_args=connect_args, **engine_kwargs)
        if is_sqlite and lock is None and "mode=memory" not in db_url:
            event.listen(engine, "connect", _set_wal_mode)
        if create_schema:
            try:
                init_schema(engine)
            except Exception:
                engine.dispose()
                raise
        return cls(
            SqlPairTable(engine, LOC_AUTH, lock=lock),
            SqlPairTable(engine, SECRETS, lock=lock),
            engine=engine,
        )

    def close(self) -> None:
        if self.engine is not None:
            self.engine.dispose()

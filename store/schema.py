"""
store/schema.py -- SQLAlchemy Core schema for loc_auth and secrets.

The layout matches the persisted PostgreSQL schema exactly:

    loc_auth (id BIGSERIAL PK, host VARCHAR(1024), api_key VARCHAR(256))
        host_idx     non-unique on host
        api_key_idx  UNIQUE on api_key

    secrets  (id BIGSERIAL PK, ident VARCHAR(4096), token VARCHAR(128))
        ident_idx    UNIQUE on ident
        token_idx    UNIQUE on token

The value columns are nullable. Both PostgreSQL and SQLite treat NULLs as
distinct in a UNIQUE index, which is the behaviour the in-memory table copies.

On SQLite the id column is INTEGER PRIMARY KEY AUTOINCREMENT so that ids of
deleted rows are never reused, matching BIGSERIAL's sequence on PostgreSQL.
"""

from __future__ import annotations

import logging

from sqlalchemy import BigInteger, Column, Index, Integer, MetaData, String, Table
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from store.errors import SchemaInitError
from store.models import LOC_AUTH, SECRETS, PairSpec

logger = logging.getLogger("gauth.schema")

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

# BIGSERIAL on PostgreSQL; SQLite only autoincrements a plain INTEGER PK.
_IdType = BigInteger().with_variant(Integer(), "sqlite")

_loc_auth = Table(
    LOC_AUTH.table,
    metadata,
    Column("id", _IdType, primary_key=True, autoincrement=True),
    Column(LOC_AUTH.left, String(LOC_AUTH.left_length)),
    Column(LOC_AUTH.right, String(LOC_AUTH.right_length)),
    Index("host_idx", LOC_AUTH.left),
    Index("api_key_idx", LOC_AUTH.right, unique=True),
    sqlite_autoincrement=True,
)

_secrets = Table(
    SECRETS.table,
    metadata,
    Column("id", _IdType, primary_key=True, autoincrement=True),
    Column(SECRETS.left, String(SECRETS.left_length)),  # arbitrary string identifier
    Column(SECRETS.right, String(SECRETS.right_length)),  # the secret token itself
    Index("ident_idx", SECRETS.left, unique=True),
    Index("token_idx", SECRETS.right, unique=True),
    sqlite_autoincrement=True,
)

_TABLES: dict[str, Table] = {t.name: t for t in (_loc_auth, _secrets)}


def table_for(spec: PairSpec) -> Table:
    """Return the SQLAlchemy Table that persists rows described by spec."""
    try:
        return _TABLES[spec.table]
    except KeyError:
        raise ValueError(f"No persisted table named {spec.table!r}") from None


def init_schema(engine: Engine) -> None:
    """Create both tables and their indexes if they do not exist yet.

    Idempotent: create_all() checks for each table and index first, so a
    second call against an initialised database changes nothing and raises
    nothing. Call once at startup, not before every operation.

    Raises SchemaInitError if the database refuses the DDL for any other
    reason (permissions, unreachable server, conflicting objects).
    """
    url = engine.url.render_as_string(hide_password=True)
    try:
        metadata.create_all(engine, checkfirst=True)
    except SQLAlchemyError as exc:
        logger.error("Schema initialisation failed on %s: %s", url, exc)
        raise SchemaInitError(f"Could not create schema on {url}") from exc
    logger.info("Schema ready on %s (%s)", url, ", ".join(sorted(_TABLES)))

#!/usr/bin/env python3
"""
gauth-store -- Admin CLI for the gauth API key and secret tables.

Usage:
  python main.py init-db
  python main.py add-key test.example.com
  python main.py add-key test.example.com --key abc12345abc12345
  python main.py check-key abc12345abc12345
  python main.py list-keys test.example.com
  python main.py revoke-key abc12345abc12345
  python main.py put-secret svc-a tok-123
  python main.py get-secret svc-a
  python main.py rotate-secret svc-a tok-456
  python main.py delete-secret svc-a

Environment variables:
  DATABASE_URL     SQLAlchemy URL (default: SQLite file beside this script).
  DEBUG            true/false. Same as -D.
  API_KEY_LENGTH   Length of keys generated by add-key (default 32).
"""

import argparse
import logging
import secrets
import string
import sys
from typing import Optional

from pydantic import ValidationError

from core.config import get_settings
from store.errors import StoreError, UniqueViolation
from store.handle import StoreHandle
from store.schema import init_schema

logger = logging.getLogger("gauth.cli")

_LOG_FORMAT = "%(asctime)s - %(levelname)s - %(filename)s:%(lineno)d %(name)s - %(message)s"
_KEY_ALPHABET = string.ascii_letters + string.digits


def setup_logging(debug: bool) -> None:
    """Log to stderr; DEBUG level with -D or DEBUG=true, INFO otherwise."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format=_LOG_FORMAT,
        datefmt="%Y-%m-%dT%H:%M:%S%z",
        stream=sys.stderr,
    )


def generate_api_key(length: int) -> str:
    """Random alphanumeric key drawn from the OS CSPRNG."""
    return "".join(secrets.choice(_KEY_ALPHABET) for _ in range(length))


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def _cmd_init_db(handle: StoreHandle, args: argparse.Namespace) -> int:
    # from_url already ran init_schema; running it again proves idempotence.
    init_schema(handle.engine)
    print("Schema ready.")
    return 0


def _cmd_add_key(handle: StoreHandle, args: argparse.Namespace) -> int:
    if args.key == "":
        logger.error("--key must not be empty")
        return 1
    key = args.key if args.key is not None else generate_api_key(get_settings().api_key_length)
    logger.debug("Creating a new API key for host %s", args.host)
    handle.host_keys.register(args.host, key)
    print(f"New API key for {args.host}: {key}")
    return 0


def _cmd_check_key(handle: StoreHandle, args: argparse.Namespace) -> int:
    host = handle.host_keys.find_by_key(args.key)
    if host is None:
        logger.error("Invalid api_key passed in")
        return 1
    print(host)
    return 0


def _cmd_list_keys(handle: StoreHandle, args: argparse.Namespace) -> int:
    for key in handle.host_keys.find_by_host(args.host):
        print(key)
    return 0


def _cmd_revoke_key(handle: StoreHandle, args: argparse.Namespace) -> int:
    if not handle.host_keys.revoke(args.key):
        logger.error("No such api_key")
        return 1
    print("Revoked.")
    return 0


def _cmd_put_secret(handle: StoreHandle, args: argparse.Namespace) -> int:
    row = handle.secrets.put(args.ident, args.token)
    logger.debug("Secret %d added for %s", row.id, args.ident)
    print(f"Stored secret for {args.ident}.")
    return 0


def _cmd_get_secret(handle: StoreHandle, args: argparse.Namespace) -> int:
    token = handle.secrets.get_by_ident(args.ident)
    if token is None:
        logger.error("No secret for ident %s", args.ident)
        return 1
    print(token)
    return 0


def _cmd_rotate_secret(handle: StoreHandle, args: argparse.Namespace) -> int:
    handle.secrets.rotate(args.ident, args.token)
    print(f"Rotated secret for {args.ident}.")
    return 0


def _cmd_delete_secret(handle: StoreHandle, args: argparse.Namespace) -> int:
    if not handle.secrets.delete(args.ident):
        logger.error("No secret for ident %s", args.ident)
        return 1
    print(f"Deleted secret for {args.ident}.")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gauth-store",
        description="Manage the gauth API key (loc_auth) and secret tables.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py init-db
  python main.py add-key test.example.com
  DATABASE_URL=postgresql://gauth@db/gauth python main.py check-key <KEY>
        """,
    )
    parser.add_argument(
        "--db-url",
        metavar="URL",
        default=None,
        help="SQLAlchemy database URL (overrides DATABASE_URL)",
    )
    parser.add_argument(
        "-D",
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    p = sub.add_parser("init-db", help="Create tables and indexes if they do not exist")
    p.set_defaults(func=_cmd_init_db)

    p = sub.add_parser("add-key", help="Register an API key for a host and print it")
    p.add_argument("host", metavar="HOST")
    p.add_argument("--key", default=None, help="Use this key instead of generating one")
    p.set_defaults(func=_cmd_add_key)

    p = sub.add_parser("check-key", help="Print the host that owns an API key")
    p.add_argument("key", metavar="KEY")
    p.set_defaults(func=_cmd_check_key)

    p = sub.add_parser("list-keys", help="Print every API key registered for a host")
    p.add_argument("host", metavar="HOST")
    p.set_defaults(func=_cmd_list_keys)

    p = sub.add_parser("revoke-key", help="Delete an API key")
    p.add_argument("key", metavar="KEY")
    p.set_defaults(func=_cmd_revoke_key)

    p = sub.add_parser("put-secret", help="Store a new ident/token pair")
    p.add_argument("ident", metavar="IDENT")
    p.add_argument("token", metavar="TOKEN")
    p.set_defaults(func=_cmd_put_secret)

    p = sub.add_parser("get-secret", help="Print the token stored for an ident")
    p.add_argument("ident", metavar="IDENT")
    p.set_defaults(func=_cmd_get_secret)

    p = sub.add_parser("rotate-secret", help="Replace the token of an existing ident")
    p.add_argument("ident", metavar="IDENT")
    p.add_argument("token", metavar="TOKEN")
    p.set_defaults(func=_cmd_rotate_secret)

    p = sub.add_parser("delete-secret", help="Delete an ident and its token")
    p.add_argument("ident", metavar="IDENT")
    p.set_defaults(func=_cmd_delete_secret)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 2

    try:
        settings = get_settings()
    except ValidationError as exc:
        setup_logging(args.debug)
        logger.error("Invalid configuration: %s", exc)
        return 1
    setup_logging(args.debug or settings.debug)

    try:
        handle = StoreHandle.from_url(args.db_url or settings.database_url)
    except StoreError as exc:
        logger.error("%s", exc)
        return 1
    try:
        return args.func(handle, args)
    except UniqueViolation as exc:
        logger.error("Already registered: %s", exc)
        return 1
    except StoreError as exc:
        logger.error("%s", exc)
        return 1
    finally:
        handle.close()


if __name__ == "__main__":
    sys.exit(main())

"""Command-line front end for kvtool.

Reads the YAML config (see `kvtool_lib.config`), lets `--backend` and
`--option` override it, runs one store operation and maps error kinds to
exit codes. Values move as raw bytes; the configured serializer is not
applied here.
"""
from __future__ import annotations
import argparse
import logging
import sys
from typing import BinaryIO, Iterable, Optional

from kvtool_lib.config import load_config
from kvtool_lib.errors import ConfigError, NetworkError, NotFoundError, StorageError
from kvtool_lib.logging_config import configure_logging
from kvtool_lib.storage import create_store
from kvtool_lib.storage.base import Store

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_NOT_FOUND = 1
EXIT_CONFIG = 2
EXIT_BACKEND = 3


def get_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="kvtool", description="Key-value store over an embedded file or Consul")
    p.add_argument("--config", help="YAML config file (default: $KVTOOL_CONFIG or ./kvtool.yml)")
    p.add_argument("--backend", help="Backend to use: embedded or consul (overrides config)")
    p.add_argument(
        "-o", "--option", dest="options", action="append",
        help="Backend init option, repeatable (embedded: PATH; consul: ADDRESS [TIMEOUT])",
    )
    p.add_argument("--log-level", help="Log level (overrides config)")
    p.add_argument("--json-logs", action="store_true", help="Emit log lines as JSON")

    sub = p.add_subparsers(dest="command", required=True)
    g = sub.add_parser("get", help="Print the value stored under KEY")
    g.add_argument("key")
    pu = sub.add_parser("put", help="Store VALUE (or stdin) under KEY")
    pu.add_argument("key")
    pu.add_argument("value", nargs="?", help="Value; read from stdin when omitted")
    d = sub.add_parser("delete", help="Delete KEY")
    d.add_argument("key")
    ls = sub.add_parser("list", help="List containers/items (embedded) or keys by prefix (consul)")
    ls.add_argument("prefix", nargs="?", default="")
    t = sub.add_parser("delete-tree", help="Delete a container (embedded) or a key prefix (consul)")
    t.add_argument("prefix")
    return p


def parse_args(argv: Optional[Iterable[str]] = None) -> argparse.Namespace:
    parser = get_parser()
    if argv is not None:
        argv = list(argv)
    return parser.parse_args(argv)


def run_command(store: Store, args: argparse.Namespace, stdin: BinaryIO, stdout: BinaryIO) -> None:
    if args.command == "get":
        stdout.write(store.get(args.key))
    elif args.command == "put":
        value = args.value.encode("utf-8") if args.value is not None else stdin.read()
        store.put(args.key, value)
    elif args.command == "delete":
        store.delete(args.key)
    elif args.command == "list":
        for name in store.list_keys(args.prefix):
            stdout.write(name.encode("utf-8") + b"\n")
    elif args.command == "delete-tree":
        store.delete_tree(args.prefix)
    else:
        raise ConfigError(f"unknown command {args.command!r}")


def main(
    argv: Optional[Iterable[str]] = None,
    stdin: Optional[BinaryIO] = None,
    stdout: Optional[BinaryIO] = None,
) -> int:
    args = parse_args(argv)
    stdin = stdin or sys.stdin.buffer
    stdout = stdout or sys.stdout.buffer

    try:
        cfg = load_config(args.config)
    except ConfigError as exc:
        print(f"kvtool: {exc}", file=sys.stderr)
        return EXIT_CONFIG
    try:
        configure_logging(
            level=args.log_level or cfg.log_level,
            json_format=args.json_logs or cfg.log_format == "json",
            app_name=cfg.app_name,
        )
    except ValueError as exc:
        print(f"kvtool: {exc}", file=sys.stderr)
        return EXIT_CONFIG

    backend = args.backend or cfg.backend
    if args.options:
        options = args.options
    elif backend.lower() == cfg.backend.lower():
        options = cfg.options
    else:
        options = []

    try:
        with create_store(backend, options) as store:
            run_command(store, args, stdin, stdout)
    except NotFoundError as exc:
        print(f"kvtool: {exc}", file=sys.stderr)
        return EXIT_NOT_FOUND
    except ConfigError as exc:
        print(f"kvtool: {exc}", file=sys.stderr)
        return EXIT_CONFIG
    except (StorageError, NetworkError) as exc:
        logger.error("%s failed: %s", args.command, exc)
        print(f"kvtool: {exc}", file=sys.stderr)
        return EXIT_BACKEND
    stdout.flush()
    return EXIT_OK

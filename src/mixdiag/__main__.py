"""Diagnostics launcher.

Provides a console entry point for `python -m mixdiag` with sub-commands:
  ensure-column   Add a column to a table if it is missing, then show the table.
  ensure-columns  Same, driven by a YAML manifest of tables and columns.
  describe        Show the columns of one or more tables.
  tables          List tables, optionally filtered by LIKE patterns.
  admins          List members of an identity role plus a sample of other users.
  probe           Send one request to the local API server and print the response.
  check-media     Check that media URLs answer 200 without downloading them.

Global flag --dry-run prints the effective configuration and exits.
"""
from __future__ import annotations

import argparse
import asyncio
import json
import sys

from pydantic import ValidationError

from .config.settings import DiagConfig, load_config
from .domain.schema.errors import SchemaGuardError
from .domain.schema.manifest import MANIFEST_FILE, load_manifest
from .domain.schema.models import RequiredColumnSpec
from .infrastructure.http.api_probe import ApiProbe, ProbeError
from .infrastructure.logging.structured_logging import error, init_logging
from .services import inspection
from .services.schema_guard import open_guard
from .utils.format_utils import format_media, format_members, format_probe, format_snapshot


def _print_lines(lines):
    for line in lines:
        print(line)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="mixdiag", description="MixWarz development diagnostics")
    parser.add_argument("--dry-run", action="store_true", help="Print effective configuration then exit")
    sub = parser.add_subparsers(dest="command")

    p = sub.add_parser("ensure-column", help="Add a nullable column if it is missing")
    p.add_argument("table")
    p.add_argument("name")
    p.add_argument("sql_type")
    p.add_argument("--tolerate-existing", action="store_true", help="Treat a concurrent duplicate-column error as success")

    p = sub.add_parser("ensure-columns", help="Ensure every column listed in a YAML manifest")
    p.add_argument("manifest", nargs="?", default=MANIFEST_FILE)
    p.add_argument("--tolerate-existing", action="store_true")

    p = sub.add_parser("describe", help="Show table columns")
    p.add_argument("tables", nargs="+")

    p = sub.add_parser("tables", help="List tables")
    p.add_argument("--like", action="append", default=[], metavar="PATTERN")

    p = sub.add_parser("admins", help="List role members")
    p.add_argument("--role", default="Admin")
    p.add_argument("--sample", type=int, default=5, help="Also list N regular users (0 to skip)")

    p = sub.add_parser("probe", help="Send one request to the API server")
    p.add_argument("path")
    p.add_argument("--method", default="GET")
    p.add_argument("--data", help="JSON request body")
    p.add_argument("--login", nargs=2, metavar=("EMAIL", "PASSWORD"), help="Log in first and send the bearer token")
    p.add_argument("--headers", action="store_true", help="Print response headers")

    p = sub.add_parser("check-media", help="Check media URLs are reachable")
    p.add_argument("urls", nargs="+")
    return parser


def _cmd_ensure_column(conf: DiagConfig, args) -> int:
    spec = RequiredColumnSpec(name=args.name, sql_type=args.sql_type)
    with open_guard(conf.database()) as guard:
        outcome = guard.ensure(args.table, spec, tolerate_existing=args.tolerate_existing)
    verb = "Added column" if outcome.added else "Column already present:"
    print(f"{verb} {args.table}.{spec.name}")
    _print_lines(format_snapshot(outcome.snapshot))
    return 0


def _cmd_ensure_columns(conf: DiagConfig, args) -> int:
    manifest = load_manifest(args.manifest)
    with open_guard(conf.database()) as guard:
        for table, specs in manifest.specs():
            snapshot = guard.ensure_columns(table, specs, tolerate_existing=args.tolerate_existing)
            _print_lines(format_snapshot(snapshot))
    return 0


def _cmd_describe(conf: DiagConfig, args) -> int:
    found = inspection.describe_tables(conf.database(), args.tables)
    for table, snapshot in found.items():
        if snapshot is None:
            print(f"No {table} table found")
        else:
            _print_lines(format_snapshot(snapshot))
    return 0


def _cmd_tables(conf: DiagConfig, args) -> int:
    names = inspection.list_tables(conf.database(), args.like)
    print("Tables found:" if names else "No tables found")
    _print_lines(f"  - {n}" for n in names)
    return 0


def _cmd_admins(conf: DiagConfig, args) -> int:
    db = conf.database()
    members = inspection.find_role_members(db, role=args.role)
    if members:
        print(f"Found {args.role} users:")
        _print_lines(format_members(members))
    else:
        print(f"No {args.role} users found")
    if args.sample > 0:
        print("Sample regular users:")
        _print_lines(format_members(inspection.sample_users(db, limit=args.sample)))
    return 0


async def _run_probe(conf: DiagConfig, args) -> int:
    body = json.loads(args.data) if args.data else None
    async with ApiProbe(conf.api_base_url, verify_tls=conf.api_verify_tls, timeout=conf.http_timeout_seconds) as probe:
        if args.login:
            await probe.login(*args.login)
        result = await probe.request(args.path, method=args.method, json=body)
    _print_lines(format_probe(result, show_headers=args.headers))
    return 0


async def _run_check_media(conf: DiagConfig, args) -> int:
    failures = 0
    async with ApiProbe(conf.api_base_url, verify_tls=conf.api_verify_tls, timeout=conf.http_timeout_seconds) as probe:
        for url in args.urls:
            result = await probe.check_media(url)
            print(format_media(result))
            if not result.accessible:
                failures += 1
    return 1 if failures else 0


_COMMANDS = {
    "ensure-column": _cmd_ensure_column,
    "ensure-columns": _cmd_ensure_columns,
    "describe": _cmd_describe,
    "tables": _cmd_tables,
    "admins": _cmd_admins,
}

_ASYNC_COMMANDS = {
    "probe": _run_probe,
    "check-media": _run_check_media,
}


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        conf = load_config()
    except ValidationError as e:
        print(f"Configuration invalid: {e}", file=sys.stderr)
        return 2
    init_logging(conf.log_level, json_lines=conf.log_json)

    if args.dry_run:
        for key, value in conf.masked_summary().items():
            print(f"{key}={value}")
        return 0
    if not args.command:
        parser.print_help()
        return 2

    try:
        if args.command in _ASYNC_COMMANDS:
            return asyncio.run(_ASYNC_COMMANDS[args.command](conf, args))
        return _COMMANDS[args.command](conf, args)
    except SchemaGuardError as e:
        error("schema_error", kind=type(e).__name__, table=e.table, db_message=e.db_message)
        print(f"{type(e).__name__}: {e.db_message}", file=sys.stderr)
        return 1
    except ProbeError as e:
        print(f"Request failed: {e}", file=sys.stderr)
        return 1
    except (FileNotFoundError, ValueError) as e:
        print(f"Invalid input: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())

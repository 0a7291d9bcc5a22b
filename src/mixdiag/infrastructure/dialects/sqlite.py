from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional, Sequence

from ...config.settings import DatabaseConfig
from ...domain.schema.errors import (
    AlreadyExists, ConnectionFailed, InvalidTypeExpression, NotFound, PermissionDenied,
    SchemaGuardError,
)
from ...domain.schema.models import ColumnDescriptor, RequiredColumnSpec
from ..logging.structured_logging import debug
from .base import check_type_expression, like_clause, quote_ident

# Substring of sqlite3 error text -> typed error
_MESSAGE_MAP = (
    ("no such table", NotFound),
    ("readonly database", PermissionDenied),
    ("not authorized", PermissionDenied),
    ("duplicate column", AlreadyExists),
    ("syntax error", InvalidTypeExpression),
    ("unrecognized token", InvalidTypeExpression),
    ("incomplete input", InvalidTypeExpression),
)


class SqliteDialect:
    name = "sqlite"
    placeholder = "?"
    driver_error = sqlite3.Error

    @contextmanager
    def connect(self, cfg: DatabaseConfig) -> Iterator[sqlite3.Connection]:
        timeout = float(cfg.connect_timeout or 5)
        try:
            if cfg.read_only:
                uri = Path(cfg.path).resolve().as_uri() + "?mode=ro"
                conn = sqlite3.connect(uri, uri=True, timeout=timeout)
            else:
                conn = sqlite3.connect(cfg.path, timeout=timeout)
        except sqlite3.Error as exc:
            raise ConnectionFailed(f"Cannot open {cfg.describe()}: {exc}", db_message=str(exc)) from exc
        debug("db_connected", target=cfg.describe())
        try:
            yield conn
        finally:
            conn.close()
            debug("db_closed", target=cfg.describe())

    def same_name(self, a: str, b: str) -> bool:
        # SQLite identifiers compare case-insensitively
        return a.lower() == b.lower()

    def fetch_columns(self, conn: sqlite3.Connection, table: str) -> List[ColumnDescriptor]:
        # cid, name, type, notnull, dflt_value, pk
        cur = conn.execute(f"PRAGMA table_info({quote_ident(table)})")
        return [
            ColumnDescriptor(name=r[1], declared_type=r[2] or "", nullable=not r[3])
            for r in sorted(cur.fetchall(), key=lambda r: r[0])
        ]

    def table_exists(self, conn: sqlite3.Connection, table: str) -> bool:
        cur = conn.execute(
            "SELECT 1 FROM sqlite_master WHERE type='table' AND name=? LIMIT 1",
            (table,),
        )
        return cur.fetchone() is not None

    def list_tables(self, conn: sqlite3.Connection, patterns: Sequence[str] = ()) -> List[str]:
        sql = (
            "SELECT name FROM sqlite_master WHERE type='table' AND name NOT LIKE 'sqlite_%'"
            + like_clause("name", patterns, self.placeholder)
            + " ORDER BY name"
        )
        cur = conn.execute(sql, list(patterns))
        return [r[0] for r in cur.fetchall()]

    def add_column(self, conn: sqlite3.Connection, table: str, spec: RequiredColumnSpec) -> None:
        check_type_expression(spec, table)
        conn.execute(
            f"ALTER TABLE {quote_ident(table)} ADD COLUMN {quote_ident(spec.name)} {spec.sql_type}"
        )
        conn.commit()

    def translate_error(self, exc: BaseException, table: Optional[str] = None) -> Optional[SchemaGuardError]:
        if not isinstance(exc, sqlite3.Error):
            return None
        msg = str(exc)
        lowered = msg.lower()
        for needle, kind in _MESSAGE_MAP:
            if needle in lowered:
                return kind(msg, table=table, db_message=msg)
        return None


__all__ = ['SqliteDialect']

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, List, Optional, Sequence

import psycopg
from psycopg import errors as pg_errors
from psycopg import sql

from ...config.settings import DatabaseConfig
from ...domain.schema.errors import (
    AlreadyExists, ConnectionFailed, InvalidTypeExpression, NotFound, PermissionDenied,
    SchemaGuardError,
)
from ...domain.schema.models import ColumnDescriptor, RequiredColumnSpec
from ..logging.structured_logging import debug
from .base import check_type_expression, like_clause

# Order matters: first isinstance match wins.
_ERROR_MAP = (
    (pg_errors.UndefinedTable, NotFound),
    (pg_errors.InvalidSchemaName, NotFound),
    (pg_errors.InsufficientPrivilege, PermissionDenied),
    (pg_errors.ReadOnlySqlTransaction, PermissionDenied),
    (pg_errors.DuplicateColumn, AlreadyExists),
    (pg_errors.SyntaxError, InvalidTypeExpression),
    (pg_errors.UndefinedObject, InvalidTypeExpression),
    (pg_errors.InvalidParameterValue, InvalidTypeExpression),
    (pg_errors.DatatypeMismatch, InvalidTypeExpression),
)


_COLUMNS_QUERY = """
    SELECT column_name, data_type, is_nullable
    FROM information_schema.columns
    WHERE table_schema = %s AND table_name = %s
    ORDER BY ordinal_position
"""

_TABLE_EXISTS_QUERY = """
    SELECT EXISTS (
        SELECT FROM information_schema.tables
        WHERE table_schema = %s AND table_name = %s
    )
"""


class PostgresDialect:
    name = "postgres"
    placeholder = "%s"
    driver_error = psycopg.Error

    def __init__(self, schema: str = "public"):
        self.schema = schema

    @contextmanager
    def connect(self, cfg: DatabaseConfig) -> Iterator[psycopg.Connection]:
        kwargs = {
            "host": cfg.host,
            "port": cfg.port,
            "dbname": cfg.name,
            "user": cfg.user,
            "password": cfg.password or None,
        }
        if cfg.connect_timeout:
            kwargs["connect_timeout"] = cfg.connect_timeout
        if cfg.statement_timeout_ms:
            kwargs["options"] = f"-c statement_timeout={int(cfg.statement_timeout_ms)}"
        try:
            conn = psycopg.connect(**kwargs)
        except psycopg.Error as exc:
            msg = str(exc).strip()
            raise ConnectionFailed(f"Cannot connect to {cfg.describe()}: {msg}", db_message=msg) from exc
        conn.read_only = cfg.read_only
        debug("db_connected", target=cfg.describe())
        try:
            yield conn
        finally:
            conn.close()
            debug("db_closed", target=cfg.describe())

    def same_name(self, a: str, b: str) -> bool:
        # identifiers are always quoted, so case is significant
        return a == b

    def fetch_columns(self, conn: psycopg.Connection, table: str) -> List[ColumnDescriptor]:
        with conn.cursor() as cur:
            cur.execute(_COLUMNS_QUERY, (self.schema, table))
            rows = cur.fetchall()
        return [ColumnDescriptor(name=r[0], declared_type=r[1], nullable=(r[2] == "YES")) for r in rows]

    def table_exists(self, conn: psycopg.Connection, table: str) -> bool:
        with conn.cursor() as cur:
            cur.execute(_TABLE_EXISTS_QUERY, (self.schema, table))
            row = cur.fetchone()
        return bool(row and row[0])

    def list_tables_sql(self, patterns: Sequence[str] = ()) -> str:
        return (
            "SELECT table_name FROM information_schema.tables"
            " WHERE table_schema = %s AND table_type = 'BASE TABLE'"
            + like_clause("table_name", patterns, self.placeholder)
            + " ORDER BY table_name"
        )

    def list_tables(self, conn: psycopg.Connection, patterns: Sequence[str] = ()) -> List[str]:
        with conn.cursor() as cur:
            cur.execute(self.list_tables_sql(patterns), [self.schema, *patterns])
            return [r[0] for r in cur.fetchall()]

    def add_column_sql(self, table: str, spec: RequiredColumnSpec) -> sql.Composed:
        check_type_expression(spec, table)
        return sql.SQL("ALTER TABLE {}.{} ADD COLUMN {} {}").format(
            sql.Identifier(self.schema),
            sql.Identifier(table),
            sql.Identifier(spec.name),
            sql.SQL(spec.sql_type),
        )

    def add_column(self, conn: psycopg.Connection, table: str, spec: RequiredColumnSpec) -> None:
        stmt = self.add_column_sql(table, spec)
        with conn.cursor() as cur:
            cur.execute(stmt)
        conn.commit()

    def translate_error(self, exc: BaseException, table: Optional[str] = None) -> Optional[SchemaGuardError]:
        for pg_type, kind in _ERROR_MAP:
            if isinstance(exc, pg_type):
                msg = str(exc).strip()
                return kind(msg, table=table, db_message=msg)
        return None


__all__ = ['PostgresDialect']

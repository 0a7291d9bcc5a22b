"""Schema presence check & conditional additive patch.

`SchemaGuard` wraps a ready connection and a dialect; the module-level
helpers open a scoped connection from an explicit `DatabaseConfig`, run the
guard, and always release the connection.

Flow of `ensure_column`:
 1. read the table snapshot (NotFound if the table is absent)
 2. if the column is present (names compared the way the dialect does), stop there
 3. otherwise issue one ALTER TABLE ... ADD COLUMN (nullable, no default)
 4. re-read the snapshot and return it
"""
from __future__ import annotations

from contextlib import contextmanager
from typing import Iterable, Iterator, Optional

from ..config.settings import DatabaseConfig
from ..domain.schema.errors import AlreadyExists, NotFound
from ..domain.schema.models import EnsureOutcome, RequiredColumnSpec, TableSchemaSnapshot
from ..infrastructure.dialects import Dialect, create_dialect
from ..infrastructure.logging.structured_logging import info, warning


class SchemaGuard:
    def __init__(self, conn, dialect: Dialect):
        self.conn = conn
        self.dialect = dialect

    @contextmanager
    def translated(self, table: Optional[str]):
        """Re-raise driver errors as typed schema errors where a mapping exists."""
        try:
            yield
        except self.dialect.driver_error as exc:  # type: ignore[misc]
            mapped = self.dialect.translate_error(exc, table=table)
            if mapped is None:
                raise
            raise mapped from exc

    def snapshot(self, table: str) -> TableSchemaSnapshot:
        with self.translated(table):
            columns = self.dialect.fetch_columns(self.conn, table)
            if not columns and not self.dialect.table_exists(self.conn, table):
                raise NotFound(f"Table not found: {table}", table=table)
        return TableSchemaSnapshot(table=table, columns=tuple(columns))

    def ensure(self, table: str, spec: RequiredColumnSpec, *, tolerate_existing: bool = False) -> EnsureOutcome:
        before = self.snapshot(table)
        if before.has_column(spec.name, self.dialect.same_name):
            info("schema_column_present", table=table, column=spec.name)
            return EnsureOutcome(table=table, column=spec.name, added=False, snapshot=before)

        added = True
        try:
            with self.translated(table):
                try:
                    self.dialect.add_column(self.conn, table, spec)
                except self.dialect.driver_error:  # type: ignore[misc]
                    self.conn.rollback()
                    raise
        except AlreadyExists as exc:
            if not tolerate_existing:
                raise
            added = False
            warning("schema_patch_race_tolerated", table=table, column=spec.name, db_message=exc.db_message)
        else:
            info("schema_column_added", table=table, column=spec.name, sql_type=spec.sql_type)

        after = self.snapshot(table)
        return EnsureOutcome(table=table, column=spec.name, added=added, snapshot=after)

    def ensure_column(self, table: str, spec: RequiredColumnSpec, *, tolerate_existing: bool = False) -> TableSchemaSnapshot:
        return self.ensure(table, spec, tolerate_existing=tolerate_existing).snapshot

    def ensure_columns(
        self,
        table: str,
        specs: Iterable[RequiredColumnSpec],
        *,
        tolerate_existing: bool = False,
    ) -> TableSchemaSnapshot:
        result: Optional[TableSchemaSnapshot] = None
        for spec in specs:
            result = self.ensure_column(table, spec, tolerate_existing=tolerate_existing)
        return result if result is not None else self.snapshot(table)


@contextmanager
def open_guard(cfg: DatabaseConfig) -> Iterator[SchemaGuard]:
    dialect = create_dialect(cfg)
    with dialect.connect(cfg) as conn:
        yield SchemaGuard(conn, dialect)


def ensure_column(
    cfg: DatabaseConfig,
    table: str,
    spec: RequiredColumnSpec,
    *,
    tolerate_existing: bool = False,
) -> TableSchemaSnapshot:
    with open_guard(cfg) as guard:
        return guard.ensure_column(table, spec, tolerate_existing=tolerate_existing)


def ensure_columns(
    cfg: DatabaseConfig,
    table: str,
    specs: Iterable[RequiredColumnSpec],
    *,
    tolerate_existing: bool = False,
) -> TableSchemaSnapshot:
    with open_guard(cfg) as guard:
        return guard.ensure_columns(table, specs, tolerate_existing=tolerate_existing)


def describe_table(cfg: DatabaseConfig, table: str) -> TableSchemaSnapshot:
    with open_guard(cfg) as guard:
        return guard.snapshot(table)


__all__ = [
    'SchemaGuard', 'open_guard', 'ensure_column', 'ensure_columns', 'describe_table'
]

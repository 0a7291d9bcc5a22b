"""Dialect contract and helpers shared by the database adapters."""
from __future__ import annotations

import re
from typing import Any, ContextManager, List, Optional, Protocol, Sequence, runtime_checkable

from ...config.settings import DatabaseConfig
from ...domain.schema.errors import InvalidTypeExpression, SchemaGuardError
from ...domain.schema.models import ColumnDescriptor, RequiredColumnSpec

# Column constraints and options; the guard only ever adds nullable columns without a default.
_CONSTRAINT_WORDS = re.compile(
    r"\b(NULL|DEFAULT|PRIMARY\s+KEY|UNIQUE|REFERENCES|CHECK|GENERATED|CONSTRAINT|COLLATE)\b",
    re.IGNORECASE,
)


@runtime_checkable
class Dialect(Protocol):
    name: str
    placeholder: str
    driver_error: type

    def connect(self, cfg: DatabaseConfig) -> ContextManager[Any]: ...
    def same_name(self, a: str, b: str) -> bool: ...
    def fetch_columns(self, conn, table: str) -> List[ColumnDescriptor]: ...
    def table_exists(self, conn, table: str) -> bool: ...
    def list_tables(self, conn, patterns: Sequence[str] = ()) -> List[str]: ...
    def add_column(self, conn, table: str, spec: RequiredColumnSpec) -> None: ...
    def translate_error(self, exc: BaseException, table: Optional[str] = None) -> Optional[SchemaGuardError]: ...


def quote_ident(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


def check_type_expression(spec: RequiredColumnSpec, table: str | None = None):
    """Reject type expressions that carry a second statement or a column constraint."""
    expr = spec.sql_type
    if ";" in expr or "--" in expr or "/*" in expr:
        raise InvalidTypeExpression(
            f"Type expression for column '{spec.name}' must be a single type: {expr!r}",
            table=table,
        )
    m = _CONSTRAINT_WORDS.search(expr)
    if m:
        raise InvalidTypeExpression(
            f"Type expression for column '{spec.name}' must not carry constraints "
            f"({' '.join(m.group(1).upper().split())}): {expr!r}",
            table=table,
        )


def like_clause(column: str, patterns: Sequence[str], placeholder: str) -> str:
    if not patterns:
        return ""
    parts = [f"{column} LIKE {placeholder}" for _ in patterns]
    return " AND (" + " OR ".join(parts) + ")"


__all__ = ['Dialect', 'quote_ident', 'check_type_expression', 'like_clause']

"""Schema domain models"""
from __future__ import annotations

from typing import Callable, List, Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field, field_validator


class ColumnDescriptor(BaseModel):
    """One column as reported by the catalog."""
    model_config = ConfigDict(frozen=True)

    name: str
    declared_type: str
    nullable: bool = True


class TableSchemaSnapshot(BaseModel):
    """Point-in-time read of a table's columns, ordered by position."""
    model_config = ConfigDict(frozen=True)

    table: str
    columns: Tuple[ColumnDescriptor, ...] = ()

    def column_names(self) -> List[str]:
        return [c.name for c in self.columns]

    def has_column(self, name: str, match: Optional[Callable[[str, str], bool]] = None) -> bool:
        return self.get(name, match) is not None

    def get(self, name: str, match: Optional[Callable[[str, str], bool]] = None) -> Optional[ColumnDescriptor]:
        """Find a column; `match` overrides exact comparison (e.g. SQLite's case folding)."""
        for col in self.columns:
            if (match(col.name, name) if match else col.name == name):
                return col
        return None

    def as_rows(self) -> List[Tuple[str, str, bool]]:
        return [(c.name, c.declared_type, c.nullable) for c in self.columns]


class RequiredColumnSpec(BaseModel):
    """Column a caller wants guaranteed to exist."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    sql_type: str = Field(alias="type")

    @field_validator("name", "sql_type", mode="before")
    def _strip_required(cls, v):
        v = str(v or "").strip()
        if not v:
            raise ValueError("must not be empty")
        return v


class EnsureOutcome(BaseModel):
    """Result of one guard run, including whether DDL was issued."""
    model_config = ConfigDict(frozen=True)

    table: str
    column: str
    added: bool
    snapshot: TableSchemaSnapshot


__all__ = [
    'ColumnDescriptor', 'TableSchemaSnapshot', 'RequiredColumnSpec', 'EnsureOutcome'
]

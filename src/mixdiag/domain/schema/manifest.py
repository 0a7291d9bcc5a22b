"""Required-column manifest loader"""
from __future__ import annotations

import os
from typing import Dict, Iterator, List, Tuple
import yaml
from pydantic import BaseModel, Field, field_validator

from .models import RequiredColumnSpec

MANIFEST_FILE = os.getenv("MIXDIAG_MANIFEST", "schema/required_columns.yaml")


class ColumnManifest(BaseModel):
    """Tables mapped to the columns each must carry, in file order."""
    tables: Dict[str, List[RequiredColumnSpec]] = Field(default_factory=dict)

    @field_validator("tables", mode="before")
    def _reject_empty_tables(cls, v):
        v = v or {}
        if not isinstance(v, dict):
            raise ValueError("'tables' must be a mapping of table name to column list")
        for table, cols in v.items():
            if not str(table).strip():
                raise ValueError("table names must not be empty")
            if not cols:
                raise ValueError(f"table '{table}' lists no columns")
        return v

    def specs(self) -> Iterator[Tuple[str, List[RequiredColumnSpec]]]:
        for table, cols in self.tables.items():
            yield table, list(cols)


def load_manifest(path: str = MANIFEST_FILE) -> ColumnManifest:
    if not os.path.isfile(path):
        raise FileNotFoundError(f"Column manifest not found: {path}")
    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"Invalid column manifest: top level must be a mapping ({path})")
    try:
        manifest = ColumnManifest(**raw)
    except Exception as e:
        raise ValueError(f"Invalid column manifest: {e}") from e
    return manifest

__all__ = ['ColumnManifest', 'load_manifest', 'MANIFEST_FILE']

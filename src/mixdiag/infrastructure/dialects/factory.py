"""Factory for constructing the database dialect based on configuration."""
from __future__ import annotations

from .sqlite import SqliteDialect
from ...config.settings import DatabaseConfig


def create_dialect(cfg: DatabaseConfig):
    driver = (cfg.driver or 'postgres').lower()
    if driver == 'sqlite':
        return SqliteDialect()
    if driver == 'postgres':
        try:
            from .postgres import PostgresDialect
        except ImportError as e:  # psycopg / libpq missing
            raise RuntimeError(f"Postgres dialect unavailable: {e}") from e
        return PostgresDialect(schema=cfg.schema_name)
    raise ValueError(f"Unsupported database driver: {cfg.driver!r}")

__all__ = ['create_dialect']

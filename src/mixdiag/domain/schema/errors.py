"""Typed schema errors raised by SchemaGuard and the dialect adapters."""
from __future__ import annotations

from typing import Optional


class SchemaGuardError(Exception):
    """Base schema error carrying the originating database message."""

    def __init__(self, message: str, *, table: Optional[str] = None, db_message: Optional[str] = None):
        super().__init__(message)
        self.table = table
        self.db_message = db_message if db_message is not None else message


class NotFound(SchemaGuardError):
    pass


class PermissionDenied(SchemaGuardError):
    pass


class AlreadyExists(SchemaGuardError):
    pass


class InvalidTypeExpression(SchemaGuardError):
    pass


class ConnectionFailed(SchemaGuardError):
    """The database could not be reached or opened."""


__all__ = [
    'SchemaGuardError', 'NotFound', 'PermissionDenied', 'AlreadyExists', 'InvalidTypeExpression',
    'ConnectionFailed',
]

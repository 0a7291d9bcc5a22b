"""Read-only catalog and identity queries."""
from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from pydantic import BaseModel

from ..config.settings import DatabaseConfig
from ..domain.schema.errors import NotFound
from ..domain.schema.models import TableSchemaSnapshot
from .schema_guard import open_guard

IDENTITY_TABLES = ("AspNetUsers", "AspNetUserRoles", "AspNetRoles")


class RoleMember(BaseModel):
    id: str
    user_name: Optional[str] = None
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None


def _row_to_member(r) -> RoleMember:
    return RoleMember(
        id=str(r[0]),
        user_name=r[1],
        email=r[2],
        first_name=r[3] if len(r) > 3 else None,
        last_name=r[4] if len(r) > 4 else None,
    )


def _require_tables(guard, tables: Sequence[str]):
    for t in tables:
        if not guard.dialect.table_exists(guard.conn, t):
            raise NotFound(f"Table not found: {t}", table=t)


def list_tables(cfg: DatabaseConfig, patterns: Sequence[str] = ()) -> List[str]:
    with open_guard(cfg) as guard:
        with guard.translated(None):
            return guard.dialect.list_tables(guard.conn, list(patterns))


def describe_tables(cfg: DatabaseConfig, tables: Sequence[str]) -> Dict[str, Optional[TableSchemaSnapshot]]:
    """Snapshot each table; tables that do not exist map to None."""
    out: Dict[str, Optional[TableSchemaSnapshot]] = {}
    with open_guard(cfg) as guard:
        for table in tables:
            try:
                out[table] = guard.snapshot(table)
            except NotFound:
                out[table] = None
    return out


def find_role_members(cfg: DatabaseConfig, role: str = "Admin") -> List[RoleMember]:
    with open_guard(cfg) as guard:
        p = guard.dialect.placeholder
        with guard.translated("AspNetUsers"):
            _require_tables(guard, IDENTITY_TABLES)
            cur = guard.conn.cursor()
            try:
                cur.execute(
                    'SELECT u."Id", u."UserName", u."Email", u."FirstName", u."LastName"'
                    ' FROM "AspNetUsers" u'
                    ' JOIN "AspNetUserRoles" ur ON u."Id" = ur."UserId"'
                    ' JOIN "AspNetRoles" r ON ur."RoleId" = r."Id"'
                    f' WHERE r."Name" = {p}'
                    ' ORDER BY u."UserName"',
                    (role,),
                )
                rows = cur.fetchall()
            finally:
                cur.close()
    return [_row_to_member(r) for r in rows]


def sample_users(cfg: DatabaseConfig, limit: int = 5, exclude_like: str = "%admin%") -> List[RoleMember]:
    with open_guard(cfg) as guard:
        p = guard.dialect.placeholder
        with guard.translated("AspNetUsers"):
            _require_tables(guard, ("AspNetUsers",))
            cur = guard.conn.cursor()
            try:
                cur.execute(
                    'SELECT u."Id", u."UserName", u."Email" FROM "AspNetUsers" u'
                    f' WHERE u."UserName" NOT LIKE {p}'
                    f' ORDER BY u."UserName" LIMIT {p}',
                    (exclude_like, max(0, int(limit))),
                )
                rows = cur.fetchall()
            finally:
                cur.close()
    return [_row_to_member(r) for r in rows]


__all__ = [
    'RoleMember', 'list_tables', 'describe_tables', 'find_role_members', 'sample_users', 'IDENTITY_TABLES'
]

from __future__ import annotations

from typing import Iterable, Optional, Sequence

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import User
from .repository import UserRepository


def _row_to_user(r: dict) -> User:
    return User(
        user_id=int(r["user_id"]),
        full_name=r["full_name"],
        role=Role(r["role"]),
        email=r.get("email"),
        is_active=bool(r.get("is_active", 1)),
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: int) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT user_id, full_name, role, email, is_active FROM users WHERE user_id=%s",
                (int(user_id),),
            )
            r = fetchone(cur)
            return _row_to_user(r) if r else None

    def list_by_roles(self, roles: Iterable[Role]) -> Sequence[User]:
        role_values = [r.value for r in roles]
        if not role_values:
            return []
        placeholders = ",".join(["%s"] * len(role_values))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT user_id, full_name, role, email, is_active
                FROM users
                WHERE is_active=1 AND role IN ({placeholders})
                ORDER BY user_id ASC
                """,
                tuple(role_values),
            )
            return [_row_to_user(r) for r in fetchall(cur)]

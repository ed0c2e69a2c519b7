from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import Role, UserStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, optional_int
from .model import User
from .repository import UserRepository

_USER_COLUMNS = """
    id, auth_id, name, email, password_hash, role, status,
    branch, semester, faculty_remark, admin_remark, created_at
"""


def _row_to_user(row: dict) -> User:
    return User(
        user_id=int(row["id"]),
        auth_id=row["auth_id"],
        name=row["name"],
        email=row["email"],
        password_hash=row["password_hash"],
        role=Role(row["role"]),
        status=UserStatus(row["status"]),
        branch=row.get("branch"),
        semester=optional_int(row.get("semester")),
        faculty_remark=row.get("faculty_remark"),
        admin_remark=row.get("admin_remark"),
        created_at=row.get("created_at"),
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _get_one(self, where: str, value) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_USER_COLUMNS} FROM users WHERE {where}=%s", (value,))
            row = fetchone(cur)
            return _row_to_user(row) if row else None

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self._get_one("id", int(user_id))

    def get_by_auth_id(self, auth_id: str) -> Optional[User]:
        return self._get_one("auth_id", auth_id)

    def get_by_email(self, email: str) -> Optional[User]:
        return self._get_one("email", email)

    def create_user(
        self,
        *,
        auth_id: str,
        name: str,
        email: str,
        password_hash: str,
        role: Role,
        status: UserStatus,
        branch: Optional[str],
        semester: Optional[int],
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO users(auth_id, name, email, password_hash, role, status, branch, semester)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (auth_id, name, email, password_hash, role.value, status.value, branch, semester),
            )
            return int(cur.lastrowid)

    def set_status(
        self,
        *,
        user_id: int,
        status: UserStatus,
        remark: Optional[str],
        remark_role: Role,
    ) -> bool:
        column = "admin_remark" if remark_role == Role.ADMIN else "faculty_remark"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE users SET status=%s, {column}=%s WHERE id=%s",
                (status.value, remark, int(user_id)),
            )
            # MySQL reports 0 changed rows when values are identical; the row still exists.
            return cur.rowcount > 0 or self._exists(cur, user_id)

    @staticmethod
    def _exists(cur, user_id: int) -> bool:
        cur.execute("SELECT 1 AS found FROM users WHERE id=%s", (int(user_id),))
        return fetchone(cur) is not None

    def list_users(
        self,
        *,
        status: Optional[UserStatus] = None,
        role: Optional[Role] = None,
        branch: Optional[str] = None,
        semester: Optional[int] = None,
        limit: int = 200,
    ) -> Sequence[User]:
        clauses = ["1=1"]
        params: list[object] = []

        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)
        if role is not None:
            clauses.append("role=%s")
            params.append(role.value)
        if branch is not None:
            clauses.append("branch=%s")
            params.append(branch)
        if semester is not None:
            clauses.append("semester=%s")
            params.append(int(semester))

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_USER_COLUMNS}
                FROM users
                WHERE {where}
                ORDER BY created_at DESC, id DESC
                LIMIT %s
                """,
                tuple(params + [int(limit)]),
            )
            return [_row_to_user(r) for r in fetchall(cur)]

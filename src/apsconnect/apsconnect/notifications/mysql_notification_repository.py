from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, optional_int
from .model import Notification
from .repository import NotificationRepository


class MySQLNotificationRepository(NotificationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def insert(
        self,
        *,
        title: str,
        message: str,
        user_id: Optional[int],
        role_target: Optional[Role],
        branch: Optional[str],
        semester: Optional[int],
        sender_id: Optional[int],
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO notifications(title, message, user_id, role_target, branch, semester, sender_id)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    title,
                    message,
                    user_id,
                    role_target.value if role_target else None,
                    branch,
                    semester,
                    sender_id,
                ),
            )
            return int(cur.lastrowid)

    def list_for_user(
        self,
        *,
        user_id: int,
        role: Role,
        branch: Optional[str],
        semester: Optional[int],
        limit: int = 200,
    ) -> Sequence[Notification]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT id, title, message, user_id, role_target, branch, semester,
                       sender_id, is_read, created_at
                FROM notifications
                WHERE user_id=%s
                   OR (
                        user_id IS NULL
                        AND (role_target IS NULL OR role_target=%s)
                        AND (branch IS NULL OR branch=%s)
                        AND (semester IS NULL OR semester=%s)
                   )
                ORDER BY created_at DESC, id DESC
                LIMIT %s
                """,
                (int(user_id), role.value, branch, semester, int(limit)),
            )
            return [
                Notification(
                    notification_id=int(r["id"]),
                    title=r["title"],
                    message=r["message"],
                    user_id=optional_int(r.get("user_id")),
                    role_target=Role(r["role_target"]) if r.get("role_target") else None,
                    branch=r.get("branch"),
                    semester=optional_int(r.get("semester")),
                    sender_id=optional_int(r.get("sender_id")),
                    read=bool(r.get("is_read")),
                    created_at=r["created_at"],
                )
                for r in fetchall(cur)
            ]

    def mark_read(self, *, notification_id: int, user_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE notifications SET is_read=1 WHERE id=%s AND user_id=%s",
                (int(notification_id), int(user_id)),
            )
            if cur.rowcount > 0:
                return True
            cur.execute(
                "SELECT id FROM notifications WHERE id=%s AND user_id=%s",
                (int(notification_id), int(user_id)),
            )
            return bool(fetchall(cur))

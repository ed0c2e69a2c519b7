from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, optional_int
from .model import Announcement
from .repository import AnnouncementRepository

_COLUMNS = "id, title, content, branch, semester, file_url, created_by, created_at"


def _row_to_announcement(r: dict) -> Announcement:
    return Announcement(
        announcement_id=int(r["id"]),
        title=r["title"],
        content=r["content"],
        branch=r.get("branch"),
        semester=optional_int(r.get("semester")),
        file_url=r.get("file_url"),
        created_by=int(r["created_by"]),
        created_at=r.get("created_at"),
    )


class MySQLAnnouncementRepository(AnnouncementRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create_announcement(
        self,
        *,
        title: str,
        content: str,
        branch: Optional[str],
        semester: Optional[int],
        file_url: Optional[str],
        created_by: int,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO announcements(title, content, branch, semester, file_url, created_by)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (title, content, branch, optional_int(semester), file_url, int(created_by)),
            )
            return int(cur.lastrowid)

    def get_announcement(self, announcement_id: int) -> Optional[Announcement]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM announcements WHERE id=%s", (int(announcement_id),))
            r = fetchone(cur)
            return _row_to_announcement(r) if r else None

    def update_announcement(
        self,
        *,
        announcement_id: int,
        title: str,
        content: str,
        file_url: Optional[str],
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE announcements SET title=%s, content=%s, file_url=%s WHERE id=%s",
                (title, content, file_url, int(announcement_id)),
            )
            return cur.rowcount > 0

    def delete_announcement(self, announcement_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM announcements WHERE id=%s", (int(announcement_id),))
            return cur.rowcount > 0

    def list_announcements(
        self,
        *,
        branch: Optional[str] = None,
        semester: Optional[int] = None,
        audience: bool = False,
        limit: int = 200,
    ) -> Sequence[Announcement]:
        clauses = []
        params: list[object] = []
        if audience:
            clauses.append("(branch IS NULL OR branch=%s)")
            params.append(branch)
            clauses.append("(semester IS NULL OR semester=%s)")
            params.append(optional_int(semester))
        else:
            if branch is not None:
                clauses.append("branch=%s")
                params.append(branch)
            if semester is not None:
                clauses.append("semester=%s")
                params.append(int(semester))

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        params.append(int(limit))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM announcements {where} ORDER BY created_at DESC, id DESC LIMIT %s",
                tuple(params),
            )
            return [_row_to_announcement(r) for r in fetchall(cur)]

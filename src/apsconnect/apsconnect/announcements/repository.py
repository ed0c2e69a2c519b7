from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Announcement


class AnnouncementRepository(Protocol):
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
        raise NotImplementedError

    def get_announcement(self, announcement_id: int) -> Optional[Announcement]:
        raise NotImplementedError

    def update_announcement(
        self,
        *,
        announcement_id: int,
        title: str,
        content: str,
        file_url: Optional[str],
    ) -> bool:
        raise NotImplementedError

    def delete_announcement(self, announcement_id: int) -> bool:
        raise NotImplementedError

    def list_announcements(
        self,
        *,
        branch: Optional[str] = None,
        semester: Optional[int] = None,
        audience: bool = False,
        limit: int = 200,
    ) -> Sequence[Announcement]:
        """Newest first.

        With ``audience`` the branch/semester describe a reader, and posts
        targeted at everyone match too; otherwise they are exact filters.
        """

        raise NotImplementedError

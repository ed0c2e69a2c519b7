from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import Role
from .model import Notification


class NotificationRepository(Protocol):
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
        raise NotImplementedError

    def list_for_user(
        self,
        *,
        user_id: int,
        role: Role,
        branch: Optional[str],
        semester: Optional[int],
        limit: int = 200,
    ) -> Sequence[Notification]:
        """Targeted rows plus broadcasts whose descriptor matches the user."""

        raise NotImplementedError

    def mark_read(self, *, notification_id: int, user_id: int) -> bool:
        raise NotImplementedError

from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

from ..common.validators import optional_str, require_int, require_non_empty
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, NotFoundError
from ..core.policy import Actor, require_role, resolve_audience
from ..notifications.model import BroadcastTarget
from ..notifications.service import NotificationService
from .model import Announcement
from .repository import AnnouncementRepository

logger = logging.getLogger(__name__)


def _optional_semester(value: Any) -> Optional[int]:
    return require_int(value, "semester", minimum=1) if value not in (None, "") else None


class AnnouncementService:
    def __init__(self, announcements: AnnouncementRepository, notifications: NotificationService):
        self._announcements = announcements
        self._notifications = notifications

    def create(
        self,
        *,
        actor: Actor,
        title: Any,
        content: Any,
        branch: Any = None,
        semester: Any = None,
        file_url: Any = None,
    ) -> Announcement:
        require_role(actor, Role.FACULTY, Role.ADMIN)
        title_s = require_non_empty(title, "title")
        content_s = require_non_empty(content, "content")
        target_branch, target_semester = resolve_audience(actor, optional_str(branch), _optional_semester(semester))

        announcement_id = self._announcements.create_announcement(
            title=title_s,
            content=content_s,
            branch=target_branch,
            semester=target_semester,
            file_url=optional_str(file_url),
            created_by=actor.user_id,
        )
        logger.info(
            "announcement id=%s posted by user id=%s (branch=%s semester=%s)",
            announcement_id,
            actor.user_id,
            target_branch,
            target_semester,
        )

        self._notifications.notify(
            BroadcastTarget(branch=target_branch, semester=target_semester),
            f"Announcement: {title_s}",
            content_s,
            sender_id=actor.user_id,
        )
        return self.get(announcement_id)

    def get(self, announcement_id: Any) -> Announcement:
        announcement = self._announcements.get_announcement(require_int(announcement_id, "announcement_id"))
        if not announcement:
            raise NotFoundError("announcement not found")
        return announcement

    def update(
        self,
        *,
        actor: Actor,
        announcement_id: Any,
        title: Any = None,
        content: Any = None,
        file_url: Any = None,
    ) -> Announcement:
        """Edit text or attachment; blank fields keep their current value."""
        announcement = self._owned(actor, announcement_id)
        self._announcements.update_announcement(
            announcement_id=announcement.announcement_id,
            title=optional_str(title) or announcement.title,
            content=optional_str(content) or announcement.content,
            file_url=optional_str(file_url) or announcement.file_url,
        )
        return self.get(announcement.announcement_id)

    def delete(self, *, actor: Actor, announcement_id: Any) -> None:
        announcement = self._owned(actor, announcement_id)
        if not self._announcements.delete_announcement(announcement.announcement_id):
            raise NotFoundError("announcement not found")
        logger.info("announcement id=%s deleted by user id=%s", announcement.announcement_id, actor.user_id)

    def list_for(self, *, actor: Actor, branch: Any = None, semester: Any = None) -> Sequence[Announcement]:
        if actor.role in {Role.STUDENT, Role.ALUMNI}:
            return self._announcements.list_announcements(
                branch=actor.branch, semester=actor.semester, audience=True
            )
        return self._announcements.list_announcements(branch=optional_str(branch), semester=_optional_semester(semester))

    def _owned(self, actor: Actor, announcement_id: Any) -> Announcement:
        require_role(actor, Role.FACULTY, Role.ADMIN)
        announcement = self.get(announcement_id)
        if not actor.is_admin and announcement.created_by != actor.user_id:
            raise AuthorizationError("forbidden: not your announcement")
        return announcement

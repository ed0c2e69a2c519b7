from __future__ import annotations

import logging
from typing import Optional, Sequence

from ..core.exceptions import NotFoundError
from ..core.policy import Actor
from .model import BroadcastTarget, Notification, NotificationTarget, UserTarget
from .repository import NotificationRepository

logger = logging.getLogger(__name__)


class NotificationService:
    """Best-effort fan-out.

    ``notify`` never raises: a failed insert is logged and reported as None,
    and is not part of the caller's transaction.
    """

    def __init__(self, notifications: NotificationRepository):
        self._notifications = notifications

    def notify(
        self,
        target: NotificationTarget,
        title: str,
        message: str,
        *,
        sender_id: Optional[int] = None,
    ) -> Optional[int]:
        try:
            if isinstance(target, UserTarget):
                return self._notifications.insert(
                    title=title,
                    message=message,
                    user_id=int(target.user_id),
                    role_target=None,
                    branch=None,
                    semester=None,
                    sender_id=sender_id,
                )
            if isinstance(target, BroadcastTarget):
                return self._notifications.insert(
                    title=title,
                    message=message,
                    user_id=None,
                    role_target=target.role_target,
                    branch=target.branch,
                    semester=target.semester,
                    sender_id=sender_id,
                )
            logger.warning("notification skipped: unsupported target %r", target)
            return None
        except Exception:
            logger.exception("notification insert failed (title=%r, target=%r)", title, target)
            return None

    def list_for(self, actor: Actor, *, limit: int = 200) -> Sequence[Notification]:
        return self._notifications.list_for_user(
            user_id=actor.user_id,
            role=actor.role,
            branch=actor.branch,
            semester=actor.semester,
            limit=limit,
        )

    def mark_read(self, actor: Actor, notification_id: int) -> None:
        if not self._notifications.mark_read(notification_id=int(notification_id), user_id=actor.user_id):
            raise NotFoundError("notification not found")

from __future__ import annotations

import logging
from typing import Optional, Sequence

from ..common.validators import optional_str
from ..core.enums import ApprovalAction, Role, UserStatus
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..core.policy import Actor, can_transition, require_role
from ..notifications.model import UserTarget
from ..notifications.service import NotificationService
from ..users.model import User
from ..users.repository import UserRepository

logger = logging.getLogger(__name__)

_NEW_STATUS = {
    ApprovalAction.APPROVE: UserStatus.APPROVED,
    ApprovalAction.REJECT: UserStatus.REJECTED,
}


class ApprovalService:
    """Admission workflow: pending -> approved | rejected.

    Re-running a transition on an already decided account overwrites the
    status and remark; there is no terminal-state guard.
    """

    def __init__(self, users: UserRepository, notifications: NotificationService):
        self._users = users
        self._notifications = notifications

    @staticmethod
    def parse_action(value: str) -> ApprovalAction:
        try:
            return ApprovalAction(str(value or "").lower())
        except ValueError:
            raise ValidationError("invalid action")

    def transition(
        self,
        *,
        actor: Actor,
        target_user_id: int,
        action: ApprovalAction,
        remarks: Optional[str] = None,
    ) -> User:
        require_role(actor, Role.FACULTY, Role.ADMIN)

        target = self._users.get_by_id(int(target_user_id))
        if not target:
            raise NotFoundError("student not found")

        if not can_transition(actor, target.role, target.branch, target.semester):
            raise AuthorizationError("forbidden: faculty can only manage students in their branch/semester")

        new_status = _NEW_STATUS[action]
        remark = optional_str(remarks)

        if not self._users.set_status(
            user_id=target.user_id,
            status=new_status,
            remark=remark,
            remark_role=actor.role,
        ):
            raise NotFoundError("student not found")

        logger.info(
            "user id=%s %s by %s id=%s",
            target.user_id,
            new_status.value,
            actor.role.value,
            actor.user_id,
        )

        message = f"{actor.role.value} {f'remark: {remark}. ' if remark else ''}Your account was {new_status.value}."
        self._notifications.notify(
            UserTarget(target.user_id),
            f"Account {new_status.value}",
            message,
            sender_id=actor.user_id,
        )

        updated = self._users.get_by_id(target.user_id)
        if not updated:
            raise NotFoundError("student not found")
        return updated

    def list_pending(self, *, actor: Actor, limit: int = 200) -> Sequence[User]:
        require_role(actor, Role.FACULTY, Role.ADMIN)
        if actor.role == Role.ADMIN:
            return self._users.list_users(status=UserStatus.PENDING, limit=limit)
        return self._users.list_users(
            status=UserStatus.PENDING,
            role=Role.STUDENT,
            branch=actor.branch,
            semester=actor.semester,
            limit=limit,
        )

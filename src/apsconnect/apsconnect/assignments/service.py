from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Sequence

from ..common.datetime_utils import now_local, parse_iso_date
from ..common.validators import optional_str, require_int, require_non_empty
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..core.policy import Actor, in_scope, require_role
from ..notifications.model import BroadcastTarget
from ..notifications.service import NotificationService
from .model import Assignment, Submission
from .repository import AssignmentRepository

logger = logging.getLogger(__name__)


class AssignmentService:
    def __init__(self, assignments: AssignmentRepository, notifications: NotificationService):
        self._assignments = assignments
        self._notifications = notifications

    def create(
        self,
        *,
        actor: Actor,
        title: Any,
        branch: Any,
        semester: Any,
        due_date: Any,
        description: Any = None,
        file_url: Any = None,
    ) -> Assignment:
        require_role(actor, Role.FACULTY)
        title_s = require_non_empty(title, "title")
        branch_s = require_non_empty(branch, "branch")
        if semester in (None, "") or not due_date:
            raise ValidationError("Missing fields")
        semester_i = require_int(semester, "semester", minimum=1)

        assignment_id = self._assignments.create_assignment(
            title=title_s,
            description=optional_str(description),
            branch=branch_s,
            semester=semester_i,
            due_date=parse_iso_date(due_date, "due_date"),
            file_url=optional_str(file_url),
            faculty_id=actor.user_id,
        )
        assignment = self.get(assignment_id)
        logger.info("assignment id=%s created by faculty id=%s", assignment_id, actor.user_id)

        self._notifications.notify(
            BroadcastTarget(role_target=Role.STUDENT, branch=branch_s, semester=semester_i),
            f"New assignment: {title_s}",
            f"Due {assignment.due_date.isoformat()}.",
            sender_id=actor.user_id,
        )
        return assignment

    def get(self, assignment_id: Any) -> Assignment:
        assignment = self._assignments.get_assignment(require_int(assignment_id, "assignment_id"))
        if not assignment:
            raise NotFoundError("assignment not found")
        return assignment

    def submit(
        self,
        *,
        actor: Actor,
        assignment_id: Any,
        file_url: Any,
        now: datetime | None = None,
    ) -> Submission:
        require_role(actor, Role.STUDENT)
        if assignment_id in (None, ""):
            raise ValidationError("assignment_id required")
        url = require_non_empty(file_url, "file_url")

        assignment = self.get(assignment_id)
        if not in_scope(actor, assignment.branch, assignment.semester):
            raise AuthorizationError("forbidden: assignment is not for your branch/semester")

        return self._assignments.upsert_submission(
            assignment_id=assignment.assignment_id,
            student_id=actor.user_id,
            file_url=url,
            submitted_at=now or now_local(),
        )

    def list_for(self, *, actor: Actor) -> Sequence[Assignment]:
        if actor.role == Role.FACULTY:
            return self._assignments.list_assignments(faculty_id=actor.user_id)
        if actor.is_admin:
            return self._assignments.list_assignments()
        return self._assignments.list_assignments(branch=actor.branch, semester=actor.semester)

    def submissions(self, *, actor: Actor, assignment_id: Any) -> Sequence[Submission]:
        require_role(actor, Role.FACULTY, Role.ADMIN)
        assignment = self.get(assignment_id)
        if actor.role == Role.FACULTY and assignment.faculty_id != actor.user_id:
            raise AuthorizationError("forbidden: not your assignment")
        return self._assignments.list_submissions(assignment.assignment_id)

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.validators import optional_str, require_int, require_non_empty
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..core.policy import Actor, in_audience, require_role, resolve_audience
from ..notifications.model import BroadcastTarget
from ..notifications.service import NotificationService
from .model import OptionCount, Poll, PollResult, PollVote
from .repository import PollRepository

logger = logging.getLogger(__name__)

MIN_OPTIONS = 2


def clean_options(options: Any) -> list[str]:
    """Strip blanks and repeats, keeping the author's order."""
    if not isinstance(options, list):
        raise ValidationError("options must be a list")
    out: list[str] = []
    for o in options:
        text = optional_str(o)
        if text and text not in out:
            out.append(text)
    if len(out) < MIN_OPTIONS:
        raise ValidationError("Enter question and at least 2 options")
    return out


def _optional_semester(value: Any) -> Optional[int]:
    return require_int(value, "semester", minimum=1) if value not in (None, "") else None


class PollService:
    def __init__(self, polls: PollRepository, notifications: NotificationService):
        self._polls = polls
        self._notifications = notifications

    def create(
        self,
        *,
        actor: Actor,
        question: Any,
        options: Any,
        branch: Any = None,
        semester: Any = None,
    ) -> Poll:
        require_role(actor, Role.FACULTY, Role.ADMIN)
        question_s = require_non_empty(question, "question")
        choices = clean_options(options)
        target_branch, target_semester = resolve_audience(actor, optional_str(branch), _optional_semester(semester))

        poll_id = self._polls.create_poll(
            faculty_id=actor.user_id,
            question=question_s,
            options=choices,
            branch=target_branch,
            semester=target_semester,
        )
        logger.info("poll id=%s created by user id=%s", poll_id, actor.user_id)

        self._notifications.notify(
            BroadcastTarget(role_target=Role.STUDENT, branch=target_branch, semester=target_semester),
            f"New poll: {question_s}",
            " / ".join(choices),
            sender_id=actor.user_id,
        )
        return self.get(poll_id)

    def get(self, poll_id: Any) -> Poll:
        poll = self._polls.get_poll(require_int(poll_id, "poll_id"))
        if not poll:
            raise NotFoundError("poll not found")
        return poll

    def update(self, *, actor: Actor, poll_id: Any, question: Any = None, options: Any = None) -> Poll:
        poll = self._owned(actor, poll_id)
        choices = poll.options if options is None else clean_options(options)
        # Votes refer to option text, so the choices freeze once anyone voted.
        if choices != poll.options and self._polls.count_votes(poll.poll_id):
            raise ConflictError("poll already has votes; options cannot change")

        self._polls.update_poll(
            poll_id=poll.poll_id,
            question=optional_str(question) or poll.question,
            options=choices,
        )
        return self.get(poll.poll_id)

    def close(self, *, actor: Actor, poll_id: Any) -> Poll:
        poll = self._owned(actor, poll_id)
        if poll.active:
            self._polls.set_active(poll_id=poll.poll_id, active=False)
            logger.info("poll id=%s closed by user id=%s", poll.poll_id, actor.user_id)
        return self.get(poll.poll_id)

    def delete(self, *, actor: Actor, poll_id: Any) -> None:
        poll = self._owned(actor, poll_id)
        if not self._polls.delete_poll(poll.poll_id):
            raise NotFoundError("poll not found")

    def vote(self, *, actor: Actor, poll_id: Any, option: Any, now: datetime | None = None) -> PollVote:
        require_role(actor, Role.STUDENT)
        poll = self.get(poll_id)
        if not in_audience(actor, poll.branch, poll.semester):
            raise AuthorizationError("forbidden: poll is not for your branch/semester")
        if not poll.active:
            raise ConflictError("poll is closed")

        choice = optional_str(option)
        if choice not in poll.options:
            raise ValidationError("option is not one of the poll's options")

        return self._polls.upsert_vote(
            poll_id=poll.poll_id,
            student_id=actor.user_id,
            option=choice,
            voted_at=now or now_local(),
        )

    def results(self, *, actor: Actor, poll_id: Any) -> PollResult:
        poll = self._owned(actor, poll_id)
        tally = self._polls.count_votes(poll.poll_id)
        counts = [OptionCount(option=o, count=tally.get(o, 0)) for o in poll.options]
        return PollResult(
            poll_id=poll.poll_id,
            question=poll.question,
            active=poll.active,
            total_votes=sum(c.count for c in counts),
            counts=counts,
        )

    def list_for(self, *, actor: Actor) -> Sequence[Poll]:
        if actor.role == Role.FACULTY:
            return self._polls.list_polls(faculty_id=actor.user_id)
        if actor.is_admin:
            return self._polls.list_polls()
        return self._polls.list_polls(branch=actor.branch, semester=actor.semester, audience=True)

    def _owned(self, actor: Actor, poll_id: Any) -> Poll:
        require_role(actor, Role.FACULTY, Role.ADMIN)
        poll = self.get(poll_id)
        if not actor.is_admin and poll.faculty_id != actor.user_id:
            raise AuthorizationError("forbidden: not your poll")
        return poll

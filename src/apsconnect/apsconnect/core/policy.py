"""Authorization predicates shared by every service.

Role checks and the faculty branch/semester scope rule live here so that
services never compare role strings themselves.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .enums import Role, UserStatus
from .exceptions import AuthorizationError


@dataclass(frozen=True)
class Actor:
    """The resolved caller of a request."""

    user_id: int
    role: Role
    status: UserStatus
    branch: Optional[str]
    semester: Optional[int]

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


def require_role(actor: Actor, *roles: Role) -> None:
    """Role gate for privileged actions; the account must also be approved."""
    if actor.role not in roles:
        allowed = "/".join(r.value for r in roles)
        raise AuthorizationError(f"forbidden: only {allowed} can perform this action")
    if actor.status != UserStatus.APPROVED:
        raise AuthorizationError(f"forbidden: account is {actor.status.value}")


def in_scope(actor: Actor, branch: Optional[str], semester: Optional[int]) -> bool:
    """Admin sees everything; faculty and students only their own branch+semester."""

    if actor.is_admin:
        return True
    return actor.branch == branch and actor.semester == semester


def require_scope(actor: Actor, branch: Optional[str], semester: Optional[int]) -> None:
    if not in_scope(actor, branch, semester):
        raise AuthorizationError("forbidden: outside your branch/semester")


def can_transition(
    actor: Actor,
    target_role: Role,
    target_branch: Optional[str],
    target_semester: Optional[int],
) -> bool:
    """Who may approve or reject an account.

    Admin decides any account; faculty only students of their own
    branch+semester. Both actions follow the same rule.
    """
    if actor.role == Role.ADMIN:
        return True
    if actor.role != Role.FACULTY or target_role != Role.STUDENT:
        return False
    return in_scope(actor, target_branch, target_semester)


def resolve_audience(actor: Actor, branch: Optional[str], semester: Optional[int]) -> tuple[Optional[str], Optional[int]]:
    """Target of a post (announcement, poll). None means every branch/semester.

    Faculty post to their own branch+semester: blanks fall back to it and
    anything else is refused. Admin may target anything, including everyone.
    """
    if actor.is_admin:
        return branch, semester
    branch = branch if branch is not None else actor.branch
    semester = semester if semester is not None else actor.semester
    require_scope(actor, branch, semester)
    return branch, semester


def in_audience(actor: Actor, branch: Optional[str], semester: Optional[int]) -> bool:
    return (branch is None or branch == actor.branch) and (semester is None or semester == actor.semester)

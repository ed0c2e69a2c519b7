from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import Role, UserStatus
from ..core.policy import Actor


@dataclass(frozen=True)
class User:
    """Domain entity: an account row.

    Note: Plain data object, no DB access here.
    """

    user_id: int
    auth_id: str
    name: str
    email: str
    password_hash: str
    role: Role
    status: UserStatus
    branch: Optional[str]
    semester: Optional[int]
    faculty_remark: Optional[str] = None
    admin_remark: Optional[str] = None
    created_at: Optional[datetime] = None

    def to_actor(self) -> Actor:
        return Actor(
            user_id=self.user_id,
            role=self.role,
            status=self.status,
            branch=self.branch,
            semester=self.semester,
        )

    def public_view(self) -> dict:
        return {
            "id": self.user_id,
            "name": self.name,
            "email": self.email,
            "role": self.role.value,
            "status": self.status.value,
            "branch": self.branch,
            "semester": self.semester,
            "faculty_remark": self.faculty_remark,
            "admin_remark": self.admin_remark,
        }

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union

from ..core.enums import Role


@dataclass(frozen=True)
class UserTarget:
    user_id: int


@dataclass(frozen=True)
class BroadcastTarget:
    """Matched at read time; a None field matches every user."""

    role_target: Optional[Role] = None
    branch: Optional[str] = None
    semester: Optional[int] = None


NotificationTarget = Union[UserTarget, BroadcastTarget]


@dataclass(frozen=True)
class Notification:
    notification_id: int
    title: str
    message: str
    user_id: Optional[int]
    role_target: Optional[Role]
    branch: Optional[str]
    semester: Optional[int]
    sender_id: Optional[int]
    read: bool
    created_at: datetime

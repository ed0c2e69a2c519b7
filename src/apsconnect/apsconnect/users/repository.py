from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import Role, UserStatus
from .model import User


class UserRepository(Protocol):
    """Repository interface for User.

    Note (DIP): services depend on this interface, not on a concrete DB.
    """

    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_by_auth_id(self, auth_id: str) -> Optional[User]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[User]:
        raise NotImplementedError

    def create_user(
        self,
        *,
        auth_id: str,
        name: str,
        email: str,
        password_hash: str,
        role: Role,
        status: UserStatus,
        branch: Optional[str],
        semester: Optional[int],
    ) -> int:
        raise NotImplementedError

    def set_status(
        self,
        *,
        user_id: int,
        status: UserStatus,
        remark: Optional[str],
        remark_role: Role,
    ) -> bool:
        """Write the status plus the remark column belonging to remark_role."""

        raise NotImplementedError

    def list_users(
        self,
        *,
        status: Optional[UserStatus] = None,
        role: Optional[Role] = None,
        branch: Optional[str] = None,
        semester: Optional[int] = None,
        limit: int = 200,
    ) -> Sequence[User]:
        raise NotImplementedError

from __future__ import annotations

import logging
import uuid
from typing import Optional

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from werkzeug.security import check_password_hash, generate_password_hash

from ..common.validators import optional_str, require_int, require_min_length, require_non_empty
from ..core.constants import TOKEN_MAX_AGE_SECONDS
from ..core.enums import Role, UserStatus
from ..core.exceptions import AuthenticationError, ConflictError, NotFoundError, ValidationError
from ..core.policy import Actor
from .model import User
from .repository import UserRepository

logger = logging.getLogger(__name__)

SELF_REGISTER_ROLES = {Role.STUDENT, Role.FACULTY, Role.ALUMNI}


class IdentityService:
    """Use cases: register, login, and resolve a principal to an Actor."""

    def __init__(
        self,
        users: UserRepository,
        *,
        secret_key: str,
        token_max_age: int = TOKEN_MAX_AGE_SECONDS,
    ):
        self._users = users
        self._serializer = URLSafeTimedSerializer(secret_key, salt="apsconnect-auth")
        self._token_max_age = int(token_max_age)

    def register(
        self,
        *,
        name: str,
        email: str,
        password: str,
        role: str,
        branch: Optional[str] = None,
        semester=None,
    ) -> User:
        name = require_non_empty(name, "name")
        email = require_non_empty(email, "email").lower()
        require_min_length(password, "password", 6)

        try:
            role_enum = Role(str(role or Role.STUDENT.value).lower())
        except ValueError:
            raise ValidationError("invalid role")
        if role_enum not in SELF_REGISTER_ROLES:
            raise ValidationError("admin accounts cannot self-register")

        branch = optional_str(branch)
        sem = require_int(semester, "semester", minimum=1) if semester not in (None, "") else None
        if role_enum in {Role.STUDENT, Role.FACULTY} and (branch is None or sem is None):
            raise ValidationError("branch and semester required")

        if self._users.get_by_email(email):
            raise ConflictError("email already registered")

        user_id = self._users.create_user(
            auth_id=uuid.uuid4().hex,
            name=name,
            email=email,
            password_hash=generate_password_hash(password),
            role=role_enum,
            status=UserStatus.PENDING,
            branch=branch,
            semester=sem,
        )
        logger.info("registered user id=%s role=%s", user_id, role_enum.value)

        user = self._users.get_by_id(user_id)
        if not user:
            raise NotFoundError("user not found")
        return user

    def authenticate(self, email: str, password: str) -> User:
        user = self._users.get_by_email((email or "").strip().lower())
        if not user:
            raise AuthenticationError("invalid email or password")

        try:
            ok = check_password_hash(user.password_hash, password or "")
        except Exception:
            # e.g. placeholder hashes like 'CHANGE_ME' or corrupted values
            ok = False

        if not ok:
            raise AuthenticationError("invalid email or password")
        return user

    def issue_token(self, auth_id: str) -> str:
        return self._serializer.dumps({"sub": auth_id})

    def auth_id_from_token(self, token: str) -> str:
        try:
            data = self._serializer.loads(token, max_age=self._token_max_age)
        except SignatureExpired:
            raise AuthenticationError("token expired")
        except BadSignature:
            raise AuthenticationError("invalid token")

        sub = data.get("sub") if isinstance(data, dict) else None
        if not sub:
            raise AuthenticationError("invalid token")
        return str(sub)

    def resolve(self, auth_id: str) -> Actor:
        user = self._users.get_by_auth_id(auth_id)
        if not user:
            raise NotFoundError("user not found")
        return user.to_actor()

    def get_user(self, user_id: int) -> User:
        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("user not found")
        return user

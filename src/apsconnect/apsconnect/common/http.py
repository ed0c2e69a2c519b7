"""Shared helpers for the JSON controllers."""
from __future__ import annotations

import logging
from dataclasses import asdict, is_dataclass
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from enum import Enum
from functools import wraps
from typing import Any, TYPE_CHECKING

from flask import jsonify, request, session

from ..core.exceptions import AuthenticationError, BackendError, DomainError
from ..core.policy import Actor

if TYPE_CHECKING:
    from ..users.service import IdentityService

logger = logging.getLogger(__name__)


def to_json(value: Any) -> Any:
    """Convert domain objects into JSON-safe structures."""

    if is_dataclass(value) and not isinstance(value, type):
        return to_json(asdict(value))
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, timedelta):
        return str(value)
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, dict):
        return {k: to_json(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_json(v) for v in value]
    return value


def ok(**payload: Any):
    return jsonify({"success": True, **to_json(payload)})


def read_json() -> dict:
    body = request.get_json(silent=True)
    return body if isinstance(body, dict) else {}


def json_endpoint(view):
    """Translate domain exceptions into the JSON error envelope."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        try:
            return view(*args, **kwargs)
        except BackendError as e:
            logger.error("backend failure on %s %s: %s", request.method, request.path, e)
            return jsonify({"success": False, "error": str(e)}), e.http_status
        except DomainError as e:
            return jsonify({"success": False, "error": str(e)}), e.http_status
        except Exception as e:
            logger.exception("unhandled error on %s %s", request.method, request.path)
            return jsonify({"success": False, "error": str(e) or "server error"}), 500

    return wrapper


def current_actor(identity: "IdentityService") -> Actor:
    """Resolve the caller from a bearer token or the login session.

    Runs on every request; authorization is never cached.
    """

    header = request.headers.get("Authorization", "")
    if header.startswith("Bearer "):
        auth_id = identity.auth_id_from_token(header.split(" ", 1)[1].strip())
    else:
        auth_id = session.get("auth_id")

    if not auth_id:
        raise AuthenticationError("Unauthorized")
    return identity.resolve(str(auth_id))

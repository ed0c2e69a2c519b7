from __future__ import annotations

from typing import Any, Optional

from ..core.exceptions import ValidationError


def require_non_empty(value: Any, field_name: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(f"{field_name} required")
    return str(value).strip()


def require_min_length(value: str, field_name: str, min_len: int) -> str:
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters")
    return value


def require_int(value: Any, field_name: str, *, minimum: Optional[int] = None) -> int:
    try:
        out = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be an integer")
    if minimum is not None and out < minimum:
        raise ValidationError(f"{field_name} must be >= {minimum}")
    return out


def require_positive_amount(value: Any, field_name: str = "amount") -> float:
    try:
        out = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number")
    if out <= 0:
        raise ValidationError(f"{field_name} must be positive")
    return round(out, 2)


def optional_str(value: Any) -> Optional[str]:
    v = (str(value) if value is not None else "").strip()
    return v or None

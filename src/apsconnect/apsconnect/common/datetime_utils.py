from __future__ import annotations

from datetime import date, datetime, time
from typing import Any, Optional

from ..core.exceptions import ValidationError


def parse_iso_date(value: Any, field_name: str = "date") -> date:
    """Parse YYYY-MM-DD string into date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(str(value).strip(), "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError(f"{field_name} must be YYYY-MM-DD")


def parse_optional_time(value: Any, field_name: str = "time") -> Optional[time]:
    """Accept HH:MM or HH:MM:SS; blank means no value."""
    if value is None or isinstance(value, time):
        return value
    v = str(value).strip()
    if not v:
        return None
    for fmt in ("%H:%M", "%H:%M:%S"):
        try:
            return datetime.strptime(v, fmt).time()
        except ValueError:
            continue
    raise ValidationError(f"{field_name} must be HH:MM")


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()

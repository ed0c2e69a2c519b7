from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class Announcement:
    """A notice board post; branch/semester of None reach everybody."""

    announcement_id: int
    title: str
    content: str
    branch: Optional[str]
    semester: Optional[int]
    file_url: Optional[str]
    created_by: int
    created_at: Optional[datetime] = None

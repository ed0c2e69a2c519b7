from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class Poll:
    poll_id: int
    faculty_id: int
    question: str
    options: list[str]
    branch: Optional[str]
    semester: Optional[int]
    active: bool
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class PollVote:
    poll_id: int
    student_id: int
    option: str
    voted_at: datetime


@dataclass(frozen=True)
class OptionCount:
    option: str
    count: int


@dataclass(frozen=True)
class PollResult:
    poll_id: int
    question: str
    active: bool
    total_votes: int
    counts: list[OptionCount] = field(default_factory=list)

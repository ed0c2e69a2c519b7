from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from .model import Poll, PollVote


class PollRepository(Protocol):
    def create_poll(
        self,
        *,
        faculty_id: int,
        question: str,
        options: list[str],
        branch: Optional[str],
        semester: Optional[int],
    ) -> int:
        raise NotImplementedError

    def get_poll(self, poll_id: int) -> Optional[Poll]:
        raise NotImplementedError

    def update_poll(self, *, poll_id: int, question: str, options: list[str]) -> bool:
        raise NotImplementedError

    def set_active(self, *, poll_id: int, active: bool) -> bool:
        raise NotImplementedError

    def delete_poll(self, poll_id: int) -> bool:
        raise NotImplementedError

    def list_polls(
        self,
        *,
        faculty_id: Optional[int] = None,
        branch: Optional[str] = None,
        semester: Optional[int] = None,
        audience: bool = False,
    ) -> Sequence[Poll]:
        """Newest first; ``audience`` works as in announcements."""

        raise NotImplementedError

    def upsert_vote(self, *, poll_id: int, student_id: int, option: str, voted_at: datetime) -> PollVote:
        """One vote per (poll, student); voting again replaces the choice."""

        raise NotImplementedError

    def count_votes(self, poll_id: int) -> dict[str, int]:
        raise NotImplementedError

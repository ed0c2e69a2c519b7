from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

import pytest

from src.apsconnect.apsconnect.container import Container, wire_services
from src.apsconnect.apsconnect.main import create_app

from tests.fakes import (
    FakeAnnouncementsRepo,
    FakeAssignmentsRepo,
    FakeAttendanceRepo,
    FakeFeesRepo,
    FakeLibraryRepo,
    FakeNotificationsRepo,
    FakePollsRepo,
    FakeResultsRepo,
    FakeUsersRepo,
)


@dataclass
class Repos:
    users: FakeUsersRepo
    notifications: FakeNotificationsRepo
    attendance: FakeAttendanceRepo
    library: FakeLibraryRepo
    results: FakeResultsRepo
    fees: FakeFeesRepo
    assignments: FakeAssignmentsRepo
    announcements: FakeAnnouncementsRepo
    polls: FakePollsRepo


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2026, 2, 2, 9, 0, 0)


@pytest.fixture
def repos() -> Repos:
    users = FakeUsersRepo()
    return Repos(
        users=users,
        notifications=FakeNotificationsRepo(),
        attendance=FakeAttendanceRepo(users),
        library=FakeLibraryRepo(users),
        results=FakeResultsRepo(),
        fees=FakeFeesRepo(users),
        assignments=FakeAssignmentsRepo(),
        announcements=FakeAnnouncementsRepo(),
        polls=FakePollsRepo(),
    )


@pytest.fixture
def container(repos: Repos) -> Container:
    return wire_services(
        conn=None,
        users_repo=repos.users,
        notifications_repo=repos.notifications,
        attendance_repo=repos.attendance,
        library_repo=repos.library,
        results_repo=repos.results,
        fees_repo=repos.fees,
        assignments_repo=repos.assignments,
        announcements_repo=repos.announcements,
        polls_repo=repos.polls,
        secret_key="test-secret",
    )


@pytest.fixture
def app(monkeypatch, container: Container):
    monkeypatch.setenv("APP_ENV", "testing")
    return create_app(container)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_headers(container: Container):
    """Build an Authorization header for a user already in the fake repo."""

    def _headers(user) -> dict:
        return {"Authorization": f"Bearer {container.identity_service.issue_token(user.auth_id)}"}

    return _headers

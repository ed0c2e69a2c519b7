from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .announcements.mysql_announcement_repository import MySQLAnnouncementRepository
from .announcements.repository import AnnouncementRepository
from .announcements.service import AnnouncementService
from .assignments.mysql_assignment_repository import MySQLAssignmentRepository
from .assignments.repository import AssignmentRepository
from .assignments.service import AssignmentService
from .approvals.service import ApprovalService
from .attendance.factory import MarkingStrategyFactory
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .core.constants import DEFAULT_QR_MINUTES, LIBRARY_FINE_PER_DAY, TOKEN_MAX_AGE_SECONDS
from .database.connection import DBConfig, DatabaseConnection
from .fees.mysql_fee_repository import MySQLFeeRepository
from .fees.repository import FeeRepository
from .fees.service import FeeService
from .library.calculator.flat_rate_calculator import FlatRateFineCalculator
from .library.mysql_library_repository import MySQLLibraryRepository
from .library.repository import LibraryRepository
from .library.service import LibraryService
from .notifications.mysql_notification_repository import MySQLNotificationRepository
from .notifications.repository import NotificationRepository
from .notifications.service import NotificationService
from .polls.mysql_poll_repository import MySQLPollRepository
from .polls.repository import PollRepository
from .polls.service import PollService
from .results.mysql_results_repository import MySQLResultsRepository
from .results.repository import ResultsRepository
from .results.service import ResultsService
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.service import IdentityService


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    users_repo: UserRepository
    notifications_repo: NotificationRepository
    attendance_repo: AttendanceRepository
    library_repo: LibraryRepository
    results_repo: ResultsRepository
    fees_repo: FeeRepository
    assignments_repo: AssignmentRepository
    announcements_repo: AnnouncementRepository
    polls_repo: PollRepository

    identity_service: IdentityService
    notification_service: NotificationService
    approval_service: ApprovalService
    attendance_service: AttendanceService
    library_service: LibraryService
    results_service: ResultsService
    fee_service: FeeService
    assignment_service: AssignmentService
    announcement_service: AnnouncementService
    poll_service: PollService


def wire_services(
    *,
    conn: Optional[DatabaseConnection],
    users_repo: UserRepository,
    notifications_repo: NotificationRepository,
    attendance_repo: AttendanceRepository,
    library_repo: LibraryRepository,
    results_repo: ResultsRepository,
    fees_repo: FeeRepository,
    assignments_repo: AssignmentRepository,
    announcements_repo: AnnouncementRepository,
    polls_repo: PollRepository,
    secret_key: str,
    qr_default_minutes: int = DEFAULT_QR_MINUTES,
    fine_per_day: float = LIBRARY_FINE_PER_DAY,
    token_max_age: int = TOKEN_MAX_AGE_SECONDS,
) -> Container:
    """Build every service on top of the given repositories.

    Tests call this with in-memory repositories.
    """

    notification_service = NotificationService(notifications_repo)

    return Container(
        conn=conn,
        users_repo=users_repo,
        notifications_repo=notifications_repo,
        attendance_repo=attendance_repo,
        library_repo=library_repo,
        results_repo=results_repo,
        fees_repo=fees_repo,
        assignments_repo=assignments_repo,
        announcements_repo=announcements_repo,
        polls_repo=polls_repo,
        identity_service=IdentityService(users_repo, secret_key=secret_key, token_max_age=token_max_age),
        notification_service=notification_service,
        approval_service=ApprovalService(users_repo, notification_service),
        attendance_service=AttendanceService(
            attendance_repo,
            users_repo,
            strategy_factory=MarkingStrategyFactory(),
            qr_default_minutes=qr_default_minutes,
        ),
        library_service=LibraryService(
            library_repo,
            users_repo,
            fine_calculator=FlatRateFineCalculator(fine_per_day),
        ),
        results_service=ResultsService(results_repo, users_repo, notification_service),
        fee_service=FeeService(fees_repo, users_repo, notification_service),
        assignment_service=AssignmentService(assignments_repo, notification_service),
        announcement_service=AnnouncementService(announcements_repo, notification_service),
        poll_service=PollService(polls_repo, notification_service),
    )


def build_container(
    *,
    db_config: dict,
    secret_key: str,
    qr_default_minutes: int = DEFAULT_QR_MINUTES,
    fine_per_day: float = LIBRARY_FINE_PER_DAY,
    token_max_age: int = TOKEN_MAX_AGE_SECONDS,
) -> Container:
    conn = DatabaseConnection(DBConfig.from_dict(db_config))

    return wire_services(
        conn=conn,
        users_repo=MySQLUserRepository(conn),
        notifications_repo=MySQLNotificationRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        library_repo=MySQLLibraryRepository(conn),
        results_repo=MySQLResultsRepository(conn),
        fees_repo=MySQLFeeRepository(conn),
        assignments_repo=MySQLAssignmentRepository(conn),
        announcements_repo=MySQLAnnouncementRepository(conn),
        polls_repo=MySQLPollRepository(conn),
        secret_key=secret_key,
        qr_default_minutes=qr_default_minutes,
        fine_per_day=fine_per_day,
        token_max_age=token_max_age,
    )

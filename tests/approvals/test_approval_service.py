import pytest

from src.apsconnect.apsconnect.approvals.service import ApprovalService
from src.apsconnect.apsconnect.core.enums import ApprovalAction, Role, UserStatus
from src.apsconnect.apsconnect.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from src.apsconnect.apsconnect.notifications.service import NotificationService

from tests.fakes import FakeNotificationsRepo


@pytest.fixture
def approvals(container):
    return container.approval_service


def test_faculty_approves_student_in_scope(approvals, repos):
    faculty = repos.users.add(role=Role.FACULTY).to_actor()
    student = repos.users.add(role=Role.STUDENT, status=UserStatus.PENDING)

    updated = approvals.transition(
        actor=faculty, target_user_id=student.user_id, action=ApprovalAction.APPROVE, remarks="welcome"
    )

    assert updated.status == UserStatus.APPROVED
    assert updated.faculty_remark == "welcome"
    assert updated.admin_remark is None
    note = list(repos.notifications.rows.values())[-1]
    assert note.user_id == student.user_id
    assert note.title == "Account approved"


def test_faculty_outside_scope_leaves_state_alone(approvals, repos):
    faculty = repos.users.add(role=Role.FACULTY, semester=5).to_actor()
    student = repos.users.add(role=Role.STUDENT, status=UserStatus.PENDING)

    with pytest.raises(AuthorizationError):
        approvals.transition(actor=faculty, target_user_id=student.user_id, action=ApprovalAction.APPROVE)

    assert repos.users.get_by_id(student.user_id).status == UserStatus.PENDING
    assert repos.notifications.rows == {}


def test_faculty_cannot_manage_faculty(approvals, repos):
    faculty = repos.users.add(role=Role.FACULTY).to_actor()
    colleague = repos.users.add(role=Role.FACULTY, status=UserStatus.PENDING)
    with pytest.raises(AuthorizationError):
        approvals.transition(actor=faculty, target_user_id=colleague.user_id, action=ApprovalAction.APPROVE)


def test_admin_rejects_with_admin_remark(approvals, repos):
    admin = repos.users.add(role=Role.ADMIN, branch=None, semester=None).to_actor()
    faculty = repos.users.add(role=Role.FACULTY, status=UserStatus.PENDING)

    updated = approvals.transition(
        actor=admin, target_user_id=faculty.user_id, action=ApprovalAction.REJECT, remarks="incomplete documents"
    )

    assert updated.status == UserStatus.REJECTED
    assert updated.admin_remark == "incomplete documents"


def test_students_cannot_approve(approvals, repos):
    student = repos.users.add(role=Role.STUDENT).to_actor()
    other = repos.users.add(role=Role.STUDENT, status=UserStatus.PENDING)
    with pytest.raises(AuthorizationError):
        approvals.transition(actor=student, target_user_id=other.user_id, action=ApprovalAction.APPROVE)


def test_unknown_target_and_action(approvals, repos):
    admin = repos.users.add(role=Role.ADMIN, branch=None, semester=None).to_actor()
    with pytest.raises(NotFoundError):
        approvals.transition(actor=admin, target_user_id=999, action=ApprovalAction.APPROVE)
    with pytest.raises(ValidationError):
        ApprovalService.parse_action("maybe")
    assert ApprovalService.parse_action("APPROVE") == ApprovalAction.APPROVE


def test_notification_failure_does_not_undo_approval(repos):
    approvals = ApprovalService(repos.users, NotificationService(FakeNotificationsRepo(fail=True)))
    admin = repos.users.add(role=Role.ADMIN, branch=None, semester=None).to_actor()
    student = repos.users.add(role=Role.STUDENT, status=UserStatus.PENDING)

    updated = approvals.transition(actor=admin, target_user_id=student.user_id, action=ApprovalAction.APPROVE)

    assert updated.status == UserStatus.APPROVED


def test_list_pending_is_scoped_for_faculty(approvals, repos):
    admin = repos.users.add(role=Role.ADMIN, branch=None, semester=None).to_actor()
    faculty = repos.users.add(role=Role.FACULTY).to_actor()
    mine = repos.users.add(role=Role.STUDENT, status=UserStatus.PENDING)
    repos.users.add(role=Role.STUDENT, branch="ECE", status=UserStatus.PENDING)
    repos.users.add(role=Role.FACULTY, status=UserStatus.PENDING)

    assert [u.user_id for u in approvals.list_pending(actor=faculty)] == [mine.user_id]
    assert len(approvals.list_pending(actor=admin)) == 3


def test_pending_faculty_cannot_decide(approvals, repos):
    newcomer = repos.users.add(role=Role.FACULTY, status=UserStatus.PENDING).to_actor()
    student = repos.users.add(role=Role.STUDENT, status=UserStatus.PENDING)

    with pytest.raises(AuthorizationError, match="pending"):
        approvals.transition(actor=newcomer, target_user_id=student.user_id, action=ApprovalAction.APPROVE)
    assert repos.users.get_by_id(student.user_id).status == UserStatus.PENDING

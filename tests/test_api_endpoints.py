from __future__ import annotations

import pytest

from src.apsconnect.apsconnect.core.enums import Role, UserStatus


@pytest.fixture
def people(repos):
    return {
        "admin": repos.users.add(role=Role.ADMIN, branch=None, semester=None),
        "faculty": repos.users.add(role=Role.FACULTY),
        "student": repos.users.add(role=Role.STUDENT),
    }


def test_unauthenticated_request_gets_401_envelope(client):
    resp = client.get("/api/library/catalog")

    assert resp.status_code == 401
    assert resp.get_json() == {"success": False, "error": "Unauthorized"}


def test_bad_token_is_401(client):
    resp = client.get("/api/library/catalog", headers={"Authorization": "Bearer nope"})
    assert resp.status_code == 401


def test_register_login_me(client):
    resp = client.post(
        "/api/auth/register",
        json={"name": "Ravi", "email": "ravi@college.edu", "password": "secret123", "branch": "CSE", "semester": 3},
    )
    assert resp.status_code == 201
    assert resp.get_json()["user"]["status"] == "pending"

    again = client.post(
        "/api/auth/register",
        json={"name": "Ravi", "email": "ravi@college.edu", "password": "secret123", "branch": "CSE", "semester": 3},
    )
    assert again.status_code == 409

    login = client.post("/api/auth/login", json={"email": "ravi@college.edu", "password": "secret123"})
    assert login.status_code == 200
    token = login.get_json()["token"]

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.get_json()["user"]["email"] == "ravi@college.edu"

    # the login also set a session cookie
    assert client.get("/api/auth/me").status_code == 200


def test_student_cannot_create_books(client, people, auth_headers):
    resp = client.post("/api/library/create", json={"title": "SICP"}, headers=auth_headers(people["student"]))
    assert resp.status_code == 403
    assert resp.get_json()["success"] is False


def test_library_issue_and_conflict(client, people, auth_headers):
    faculty = auth_headers(people["faculty"])
    book = client.post(
        "/api/library/create", json={"title": "SICP", "author": "Abelson", "total_copies": 1}, headers=faculty
    )
    assert book.status_code == 201
    book_id = book.get_json()["book"]["book_id"]

    student = auth_headers(people["student"])
    first = client.post("/api/library/issue", json={"book_id": book_id, "due_date": "2099-01-01"}, headers=student)
    second = client.post("/api/library/issue", json={"book_id": book_id, "due_date": "2099-01-01"}, headers=student)

    assert first.status_code == 200
    assert first.get_json()["transaction"]["status"] == "issued"
    assert second.status_code == 409
    assert second.get_json()["error"] == "No copies available"

    missing = client.post("/api/library/issue", json={"book_id": book_id}, headers=student)
    assert missing.status_code == 400


def test_approval_endpoint(client, repos, people, auth_headers):
    pending = repos.users.add(role=Role.STUDENT, status=UserStatus.PENDING)

    bad = client.post(f"/api/approvals/{pending.user_id}/maybe", headers=auth_headers(people["faculty"]))
    assert bad.status_code == 400

    resp = client.post(
        f"/api/approvals/{pending.user_id}/approve",
        json={"remarks": "ok"},
        headers=auth_headers(people["faculty"]),
    )
    assert resp.status_code == 200
    assert resp.get_json()["user"]["status"] == "approved"

    missing = client.post("/api/approvals/999/approve", headers=auth_headers(people["admin"]))
    assert missing.status_code == 404


def test_attendance_flow_over_http(client, people, auth_headers):
    faculty = auth_headers(people["faculty"])
    created = client.post(
        "/api/attendance/create",
        json={"branch": "CSE", "semester": 3, "subject": "DBMS", "session_date": "2026-02-02", "use_qr": True},
        headers=faculty,
    )
    assert created.status_code == 200
    session = created.get_json()["session"]

    png = client.get(f"/api/attendance/sessions/{session['id']}/qr.png", headers=faculty)
    assert png.status_code == 200
    assert png.mimetype == "image/png"
    assert png.data[:8] == b"\x89PNG\r\n\x1a\n"

    student = auth_headers(people["student"])
    forbidden = client.get(f"/api/attendance/sessions/{session['id']}/qr.png", headers=student)
    assert forbidden.status_code == 403

    marked = client.post(
        "/api/attendance/mark",
        json={"session_id": session["id"], "method": "qr", "qr_token": session["qr_token"]},
        headers=student,
    )
    assert marked.status_code == 200
    assert marked.get_json()["record"]["status"] == "present"

    summary = client.get("/api/attendance/summary", headers=student).get_json()["data"]
    assert summary["percent"] == 100.0
    assert summary["band"] == "compliant"


def test_results_export_csv(client, people, auth_headers):
    faculty = auth_headers(people["faculty"])
    exam = client.post("/api/exams/create", json={"title": "Mid-term", "exam_type": "internal"}, headers=faculty)
    exam_id = exam.get_json()["exam"]["exam_id"]
    upload = client.post(
        "/api/results/upload",
        json={"exam_id": exam_id, "subject": "DBMS", "marks": [{"student_id": people["student"].user_id, "marks": 81}]},
        headers=faculty,
    )
    assert upload.status_code == 200

    assert client.get(f"/api/results/export?exam_id={exam_id}", headers=faculty).status_code == 403

    resp = client.get(f"/api/results/export?exam_id={exam_id}", headers=auth_headers(people["admin"]))
    assert resp.status_code == 200
    assert resp.mimetype == "text/csv"
    assert resp.headers["Content-Disposition"] == f'attachment; filename="results_{exam_id}.csv"'
    lines = resp.get_data(as_text=True).splitlines()
    assert lines[0] == "exam_id,student_id,subject,marks,max_marks,grade,updated_at"
    assert lines[1].startswith(f"{exam_id},{people['student'].user_id},DBMS,81,100,")


def test_fee_verify_over_http(client, people, auth_headers):
    paid = client.post("/api/fees/pay", json={"amount": 500}, headers=auth_headers(people["student"]))
    fee_id = paid.get_json()["fee"]["fee_id"]

    resp = client.post("/api/fees/pay/verify", json={"fee_id": fee_id, "action": "verify"},
                       headers=auth_headers(people["admin"]))
    assert resp.get_json()["fee"]["status"] == "verified"
    assert resp.get_json()["fee"]["verified"] is True

    again = client.post("/api/fees/pay/verify", json={"fee_id": fee_id, "action": "verify"},
                        headers=auth_headers(people["admin"]))
    assert again.status_code == 409


def test_notifications_read_unknown_is_404(client, people, auth_headers):
    resp = client.post("/api/notifications/12/read", headers=auth_headers(people["student"]))
    assert resp.status_code == 404


def test_library_issue_accepts_library_id(client, people, auth_headers):
    book = client.post("/api/library/create", json={"title": "CLRS", "total_copies": 2},
                       headers=auth_headers(people["faculty"]))
    book_id = book.get_json()["book"]["book_id"]

    resp = client.post("/api/library/issue", json={"library_id": book_id, "due_date": "2099-01-01"},
                       headers=auth_headers(people["student"]))

    assert resp.status_code == 200
    assert resp.get_json()["transaction"]["book_id"] == book_id


def test_pending_faculty_cannot_approve(client, repos):
    student = repos.users.add(role=Role.STUDENT, status=UserStatus.PENDING)
    client.post(
        "/api/auth/register",
        json={"name": "Meera", "email": "meera@college.edu", "password": "secret123",
              "role": "faculty", "branch": "CSE", "semester": 3},
    )
    token = client.post("/api/auth/login", json={"email": "meera@college.edu", "password": "secret123"}).get_json()["token"]

    resp = client.post(f"/api/approvals/{student.user_id}/approve", headers={"Authorization": f"Bearer {token}"})

    assert resp.status_code == 403
    assert repos.users.get_by_id(student.user_id).status == UserStatus.PENDING


def test_approval_without_login_is_401_even_with_bad_action(client, repos):
    student = repos.users.add(role=Role.STUDENT, status=UserStatus.PENDING)
    assert client.post(f"/api/approvals/{student.user_id}/maybe").status_code == 401


def test_announcement_endpoints(client, people, auth_headers):
    faculty = auth_headers(people["faculty"])
    created = client.post(
        "/api/announcements/create", json={"title": "Lab closed", "content": "No lab on Friday"}, headers=faculty
    )
    assert created.status_code == 201
    post = created.get_json()["announcement"]
    assert (post["branch"], post["semester"]) == ("CSE", 3)

    listed = client.get("/api/announcements", headers=auth_headers(people["student"])).get_json()["data"]
    assert [a["title"] for a in listed] == ["Lab closed"]

    edited = client.put(
        f"/api/announcements/{post['announcement_id']}", json={"content": "Lab moved"}, headers=faculty
    )
    assert edited.get_json()["announcement"]["content"] == "Lab moved"
    gone = client.delete(f"/api/announcements/{post['announcement_id']}", headers=faculty)
    assert gone.status_code == 200


def test_poll_vote_over_http(client, people, auth_headers):
    faculty = auth_headers(people["faculty"])
    created = client.post(
        "/api/polls/create", json={"question": "Extra class?", "options": ["Yes", "No"]}, headers=faculty
    )
    assert created.status_code == 201
    poll_id = created.get_json()["poll"]["poll_id"]

    student = auth_headers(people["student"])
    voted = client.post(f"/api/polls/{poll_id}/vote", json={"option": "Yes"}, headers=student)
    assert voted.status_code == 200
    bad = client.post(f"/api/polls/{poll_id}/vote", json={"option": "Maybe"}, headers=student)
    assert bad.status_code == 400

    client.post(f"/api/polls/{poll_id}/close", headers=faculty)
    closed = client.post(f"/api/polls/{poll_id}/vote", json={"option": "No"}, headers=student)
    assert closed.status_code == 409

    results = client.get(f"/api/polls/{poll_id}/results", headers=faculty).get_json()["data"]
    assert results["total_votes"] == 1
    assert results["counts"] == [{"option": "Yes", "count": 1}, {"option": "No", "count": 0}]

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from assignhub.models import Course, SchoolClass, Student, Submission
from assignhub.models.enums import SubmissionStatus

BASE = "/api/v2/assignments"


def _body(**overrides):
    now = datetime.now(timezone.utc)
    data = {
        "title": "Mathematics Quiz",
        "description": "Fractions and decimals",
        "instructions": "Answer every question",
        "type": "exercise",
        "course_id": "course-1",
        "class_ids": ["class-1"],
        "content_ids": ["c1"],
        "assigned_by": "teacher-1",
        "assigned_to": ["s1", "s2"],
        "start_date": (now - timedelta(days=1)).isoformat(),
        "due_date": (now + timedelta(days=1)).isoformat(),
    }
    data.update(overrides)
    return data


def _create(client: TestClient, **overrides):
    response = client.post(f"{BASE}/", json=_body(**overrides))
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def roster(session):
    session.add_all(
        [
            Course(id="course-1", name="Math"),
            SchoolClass(id="class-1", name="7A", course_id="course-1"),
            Student(id="s1", full_name="Alice Nguyen", class_id="class-1"),
            Student(id="s2", full_name="Bao Tran", class_id="class-1"),
        ]
    )
    session.commit()


def test_health(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_create_and_get_assignment(client: TestClient) -> None:
    created = _create(client)
    assert created["status"] == "active"
    assert created["type"] == "exercise"

    response = client.get(f"{BASE}/{created['id']}")
    assert response.status_code == 200
    assert response.json()["title"] == "Mathematics Quiz"


def test_get_missing_assignment(client: TestClient) -> None:
    response = client.get(f"{BASE}/missing")
    assert response.status_code == 404


def test_create_rejects_invalid_form(client: TestClient) -> None:
    response = client.post(f"{BASE}/", json=_body(title=" ", class_ids=[], max_attempts=11))
    assert response.status_code == 422

    errors = response.json()["detail"]["errors"]
    assert errors == {
        "title": "Assignment title is required",
        "class_ids": "At least one class must be selected",
        "max_attempts": "Max attempts must be between 1 and 10",
    }


def test_list_search_filter_and_sort(client: TestClient) -> None:
    now = datetime.now(timezone.utc)
    _create(client, title="Mathematics Quiz", due_date=(now + timedelta(days=3)).isoformat())
    _create(client, title="Science Quiz", description="Plants", instructions="", type="video")
    _create(client, title="Algebra Draft", is_active=False)

    response = client.get(f"{BASE}/", params={"search": "math"})
    body = response.json()
    assert [a["title"] for a in body["assignments"]] == ["Mathematics Quiz"]
    assert body["count"] == 1
    assert body["total"] == 3
    assert body["status_counts"]["draft"] == 1
    assert body["status_counts"]["active"] == 2

    by_type = client.get(f"{BASE}/", params={"type": "video"}).json()
    assert [a["title"] for a in by_type["assignments"]] == ["Science Quiz"]

    drafts = client.get(f"{BASE}/", params={"status": "draft"}).json()
    assert [a["status"] for a in drafts["assignments"]] == ["draft"]

    by_title = client.get(f"{BASE}/", params={"sort_by": "title", "sort_order": "desc"}).json()
    assert [a["title"] for a in by_title["assignments"]] == [
        "Science Quiz",
        "Mathematics Quiz",
        "Algebra Draft",
    ]


def test_list_due_range_needs_both_ends(client: TestClient) -> None:
    response = client.get(f"{BASE}/", params={"due_from": "2026-01-01T00:00:00Z"})
    assert response.status_code == 400


def test_update_delete_and_duplicate(client: TestClient) -> None:
    created = _create(client)

    response = client.put(f"{BASE}/{created['id']}", json=_body(title="Renamed"))
    assert response.status_code == 200
    assert response.json()["title"] == "Renamed"

    response = client.post(f"{BASE}/{created['id']}/duplicate")
    assert response.status_code == 201
    copy = response.json()
    assert copy["title"] == "Renamed (Copy)"
    assert copy["status"] == "draft"

    assert client.delete(f"{BASE}/{created['id']}").status_code == 204
    assert client.get(f"{BASE}/{created['id']}").status_code == 404
    assert client.delete(f"{BASE}/{created['id']}").status_code == 404


def test_submission_summary(client: TestClient, session, roster) -> None:
    created = _create(client)
    session.add(
        Submission(
            assignment_id=created["id"],
            student_id="s1",
            status=SubmissionStatus.GRADED,
            score=88,
            time_spent=30,
        )
    )
    session.commit()

    response = client.get(f"{BASE}/{created['id']}/summary")
    assert response.status_code == 200
    summary = response.json()
    assert summary["roster_size"] == 2
    assert summary["completion_rate"] == 50
    assert summary["average_score"] == 88
    assert summary["graded_count"] == 1
    assert [r["status"] for r in summary["roster"]] == ["graded", "not_started"]


def _evaluation(assignment_id, **overrides):
    data = {
        "assignment_id": assignment_id,
        "student_id": "s1",
        "teacher_id": "teacher-1",
        "participation_score": 4,
        "understanding_score": 3,
        "progress_score": 5,
        "comments": "Solid work",
        "strengths": ["Careful", "  "],
    }
    data.update(overrides)
    return data


def test_teacher_evaluation_lookup_before_create(client: TestClient) -> None:
    created = _create(client)

    first = client.post("/api/v2/evaluations/teacher", json=_evaluation(created["id"]))
    assert first.status_code == 200
    body = first.json()
    assert body["overall_rating"] == 4.0
    assert body["overall_label"] == "Good"
    assert body["strengths"] == ["Careful"]

    second = client.post(
        "/api/v2/evaluations/teacher",
        json=_evaluation(created["id"], participation_score=9, progress_score=2),
    )
    assert second.status_code == 200
    assert second.json()["id"] == body["id"]
    assert second.json()["participation_score"] == 5
    assert second.json()["overall_rating"] == 3.3

    listed = client.get("/api/v2/evaluations/student/s1", params={"assignment_id": created["id"]}).json()
    assert listed["total"] == 1


def test_teacher_evaluation_validation(client: TestClient) -> None:
    created = _create(client)
    response = client.post(
        "/api/v2/evaluations/teacher",
        json=_evaluation(created["id"], comments="", strengths=[]),
    )
    assert response.status_code == 422
    assert set(response.json()["detail"]["errors"]) == {"comments", "strengths"}

    listed = client.get("/api/v2/evaluations/student/s1").json()
    assert listed["total"] == 0


def test_teacher_evaluation_unknown_assignment(client: TestClient) -> None:
    response = client.post("/api/v2/evaluations/teacher", json=_evaluation("missing"))
    assert response.status_code == 404


def test_summary_marks_evaluated_students(client: TestClient, roster) -> None:
    created = _create(client)
    response = client.post("/api/v2/evaluations/teacher", json=_evaluation(created["id"]))
    assert response.status_code == 200

    summary = client.get(f"{BASE}/{created['id']}/summary").json()
    rows = {r["student_id"]: r for r in summary["roster"]}
    assert rows["s1"]["evaluated"]
    assert rows["s1"]["overall_rating"] == 4.0
    assert not rows["s2"]["evaluated"]
    assert summary["completion_rate"] == 0

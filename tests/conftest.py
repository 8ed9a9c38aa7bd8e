import os
import sys
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Sequence

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
os.environ.setdefault("ASSIGNHUB_DATABASE_URL", "sqlite:///:memory:")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from assignhub.db import Base
from assignhub.dependencies import get_collaborators
from assignhub.errors import CollaboratorError
from assignhub.main import app
from assignhub.models.enums import AssignmentType
from assignhub.schemas.assignment import (
    AssignmentDraft,
    AssignmentRecord,
    AvailableContent,
    ClassRef,
    CourseRef,
    StudentRef,
)
from assignhub.schemas.submission import EvaluationPayload, EvaluationRecord, SubmissionRecord
from assignhub.services.collaborators import Collaborators
from assignhub.services.repository import SqlRepository

# Use in-memory SQLite for testing to ensure isolation
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


def make_assignment(**overrides) -> AssignmentRecord:
    data = {
        "id": "a1",
        "title": "Mathematics Quiz",
        "description": "Fractions and decimals",
        "instructions": "Answer every question",
        "type": AssignmentType.EXERCISE,
        "course_id": "course-1",
        "class_ids": ["class-1"],
        "content_ids": ["content-1"],
        "assigned_by": "teacher-1",
        "assigned_to": ["s1"],
        "start_date": NOW - timedelta(days=1),
        "due_date": NOW + timedelta(days=1),
        "is_active": True,
        "allow_late_submission": True,
        "max_attempts": 3,
        "time_limit": None,
        "created_at": NOW - timedelta(days=2),
        "updated_at": NOW - timedelta(days=2),
    }
    data.update(overrides)
    return AssignmentRecord(**data)


def make_evaluation(**overrides) -> EvaluationRecord:
    data = {
        "id": "e1",
        "assignment_id": "a1",
        "student_id": "s1",
        "teacher_id": "teacher-1",
        "participation_score": 4,
        "understanding_score": 3,
        "progress_score": 5,
        "overall_rating": 4.0,
        "comments": "Solid work",
        "strengths": ["Careful"],
        "areas_for_improvement": [],
        "recommendations": [],
        "created_at": NOW,
        "updated_at": NOW,
    }
    data.update(overrides)
    return EvaluationRecord(**data)


class _Failing:
    """按方法名注入失败。"""

    def __init__(self) -> None:
        self.fail: set = set()
        self.calls: List[str] = []

    def _enter(self, name: str) -> None:
        self.calls.append(name)
        if name in self.fail:
            raise CollaboratorError(f"{name} failed")


class FakeAssignmentStore(_Failing):
    def __init__(self, assignments: Sequence[AssignmentRecord] = ()) -> None:
        super().__init__()
        self.items: Dict[str, AssignmentRecord] = {a.id: a for a in assignments}
        self.counter = 0

    async def list_all(self) -> List[AssignmentRecord]:
        self._enter("list_all")
        return list(self.items.values())

    async def get_by_id(self, assignment_id: str) -> Optional[AssignmentRecord]:
        self._enter("get_by_id")
        return self.items.get(assignment_id)

    def _record(self, assignment_id: str, draft: AssignmentDraft) -> AssignmentRecord:
        return AssignmentRecord(**draft.model_dump(), id=assignment_id, created_at=NOW, updated_at=NOW)

    async def create(self, draft: AssignmentDraft) -> AssignmentRecord:
        self._enter("create")
        self.counter += 1
        record = self._record(f"new-{self.counter}", draft)
        self.items[record.id] = record
        return record

    async def update(self, assignment_id: str, draft: AssignmentDraft) -> AssignmentRecord:
        self._enter("update")
        record = self._record(assignment_id, draft)
        self.items[assignment_id] = record
        return record

    async def delete(self, assignment_id: str) -> None:
        self._enter("delete")
        self.items.pop(assignment_id)

    async def duplicate(self, assignment_id: str) -> AssignmentRecord:
        self._enter("duplicate")
        source = self.items[assignment_id]
        record = source.model_copy(
            update={"id": f"{assignment_id}-copy", "title": f"{source.title} (Copy)", "is_active": False}
        )
        self.items[record.id] = record
        return record


class FakeEvaluationStore(_Failing):
    def __init__(self, evaluations: Sequence[EvaluationRecord] = ()) -> None:
        super().__init__()
        self.items: List[EvaluationRecord] = list(evaluations)

    async def create(self, payload: EvaluationPayload) -> EvaluationRecord:
        self._enter("create")
        record = EvaluationRecord(
            **payload.model_dump(), id=f"e{len(self.items) + 1}", created_at=NOW, updated_at=NOW
        )
        self.items.append(record)
        return record

    async def update(self, evaluation_id: str, payload: EvaluationPayload) -> EvaluationRecord:
        self._enter("update")
        record = EvaluationRecord(**payload.model_dump(), id=evaluation_id, created_at=NOW, updated_at=NOW)
        self.items = [record if e.id == evaluation_id else e for e in self.items]
        return record

    async def list_by_student_and_assignment(
        self, student_id: str, assignment_id: Optional[str] = None
    ) -> List[EvaluationRecord]:
        self._enter("list_by_student_and_assignment")
        return [
            e
            for e in self.items
            if e.student_id == student_id and (assignment_id is None or e.assignment_id == assignment_id)
        ]


class FakeDirectory(_Failing):
    """提交、目录与可分配内容。"""

    def __init__(
        self,
        students: Sequence[StudentRef] = (),
        submissions: Sequence[SubmissionRecord] = (),
    ) -> None:
        super().__init__()
        self.courses = [CourseRef(id="course-1", name="Math")]
        self.classes = [ClassRef(id="class-1", name="Class 1", course_id="course-1")]
        self.students = list(students)
        self.submissions = list(submissions)

    async def list_by_assignment(self, assignment_id: str) -> List[SubmissionRecord]:
        self._enter("list_by_assignment")
        return [s for s in self.submissions if s.assignment_id == assignment_id]

    async def list_by_student_and_assignment(self, student_id: str, assignment_id: str):
        self._enter("list_submissions_for_student")
        return [
            s for s in self.submissions if s.student_id == student_id and s.assignment_id == assignment_id
        ]

    async def list_courses(self) -> List[CourseRef]:
        self._enter("list_courses")
        return list(self.courses)

    async def get_course(self, course_id: str) -> Optional[CourseRef]:
        self._enter("get_course")
        return next((c for c in self.courses if c.id == course_id), None)

    async def list_classes(self) -> List[ClassRef]:
        self._enter("list_classes")
        return list(self.classes)

    async def get_class(self, class_id: str) -> Optional[ClassRef]:
        self._enter("get_class")
        return next((c for c in self.classes if c.id == class_id), None)

    async def list_students_for_classes(self, class_ids: Sequence[str]) -> List[StudentRef]:
        self._enter("list_students_for_classes")
        return [s for s in self.students if s.class_id in class_ids]

    async def list_available_content(self, course_id: str, content_type=None) -> AvailableContent:
        self._enter("list_available_content")
        return AvailableContent()


class FakeBackend:
    def __init__(self, assignments=(), evaluations=(), students=(), submissions=()) -> None:
        self.assignments = FakeAssignmentStore(assignments)
        self.evaluations = FakeEvaluationStore(evaluations)
        self.directory = FakeDirectory(students, submissions)

    def collaborators(self) -> Collaborators:
        return Collaborators(
            assignments=self.assignments,
            submissions=self.directory,
            evaluations=self.evaluations,
            directory=self.directory,
            content=self.directory,
        )


@pytest.fixture
def students() -> List[StudentRef]:
    return [
        StudentRef(id="s1", full_name="Alice Nguyen", class_id="class-1"),
        StudentRef(id="s2", full_name="Bao Tran", class_id="class-1"),
    ]


@pytest.fixture
def backend(students) -> FakeBackend:
    return FakeBackend(assignments=[make_assignment()], students=students)


@pytest.fixture(scope="function")
def session():
    """
    Create a fresh database session for each test.
    """
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def repository(session) -> SqlRepository:
    return SqlRepository(TestingSessionLocal)


@pytest.fixture(scope="function")
def client(repository):
    """
    Create a TestClient whose collaborators read the in-memory test database.
    """
    app.dependency_overrides[get_collaborators] = repository.collaborators
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()

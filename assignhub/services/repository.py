"""基于 SQLAlchemy 的协作方实现。

:meth:`SqlRepository.collaborators` 组装作业、提交、评价存储与目录接口，
把 ORM 行序列化为引擎使用的 Pydantic 记录。查询本身是同步的，
对外保持与 :mod:`assignhub.services.collaborators` 一致的异步签名。
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from sqlalchemy.orm import sessionmaker

from assignhub.db import SessionLocal, session_scope
from assignhub.errors import CollaboratorError
from assignhub.models import (
    Assignment,
    ContentItem,
    Course,
    SchoolClass,
    Student,
    Submission,
    TeacherEvaluation,
)
from assignhub.models.enums import AssignmentType
from assignhub.schemas.assignment import (
    AssignmentDraft,
    AssignmentRecord,
    AvailableContent,
    ClassRef,
    ContentRef,
    CourseRef,
    StudentRef,
)
from assignhub.schemas.submission import EvaluationPayload, EvaluationRecord, SubmissionRecord
from assignhub.services.collaborators import Collaborators

log = logging.getLogger(__name__)

_CONTENT_GROUPS = {
    AssignmentType.EXERCISE: "exercises",
    AssignmentType.FLASHCARD_SET: "flashcard_sets",
    AssignmentType.VIDEO: "videos",
}


def serialize_assignment(assignment: Assignment) -> AssignmentRecord:
    return AssignmentRecord(
        id=assignment.id,
        title=assignment.title,
        description=assignment.description or "",
        instructions=assignment.instructions or "",
        type=assignment.assignment_type,
        course_id=assignment.course_id,
        class_ids=list(assignment.class_ids or []),
        content_ids=list(assignment.content_ids or []),
        assigned_by=assignment.assigned_by,
        assigned_to=list(assignment.assigned_to or []),
        start_date=assignment.start_date,
        due_date=assignment.due_date,
        is_active=assignment.is_active,
        allow_late_submission=assignment.allow_late_submission,
        max_attempts=assignment.max_attempts,
        time_limit=assignment.time_limit,
        created_at=assignment.created_at,
        updated_at=assignment.updated_at,
    )


def _draft_columns(draft: AssignmentDraft) -> dict:
    data = draft.model_dump()
    data["assignment_type"] = data.pop("type")
    return data


def serialize_evaluation(evaluation: TeacherEvaluation) -> EvaluationRecord:
    return EvaluationRecord.model_validate(evaluation, from_attributes=True)


class SqlRepository:
    """作业/提交/评价/目录的 SQL 实现。"""

    def __init__(self, session_factory: sessionmaker = SessionLocal) -> None:
        self.session_factory = session_factory

    def collaborators(self) -> Collaborators:
        return Collaborators(
            assignments=AssignmentRepository(self.session_factory),
            submissions=self,
            evaluations=EvaluationRepository(self.session_factory),
            directory=self,
            content=self,
        )

    # === 提交 ===

    async def list_by_assignment(self, assignment_id: str) -> List[SubmissionRecord]:
        with session_scope(self.session_factory) as session:
            rows = (
                session.query(Submission)
                .filter(Submission.assignment_id == assignment_id)
                .order_by(Submission.student_id.asc())
                .all()
            )
            return [SubmissionRecord.model_validate(row) for row in rows]

    async def list_by_student_and_assignment(
        self, student_id: str, assignment_id: str
    ) -> List[SubmissionRecord]:
        with session_scope(self.session_factory) as session:
            rows = (
                session.query(Submission)
                .filter(
                    Submission.student_id == student_id,
                    Submission.assignment_id == assignment_id,
                )
                .order_by(Submission.attempt_number.asc())
                .all()
            )
            return [SubmissionRecord.model_validate(row) for row in rows]

    # === 目录 ===

    async def list_courses(self) -> List[CourseRef]:
        with session_scope(self.session_factory) as session:
            rows = session.query(Course).order_by(Course.name.asc()).all()
            return [CourseRef.model_validate(row) for row in rows]

    async def get_course(self, course_id: str) -> Optional[CourseRef]:
        with session_scope(self.session_factory) as session:
            row = session.get(Course, course_id)
            return CourseRef.model_validate(row) if row else None

    async def list_classes(self) -> List[ClassRef]:
        with session_scope(self.session_factory) as session:
            rows = session.query(SchoolClass).order_by(SchoolClass.name.asc()).all()
            return [ClassRef.model_validate(row) for row in rows]

    async def get_class(self, class_id: str) -> Optional[ClassRef]:
        with session_scope(self.session_factory) as session:
            row = session.get(SchoolClass, class_id)
            return ClassRef.model_validate(row) if row else None

    async def list_students_for_classes(self, class_ids: Sequence[str]) -> List[StudentRef]:
        if not class_ids:
            return []
        with session_scope(self.session_factory) as session:
            rows = (
                session.query(Student)
                .filter(Student.class_id.in_(list(class_ids)))
                .order_by(Student.full_name.asc())
                .all()
            )
            return [StudentRef.model_validate(row) for row in rows]

    # === 可分配内容 ===

    async def list_available_content(
        self, course_id: str, content_type: Optional[AssignmentType] = None
    ) -> AvailableContent:
        with session_scope(self.session_factory) as session:
            # 只有三种具体类型的内容可以分配；标记为 mixed 的内容行不属于任何分组
            query = session.query(ContentItem).filter(
                ContentItem.course_id == course_id,
                ContentItem.content_type.in_(list(_CONTENT_GROUPS)),
            )
            # 混合类型的作业可以选择任意内容
            if content_type is not None and content_type != AssignmentType.MIXED:
                query = query.filter(ContentItem.content_type == content_type)
            content = AvailableContent()
            for row in query.order_by(ContentItem.title.asc()).all():
                group = getattr(content, _CONTENT_GROUPS[row.content_type])
                group.append(ContentRef.model_validate(row))
            return content


class AssignmentRepository:
    """作业存储。"""

    def __init__(self, session_factory: sessionmaker = SessionLocal) -> None:
        self.session_factory = session_factory

    async def list_all(self) -> List[AssignmentRecord]:
        with session_scope(self.session_factory) as session:
            rows = session.query(Assignment).order_by(Assignment.created_at.desc()).all()
            return [serialize_assignment(row) for row in rows]

    async def get_by_id(self, assignment_id: str) -> Optional[AssignmentRecord]:
        with session_scope(self.session_factory) as session:
            row = session.get(Assignment, assignment_id)
            return serialize_assignment(row) if row else None

    async def create(self, draft: AssignmentDraft) -> AssignmentRecord:
        with session_scope(self.session_factory) as session:
            assignment = Assignment(**_draft_columns(draft))
            session.add(assignment)
            session.flush()
            session.refresh(assignment)
            log.info("Created assignment %s (%s)", assignment.id, assignment.title)
            return serialize_assignment(assignment)

    async def update(self, assignment_id: str, draft: AssignmentDraft) -> AssignmentRecord:
        with session_scope(self.session_factory) as session:
            assignment = session.get(Assignment, assignment_id)
            if assignment is None:
                raise CollaboratorError(f"Assignment {assignment_id} not found")
            for key, value in _draft_columns(draft).items():
                setattr(assignment, key, value)
            session.flush()
            session.refresh(assignment)
            return serialize_assignment(assignment)

    async def delete(self, assignment_id: str) -> None:
        with session_scope(self.session_factory) as session:
            assignment = session.get(Assignment, assignment_id)
            if assignment is None:
                raise CollaboratorError(f"Assignment {assignment_id} not found")
            session.delete(assignment)
            log.info("Deleted assignment %s", assignment_id)

    async def duplicate(self, assignment_id: str) -> AssignmentRecord:
        """复制作业：标题加 “(Copy)” 后缀，副本默认未激活（草稿）。"""

        with session_scope(self.session_factory) as session:
            source = session.get(Assignment, assignment_id)
            if source is None:
                raise CollaboratorError(f"Assignment {assignment_id} not found")
            draft = AssignmentDraft.from_record(serialize_assignment(source))
            copy = Assignment(**_draft_columns(draft))
            copy.title = f"{source.title} (Copy)"
            copy.is_active = False
            session.add(copy)
            session.flush()
            session.refresh(copy)
            return serialize_assignment(copy)


class EvaluationRepository:
    """教师评价存储。"""

    def __init__(self, session_factory: sessionmaker = SessionLocal) -> None:
        self.session_factory = session_factory

    async def create(self, payload: EvaluationPayload) -> EvaluationRecord:
        with session_scope(self.session_factory) as session:
            evaluation = TeacherEvaluation(**payload.model_dump())
            session.add(evaluation)
            session.flush()
            session.refresh(evaluation)
            return serialize_evaluation(evaluation)

    async def update(self, evaluation_id: str, payload: EvaluationPayload) -> EvaluationRecord:
        with session_scope(self.session_factory) as session:
            evaluation = session.get(TeacherEvaluation, evaluation_id)
            if evaluation is None:
                raise CollaboratorError(f"Evaluation {evaluation_id} not found")
            for key, value in payload.model_dump().items():
                setattr(evaluation, key, value)
            session.flush()
            session.refresh(evaluation)
            return serialize_evaluation(evaluation)

    async def list_by_student_and_assignment(
        self, student_id: str, assignment_id: Optional[str] = None
    ) -> List[EvaluationRecord]:
        with session_scope(self.session_factory) as session:
            query = session.query(TeacherEvaluation).filter(
                TeacherEvaluation.student_id == student_id
            )
            if assignment_id is not None:
                query = query.filter(TeacherEvaluation.assignment_id == assignment_id)
            rows = query.order_by(TeacherEvaluation.created_at.asc()).all()
            return [serialize_evaluation(row) for row in rows]

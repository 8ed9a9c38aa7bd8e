"""引擎依赖的外部协作方接口。

引擎只调用这些异步方法，不关心传输、编码或持久化细节。每次调用要么返回
结果，要么抛出异常（通常是 :class:`assignhub.errors.CollaboratorError`）。
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Protocol, Sequence

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


class AssignmentStore(Protocol):
    async def list_all(self) -> List[AssignmentRecord]: ...

    async def get_by_id(self, assignment_id: str) -> Optional[AssignmentRecord]: ...

    async def create(self, draft: AssignmentDraft) -> AssignmentRecord: ...

    async def update(self, assignment_id: str, draft: AssignmentDraft) -> AssignmentRecord: ...

    async def delete(self, assignment_id: str) -> None: ...

    async def duplicate(self, assignment_id: str) -> AssignmentRecord: ...


class SubmissionStore(Protocol):
    async def list_by_assignment(self, assignment_id: str) -> List[SubmissionRecord]: ...

    async def list_by_student_and_assignment(
        self, student_id: str, assignment_id: str
    ) -> List[SubmissionRecord]: ...


class EvaluationStore(Protocol):
    async def create(self, payload: EvaluationPayload) -> EvaluationRecord: ...

    async def update(self, evaluation_id: str, payload: EvaluationPayload) -> EvaluationRecord: ...

    async def list_by_student_and_assignment(
        self, student_id: str, assignment_id: Optional[str] = None
    ) -> List[EvaluationRecord]: ...


class Directory(Protocol):
    async def list_courses(self) -> List[CourseRef]: ...

    async def get_course(self, course_id: str) -> Optional[CourseRef]: ...

    async def list_classes(self) -> List[ClassRef]: ...

    async def get_class(self, class_id: str) -> Optional[ClassRef]: ...

    async def list_students_for_classes(self, class_ids: Sequence[str]) -> List[StudentRef]: ...


class ContentDirectory(Protocol):
    async def list_available_content(
        self, course_id: str, content_type: Optional[AssignmentType] = None
    ) -> AvailableContent: ...


@dataclass
class Collaborators:
    """工作流所需的全部协作方。同一个对象可以同时实现多个接口。"""

    assignments: AssignmentStore
    submissions: SubmissionStore
    evaluations: EvaluationStore
    directory: Directory
    content: ContentDirectory

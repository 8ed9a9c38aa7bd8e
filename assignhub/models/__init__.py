"""SQLAlchemy 模型与枚举的统一出口。"""

from assignhub.models.assignment import Assignment, ContentItem, Course, SchoolClass, Student
from assignhub.models.enums import (
    AssignmentStatus,
    AssignmentType,
    ListKind,
    Screen,
    SortKey,
    SortOrder,
    SubmissionStatus,
)
from assignhub.models.submission import Submission, TeacherEvaluation

__all__ = [
    "Assignment",
    "AssignmentStatus",
    "AssignmentType",
    "ContentItem",
    "Course",
    "ListKind",
    "SchoolClass",
    "Screen",
    "SortKey",
    "SortOrder",
    "Student",
    "Submission",
    "SubmissionStatus",
    "TeacherEvaluation",
]

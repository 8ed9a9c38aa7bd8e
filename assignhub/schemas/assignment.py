"""作业、目录与筛选条件的 Pydantic 模型。

引擎内部只处理这些显式字段的记录；松散的字典在边界处（API、存储适配器）
经 ``model_validate`` 校验后才进入引擎。
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from assignhub.config import get_settings
from assignhub.models.enums import AssignmentStatus, AssignmentType
from assignhub.utils.timeutil import ensure_utc, resolve_now


class CourseRef(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: Optional[str] = None


class ClassRef(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    course_id: Optional[str] = None


class StudentRef(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    full_name: str
    email: Optional[str] = None
    class_id: Optional[str] = None


class ContentRef(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    content_type: AssignmentType


class AvailableContent(BaseModel):
    """某门课程下可分配的内容，按类型分组。"""

    exercises: List[ContentRef] = Field(default_factory=list)
    flashcard_sets: List[ContentRef] = Field(default_factory=list)
    videos: List[ContentRef] = Field(default_factory=list)


class _AssignmentFields(BaseModel):
    title: str = ""
    description: str = ""
    instructions: str = ""
    type: AssignmentType = AssignmentType.EXERCISE
    course_id: str = ""
    class_ids: List[str] = Field(default_factory=list)
    content_ids: List[str] = Field(default_factory=list)
    assigned_by: str = ""
    assigned_to: List[str] = Field(default_factory=list)
    start_date: datetime
    due_date: datetime
    is_active: bool = True
    allow_late_submission: bool = True
    max_attempts: int = 3
    time_limit: Optional[int] = None  # 分钟

    @field_validator("start_date", "due_date")
    @classmethod
    def _to_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)


class AssignmentDraft(_AssignmentFields):
    """作业表单内容（新建或编辑时的输入）。

    表单级校验由 :func:`validate_assignment_form` 完成，以便逐字段给出提示。
    """

    @classmethod
    def defaults(cls, teacher_id: str, now: Optional[datetime] = None) -> "AssignmentDraft":
        settings = get_settings()
        start = resolve_now(now)
        return cls(
            assigned_by=teacher_id,
            start_date=start,
            due_date=start + timedelta(days=settings.default_assignment_days),
            max_attempts=settings.default_max_attempts,
        )

    @classmethod
    def from_record(cls, record: "AssignmentRecord") -> "AssignmentDraft":
        return cls.model_validate(
            record.model_dump(exclude={"id", "created_at", "updated_at"})
        )


class AssignmentRecord(_AssignmentFields):
    """外部存储返回的作业快照。"""

    id: str
    created_at: datetime
    updated_at: datetime

    @field_validator("created_at", "updated_at")
    @classmethod
    def _audit_to_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)


def validate_assignment_form(draft: AssignmentDraft) -> Dict[str, str]:
    """作业表单校验，返回 {字段: 提示}，为空表示通过。"""

    errors: Dict[str, str] = {}
    if not draft.title.strip():
        errors["title"] = "Assignment title is required"
    if not draft.description.strip():
        errors["description"] = "Assignment description is required"
    if not draft.course_id:
        errors["course_id"] = "Course selection is required"
    if not draft.class_ids:
        errors["class_ids"] = "At least one class must be selected"
    if not draft.content_ids:
        errors["content_ids"] = "At least one content item must be selected"
    if not draft.assigned_to:
        errors["assigned_to"] = "At least one student must be assigned"
    if draft.due_date <= draft.start_date:
        errors["due_date"] = "Due date must be after start date"
    if draft.max_attempts < 1 or draft.max_attempts > 10:
        errors["max_attempts"] = "Max attempts must be between 1 and 10"
    if draft.time_limit is not None and (draft.time_limit < 1 or draft.time_limit > 300):
        errors["time_limit"] = "Time limit must be between 1 and 300 minutes"
    return errors


class DateRange(BaseModel):
    """截止日期筛选区间，两端都包含。"""

    start: datetime
    end: datetime

    @field_validator("start", "end")
    @classmethod
    def _to_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    def contains(self, moment: datetime) -> bool:
        return self.start <= ensure_utc(moment) <= self.end


class AssignmentFilters(BaseModel):
    """作业列表筛选条件，各字段相互独立，按 AND 组合。"""

    model_config = ConfigDict(frozen=True)

    course_id: Optional[str] = None
    class_id: Optional[str] = None
    type: Optional[AssignmentType] = None
    status: Optional[AssignmentStatus] = None
    assigned_by: Optional[str] = None
    date_range: Optional[DateRange] = None

    @model_validator(mode="before")
    @classmethod
    def _blank_to_none(cls, values: Any) -> Any:
        # 下拉框的“全部”选项传入空字符串
        if isinstance(values, dict):
            return {k: (None if v == "" else v) for k, v in values.items()}
        return values

    @property
    def is_empty(self) -> bool:
        return all(getattr(self, name) is None for name in type(self).model_fields)

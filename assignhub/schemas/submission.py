"""提交与教师评价的 Pydantic 模型。"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from assignhub.models.enums import SubmissionStatus
from assignhub.utils.timeutil import ensure_utc


class SubmissionRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    assignment_id: str
    student_id: str
    status: SubmissionStatus = SubmissionStatus.NOT_STARTED
    score: Optional[float] = None
    max_score: float = 100
    completion_percentage: float = Field(default=0, ge=0, le=100)
    time_spent: int = 0  # 分钟
    attempt_number: int = Field(default=1, ge=1)
    feedback: Optional[str] = None
    submitted_at: Optional[datetime] = None


class EvaluationPayload(BaseModel):
    """提交给评价存储的内容（不含 ID 与审计时间）。"""

    assignment_id: str
    student_id: str
    teacher_id: str
    participation_score: float = Field(ge=1, le=5)
    understanding_score: float = Field(ge=1, le=5)
    progress_score: float = Field(ge=1, le=5)
    overall_rating: float = Field(ge=1, le=5)
    comments: str
    strengths: List[str] = Field(default_factory=list)
    areas_for_improvement: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)


class EvaluationRecord(EvaluationPayload):
    model_config = ConfigDict(from_attributes=True)

    id: str
    created_at: datetime
    updated_at: datetime

    @field_validator("created_at", "updated_at")
    @classmethod
    def _to_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)

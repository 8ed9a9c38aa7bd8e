"""提交与教师评价模型定义。"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import DateTime, Enum, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.types import JSON

from assignhub.db import Base
from assignhub.models.assignment import _new_id, _utcnow
from assignhub.models.enums import SubmissionStatus


class Submission(Base):
    """学生对作业的一次提交记录，后续尝试在同一行上更新。"""

    __tablename__ = "submissions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    assignment_id: Mapped[str] = mapped_column(
        ForeignKey("assignments.id", ondelete="CASCADE"), nullable=False
    )
    student_id: Mapped[str] = mapped_column(String(36), nullable=False)

    status: Mapped[SubmissionStatus] = mapped_column(
        Enum(SubmissionStatus), default=SubmissionStatus.NOT_STARTED
    )
    score: Mapped[Optional[float]] = mapped_column(Float)
    max_score: Mapped[float] = mapped_column(Float, default=100)
    completion_percentage: Mapped[float] = mapped_column(Float, default=0)
    time_spent: Mapped[int] = mapped_column(Integer, default=0)  # 分钟
    attempt_number: Mapped[int] = mapped_column(Integer, default=1)
    feedback: Mapped[Optional[str]] = mapped_column(Text)
    submitted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    assignment = relationship("Assignment", back_populates="submissions")

    def __repr__(self) -> str:
        return f"<Submission(id={self.id}, assignment_id={self.assignment_id}, status={self.status})>"


class TeacherEvaluation(Base):
    """教师对某个学生在某份作业上的评价。每个 (作业, 学生) 至多一条有效记录。"""

    __tablename__ = "teacher_evaluations"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    assignment_id: Mapped[str] = mapped_column(
        ForeignKey("assignments.id", ondelete="CASCADE"), nullable=False
    )
    student_id: Mapped[str] = mapped_column(String(36), nullable=False)
    teacher_id: Mapped[str] = mapped_column(String(36), nullable=False)

    # 三个子分数 1-5，总分由子分数计算
    participation_score: Mapped[float] = mapped_column(Float, nullable=False)
    understanding_score: Mapped[float] = mapped_column(Float, nullable=False)
    progress_score: Mapped[float] = mapped_column(Float, nullable=False)
    overall_rating: Mapped[float] = mapped_column(Float, nullable=False)

    comments: Mapped[str] = mapped_column(Text, nullable=False)
    strengths: Mapped[List[str]] = mapped_column(JSON, default=list)
    areas_for_improvement: Mapped[List[str]] = mapped_column(JSON, default=list)
    recommendations: Mapped[List[str]] = mapped_column(JSON, default=list)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False
    )

    assignment = relationship("Assignment", back_populates="evaluations")

    def __repr__(self) -> str:
        return f"<TeacherEvaluation(id={self.id}, student_id={self.student_id}, overall={self.overall_rating})>"

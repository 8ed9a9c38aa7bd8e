"""作业与目录模型定义 - 课程、班级、学生、可分配内容、作业。"""

import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.types import JSON

from assignhub.db import Base
from assignhub.models.enums import AssignmentType


def _new_id() -> str:
    return uuid.uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Course(Base):
    """课程。"""

    __tablename__ = "courses"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)

    classes = relationship("SchoolClass", back_populates="course")

    def __repr__(self) -> str:
        return f"<Course(id={self.id}, name={self.name})>"


class SchoolClass(Base):
    """班级，隶属于某门课程。"""

    __tablename__ = "classes"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    course_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("courses.id", ondelete="SET NULL")
    )

    course = relationship("Course", back_populates="classes")
    students = relationship("Student", back_populates="school_class")

    def __repr__(self) -> str:
        return f"<SchoolClass(id={self.id}, name={self.name})>"


class Student(Base):
    """学生。一个学生只属于一个班级。"""

    __tablename__ = "students"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(255))
    class_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("classes.id", ondelete="SET NULL")
    )

    school_class = relationship("SchoolClass", back_populates="students")

    def __repr__(self) -> str:
        return f"<Student(id={self.id}, full_name={self.full_name})>"


class ContentItem(Base):
    """可被分配的内容（练习、闪卡集、视频）。"""

    __tablename__ = "content_items"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    course_id: Mapped[str] = mapped_column(
        ForeignKey("courses.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    content_type: Mapped[AssignmentType] = mapped_column(Enum(AssignmentType), nullable=False)

    def __repr__(self) -> str:
        return f"<ContentItem(id={self.id}, type={self.content_type.value})>"


class Assignment(Base):
    """作业模型。"""

    __tablename__ = "assignments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)

    # === 基本信息 ===
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="")
    instructions: Mapped[str] = mapped_column(Text, default="")
    assignment_type: Mapped[AssignmentType] = mapped_column(
        Enum(AssignmentType), default=AssignmentType.EXERCISE, nullable=False
    )

    # === 关联 ===
    course_id: Mapped[str] = mapped_column(String(36), nullable=False)
    # 班级/内容/学生 ID 列表 (JSON数组)
    class_ids: Mapped[List[str]] = mapped_column(JSON, default=list)
    content_ids: Mapped[List[str]] = mapped_column(JSON, default=list)
    assigned_to: Mapped[List[str]] = mapped_column(JSON, default=list)
    assigned_by: Mapped[str] = mapped_column(String(36), nullable=False)

    # === 时间窗口与提交设置 ===
    start_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    due_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    allow_late_submission: Mapped[bool] = mapped_column(Boolean, default=True)
    max_attempts: Mapped[int] = mapped_column(Integer, default=3)
    time_limit: Mapped[Optional[int]] = mapped_column(Integer)  # 分钟

    # 时间戳
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False
    )

    submissions = relationship("Submission", back_populates="assignment", cascade="all, delete-orphan")
    evaluations = relationship("TeacherEvaluation", back_populates="assignment", cascade="all, delete-orphan")

    def __repr__(self) -> str:
        return f"<Assignment(id={self.id}, title={self.title}, type={self.assignment_type.value})>"

"""作业相关枚举定义 - 作业类型、提交状态、作业状态、排序与页面。"""

import enum


class AssignmentType(str, enum.Enum):
    """作业内容类型。"""
    EXERCISE = "exercise"            # 练习题
    FLASHCARD_SET = "flashcard_set"  # 闪卡集
    VIDEO = "video"                  # 视频
    MIXED = "mixed"                  # 混合


class SubmissionStatus(str, enum.Enum):
    """学生提交状态。"""
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    SUBMITTED = "submitted"
    GRADED = "graded"
    LATE = "late"


# 计入完成率的提交状态
COMPLETED_SUBMISSION_STATUSES = frozenset({SubmissionStatus.SUBMITTED, SubmissionStatus.GRADED})


class AssignmentStatus(str, enum.Enum):
    """作业的时间状态。

    ``COMPLETED`` 只在列表筛选中使用，见 ``services.status.matches_status``。
    """
    DRAFT = "draft"
    SCHEDULED = "scheduled"
    ACTIVE = "active"
    OVERDUE = "overdue"
    COMPLETED = "completed"


class SortKey(str, enum.Enum):
    TITLE = "title"
    DUE_DATE = "due_date"
    CREATED_AT = "created_at"


class SortOrder(str, enum.Enum):
    ASC = "asc"
    DESC = "desc"


class Screen(str, enum.Enum):
    """作业管理工作流的页面。"""
    LIST = "list"
    CREATE = "create"
    EDIT = "edit"
    VIEW = "view"
    EVALUATE = "evaluate"


class ListKind(str, enum.Enum):
    """教师评价中可编辑的三个列表。"""
    STRENGTHS = "strengths"
    AREAS_FOR_IMPROVEMENT = "areas_for_improvement"
    RECOMMENDATIONS = "recommendations"

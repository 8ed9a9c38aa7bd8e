"""作业时间状态推导。

提供两个刻意不同的版本：

- :func:`derive_status` 用于展示，严格按时间窗口给出唯一状态；
- :func:`matches_status` 用于列表筛选，``completed`` 只看截止时间，
  同一份作业可能同时匹配 ``overdue`` 与 ``completed``。
"""

from collections import Counter
from datetime import datetime
from typing import Dict, Iterable, Optional

from assignhub.models.enums import AssignmentStatus
from assignhub.schemas.assignment import AssignmentRecord
from assignhub.utils.timeutil import resolve_now


def derive_status(assignment: AssignmentRecord, now: Optional[datetime] = None) -> AssignmentStatus:
    current = resolve_now(now)
    if not assignment.is_active:
        return AssignmentStatus.DRAFT
    if assignment.due_date < current:
        return AssignmentStatus.OVERDUE
    if assignment.start_date <= current < assignment.due_date:
        return AssignmentStatus.ACTIVE
    return AssignmentStatus.SCHEDULED


def matches_status(
    assignment: AssignmentRecord,
    status: Optional[AssignmentStatus],
    now: Optional[datetime] = None,
) -> bool:
    current = resolve_now(now)
    if status == AssignmentStatus.ACTIVE:
        return (
            assignment.is_active
            and assignment.start_date <= current
            and assignment.due_date > current
        )
    if status == AssignmentStatus.COMPLETED:
        return assignment.due_date <= current
    if status == AssignmentStatus.OVERDUE:
        return assignment.due_date < current and assignment.is_active
    if status == AssignmentStatus.DRAFT:
        return not assignment.is_active
    return True


def status_counts(
    assignments: Iterable[AssignmentRecord], now: Optional[datetime] = None
) -> Dict[AssignmentStatus, int]:
    """按 :func:`derive_status` 统计各状态数量（不含 ``completed``）。"""

    current = resolve_now(now)
    counts = Counter(derive_status(a, current) for a in assignments)
    return {
        status: counts.get(status, 0)
        for status in AssignmentStatus
        if status != AssignmentStatus.COMPLETED
    }

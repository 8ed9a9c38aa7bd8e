"""作业列表的搜索、筛选与排序。

纯函数，无副作用，可在每次输入变化时重新执行。对自身输出再次应用同样的
条件不会进一步缩小结果。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, List, Optional, Sequence

from assignhub.models.enums import SortKey, SortOrder
from assignhub.schemas.assignment import AssignmentFilters, AssignmentRecord
from assignhub.services.status import matches_status
from assignhub.utils.timeutil import resolve_now


@dataclass(frozen=True)
class FilterResult:
    items: List[AssignmentRecord] = field(default_factory=list)
    total: int = 0

    @property
    def count(self) -> int:
        return len(self.items)

    @property
    def is_filtered(self) -> bool:
        return self.count != self.total


def _matches_search(assignment: AssignmentRecord, term: str) -> bool:
    return (
        term in assignment.title.lower()
        or term in assignment.description.lower()
        or term in assignment.instructions.lower()
    )


def _sort_value(key: SortKey) -> Callable[[AssignmentRecord], Any]:
    if key == SortKey.TITLE:
        return lambda a: a.title.lower()
    if key == SortKey.DUE_DATE:
        return lambda a: a.due_date
    return lambda a: a.created_at


def apply_filters(
    assignments: Sequence[AssignmentRecord],
    search: str = "",
    filters: Optional[AssignmentFilters] = None,
    sort_by: SortKey = SortKey.DUE_DATE,
    sort_order: SortOrder = SortOrder.ASC,
    now: Optional[datetime] = None,
) -> FilterResult:
    """搜索 → 字段筛选 → 截止日期区间 → 稳定排序。"""

    filters = filters or AssignmentFilters()
    current = resolve_now(now)
    filtered = list(assignments)

    if search:
        term = search.lower()
        filtered = [a for a in filtered if _matches_search(a, term)]

    if filters.course_id:
        filtered = [a for a in filtered if a.course_id == filters.course_id]
    if filters.class_id:
        filtered = [a for a in filtered if filters.class_id in a.class_ids]
    if filters.type:
        filtered = [a for a in filtered if a.type == filters.type]
    if filters.status:
        filtered = [a for a in filtered if matches_status(a, filters.status, current)]
    if filters.assigned_by:
        filtered = [a for a in filtered if a.assigned_by == filters.assigned_by]
    if filters.date_range:
        filtered = [a for a in filtered if filters.date_range.contains(a.due_date)]

    # list.sort 是稳定的，reverse=True 时相等元素仍保持原有顺序
    filtered.sort(
        key=_sort_value(SortKey(sort_by)),
        reverse=SortOrder(sort_order) == SortOrder.DESC,
    )
    return FilterResult(items=filtered, total=len(assignments))


def update_filter(filters: AssignmentFilters, key: str, value: Any) -> AssignmentFilters:
    """修改单个筛选字段；空值表示清除该字段。"""

    if key not in AssignmentFilters.model_fields:
        raise KeyError(f"Unknown filter field: {key}")
    data = filters.model_dump()
    data[key] = value or None
    return AssignmentFilters.model_validate(data)


def clear_filters() -> AssignmentFilters:
    return AssignmentFilters()

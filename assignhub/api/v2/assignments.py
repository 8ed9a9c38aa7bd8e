"""作业 CRUD、列表筛选与提交汇总 API。"""

import asyncio
from datetime import datetime
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from pydantic import BaseModel

from assignhub.config import get_settings
from assignhub.dependencies import get_collaborators
from assignhub.errors import CollaboratorError
from assignhub.models.enums import AssignmentStatus, AssignmentType, SortKey, SortOrder, SubmissionStatus
from assignhub.schemas.assignment import (
    AssignmentDraft,
    AssignmentFilters,
    AssignmentRecord,
    DateRange,
    validate_assignment_form,
)
from assignhub.services.aggregation import summarize_submissions
from assignhub.services.collaborators import Collaborators
from assignhub.services.filtering import apply_filters
from assignhub.services.status import derive_status, status_counts
from assignhub.utils.timeutil import utcnow

router = APIRouter()


# === Schemas ===

class AssignmentItem(AssignmentRecord):
    status: AssignmentStatus


class AssignmentListResponse(BaseModel):
    assignments: List[AssignmentItem]
    count: int
    total: int
    status_counts: Dict[AssignmentStatus, int]


class RosterEntry(BaseModel):
    student_id: str
    full_name: str
    status: SubmissionStatus
    score: Optional[float] = None
    evaluated: bool = False
    overall_rating: Optional[float] = None


class SubmissionSummaryResponse(BaseModel):
    assignment_id: str
    roster_size: int
    completion_rate: int
    average_score: int
    graded_count: int
    average_time_spent: int
    status_breakdown: Dict[SubmissionStatus, int]
    roster: List[RosterEntry]


# === Helpers ===

def _to_item(record: AssignmentRecord, now: datetime) -> AssignmentItem:
    return AssignmentItem(**record.model_dump(), status=derive_status(record, now))


def _validated(draft: AssignmentDraft) -> AssignmentDraft:
    errors = validate_assignment_form(draft)
    if errors:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail={"errors": errors}
        )
    return draft


async def _get_or_404(collaborators: Collaborators, assignment_id: str) -> AssignmentRecord:
    assignment = await collaborators.assignments.get_by_id(assignment_id)
    if assignment is None:
        raise HTTPException(status_code=404, detail="Assignment not found")
    return assignment


# === API 端点 ===

@router.get("/", response_model=AssignmentListResponse)
async def list_assignments(
    search: str = "",
    course_id: Optional[str] = None,
    class_id: Optional[str] = None,
    type: Optional[AssignmentType] = None,
    status_filter: Optional[AssignmentStatus] = Query(default=None, alias="status"),
    assigned_by: Optional[str] = None,
    due_from: Optional[datetime] = None,
    due_to: Optional[datetime] = None,
    sort_by: Optional[SortKey] = None,
    sort_order: Optional[SortOrder] = None,
    collaborators: Collaborators = Depends(get_collaborators),
):
    """获取作业列表，支持搜索、筛选与排序。"""
    if (due_from is None) != (due_to is None):
        raise HTTPException(status_code=400, detail="due_from and due_to must be given together")

    settings = get_settings()
    now = utcnow()
    filters = AssignmentFilters(
        course_id=course_id,
        class_id=class_id,
        type=type,
        status=status_filter,
        assigned_by=assigned_by,
        date_range=DateRange(start=due_from, end=due_to) if due_from else None,
    )
    assignments = await collaborators.assignments.list_all()
    result = apply_filters(
        assignments,
        search=search,
        filters=filters,
        sort_by=sort_by or SortKey(settings.default_sort_by),
        sort_order=sort_order or SortOrder(settings.default_sort_order),
        now=now,
    )
    return {
        "assignments": [_to_item(a, now) for a in result.items],
        "count": result.count,
        "total": result.total,
        "status_counts": status_counts(assignments, now),
    }


@router.get("/{assignment_id}", response_model=AssignmentItem)
async def get_assignment(
    assignment_id: str,
    collaborators: Collaborators = Depends(get_collaborators),
):
    """获取作业详情。"""
    assignment = await _get_or_404(collaborators, assignment_id)
    return _to_item(assignment, utcnow())


@router.post("/", response_model=AssignmentItem, status_code=status.HTTP_201_CREATED)
async def create_assignment(
    data: AssignmentDraft,
    collaborators: Collaborators = Depends(get_collaborators),
):
    """创建作业。表单校验失败返回 422 与逐字段提示。"""
    created = await collaborators.assignments.create(_validated(data))
    return _to_item(created, utcnow())


@router.put("/{assignment_id}", response_model=AssignmentItem)
async def update_assignment(
    assignment_id: str,
    data: AssignmentDraft,
    collaborators: Collaborators = Depends(get_collaborators),
):
    """更新作业。"""
    await _get_or_404(collaborators, assignment_id)
    updated = await collaborators.assignments.update(assignment_id, _validated(data))
    return _to_item(updated, utcnow())


@router.delete("/{assignment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_assignment(
    assignment_id: str,
    collaborators: Collaborators = Depends(get_collaborators),
):
    """删除作业。"""
    try:
        await collaborators.assignments.delete(assignment_id)
    except CollaboratorError:
        raise HTTPException(status_code=404, detail="Assignment not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{assignment_id}/duplicate", response_model=AssignmentItem, status_code=status.HTTP_201_CREATED)
async def duplicate_assignment(
    assignment_id: str,
    collaborators: Collaborators = Depends(get_collaborators),
):
    """复制作业，副本为草稿状态。"""
    try:
        duplicated = await collaborators.assignments.duplicate(assignment_id)
    except CollaboratorError:
        raise HTTPException(status_code=404, detail="Assignment not found")
    return _to_item(duplicated, utcnow())


@router.get("/{assignment_id}/summary", response_model=SubmissionSummaryResponse)
async def get_submission_summary(
    assignment_id: str,
    collaborators: Collaborators = Depends(get_collaborators),
):
    """按班级名单汇总提交完成率与平均分。"""
    assignment = await _get_or_404(collaborators, assignment_id)
    roster, submissions = await asyncio.gather(
        collaborators.directory.list_students_for_classes(assignment.class_ids),
        collaborators.submissions.list_by_assignment(assignment_id),
    )
    evaluation_lists = await asyncio.gather(
        *(
            collaborators.evaluations.list_by_student_and_assignment(student.id, assignment_id)
            for student in roster
        )
    )
    evaluations = [e for group in evaluation_lists for e in group]

    summary = summarize_submissions(roster, submissions, evaluations)
    return SubmissionSummaryResponse(
        assignment_id=assignment_id,
        roster_size=summary.roster_size,
        completion_rate=summary.completion_rate,
        average_score=summary.average_score,
        graded_count=summary.graded_count,
        average_time_spent=summary.average_time_spent,
        status_breakdown=summary.status_breakdown,
        roster=[
            RosterEntry(
                student_id=row.student.id,
                full_name=row.student.full_name,
                status=row.status,
                score=row.submission.score if row.submission else None,
                evaluated=row.is_evaluated,
                overall_rating=row.evaluation.overall_rating if row.evaluation else None,
            )
            for row in summary.rows()
        ],
    )

"""教师评价 API。"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from assignhub.dependencies import get_collaborators
from assignhub.errors import EvaluationValidationError
from assignhub.schemas.submission import EvaluationRecord
from assignhub.services.collaborators import Collaborators
from assignhub.services.scoring import EvaluationScorer, score_label

router = APIRouter()


# === Schemas ===

class TeacherEvaluationCreate(BaseModel):
    assignment_id: str
    student_id: str
    teacher_id: str
    # 超出 1-5 的分数会被截断，不会被拒绝
    participation_score: float = 3
    understanding_score: float = 3
    progress_score: float = 3
    comments: str = ""
    strengths: List[str] = Field(default_factory=list)
    areas_for_improvement: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)


class EvaluationResponse(EvaluationRecord):
    overall_label: str = ""


class EvaluationListResponse(BaseModel):
    evaluations: List[EvaluationResponse]
    total: int


# === Helpers ===

def _build_scorer(data: TeacherEvaluationCreate) -> EvaluationScorer:
    scorer = EvaluationScorer(
        participation=data.participation_score,
        understanding=data.understanding_score,
        progress=data.progress_score,
        comments=data.comments,
    )
    # 列表项与表单一样逐条追加，空白项被忽略
    for text in data.strengths:
        scorer.add_item("strengths", text)
    for text in data.areas_for_improvement:
        scorer.add_item("areas_for_improvement", text)
    for text in data.recommendations:
        scorer.add_item("recommendations", text)
    return scorer


def _build_evaluation_response(evaluation: EvaluationRecord) -> EvaluationResponse:
    return EvaluationResponse(
        **evaluation.model_dump(), overall_label=score_label(evaluation.overall_rating)
    )


# === API 端点 ===

@router.post("/teacher", response_model=EvaluationResponse)
async def save_teacher_evaluation(
    data: TeacherEvaluationCreate,
    collaborators: Collaborators = Depends(get_collaborators),
):
    """教师评价。同一 (作业, 学生) 已有评价时更新，否则新建。"""
    assignment = await collaborators.assignments.get_by_id(data.assignment_id)
    if assignment is None:
        raise HTTPException(status_code=404, detail="Assignment not found")

    scorer = _build_scorer(data)
    try:
        payload = scorer.to_payload(data.assignment_id, data.student_id, data.teacher_id)
    except EvaluationValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail={"errors": exc.errors}
        )

    existing = await collaborators.evaluations.list_by_student_and_assignment(
        data.student_id, data.assignment_id
    )
    match = next((e for e in existing if e.assignment_id == data.assignment_id), None)
    if match is not None:
        saved = await collaborators.evaluations.update(match.id, payload)
    else:
        saved = await collaborators.evaluations.create(payload)
    return _build_evaluation_response(saved)


@router.get("/student/{student_id}", response_model=EvaluationListResponse)
async def list_student_evaluations(
    student_id: str,
    assignment_id: Optional[str] = None,
    collaborators: Collaborators = Depends(get_collaborators),
):
    """获取学生收到的教师评价，可按作业过滤。"""
    evaluations = await collaborators.evaluations.list_by_student_and_assignment(
        student_id, assignment_id
    )
    return {
        "evaluations": [_build_evaluation_response(e) for e in evaluations],
        "total": len(evaluations),
    }

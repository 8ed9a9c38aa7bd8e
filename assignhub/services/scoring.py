"""教师评价打分器。

三个子分数（参与度、理解度、进步）各自在 1-5 之间，通过带截断的 setter
修改；任意子分数变化后立即同步重算总评分。总评分只能读取，不能直接设置。
"""

from __future__ import annotations

from typing import Dict, List, Optional

from assignhub.config import get_settings
from assignhub.errors import EvaluationValidationError
from assignhub.models.enums import ListKind
from assignhub.schemas.submission import EvaluationPayload, EvaluationRecord
from assignhub.utils.rounding import clamp, round_half_up, round_rating

MIN_SCORE = 1.0
MAX_SCORE = 5.0
SCORE_STEP = 0.1

SCORE_FIELDS = ("participation", "understanding", "progress")

_SCORE_LABELS = {
    1: "Needs Improvement",
    2: "Below Average",
    3: "Average",
    4: "Good",
    5: "Excellent",
}

_SCORE_ERRORS = {
    "participation": ("participation_score", "Participation score must be between 1 and 5"),
    "understanding": ("understanding_score", "Understanding score must be between 1 and 5"),
    "progress": ("progress_score", "Progress score must be between 1 and 5"),
}


def score_label(score: float) -> str:
    return _SCORE_LABELS.get(int(round_half_up(score)), "Average")


def overall_rating(participation: float, understanding: float, progress: float) -> float:
    return round_rating((participation + understanding + progress) / 3)


class EvaluationScorer:
    """评价表单的进行中状态。"""

    def __init__(
        self,
        participation: Optional[float] = None,
        understanding: Optional[float] = None,
        progress: Optional[float] = None,
        comments: str = "",
        strengths: Optional[List[str]] = None,
        areas_for_improvement: Optional[List[str]] = None,
        recommendations: Optional[List[str]] = None,
    ) -> None:
        default = get_settings().default_sub_score
        self._scores: Dict[str, float] = {}
        for name, value in zip(SCORE_FIELDS, (participation, understanding, progress)):
            self._scores[name] = clamp(default if value is None else value, MIN_SCORE, MAX_SCORE)
        self._recompute()
        self.comments = comments
        self._lists: Dict[ListKind, List[str]] = {
            ListKind.STRENGTHS: list(strengths or []),
            ListKind.AREAS_FOR_IMPROVEMENT: list(areas_for_improvement or []),
            ListKind.RECOMMENDATIONS: list(recommendations or []),
        }

    @classmethod
    def from_evaluation(cls, evaluation: EvaluationRecord) -> "EvaluationScorer":
        return cls(
            participation=evaluation.participation_score,
            understanding=evaluation.understanding_score,
            progress=evaluation.progress_score,
            comments=evaluation.comments,
            strengths=evaluation.strengths,
            areas_for_improvement=evaluation.areas_for_improvement,
            recommendations=evaluation.recommendations,
        )

    # === 子分数 ===

    def _recompute(self) -> None:
        self._overall_rating = overall_rating(
            self._scores["participation"],
            self._scores["understanding"],
            self._scores["progress"],
        )

    def set_score(self, name: str, value: float) -> float:
        """设置子分数，超出范围的值被截断到最近的边界，返回实际存储的值。"""

        if name not in self._scores:
            raise KeyError(f"Unknown score field: {name}")
        self._scores[name] = clamp(float(value), MIN_SCORE, MAX_SCORE)
        self._recompute()
        return self._scores[name]

    def nudge(self, name: str, steps: int = 1) -> float:
        """按 0.1 的步长增减子分数。"""

        if name not in self._scores:
            raise KeyError(f"Unknown score field: {name}")
        return self.set_score(name, round_rating(self._scores[name] + steps * SCORE_STEP))

    @property
    def participation(self) -> float:
        return self._scores["participation"]

    @participation.setter
    def participation(self, value: float) -> None:
        self.set_score("participation", value)

    @property
    def understanding(self) -> float:
        return self._scores["understanding"]

    @understanding.setter
    def understanding(self, value: float) -> None:
        self.set_score("understanding", value)

    @property
    def progress(self) -> float:
        return self._scores["progress"]

    @progress.setter
    def progress(self, value: float) -> None:
        self.set_score("progress", value)

    @property
    def overall_rating(self) -> float:
        return self._overall_rating

    # === 列表编辑 ===

    def items(self, kind: ListKind) -> List[str]:
        return list(self._lists[ListKind(kind)])

    @property
    def strengths(self) -> List[str]:
        return self.items(ListKind.STRENGTHS)

    @property
    def areas_for_improvement(self) -> List[str]:
        return self.items(ListKind.AREAS_FOR_IMPROVEMENT)

    @property
    def recommendations(self) -> List[str]:
        return self.items(ListKind.RECOMMENDATIONS)

    def add_item(self, kind: ListKind, text: str) -> bool:
        """追加去掉首尾空白后的非空文本，允许重复。返回是否追加成功。"""

        cleaned = (text or "").strip()
        if not cleaned:
            return False
        self._lists[ListKind(kind)].append(cleaned)
        return True

    def remove_item(self, kind: ListKind, index: int) -> str:
        return self._lists[ListKind(kind)].pop(index)

    # === 校验与提交 ===

    def validate(self) -> Dict[str, str]:
        errors: Dict[str, str] = {}
        for name in SCORE_FIELDS:
            value = self._scores[name]
            if value < MIN_SCORE or value > MAX_SCORE:
                field, message = _SCORE_ERRORS[name]
                errors[field] = message
        if not self.comments.strip():
            errors["comments"] = "Comments are required"
        if not self._lists[ListKind.STRENGTHS]:
            errors["strengths"] = "At least one strength must be identified"
        return errors

    def to_payload(self, assignment_id: str, student_id: str, teacher_id: str) -> EvaluationPayload:
        errors = self.validate()
        if errors:
            raise EvaluationValidationError(errors)
        return EvaluationPayload(
            assignment_id=assignment_id,
            student_id=student_id,
            teacher_id=teacher_id,
            participation_score=self.participation,
            understanding_score=self.understanding,
            progress_score=self.progress,
            overall_rating=self.overall_rating,
            comments=self.comments,
            strengths=self.strengths,
            areas_for_improvement=self.areas_for_improvement,
            recommendations=self.recommendations,
        )

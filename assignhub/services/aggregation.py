"""作业提交汇总：完成率、平均分，以及按学生查找提交与评价。"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from assignhub.models.enums import COMPLETED_SUBMISSION_STATUSES, SubmissionStatus
from assignhub.schemas.assignment import StudentRef
from assignhub.schemas.submission import EvaluationRecord, SubmissionRecord
from assignhub.utils.rounding import round_percent


@dataclass(frozen=True)
class RosterRow:
    """详情页“提交”标签下的一行。"""

    student: StudentRef
    submission: Optional[SubmissionRecord] = None
    evaluation: Optional[EvaluationRecord] = None

    @property
    def status(self) -> SubmissionStatus:
        return self.submission.status if self.submission else SubmissionStatus.NOT_STARTED

    @property
    def is_evaluated(self) -> bool:
        return self.evaluation is not None


def completion_rate(roster_size: int, submissions: Sequence[SubmissionRecord]) -> int:
    if roster_size == 0:
        return 0
    completed = sum(1 for s in submissions if s.status in COMPLETED_SUBMISSION_STATUSES)
    # 提交数多于名单时（名单外学生）封顶 100
    return min(100, round_percent(completed / roster_size * 100))


def average_score(submissions: Sequence[SubmissionRecord]) -> int:
    # 没有分数的提交不计入分母
    scores = [s.score for s in submissions if s.score is not None]
    if not scores:
        return 0
    return round_percent(sum(scores) / len(scores))


@dataclass(frozen=True)
class SubmissionSummary:
    roster: List[StudentRef] = field(default_factory=list)
    submissions: List[SubmissionRecord] = field(default_factory=list)
    evaluations: List[EvaluationRecord] = field(default_factory=list)

    @property
    def roster_size(self) -> int:
        return len(self.roster)

    @property
    def completion_rate(self) -> int:
        return completion_rate(self.roster_size, self.submissions)

    @property
    def average_score(self) -> int:
        return average_score(self.submissions)

    @property
    def graded_count(self) -> int:
        return sum(1 for s in self.submissions if s.status == SubmissionStatus.GRADED)

    @property
    def average_time_spent(self) -> int:
        if not self.submissions:
            return 0
        return round_percent(sum(s.time_spent for s in self.submissions) / len(self.submissions))

    @property
    def status_breakdown(self) -> Dict[SubmissionStatus, int]:
        counts = Counter(s.status for s in self.submissions)
        return {status: counts.get(status, 0) for status in SubmissionStatus}

    def find_submission(self, student_id: str) -> Optional[SubmissionRecord]:
        return next((s for s in self.submissions if s.student_id == student_id), None)

    def find_evaluation(self, student_id: str) -> Optional[EvaluationRecord]:
        return next((e for e in self.evaluations if e.student_id == student_id), None)

    def rows(self) -> List[RosterRow]:
        return [
            RosterRow(
                student=student,
                submission=self.find_submission(student.id),
                evaluation=self.find_evaluation(student.id),
            )
            for student in self.roster
        ]


def summarize_submissions(
    roster: Sequence[StudentRef],
    submissions: Sequence[SubmissionRecord],
    evaluations: Sequence[EvaluationRecord] = (),
) -> SubmissionSummary:
    return SubmissionSummary(
        roster=list(roster),
        submissions=list(submissions),
        evaluations=list(evaluations),
    )

"""作业管理工作流控制器。

持有 :class:`NavigationState` 以及各页面正在编辑的内容（作业表单、评价打分器），
负责调用外部协作方并把结果转换为导航动作：

- 相关读取通过 ``asyncio.gather`` 并发发出，全部完成后再合并；任何一个失败
  都作为一次整体加载失败提示用户，页面不切换，已展示的数据保留。
- 保存失败时停留在当前编辑页面，只给出一条错误信息，表单内容保留以便重试。
- 加载/保存进行中不允许再发起新的请求；每次请求记录发起时的 ``generation``，
  用户在此期间切换了页面时，返回结果被丢弃。
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable, List, Optional, Sequence

from assignhub.config import get_settings
from assignhub.errors import (
    AssignmentValidationError,
    InvalidTransitionError,
    LoadError,
    SaveError,
    WorkflowBusyError,
)
from assignhub.models.enums import AssignmentType, Screen, SortKey, SortOrder
from assignhub.schemas.assignment import (
    AssignmentDraft,
    AssignmentFilters,
    AssignmentRecord,
    AvailableContent,
    ClassRef,
    CourseRef,
    StudentRef,
    validate_assignment_form,
)
from assignhub.schemas.submission import EvaluationPayload, EvaluationRecord
from assignhub.services import navigation as nav
from assignhub.services.aggregation import SubmissionSummary, summarize_submissions
from assignhub.services.collaborators import Collaborators
from assignhub.services.filtering import FilterResult, apply_filters, update_filter
from assignhub.services.scoring import EvaluationScorer
from assignhub.utils.timeutil import utcnow

log = logging.getLogger(__name__)

LOAD_LIST_FAILED = "Failed to load assignments. Please try again."
LOAD_DETAILS_FAILED = "Failed to load assignment details"
SAVE_ASSIGNMENT_FAILED = "Failed to save assignment. Please try again."
SAVE_EVALUATION_FAILED = "Failed to save evaluation. Please try again."
DELETE_FAILED = "Failed to delete assignment. Please try again."
DUPLICATE_FAILED = "Failed to duplicate assignment. Please try again."
LOAD_OPTIONS_FAILED = "Failed to load available content and students."


@dataclass
class ListData:
    assignments: List[AssignmentRecord] = field(default_factory=list)
    courses: List[CourseRef] = field(default_factory=list)
    classes: List[ClassRef] = field(default_factory=list)


@dataclass
class DetailsData:
    assignment: AssignmentRecord
    course: Optional[CourseRef]
    classes: List[ClassRef]
    summary: SubmissionSummary


@dataclass
class FormOptions:
    content: AvailableContent = field(default_factory=AvailableContent)
    students: List[StudentRef] = field(default_factory=list)


class AssignmentWorkflow:
    """显式的导航对象，替代各页面共享的隐式全局状态。"""

    def __init__(
        self,
        collaborators: Collaborators,
        teacher_id: str,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        settings = get_settings()
        self.collaborators = collaborators
        self.teacher_id = teacher_id
        self.clock = clock
        self.state = nav.NavigationState()

        # 列表页
        self.list_data = ListData()
        self.search = ""
        self.filters = AssignmentFilters()
        self.sort_by = SortKey(settings.default_sort_by)
        self.sort_order = SortOrder(settings.default_sort_order)

        # 详情页 / 编辑页 / 评价页
        self.details: Optional[DetailsData] = None
        self.draft: Optional[AssignmentDraft] = None
        self.form_options = FormOptions()
        self.scorer: Optional[EvaluationScorer] = None

    # === 状态 ===

    @property
    def screen(self) -> Screen:
        return self.state.screen

    @property
    def breadcrumbs(self) -> List[nav.Crumb]:
        return nav.breadcrumbs(self.state)

    def dispatch(self, action: nav.Action) -> nav.NavigationState:
        self.state = nav.reduce(self.state, action)
        return self.state

    def _discard_forms(self) -> None:
        if self.state.screen not in (Screen.CREATE, Screen.EDIT):
            self.draft = None
            self.form_options = FormOptions()
        if self.state.screen != Screen.EVALUATE:
            self.scorer = None
        if self.state.screen == Screen.LIST:
            self.details = None

    def dismiss_error(self) -> None:
        self.dispatch(nav.DismissError())

    # === 请求令牌 ===

    def _begin(self) -> int:
        if self.state.busy:
            raise WorkflowBusyError("Another request is still in progress")
        self.dispatch(nav.LoadStarted())
        return self.state.generation

    def _finish(self) -> None:
        self.dispatch(nav.LoadFinished())

    def _is_stale(self, token: int) -> bool:
        if token != self.state.generation:
            log.debug("Discarding stale response (token=%s, current=%s)", token, self.state.generation)
            return True
        return False

    def _fail(self, token: int, message: str) -> None:
        """在发起请求的页面上提示错误；用户已离开该页面时只记录日志。"""

        if self._is_stale(token):
            return
        self.dispatch(nav.Failed(message))

    async def _gather(self, *aws: Awaitable[Any], message: str) -> List[Any]:
        """并发等待全部读取完成，再把任何失败合并为一个 :class:`LoadError`。"""

        results = await asyncio.gather(*aws, return_exceptions=True)
        failures = [r for r in results if isinstance(r, BaseException)]
        if failures:
            for failure in failures[1:]:
                log.debug("Additional failure in the same load: %r", failure)
            raise LoadError(message, failures[0])
        return list(results)

    # === 导航 ===

    def open_create(self) -> nav.NavigationState:
        self.dispatch(nav.OpenCreate())
        self.draft = AssignmentDraft.defaults(self.teacher_id, self.clock())
        self.form_options = FormOptions()
        return self.state

    def open_view(self, assignment: AssignmentRecord) -> nav.NavigationState:
        self.dispatch(nav.OpenView(assignment))
        self.details = None
        return self.state

    def open_edit(self) -> nav.NavigationState:
        self.dispatch(nav.OpenEdit())
        self.draft = AssignmentDraft.from_record(self.state.assignment)
        self.form_options = FormOptions()
        return self.state

    async def open_evaluate(self, student: StudentRef) -> nav.NavigationState:
        """进入评价页前先查找该 (作业, 学生) 已有的评价；查找失败不影响进入。"""

        if not nav.can_transition(self.state.screen, Screen.EVALUATE):
            raise InvalidTransitionError(
                f"OpenEvaluate is not allowed from '{self.state.screen.value}'"
            )
        assignment = self.state.assignment
        if assignment is None:
            raise InvalidTransitionError("No assignment selected to evaluate")
        if student is None:
            raise InvalidTransitionError("OpenEvaluate requires a student")

        token = self._begin()
        existing: Optional[EvaluationRecord] = None
        try:
            evaluations = await self.collaborators.evaluations.list_by_student_and_assignment(
                student.id, assignment.id
            )
            existing = next((e for e in evaluations if e.assignment_id == assignment.id), None)
        except Exception:
            log.warning(
                "Error loading existing evaluation for student %s on assignment %s",
                student.id,
                assignment.id,
                exc_info=True,
            )
        finally:
            self._finish()

        if self._is_stale(token):
            return self.state
        self.dispatch(nav.OpenEvaluate(student, existing))
        self.scorer = (
            EvaluationScorer.from_evaluation(existing) if existing else EvaluationScorer()
        )
        return self.state

    def cancel(self) -> nav.NavigationState:
        """放弃当前表单：create → list，edit/evaluate → view，view → list。"""

        self.dispatch(nav.Cancel())
        self._discard_forms()
        return self.state

    def click_crumb(self, index: int) -> nav.NavigationState:
        action = nav.crumb_action(self.state, index)
        if action is None:
            return self.state
        self.dispatch(action)
        self._discard_forms()
        return self.state

    # === 列表页 ===

    async def load_list(self) -> Optional[ListData]:
        token = self._begin()
        try:
            assignments, courses, classes = await self._gather(
                self.collaborators.assignments.list_all(),
                self.collaborators.directory.list_courses(),
                self.collaborators.directory.list_classes(),
                message=LOAD_LIST_FAILED,
            )
        except LoadError as exc:
            log.exception("Error loading assignments")
            self._fail(token, exc.message)
            return None
        finally:
            self._finish()

        if self._is_stale(token):
            return None
        self.list_data = ListData(list(assignments), list(courses), list(classes))
        return self.list_data

    def visible_assignments(self, now: Optional[datetime] = None) -> FilterResult:
        return apply_filters(
            self.list_data.assignments,
            search=self.search,
            filters=self.filters,
            sort_by=self.sort_by,
            sort_order=self.sort_order,
            now=now or self.clock(),
        )

    def set_filter(self, key: str, value: Any) -> AssignmentFilters:
        self.filters = update_filter(self.filters, key, value)
        return self.filters

    def clear_filters(self) -> None:
        self.filters = AssignmentFilters()
        self.search = ""

    def set_sort(self, sort_by: SortKey, sort_order: Optional[SortOrder] = None) -> None:
        self.sort_by = SortKey(sort_by)
        if sort_order is not None:
            self.sort_order = SortOrder(sort_order)

    async def delete_assignment(self, assignment_id: str) -> bool:
        token = self._begin()
        try:
            await self.collaborators.assignments.delete(assignment_id)
        except Exception:
            log.exception("Error deleting assignment %s", assignment_id)
            self._fail(token, DELETE_FAILED)
            return False
        finally:
            self._finish()

        if not self._is_stale(token):
            self.list_data.assignments = [
                a for a in self.list_data.assignments if a.id != assignment_id
            ]
        return True

    async def duplicate_assignment(self, assignment_id: str) -> Optional[AssignmentRecord]:
        token = self._begin()
        try:
            duplicated = await self.collaborators.assignments.duplicate(assignment_id)
        except Exception:
            log.exception("Error duplicating assignment %s", assignment_id)
            self._fail(token, DUPLICATE_FAILED)
            return None
        finally:
            self._finish()

        if not self._is_stale(token):
            self.list_data.assignments = [duplicated, *self.list_data.assignments]
        return duplicated

    # === 详情页 ===

    async def load_details(self) -> Optional[DetailsData]:
        if self.state.assignment is None:
            raise InvalidTransitionError("No assignment selected")
        assignment_id = self.state.assignment.id

        token = self._begin()
        try:
            details = await self._fetch_details(assignment_id)
        except Exception as exc:
            log.exception("Error loading assignment details for %s", assignment_id)
            self._fail(token, exc.message if isinstance(exc, LoadError) else LOAD_DETAILS_FAILED)
            return None
        finally:
            self._finish()

        if self._is_stale(token):
            return None
        self.details = details
        return details

    async def _fetch_details(self, assignment_id: str) -> DetailsData:
        assignments = self.collaborators.assignments
        directory = self.collaborators.directory

        assignment, submissions = await self._gather(
            assignments.get_by_id(assignment_id),
            self.collaborators.submissions.list_by_assignment(assignment_id),
            message=LOAD_DETAILS_FAILED,
        )
        if assignment is None:
            raise LoadError("Assignment not found")

        course, classes, students = await self._gather(
            directory.get_course(assignment.course_id),
            self._gather(
                *(directory.get_class(cid) for cid in assignment.class_ids),
                message=LOAD_DETAILS_FAILED,
            ),
            directory.list_students_for_classes(assignment.class_ids),
            message=LOAD_DETAILS_FAILED,
        )
        evaluation_lists = await self._gather(
            *(
                self.collaborators.evaluations.list_by_student_and_assignment(
                    student.id, assignment_id
                )
                for student in students
            ),
            message=LOAD_DETAILS_FAILED,
        )
        evaluations = [e for group in evaluation_lists for e in group]

        return DetailsData(
            assignment=assignment,
            course=course,
            classes=[c for c in classes if c is not None],
            summary=summarize_submissions(students, submissions, evaluations),
        )

    # === 作业表单 ===

    async def load_form_options(
        self,
        course_id: Optional[str] = None,
        class_ids: Optional[Sequence[str]] = None,
        content_type: Optional[AssignmentType] = None,
    ) -> Optional[FormOptions]:
        """加载表单可选内容与学生；尚未指定学生时默认选中全部。"""

        if self.draft is None:
            raise InvalidTransitionError("No assignment form is open")
        course_id = course_id or self.draft.course_id
        class_ids = list(class_ids if class_ids is not None else self.draft.class_ids)

        token = self._begin()
        try:
            content, students = await self._gather(
                self._content_for(course_id, content_type),
                self._students_for(class_ids),
                message=LOAD_OPTIONS_FAILED,
            )
        except LoadError as exc:
            log.exception("Error loading form options")
            self._fail(token, exc.message)
            return None
        finally:
            self._finish()

        if self._is_stale(token):
            return None
        self.form_options = FormOptions(content=content, students=students)
        if not self.draft.assigned_to and students:
            self.draft = self.draft.model_copy(
                update={"assigned_to": [s.id for s in students]}
            )
        return self.form_options

    async def _content_for(
        self, course_id: str, content_type: Optional[AssignmentType]
    ) -> AvailableContent:
        if not course_id:
            return AvailableContent()
        return await self.collaborators.content.list_available_content(course_id, content_type)

    async def _students_for(self, class_ids: List[str]) -> List[StudentRef]:
        if not class_ids:
            return []
        return await self.collaborators.directory.list_students_for_classes(class_ids)

    async def _persist_assignment(self, draft: AssignmentDraft) -> AssignmentRecord:
        try:
            if self.state.screen == Screen.EDIT and self.state.assignment is not None:
                return await self.collaborators.assignments.update(self.state.assignment.id, draft)
            return await self.collaborators.assignments.create(draft)
        except Exception as exc:
            raise SaveError(SAVE_ASSIGNMENT_FAILED, exc) from exc

    async def save_assignment(
        self, draft: Optional[AssignmentDraft] = None
    ) -> Optional[AssignmentRecord]:
        """校验并保存作业表单。

        校验失败抛出 :class:`AssignmentValidationError`，不调用任何存储；
        保存失败时停留在当前页面并保留表单内容，返回 ``None``。
        """

        if self.state.screen not in (Screen.CREATE, Screen.EDIT):
            raise InvalidTransitionError(
                f"Cannot save an assignment from '{self.state.screen.value}'"
            )
        draft = draft or self.draft
        if draft is None:
            raise InvalidTransitionError("No assignment form is open")
        self.draft = draft
        errors = validate_assignment_form(draft)
        if errors:
            raise AssignmentValidationError(errors)

        token = self._begin()
        try:
            saved = await self._persist_assignment(draft)
        except SaveError as exc:
            log.exception("Error submitting assignment")
            self._fail(token, exc.message)
            return None
        finally:
            self._finish()

        if self._is_stale(token):
            # 写入已生效：用户离开了表单，列表仍需重新加载
            self.dispatch(nav.ListInvalidated())
            return saved
        self.dispatch(nav.AssignmentSaved())
        self._discard_forms()
        return saved

    # === 评价页 ===

    async def _persist_evaluation(
        self, existing: Optional[EvaluationRecord], payload: EvaluationPayload
    ) -> EvaluationRecord:
        try:
            if existing is not None:
                return await self.collaborators.evaluations.update(existing.id, payload)
            return await self.collaborators.evaluations.create(payload)
        except Exception as exc:
            raise SaveError(SAVE_EVALUATION_FAILED, exc) from exc

    async def save_evaluation(self) -> Optional[EvaluationRecord]:
        """校验并保存评价：已有评价则更新，否则新建。"""

        if self.state.screen != Screen.EVALUATE or self.scorer is None:
            raise InvalidTransitionError("No evaluation form is open")
        existing = self.state.evaluation
        payload = self.scorer.to_payload(
            assignment_id=self.state.assignment.id,
            student_id=self.state.student.id,
            teacher_id=existing.teacher_id if existing else self.teacher_id,
        )

        token = self._begin()
        try:
            saved = await self._persist_evaluation(existing, payload)
        except SaveError as exc:
            log.exception("Error submitting evaluation")
            self._fail(token, exc.message)
            return None
        finally:
            self._finish()

        # 评价已变化，详情页需重新加载
        self.details = None
        if self._is_stale(token):
            return saved
        self.dispatch(nav.EvaluationSaved())
        self._discard_forms()
        return saved

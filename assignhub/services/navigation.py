"""作业管理工作流的页面状态机。

页面：``list`` → ``create`` / ``view``；``view`` → ``edit`` / ``evaluate``。
所有状态转换都是纯函数 :func:`reduce`，输入旧状态与动作，返回新状态；
面包屑由当前状态即时生成，不单独保存。

选中项一致性：

- ``list`` / ``create``：不选中任何作业、学生；
- ``view`` / ``edit``：选中作业，不选中学生；
- ``evaluate``：作业与学生同时选中，可能带有已存在的评价。
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Dict, FrozenSet, List, Optional, Tuple, Union

from assignhub.errors import InvalidTransitionError
from assignhub.models.enums import Screen
from assignhub.schemas.assignment import AssignmentRecord, StudentRef
from assignhub.schemas.submission import EvaluationRecord


@dataclass(frozen=True)
class NavigationState:
    screen: Screen = Screen.LIST
    assignment: Optional[AssignmentRecord] = None
    student: Optional[StudentRef] = None
    evaluation: Optional[EvaluationRecord] = None
    error: Optional[str] = None
    busy: bool = False
    # 列表页监听该计数器，变化时重新加载
    refresh_counter: int = 0
    # 每次发起加载递增，用于丢弃过期响应
    generation: int = 0


# === 动作 ===

@dataclass(frozen=True)
class OpenCreate:
    pass


@dataclass(frozen=True)
class OpenView:
    assignment: AssignmentRecord


@dataclass(frozen=True)
class OpenEdit:
    pass


@dataclass(frozen=True)
class OpenEvaluate:
    student: StudentRef
    evaluation: Optional[EvaluationRecord] = None


@dataclass(frozen=True)
class Cancel:
    pass


@dataclass(frozen=True)
class BackToList:
    pass


@dataclass(frozen=True)
class AssignmentSaved:
    pass


@dataclass(frozen=True)
class EvaluationSaved:
    pass


@dataclass(frozen=True)
class ListInvalidated:
    pass


@dataclass(frozen=True)
class Failed:
    message: str


@dataclass(frozen=True)
class DismissError:
    pass


@dataclass(frozen=True)
class LoadStarted:
    pass


@dataclass(frozen=True)
class LoadFinished:
    pass


Action = Union[
    OpenCreate,
    OpenView,
    OpenEdit,
    OpenEvaluate,
    Cancel,
    BackToList,
    AssignmentSaved,
    EvaluationSaved,
    ListInvalidated,
    Failed,
    DismissError,
    LoadStarted,
    LoadFinished,
]


# 单步可达的页面
TRANSITIONS: Dict[Screen, FrozenSet[Screen]] = {
    Screen.LIST: frozenset({Screen.CREATE, Screen.VIEW}),
    Screen.CREATE: frozenset({Screen.LIST}),
    Screen.VIEW: frozenset({Screen.LIST, Screen.EDIT, Screen.EVALUATE}),
    Screen.EDIT: frozenset({Screen.VIEW, Screen.LIST}),
    Screen.EVALUATE: frozenset({Screen.VIEW, Screen.LIST}),
}

# 取消时的返回页面
CANCEL_TARGETS: Dict[Screen, Screen] = {
    Screen.CREATE: Screen.LIST,
    Screen.EDIT: Screen.VIEW,
    Screen.EVALUATE: Screen.VIEW,
    Screen.VIEW: Screen.LIST,
}


def can_transition(source: Screen, target: Screen) -> bool:
    return target in TRANSITIONS[source]


def _require(state: NavigationState, target: Screen, action: Action) -> None:
    if not can_transition(state.screen, target):
        raise InvalidTransitionError(
            f"{type(action).__name__} is not allowed from '{state.screen.value}'"
        )


def _enter(state: NavigationState, screen: Screen, **changes) -> NavigationState:
    """进入新页面，按目标页面清理不再使用的选中项，并清除错误。

    页面切换同样递增 ``generation``，切换前发出的请求结果随之作废。
    """

    if screen in (Screen.LIST, Screen.CREATE):
        changes.setdefault("assignment", None)
    if screen != Screen.EVALUATE:
        changes["student"] = None
        changes["evaluation"] = None
    return replace(state, screen=screen, error=None, generation=state.generation + 1, **changes)


def reduce(state: NavigationState, action: Action) -> NavigationState:
    if isinstance(action, OpenCreate):
        _require(state, Screen.CREATE, action)
        return _enter(state, Screen.CREATE)

    if isinstance(action, OpenView):
        _require(state, Screen.VIEW, action)
        if action.assignment is None:
            raise InvalidTransitionError("OpenView requires an assignment")
        return _enter(state, Screen.VIEW, assignment=action.assignment)

    if isinstance(action, OpenEdit):
        _require(state, Screen.EDIT, action)
        if state.assignment is None:
            raise InvalidTransitionError("No assignment selected to edit")
        return _enter(state, Screen.EDIT)

    if isinstance(action, OpenEvaluate):
        _require(state, Screen.EVALUATE, action)
        if state.assignment is None:
            raise InvalidTransitionError("No assignment selected to evaluate")
        if action.student is None:
            raise InvalidTransitionError("OpenEvaluate requires a student")
        return _enter(
            state,
            Screen.EVALUATE,
            student=action.student,
            evaluation=action.evaluation,
        )

    if isinstance(action, Cancel):
        if state.screen == Screen.LIST:
            return replace(state, error=None)
        return _enter(state, CANCEL_TARGETS[state.screen])

    if isinstance(action, BackToList):
        return _enter(state, Screen.LIST)

    if isinstance(action, AssignmentSaved):
        if state.screen not in (Screen.CREATE, Screen.EDIT):
            raise InvalidTransitionError(
                f"AssignmentSaved is not allowed from '{state.screen.value}'"
            )
        return _enter(state, Screen.LIST, refresh_counter=state.refresh_counter + 1)

    if isinstance(action, EvaluationSaved):
        if state.screen != Screen.EVALUATE:
            raise InvalidTransitionError(
                f"EvaluationSaved is not allowed from '{state.screen.value}'"
            )
        return _enter(state, Screen.VIEW)

    if isinstance(action, ListInvalidated):
        # 保存在用户离开表单后才完成：不切换页面，只通知列表刷新
        return replace(state, refresh_counter=state.refresh_counter + 1)

    if isinstance(action, Failed):
        return replace(state, error=action.message)

    if isinstance(action, DismissError):
        return replace(state, error=None)

    if isinstance(action, LoadStarted):
        return replace(state, busy=True, generation=state.generation + 1)

    if isinstance(action, LoadFinished):
        return replace(state, busy=False)

    raise TypeError(f"Unknown navigation action: {action!r}")


# === 面包屑 ===

@dataclass(frozen=True)
class Crumb:
    label: str
    # 点击后返回的页面；最后一项为当前位置，不可点击
    target: Optional[Screen] = None

    @property
    def clickable(self) -> bool:
        return self.target is not None


def _assignment_label(state: NavigationState) -> str:
    return state.assignment.title if state.assignment and state.assignment.title else "Assignment"


def _student_label(state: NavigationState) -> str:
    return state.student.full_name if state.student and state.student.full_name else "Student"


def breadcrumbs(state: NavigationState) -> List[Crumb]:
    labels: List[Tuple[str, Screen]] = [("Assignments", Screen.LIST)]
    if state.screen == Screen.CREATE:
        labels.append(("Create Assignment", Screen.CREATE))
    elif state.screen == Screen.VIEW:
        labels.append((_assignment_label(state), Screen.VIEW))
    elif state.screen == Screen.EDIT:
        labels.append((_assignment_label(state), Screen.VIEW))
        labels.append(("Edit", Screen.EDIT))
    elif state.screen == Screen.EVALUATE:
        labels.append((_assignment_label(state), Screen.VIEW))
        labels.append((f"Evaluate {_student_label(state)}", Screen.EVALUATE))

    crumbs = [Crumb(label, target) for label, target in labels[:-1]]
    crumbs.append(Crumb(labels[-1][0]))
    return crumbs


def crumb_action(state: NavigationState, index: int) -> Optional[Action]:
    """点击第 ``index`` 个面包屑对应的后退动作；当前位置返回 ``None``。"""

    crumbs = breadcrumbs(state)
    crumb = crumbs[index]
    if not crumb.clickable:
        return None
    if crumb.target == Screen.LIST:
        return BackToList()
    return Cancel()

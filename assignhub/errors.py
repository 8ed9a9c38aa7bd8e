"""引擎异常分类：校验错误 / 加载错误 / 保存错误 / 导航误用。"""

from typing import Dict, Optional


class AssignhubError(RuntimeError):
    """所有引擎异常的基类。"""


class ValidationError(AssignhubError):
    """表单本地校验失败，携带按字段区分的错误信息，不会触达任何外部存储。"""

    def __init__(self, errors: Dict[str, str]) -> None:
        self.errors = dict(errors)
        super().__init__("; ".join(f"{k}: {v}" for k, v in self.errors.items()))


class AssignmentValidationError(ValidationError):
    """作业表单校验失败。"""


class EvaluationValidationError(ValidationError):
    """教师评价表单校验失败。"""


class CollaboratorError(AssignhubError):
    """外部协作方（作业/提交/评价存储、目录服务）返回失败。"""


class LoadError(AssignhubError):
    """页面级读取失败。"""

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        self.message = message
        self.cause = cause
        super().__init__(message)


class SaveError(AssignhubError):
    """页面级写入失败，表单内容保留以便重试。"""

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        self.message = message
        self.cause = cause
        super().__init__(message)


class InvalidTransitionError(AssignhubError):
    """当前页面不允许该导航动作。"""


class WorkflowBusyError(AssignhubError):
    """上一次加载/保存尚未完成时又发起了新的请求。"""

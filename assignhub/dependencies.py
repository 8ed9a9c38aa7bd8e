"""FastAPI 依赖注入工具。"""

from assignhub.services.collaborators import Collaborators
from assignhub.services.repository import SqlRepository


def get_collaborators() -> Collaborators:
    """FastAPI 依赖，提供基于数据库的协作方实现。测试中可通过 ``dependency_overrides`` 替换。"""

    return SqlRepository().collaborators()

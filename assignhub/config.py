"""应用配置管理。

使用 Pydantic Settings 统一读取环境变量，便于在本地/生产之间切换。
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """核心配置项。

    - ``database_url``：默认使用本地 SQLite，便于快速启动。
    - ``default_sort_by`` / ``default_sort_order``：作业列表的初始排序。
    - ``default_sub_score``：新建教师评价时三个子分数的初始值。
    """

    database_url: str = Field(
        default="sqlite:///./storage/assignhub.db", description="SQLAlchemy 数据库 URL"
    )
    log_level: str = Field(default="INFO", description="日志级别")
    default_sort_by: Literal["title", "due_date", "created_at"] = Field(
        default="due_date", description="作业列表默认排序字段"
    )
    default_sort_order: Literal["asc", "desc"] = Field(
        default="asc", description="作业列表默认排序方向"
    )
    default_sub_score: float = Field(
        default=3.0, ge=1, le=5, description="评价子分数初始值 (1-5)"
    )
    default_max_attempts: int = Field(default=3, ge=1, le=10)
    default_assignment_days: int = Field(
        default=7, ge=1, description="新作业默认截止时间（开始后天数）"
    )

    model_config = {
        "env_prefix": "ASSIGNHUB_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """缓存后的全局配置实例。"""

    return Settings()

"""FastAPI 入口：作业生命周期与评价引擎的 HTTP 接口。"""

import logging

from fastapi import FastAPI

from assignhub import __version__
from assignhub.api.v2 import router as api_v2_router
from assignhub.config import get_settings
from assignhub.db import Base, engine, sqlite_file
import assignhub.models  # noqa: F401  注册全部表


def create_app() -> FastAPI:
    """应用工厂，便于测试与拓展路由。"""

    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = FastAPI(title="Assignhub API", version=__version__)

    @app.on_event("startup")
    def init_models() -> None:
        """启动时确保表存在。后续可替换为 Alembic 迁移。"""

        database_file = sqlite_file(settings.database_url)
        if database_file is not None:
            database_file.parent.mkdir(parents=True, exist_ok=True)
        Base.metadata.create_all(bind=engine)

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok", "database": settings.database_url}

    app.include_router(api_v2_router)
    return app


app = create_app()

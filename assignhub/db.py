"""数据库连接与会话管理。

``build_engine`` 按 URL 决定 SQLite 的连接参数：内存库所有会话共享同一条连接，
否则每个连接都会看到一个空库；文件库在启动时由 :func:`sqlite_file` 给出路径以创建目录。
"""

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

from assignhub.config import get_settings


class Base(DeclarativeBase):
    pass


def _is_memory_sqlite(url: str) -> bool:
    parsed = make_url(url)
    return parsed.get_backend_name() == "sqlite" and parsed.database in (None, "", ":memory:")


def sqlite_file(url: str) -> Optional[Path]:
    """SQLite 文件库的路径；内存库或其他数据库返回 ``None``。"""

    parsed = make_url(url)
    if parsed.get_backend_name() != "sqlite" or _is_memory_sqlite(url):
        return None
    return Path(parsed.database)


def build_engine(url: str) -> Engine:
    if make_url(url).get_backend_name() != "sqlite":
        return create_engine(url)
    # 会话可能在 FastAPI 的线程池中使用
    connect_args = {"check_same_thread": False}
    if _is_memory_sqlite(url):
        return create_engine(url, connect_args=connect_args, poolclass=StaticPool)
    return create_engine(url, connect_args=connect_args)


engine = build_engine(get_settings().database_url)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@contextmanager
def session_scope(factory: sessionmaker = SessionLocal) -> Iterator[Session]:
    """一次协作方调用对应一个事务：正常结束提交，出错回滚。"""

    session: Session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()

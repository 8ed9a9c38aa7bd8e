from pathlib import Path

import pytest
from sqlalchemy import text
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from assignhub.db import build_engine, session_scope, sqlite_file


def test_sqlite_file_path() -> None:
    assert sqlite_file("sqlite:///./storage/assignhub.db") == Path("./storage/assignhub.db")
    assert sqlite_file("sqlite:///:memory:") is None
    assert sqlite_file("sqlite://") is None
    assert sqlite_file("postgresql://user:pw@localhost/assignhub") is None


def test_memory_engine_shares_one_connection() -> None:
    engine = build_engine("sqlite:///:memory:")
    assert isinstance(engine.pool, StaticPool)

    with engine.begin() as conn:
        conn.execute(text("CREATE TABLE notes (body TEXT)"))
        conn.execute(text("INSERT INTO notes VALUES ('kept')"))
    with engine.connect() as conn:
        assert conn.execute(text("SELECT body FROM notes")).scalar() == "kept"


def test_file_engine_uses_default_pool(tmp_path) -> None:
    engine = build_engine(f"sqlite:///{tmp_path / 'assignhub.db'}")
    assert not isinstance(engine.pool, StaticPool)


def test_session_scope_rolls_back_on_error() -> None:
    engine = build_engine("sqlite:///:memory:")
    factory = sessionmaker(bind=engine)
    with engine.begin() as conn:
        conn.execute(text("CREATE TABLE notes (body TEXT)"))

    with pytest.raises(RuntimeError):
        with session_scope(factory) as session:
            session.execute(text("INSERT INTO notes VALUES ('lost')"))
            raise RuntimeError("boom")

    with session_scope(factory) as session:
        assert session.execute(text("SELECT count(*) FROM notes")).scalar() == 0

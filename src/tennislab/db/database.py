"""Database helpers for TennisLab."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import AbstractContextManager, contextmanager

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from tennislab.config import get_settings
from tennislab.db.models import Base

__all__ = ["build_engine", "engine", "SessionLocal", "get_session", "init_db", "session_scope"]


def build_engine(url: str) -> Engine:
    """Create an engine; SQLite gets settings usable from the API threadpool."""

    kwargs: dict = {"future": True, "echo": False}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if url in ("sqlite://", "sqlite:///:memory:"):
            # one shared connection, or every session sees an empty database
            kwargs["poolclass"] = StaticPool
    return create_engine(url, **kwargs)


engine = build_engine(str(get_settings().database_url))
SessionLocal = sessionmaker(bind=engine, class_=Session, expire_on_commit=False, autoflush=False)


def init_db(bind: Engine | None = None) -> None:
    """Create the players and matches tables if they are missing."""

    Base.metadata.create_all(bind=bind or engine)


@contextmanager
def session_scope(factory: sessionmaker) -> Iterator[Session]:
    """Commit on success, roll back on any error, always close."""

    session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def get_session() -> AbstractContextManager[Session]:
    return session_scope(SessionLocal)

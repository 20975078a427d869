"""SQLAlchemy engine and session setup."""

from __future__ import annotations

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from propdesk.config import get_database_url


class Base(DeclarativeBase):
    pass


def create_db_engine(url: str) -> Engine:
    """Engine for ``url``. SQLite connections are shared with FastAPI's worker threads."""
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, echo=False, connect_args=connect_args)


engine = create_db_engine(get_database_url())

# Objects stay readable after commit, once the session that loaded them is closed.
SessionLocal = sessionmaker(bind=engine, expire_on_commit=False)


def get_session() -> Session:
    """Open a session. Callers close it in a ``finally`` block."""
    return SessionLocal()


def init_db(bind: Engine | None = None) -> None:
    """Create any missing tables."""
    import propdesk.models  # noqa: F401  registers every mapped class on Base

    Base.metadata.create_all(bind=bind or engine)

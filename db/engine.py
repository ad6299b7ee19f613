"""
db.engine - Engine bootstrap and sessions for import runs.

Every import run works through its own Session (see session_scope), so
independent uploads never share transaction state.  The bulk backend
commits or rolls back per batch; the scope here only guarantees the
session is released on every exit path.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from db.models import Base

_engine: Engine | None = None
_SessionLocal: sessionmaker | None = None


def init_db(db_url: str) -> None:
    """Create the engine for ``db_url`` and emit CREATE TABLE for the models."""
    global _engine, _SessionLocal

    _engine = create_engine(db_url, echo=False, future=True)
    if _engine.dialect.name == "sqlite":
        event.listen(_engine, "connect", _sqlite_on_connect)

    Base.metadata.create_all(_engine)
    # Rows stay readable after a batch commit (results, hooks)
    _SessionLocal = sessionmaker(bind=_engine, expire_on_commit=False)


def _sqlite_on_connect(dbapi_conn, _record) -> None:
    # WAL lets the admin page read while an upload is writing batches;
    # foreign keys so posts cannot point at a missing author
    cur = dbapi_conn.cursor()
    cur.execute("PRAGMA journal_mode=WAL")
    cur.execute("PRAGMA foreign_keys=ON")
    cur.close()


def get_session() -> Session:
    """Return a new session.  Caller is responsible for .close()."""
    if _SessionLocal is None:
        raise RuntimeError("Database not initialised - call init_db() first")
    return _SessionLocal()


@contextmanager
def session_scope() -> Iterator[Session]:
    """Session closed on exit; uncommitted work is discarded."""
    session = get_session()
    try:
        yield session
    finally:
        session.close()


def dispose_db() -> None:
    """Drop pooled connections and forget the engine (used by tests)."""
    global _engine, _SessionLocal
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionLocal = None

"""Engine and session helpers shared by the retail ledger.

The ledger reads and posts through one process-wide engine bound to
``DATABASE_URL`` (or an explicit URL from the CLI). SQLite URLs are accepted
for local ledgers and tests; those connections get a ``now()`` function so the
``server_default=func.now()`` columns resolve.

Usage
-----
from db.client import session_scope

with session_scope(database_url=url) as s:
    repository.fetch_customers(s, tenant_id="default")
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

_ENGINE: Engine | None = None
_SESSION_MAKER: sessionmaker[Session] | None = None
_DB_URL: str | None = None


def _database_url(override: str | None = None) -> str:
    url = override or os.getenv("DATABASE_URL")
    if not url:
        raise RuntimeError(
            "DATABASE_URL is not set; pass --database-url or --export-path to read a ledger"
        )
    return url


def _sqlite_now() -> str:
    return datetime.now(UTC).strftime("%Y-%m-%d %H:%M:%S")


def _prepare_sqlite(engine: Engine) -> None:
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_conn, _record):  # pragma: no cover - driver bridge
        dbapi_conn.create_function("now", 0, _sqlite_now)


def get_engine(*, database_url: str | None = None) -> Engine:
    """Return the shared engine, creating it on first use.

    A second call with a different URL raises ``RuntimeError``; call
    :func:`dispose_engine` first to rebind.
    """

    global _ENGINE, _SESSION_MAKER, _DB_URL
    url = _database_url(database_url)
    if _ENGINE is None:
        engine = create_engine(url, pool_pre_ping=True)
        if engine.dialect.name == "sqlite":
            _prepare_sqlite(engine)
        _SESSION_MAKER = sessionmaker(bind=engine, expire_on_commit=False, class_=Session)
        _ENGINE = engine
        _DB_URL = url
        return engine
    if _DB_URL is not None and url != _DB_URL:
        raise RuntimeError(
            f"ledger database already bound to {_DB_URL!r}; dispose_engine() before using {url!r}"
        )
    return _ENGINE


def dispose_engine() -> None:
    """Dispose the shared engine so the next call may bind a different URL."""

    global _ENGINE, _SESSION_MAKER, _DB_URL
    if _ENGINE is not None:
        _ENGINE.dispose()
    _ENGINE = None
    _SESSION_MAKER = None
    _DB_URL = None


def get_session(*, database_url: str | None = None) -> Session:
    get_engine(database_url=database_url)
    assert _SESSION_MAKER is not None  # bound by get_engine
    return _SESSION_MAKER()


@contextmanager
def session_scope(*, database_url: str | None = None) -> Iterator[Session]:
    """Yield a session; commit on success, roll back and re-raise on error."""

    session = get_session(database_url=database_url)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


__all__ = [
    "get_engine",
    "dispose_engine",
    "get_session",
    "session_scope",
]

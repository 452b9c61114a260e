from __future__ import annotations

from pathlib import Path

import pytest
from sqlalchemy import select

from db.client import dispose_engine, get_engine, session_scope
from db.models.retail import RlCustomer
from tests.helpers.db import TENANT, bootstrap_sqlite_db


def test_sqlite_connections_resolve_now_defaults(tmp_path: Path):
    url = bootstrap_sqlite_db(tmp_path / "client.sqlite")
    with session_scope(database_url=url) as s:
        s.add(RlCustomer(id="c1", tenant_id=TENANT, name="Ahmed"))

    with session_scope(database_url=url) as s:
        customer = s.scalars(select(RlCustomer).where(RlCustomer.id == "c1")).one()
        assert customer.created_at is not None


def test_rebinding_requires_dispose(tmp_path: Path):
    first = f"sqlite+pysqlite:///{tmp_path / 'a.sqlite'}"
    second = f"sqlite+pysqlite:///{tmp_path / 'b.sqlite'}"
    get_engine(database_url=first)

    with pytest.raises(RuntimeError, match="already bound"):
        get_engine(database_url=second)

    dispose_engine()
    assert get_engine(database_url=second).url.database.endswith("b.sqlite")


def test_failed_scope_rolls_back(tmp_path: Path):
    url = bootstrap_sqlite_db(tmp_path / "rollback.sqlite")

    with pytest.raises(ValueError):
        with session_scope(database_url=url) as s:
            s.add(RlCustomer(id="c1", tenant_id=TENANT, name="Ahmed"))
            s.flush()
            raise ValueError("boom")

    with session_scope(database_url=url) as s:
        assert s.scalars(select(RlCustomer)).all() == []

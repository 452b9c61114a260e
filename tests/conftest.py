"""Pytest configuration for test isolation.

The db client keeps one process-wide engine bound to the first URL it sees,
and the CLI configures package logging once per process. Both would leak
between tests (a later test binding a different SQLite file would be
rejected, and a log handler would keep writing to a closed CliRunner
stream), so an autouse fixture resets them around every test.
"""

from __future__ import annotations

import sys
from collections.abc import Iterator
from pathlib import Path

import pytest

_ROOT = Path(__file__).resolve().parents[1]
sys.path[:0] = [
    p
    for p in [str(_ROOT / "packages"), str(_ROOT / "libs" / "db" / "src"), str(_ROOT)]
    if p not in sys.path
]

from db.client import dispose_engine  # noqa: E402
from retail_ledger.logging_setup import reset_logging  # noqa: E402


@pytest.fixture(autouse=True)
def _isolate_process_state(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Start every test with no engine, no DATABASE_URL and quiet logging.

    ``RETAIL_LEDGER_LOG_LEVEL`` is raised to WARNING so CLI output captured by
    ``CliRunner`` is not interleaved with INFO lines.
    """

    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("RETAIL_LEDGER_TENANT", raising=False)
    monkeypatch.setenv("RETAIL_LEDGER_LOG_LEVEL", "WARNING")
    dispose_engine()
    reset_logging()
    yield
    dispose_engine()
    reset_logging()

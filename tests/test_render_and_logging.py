from __future__ import annotations

import io
import logging
from decimal import Decimal

from rich.console import Console

from retail_ledger import build_supplier_statement, customer_summaries, reconcile
from retail_ledger.logging_setup import configure_logging, get_logger
from retail_ledger.render import customers_table, render_statement, suppliers_table
from retail_ledger.summaries import supplier_summaries


def _render(renderable) -> str:
    console = Console(file=io.StringIO(), width=160, color_system=None)
    console.print(renderable)
    return console.file.getvalue()


def test_statement_render_includes_totals_and_mismatch_line():
    st = build_supplier_statement(
        [{"id": "p1", "createdAt": "2024-01-01", "supplierName": "Nile", "purchasePrice": 100}],
        [{"id": "x", "paymentDate": "2024-01-02", "supplierName": "Nile", "paymentAmount": 40}],
        "Nile",
    )

    text = _render(render_statement(st, title="Nile", reconciliation=reconcile(st, 70)))

    assert "Total" in text
    assert "100.00" in text
    assert "Current balance: 60.00" in text
    assert "differs by -10.00" in text


def test_report_tables_list_every_account():
    customers = customer_summaries(
        [{"id": "c1", "name": "Ahmed", "totalBalance": 5}, {"id": "c2", "name": "Mona"}], []
    )
    suppliers = supplier_summaries(
        [{"id": "p1", "createdAt": "2024-01-01", "supplierName": "Nile", "quantity": 3,
          "purchasePrice": Decimal("12.5")}]
    )

    customer_text = _render(customers_table(customers))
    supplier_text = _render(suppliers_table(suppliers))

    assert "Ahmed" in customer_text and "Mona" in customer_text
    assert "settled" in customer_text
    assert "Nile" in supplier_text and "12.50" in supplier_text


def test_configure_logging_attaches_one_handler_and_honors_env(monkeypatch):
    monkeypatch.setenv("RETAIL_LEDGER_LOG_LEVEL", "debug")
    stream = io.StringIO()

    configure_logging(stream=stream)
    configure_logging(stream=io.StringIO())  # second call is a no-op

    pkg = logging.getLogger("retail_ledger")
    assert len(pkg.handlers) == 1
    assert pkg.level == logging.DEBUG

    get_logger("retail_ledger.test").debug("probe:event key=%s", "v")
    assert "probe:event key=v" in stream.getvalue()

from __future__ import annotations

import json
from decimal import Decimal
from pathlib import Path

import pytest
from typer.testing import CliRunner

from db.client import session_scope
from retail_ledger import repository
from retail_ledger.cli import app
from tests.helpers.db import TENANT, add_customer, add_purchase, add_sale, bootstrap_sqlite_db

runner = CliRunner()


@pytest.fixture
def export_path(tmp_path: Path) -> Path:
    doc = {
        "customers": [
            {"id": "c1", "name": "Ahmed", "totalBalance": 120},
            {"id": "c2", "name": "Mona", "totalBalance": 0},
        ],
        "sales": [
            {"id": "s1", "customerId": "c1", "createdAt": "2024-01-01", "invoiceType": "credit",
             "invoiceNumber": "1", "totalAmount": 200, "currentBalance": 200,
             "items": [{"productName": "Tea", "quantity": 4, "unitPrice": 50, "totalPrice": 200}]},
        ],
        "receipts": [
            {"id": "r1", "customerId": "c1", "receiptDate": "2024-01-02", "paidAmount": 80,
             "receiptNumber": "REC-001"},
        ],
        "purchases": [
            {"id": "p1", "supplierName": "Nile", "createdAt": "2024-01-01", "quantity": 1,
             "purchasePrice": 100},
        ],
        "supplierPayments": [
            {"id": "sp1", "supplierName": "Nile", "paymentDate": "2024-01-02", "paymentAmount": 40},
        ],
    }
    p = tmp_path / "export.json"
    p.write_text(json.dumps(doc), encoding="utf-8")
    return p


def test_customer_statement_json_from_export(export_path: Path):
    result = runner.invoke(
        app,
        ["customer-statement", "--customer-id", "c1", "--export-path", str(export_path),
         "--json", "--items"],
    )

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert [r["balance"] for r in payload["rows"]] == ["200", "120"]
    assert payload["totalDebit"] == "200"
    assert payload["totalCredit"] == "80"
    assert payload["difference"] == "0.00"
    assert payload["items"][0]["product_name"] == "Tea"


def test_customer_statement_table_from_export(export_path: Path):
    result = runner.invoke(
        app, ["customer-statement", "--customer-id", "c1", "--export-path", str(export_path)]
    )

    assert result.exit_code == 0, result.output
    assert "Current balance: 120.00" in result.output


def test_unknown_customer_exits_non_zero(export_path: Path):
    result = runner.invoke(
        app, ["customer-statement", "--customer-id", "nobody", "--export-path", str(export_path)]
    )

    assert result.exit_code == 1
    assert "Error: customer not found: nobody" in result.output


def test_missing_export_file_is_reported(tmp_path: Path):
    result = runner.invoke(
        app,
        ["customers-report", "--export-path", str(tmp_path / "nope.json"), "--json"],
    )

    assert result.exit_code == 1
    assert "Error:" in result.output


def test_supplier_statement_json_from_export(export_path: Path):
    result = runner.invoke(
        app,
        ["supplier-statement", "--supplier-name", "Nile", "--export-path", str(export_path),
         "--json"],
    )

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert [r["balance"] for r in payload["rows"]] == ["100", "60"]
    assert payload["currentBalance"] == "60"


def test_reports_json_from_export(export_path: Path):
    customers = runner.invoke(
        app, ["customers-report", "--export-path", str(export_path), "--json"]
    )
    suppliers = runner.invoke(
        app, ["suppliers-report", "--export-path", str(export_path), "--json"]
    )

    assert customers.exit_code == 0, customers.output
    assert suppliers.exit_code == 0, suppliers.output
    rows = json.loads(customers.output)
    assert [(r["customer_id"], r["balance_status"]) for r in rows] == [
        ("c1", "debit"),
        ("c2", "settled"),
    ]
    (nile,) = json.loads(suppliers.output)
    assert nile["supplier_name"] == "Nile"
    assert nile["total_amount"] == "100"


def test_record_receipt_then_statement_from_database(tmp_path: Path):
    url = bootstrap_sqlite_db(tmp_path / "cli.sqlite")
    with session_scope(database_url=url) as s:
        add_customer(s, "c1", name="Ahmed", total_balance=200)
        add_sale(s, "s1", customer_id="c1", day=1, total=200)

    common = ["--database-url", url, "--tenant", TENANT]
    recorded = runner.invoke(
        app, ["record-receipt", "--customer-id", "c1", "--amount", "80", *common]
    )
    assert recorded.exit_code == 0, recorded.output
    assert recorded.output.startswith("REC-001\t80")

    result = runner.invoke(app, ["customer-statement", "--customer-id", "c1", "--json", *common])
    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert Decimal(payload["currentBalance"]) == Decimal("120")
    assert payload["difference"] == "0.00"


def test_tenant_comes_from_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    url = bootstrap_sqlite_db(tmp_path / "env.sqlite")
    with session_scope(database_url=url) as s:
        add_customer(s, "c1", name="Ahmed", total_balance=5)
    monkeypatch.setenv("DATABASE_URL", url)
    monkeypatch.setenv("RETAIL_LEDGER_TENANT", TENANT)

    result = runner.invoke(app, ["customers-report", "--json"])

    assert result.exit_code == 0, result.output
    assert [r["customer_id"] for r in json.loads(result.output)] == ["c1"]


def test_record_supplier_payment_rejects_overpayment(tmp_path: Path):
    url = bootstrap_sqlite_db(tmp_path / "sup.sqlite")
    with session_scope(database_url=url) as s:
        add_purchase(s, "p1", supplier_name="Nile", day=1, quantity=1, unit_price=10)

    common = ["--database-url", url, "--tenant", TENANT]
    over = runner.invoke(
        app, ["record-supplier-payment", "--supplier-name", "Nile", "--amount", "11", *common]
    )
    ok = runner.invoke(
        app, ["record-supplier-payment", "--supplier-name", "Nile", "--amount", "4", *common]
    )

    assert over.exit_code == 1
    assert "Error:" in over.output
    assert ok.exit_code == 0, ok.output
    assert Decimal(ok.output.strip().split("\t")[-1]) == Decimal("6")


def test_database_commands_require_a_url():
    result = runner.invoke(app, ["customers-report"])

    assert result.exit_code == 1
    assert "DATABASE_URL is not set" in result.output


def test_record_sale_then_add_customer_payment_then_delete(tmp_path: Path):
    url = bootstrap_sqlite_db(tmp_path / "sales.sqlite")
    common = ["--database-url", url, "--tenant", TENANT]

    sold = runner.invoke(
        app,
        ["record-sale", "--invoice-number", "INV-1", "--item", "Tea:2:50",
         "--item", "Rice 5:kg:1:10", "--paid", "30", "--invoice-type", "credit",
         "--customer-name", "Ahmed", "--customer-phone", "0100", *common],
    )
    assert sold.exit_code == 0, sold.output
    number, customer_id, total, paid, balance = sold.output.strip().split("\t")
    assert (number, Decimal(total), Decimal(paid), Decimal(balance)) == (
        "INV-1", Decimal("110"), Decimal("30"), Decimal("80")
    )

    paid_on_account = runner.invoke(
        app, ["add-customer-payment", "--customer-id", customer_id, "--amount", "50", *common]
    )
    assert paid_on_account.exit_code == 0, paid_on_account.output
    invoice, amount, previous, current = paid_on_account.output.strip().split("\t")
    assert invoice == "1"
    assert (Decimal(previous), Decimal(current)) == (Decimal("80"), Decimal("30"))

    statement = runner.invoke(
        app, ["customer-statement", "--customer-id", customer_id, "--json", "--items", *common]
    )
    assert statement.exit_code == 0, statement.output
    payload = json.loads(statement.output)
    assert payload["difference"] == "0.00"
    assert [i["product_name"] for i in payload["items"]] == ["Tea", "Rice 5:kg"]

    with session_scope(database_url=url) as s:
        sales = repository.fetch_sales(s, tenant_id=TENANT, customer_id=customer_id)
    payment_id = next(x.id for x in sales if x.is_payment)
    deleted = runner.invoke(app, ["delete-sale", "--sale-id", payment_id, *common])
    assert deleted.exit_code == 0, deleted.output

    report = runner.invoke(app, ["customers-report", "--json", *common])
    (row,) = json.loads(report.output)
    assert Decimal(row["current_balance"]) == Decimal("80")


@pytest.mark.parametrize(
    "args",
    [
        ["--item", "Tea:two:50"],
        ["--item", "Tea:2"],
        ["--item", "Tea:0:5"],
        ["--item", "Tea:1:5", "--paid=-1"],
    ],
)
def test_record_sale_rejects_bad_input(tmp_path: Path, args):
    url = bootstrap_sqlite_db(tmp_path / "bad.sqlite")
    with session_scope(database_url=url) as s:
        add_customer(s, "c1", name="Ahmed")

    result = runner.invoke(
        app,
        ["record-sale", "--invoice-number", "1", "--customer-id", "c1", *args,
         "--database-url", url, "--tenant", TENANT],
    )

    assert result.exit_code == 1
    assert "Error:" in result.output


def test_add_customer_payment_and_delete_report_errors(tmp_path: Path):
    url = bootstrap_sqlite_db(tmp_path / "err.sqlite")
    with session_scope(database_url=url) as s:
        add_customer(s, "c1", name="Ahmed", total_balance=10)
    common = ["--database-url", url, "--tenant", TENANT]

    too_much = runner.invoke(
        app, ["add-customer-payment", "--customer-id", "c1", "--amount", "11", *common]
    )
    missing = runner.invoke(app, ["delete-sale", "--sale-id", "nope", *common])

    assert too_much.exit_code == 1
    assert "exceeds" in too_much.output
    assert missing.exit_code == 1
    assert "not found" in missing.output


def test_supplier_statement_matches_padded_name_from_export(tmp_path: Path):
    doc = {
        "purchases": [
            {"id": "p1", "supplierName": "Acme ", "createdAt": "2024-01-01", "quantity": 1.5,
             "purchasePrice": 15},
        ],
    }
    path = tmp_path / "padded.json"
    path.write_text(json.dumps(doc), encoding="utf-8")

    result = runner.invoke(
        app, ["supplier-statement", "--supplier-name", "Acme ", "--export-path", str(path), "--json"]
    )

    assert result.exit_code == 0, result.output
    assert json.loads(result.output)["currentBalance"] == "15"

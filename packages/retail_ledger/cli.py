# ruff: noqa: I001
"""CLI for the ``retail_ledger`` package.

Command handlers (``cmd_*``) do the work and return a process exit code; the
Typer commands at the bottom parse options and delegate to them. Environment
variables (``DATABASE_URL``, ``RETAIL_LEDGER_TENANT``,
``RETAIL_LEDGER_LOG_LEVEL``) are loaded from a local ``.env`` with
``python-dotenv`` by the root callback.

Read commands take their data either from the database (default) or from a
JSON export of the document store (``--export-path``). Write commands always
go to the database.
"""

from __future__ import annotations

import dataclasses
import json
import sys
from decimal import Decimal
from pathlib import Path
from typing import Any

import typer
from dotenv import load_dotenv
from rich.console import Console
from typer.models import OptionInfo

from .logging_setup import configure_logging
from .models import (
    CustomerRecord,
    DebitSource,
    PurchaseRecord,
    ReceiptRecord,
    SaleRecord,
    SupplierPaymentRecord,
    SupplierRecord,
)

console = Console()

DEFAULT_TENANT = "default"


# ---- Data loading -------------------------------------------------------------


def _customer_inputs(
    customer_id: str,
    *,
    export_path: Path | None,
    database_url: str | None,
    tenant_id: str,
) -> tuple[CustomerRecord | None, list[SaleRecord], list[ReceiptRecord]]:
    if export_path is not None:
        from .ingest import load_export

        export = load_export(export_path)
        return export.customer(customer_id), list(export.sales), list(export.receipts)

    from db.client import session_scope
    from . import repository

    with session_scope(database_url=database_url) as session:
        return (
            repository.get_customer(session, tenant_id=tenant_id, customer_id=customer_id),
            repository.fetch_sales(session, tenant_id=tenant_id, customer_id=customer_id),
            repository.fetch_customer_receipts(
                session, tenant_id=tenant_id, customer_id=customer_id
            ),
        )


def _supplier_inputs(
    supplier_name: str,
    *,
    export_path: Path | None,
    database_url: str | None,
    tenant_id: str,
) -> tuple[SupplierRecord | None, list[PurchaseRecord], list[SupplierPaymentRecord]]:
    if export_path is not None:
        from .ingest import load_export

        export = load_export(export_path)
        return (
            export.supplier(supplier_name),
            list(export.purchases),
            list(export.supplier_payments),
        )

    from db.client import session_scope
    from . import repository

    with session_scope(database_url=database_url) as session:
        return (
            repository.get_supplier_by_name(
                session, tenant_id=tenant_id, supplier_name=supplier_name
            ),
            repository.fetch_purchases(session, tenant_id=tenant_id, supplier_name=supplier_name),
            repository.fetch_supplier_payments(
                session, tenant_id=tenant_id, supplier_name=supplier_name
            ),
        )


def _json_default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if hasattr(value, "isoformat"):
        return value.isoformat()
    raise TypeError(f"not JSON serializable: {type(value).__name__}")


def _emit_json(payload: Any) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2, default=_json_default))


# ---- Command handlers -----------------------------------------------------------


def cmd_customer_statement(
    customer_id: str,
    *,
    export_path: Path | None = None,
    database_url: str | None = None,
    tenant_id: str = DEFAULT_TENANT,
    debit_source: DebitSource = DebitSource.STORED_BALANCE,
    show_items: bool = False,
    as_json: bool = False,
) -> int:
    """Print one customer's statement, reconciled against the stored balance."""

    from .statements import build_customer_statement, customer_items, reconcile

    try:
        customer, sales, receipts = _customer_inputs(
            customer_id, export_path=export_path, database_url=database_url, tenant_id=tenant_id
        )
    except Exception as e:
        print(f"Error: failed to load customer data: {e}", file=sys.stderr)
        return 1

    has_activity = any(s.customer_id == customer_id for s in sales) or any(
        r.customer_id == customer_id for r in receipts
    )
    if customer is None and not has_activity:
        print(f"Error: customer not found: {customer_id}", file=sys.stderr)
        return 1

    try:
        statement = build_customer_statement(
            sales, receipts, customer_id, debit_source=debit_source
        )
    except Exception as e:
        print(f"Error: failed to build statement: {e}", file=sys.stderr)
        return 1

    # Exports may omit the customer document; there is nothing to reconcile against then.
    reconciliation = reconcile(statement, customer.total_balance) if customer else None
    items = customer_items(sales, customer_id) if show_items else []

    if as_json:
        payload = statement.as_dict()
        payload["name"] = customer.name if customer else None
        if reconciliation is not None:
            payload["storedBalance"] = str(reconciliation.stored_balance)
            payload["difference"] = str(reconciliation.difference)
        if show_items:
            payload["items"] = [dataclasses.asdict(it) for it in items]
        _emit_json(payload)
        return 0

    from .render import items_table, render_statement

    console.print(
        render_statement(
            statement,
            title=f"Customer statement: {customer.name if customer else customer_id}",
            reconciliation=reconciliation,
        )
    )
    if show_items:
        console.print(items_table(items))
    return 0


def cmd_supplier_statement(
    supplier_name: str,
    *,
    export_path: Path | None = None,
    database_url: str | None = None,
    tenant_id: str = DEFAULT_TENANT,
    as_json: bool = False,
) -> int:
    from .statements import build_supplier_statement

    try:
        supplier, purchases, payments = _supplier_inputs(
            supplier_name, export_path=export_path, database_url=database_url, tenant_id=tenant_id
        )
    except Exception as e:
        print(f"Error: failed to load supplier data: {e}", file=sys.stderr)
        return 1

    has_activity = any(p.supplier_name == supplier_name for p in purchases) or any(
        p.supplier_name == supplier_name for p in payments
    )
    if supplier is None and not has_activity:
        print(f"Error: supplier not found: {supplier_name}", file=sys.stderr)
        return 1

    statement = build_supplier_statement(purchases, payments, supplier_name)

    if as_json:
        _emit_json(statement.as_dict())
        return 0

    from .render import render_statement

    console.print(render_statement(statement, title=f"Supplier statement: {supplier_name}"))
    return 0


def cmd_customers_report(
    *,
    export_path: Path | None = None,
    database_url: str | None = None,
    tenant_id: str = DEFAULT_TENANT,
    as_json: bool = False,
) -> int:
    from .summaries import customer_summaries

    try:
        if export_path is not None:
            from .ingest import load_export

            export = load_export(export_path)
            customers, sales = list(export.customers), list(export.sales)
        else:
            from db.client import session_scope
            from . import repository

            with session_scope(database_url=database_url) as session:
                customers = repository.fetch_customers(session, tenant_id=tenant_id)
                sales = repository.fetch_sales(session, tenant_id=tenant_id)
    except Exception as e:
        print(f"Error: failed to load customers: {e}", file=sys.stderr)
        return 1

    summaries = customer_summaries(customers, sales)
    if as_json:
        _emit_json([dataclasses.asdict(s) for s in summaries])
        return 0

    from .render import customers_table

    console.print(customers_table(summaries))
    return 0


def cmd_suppliers_report(
    *,
    export_path: Path | None = None,
    database_url: str | None = None,
    tenant_id: str = DEFAULT_TENANT,
    as_json: bool = False,
) -> int:
    from .summaries import supplier_summaries

    try:
        if export_path is not None:
            from .ingest import load_export

            export = load_export(export_path)
            purchases, suppliers = list(export.purchases), list(export.suppliers)
        else:
            from db.client import session_scope
            from . import repository

            with session_scope(database_url=database_url) as session:
                purchases = repository.fetch_purchases(session, tenant_id=tenant_id)
                suppliers = repository.fetch_suppliers(session, tenant_id=tenant_id)
    except Exception as e:
        print(f"Error: failed to load suppliers: {e}", file=sys.stderr)
        return 1

    summaries = supplier_summaries(purchases, suppliers)
    if as_json:
        _emit_json([dataclasses.asdict(s) for s in summaries])
        return 0

    from .render import suppliers_table

    console.print(suppliers_table(summaries))
    return 0


def _parse_item(raw: str) -> dict[str, Any]:
    """``NAME:QUANTITY:UNIT_PRICE`` -> an invoice line; the name may contain colons."""

    parts = raw.rsplit(":", 2)
    if len(parts) != 3 or not parts[0].strip():
        raise ValueError(f"invalid item {raw!r}; expected NAME:QUANTITY:UNIT_PRICE")
    name, qty_text, price_text = parts
    try:
        quantity = Decimal(qty_text.strip())
        unit_price = Decimal(price_text.strip())
    except ArithmeticError as exc:
        raise ValueError(f"invalid item {raw!r}; quantity and price must be numbers") from exc
    if not quantity.is_finite() or not unit_price.is_finite() or quantity <= 0 or unit_price < 0:
        raise ValueError(f"invalid item {raw!r}; quantity must be > 0 and price >= 0")
    return {
        "productName": name.strip(),
        "quantity": quantity,
        "unitPrice": unit_price,
        "totalPrice": quantity * unit_price,
    }


def cmd_record_sale(
    invoice_number: str,
    items: list[str],
    *,
    paid: str = "0",
    invoice_type: str = "cash",
    customer_id: str | None = None,
    customer_name: str = "",
    customer_phone: str = "",
    database_url: str | None = None,
    tenant_id: str = DEFAULT_TENANT,
) -> int:
    from db.client import session_scope
    from .postings import record_sale

    try:
        lines = [_parse_item(raw) for raw in items]
        with session_scope(database_url=database_url) as session:
            sale = record_sale(
                session,
                tenant_id=tenant_id,
                invoice_number=invoice_number,
                items=lines,
                paid_amount=paid,
                invoice_type=invoice_type,
                customer_id=customer_id,
                customer_name=customer_name,
                customer_phone=customer_phone,
            )
    except (ValueError, LookupError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"Error: failed to record sale: {e}", file=sys.stderr)
        return 1

    print(
        f"{sale.invoice_number}\t{sale.customer_id}\t{sale.total_amount}\t"
        f"{sale.paid_amount}\t{sale.current_balance}"
    )
    return 0


def cmd_delete_sale(
    sale_id: str,
    *,
    database_url: str | None = None,
    tenant_id: str = DEFAULT_TENANT,
) -> int:
    from db.client import session_scope
    from .postings import delete_sale

    try:
        with session_scope(database_url=database_url) as session:
            sale = delete_sale(session, tenant_id=tenant_id, sale_id=sale_id)
    except LookupError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"Error: failed to delete sale: {e}", file=sys.stderr)
        return 1

    print(f"{sale.id}\t{sale.invoice_number}\t{sale.customer_id}")
    return 0


def cmd_add_customer_payment(
    customer_id: str,
    amount: str,
    *,
    database_url: str | None = None,
    tenant_id: str = DEFAULT_TENANT,
) -> int:
    from db.client import session_scope
    from .postings import add_customer_payment

    try:
        with session_scope(database_url=database_url) as session:
            sale = add_customer_payment(
                session, tenant_id=tenant_id, customer_id=customer_id, amount=amount
            )
    except (ValueError, LookupError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"Error: failed to add customer payment: {e}", file=sys.stderr)
        return 1

    print(
        f"{sale.invoice_number}\t{sale.paid_amount}\t"
        f"{sale.previous_balance}\t{sale.current_balance}"
    )
    return 0


def cmd_record_receipt(
    customer_id: str,
    amount: str,
    *,
    notes: str | None = None,
    database_url: str | None = None,
    tenant_id: str = DEFAULT_TENANT,
) -> int:
    from db.client import session_scope
    from .postings import record_receipt

    try:
        with session_scope(database_url=database_url) as session:
            receipt = record_receipt(
                session,
                tenant_id=tenant_id,
                customer_id=customer_id,
                paid_amount=amount,
                notes=notes,
            )
    except (ValueError, LookupError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"Error: failed to record receipt: {e}", file=sys.stderr)
        return 1

    print(
        f"{receipt.receipt_number}\t{receipt.paid_amount}\t"
        f"{receipt.previous_balance}\t{receipt.current_balance}"
    )
    return 0


def cmd_record_supplier_payment(
    supplier_name: str,
    amount: str,
    *,
    database_url: str | None = None,
    tenant_id: str = DEFAULT_TENANT,
) -> int:
    from db.client import session_scope
    from .postings import record_supplier_payment

    try:
        with session_scope(database_url=database_url) as session:
            payment = record_supplier_payment(
                session, tenant_id=tenant_id, supplier_name=supplier_name, amount=amount
            )
    except (ValueError, LookupError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"Error: failed to record supplier payment: {e}", file=sys.stderr)
        return 1

    print(f"{payment.supplier_name}\t{payment.payment_amount}\t{payment.current_balance}")
    return 0


# ---- Typer-based console interface -------------------------------------------

# Module-level option objects to satisfy ruff B008 (no calls in parameter
# defaults).
EXPORT_PATH_OPTION: OptionInfo = typer.Option(
    None,
    "--export-path",
    help="Read from a JSON export of the document store instead of the database.",
    dir_okay=False,
    file_okay=True,
    exists=False,  # the handler reports missing files
)
DATABASE_URL_OPTION: OptionInfo = typer.Option(
    None, "--database-url", help="Override DATABASE_URL (falls back to env var)."
)
TENANT_OPTION: OptionInfo = typer.Option(
    DEFAULT_TENANT,
    "--tenant",
    envvar="RETAIL_LEDGER_TENANT",
    help="Tenant whose records are read or written.",
)
JSON_OPTION: OptionInfo = typer.Option(False, "--json", help="Print JSON instead of tables.")


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Customer and supplier account statements with running balances. "
        "Loads DATABASE_URL and RETAIL_LEDGER_* settings from a local .env."
    ),
)


def _exit(code: int) -> None:
    if code:
        raise typer.Exit(code)


@app.command("customer-statement")
def customer_statement_cmd(
    customer_id: str = typer.Option(..., "--customer-id", help="Customer document id."),
    *,
    debit_source: DebitSource = typer.Option(
        DebitSource.STORED_BALANCE,
        "--debit-source",
        case_sensitive=False,
        help="Invoice debit: the stored currentBalance or totalAmount - paidAmount.",
    ),
    items: bool = typer.Option(False, "--items", help="Also list purchased items."),
    export_path: Path | None = EXPORT_PATH_OPTION,
    database_url: str | None = DATABASE_URL_OPTION,
    tenant: str = TENANT_OPTION,
    as_json: bool = JSON_OPTION,
) -> None:
    """Show a customer's statement with a cumulative running balance."""

    _exit(
        cmd_customer_statement(
            customer_id,
            export_path=export_path,
            database_url=database_url,
            tenant_id=tenant,
            debit_source=debit_source,
            show_items=items,
            as_json=as_json,
        )
    )


@app.command("supplier-statement")
def supplier_statement_cmd(
    supplier_name: str = typer.Option(..., "--supplier-name", help="Supplier name."),
    *,
    export_path: Path | None = EXPORT_PATH_OPTION,
    database_url: str | None = DATABASE_URL_OPTION,
    tenant: str = TENANT_OPTION,
    as_json: bool = JSON_OPTION,
) -> None:
    """Show a supplier's statement of purchases and payments."""

    _exit(
        cmd_supplier_statement(
            supplier_name,
            export_path=export_path,
            database_url=database_url,
            tenant_id=tenant,
            as_json=as_json,
        )
    )


@app.command("customers-report")
def customers_report_cmd(
    *,
    export_path: Path | None = EXPORT_PATH_OPTION,
    database_url: str | None = DATABASE_URL_OPTION,
    tenant: str = TENANT_OPTION,
    as_json: bool = JSON_OPTION,
) -> None:
    """List customers with invoice counts, sales totals and balances."""

    _exit(
        cmd_customers_report(
            export_path=export_path, database_url=database_url, tenant_id=tenant, as_json=as_json
        )
    )


@app.command("suppliers-report")
def suppliers_report_cmd(
    *,
    export_path: Path | None = EXPORT_PATH_OPTION,
    database_url: str | None = DATABASE_URL_OPTION,
    tenant: str = TENANT_OPTION,
    as_json: bool = JSON_OPTION,
) -> None:
    """List suppliers with purchase counts, quantities and totals."""

    _exit(
        cmd_suppliers_report(
            export_path=export_path, database_url=database_url, tenant_id=tenant, as_json=as_json
        )
    )


@app.command("record-sale")
def record_sale_cmd(
    invoice_number: str = typer.Option(..., "--invoice-number", help="Invoice number."),
    item: list[str] = typer.Option(
        ..., "--item", help="Invoice line as NAME:QUANTITY:UNIT_PRICE (repeatable)."
    ),
    *,
    paid: str = typer.Option("0", "--paid", help="Amount paid now (>= 0)."),
    invoice_type: str = typer.Option("cash", "--invoice-type", help="cash or credit."),
    customer_id: str | None = typer.Option(
        None, "--customer-id", help="Existing customer id (else matched by name and phone)."
    ),
    customer_name: str = typer.Option("", "--customer-name", help="Customer name."),
    customer_phone: str = typer.Option("", "--customer-phone", help="Customer phone."),
    database_url: str | None = DATABASE_URL_OPTION,
    tenant: str = TENANT_OPTION,
) -> None:
    """Record a cash or credit sale and carry the customer's balance forward."""

    _exit(
        cmd_record_sale(
            invoice_number,
            item,
            paid=paid,
            invoice_type=invoice_type,
            customer_id=customer_id,
            customer_name=customer_name,
            customer_phone=customer_phone,
            database_url=database_url,
            tenant_id=tenant,
        )
    )


@app.command("delete-sale")
def delete_sale_cmd(
    sale_id: str = typer.Option(..., "--sale-id", help="Sale document id."),
    *,
    database_url: str | None = DATABASE_URL_OPTION,
    tenant: str = TENANT_OPTION,
) -> None:
    """Delete a sale and reverse its effect on the customer's balance."""

    _exit(cmd_delete_sale(sale_id, database_url=database_url, tenant_id=tenant))


@app.command("add-customer-payment")
def add_customer_payment_cmd(
    customer_id: str = typer.Option(..., "--customer-id", help="Customer document id."),
    amount: str = typer.Option(..., "--amount", help="Amount paid (> 0, at most the balance)."),
    *,
    database_url: str | None = DATABASE_URL_OPTION,
    tenant: str = TENANT_OPTION,
) -> None:
    """Post a payment on a customer's account as a payment invoice."""

    _exit(
        cmd_add_customer_payment(
            customer_id, amount, database_url=database_url, tenant_id=tenant
        )
    )


@app.command("record-receipt")
def record_receipt_cmd(
    customer_id: str = typer.Option(..., "--customer-id", help="Customer document id."),
    amount: str = typer.Option(..., "--amount", help="Amount received (> 0)."),
    *,
    notes: str | None = typer.Option(None, "--notes", help="Free-text note on the receipt."),
    database_url: str | None = DATABASE_URL_OPTION,
    tenant: str = TENANT_OPTION,
) -> None:
    """Record cash received from a customer and update their balance."""

    _exit(
        cmd_record_receipt(
            customer_id, amount, notes=notes, database_url=database_url, tenant_id=tenant
        )
    )


@app.command("record-supplier-payment")
def record_supplier_payment_cmd(
    supplier_name: str = typer.Option(..., "--supplier-name", help="Supplier name."),
    amount: str = typer.Option(..., "--amount", help="Amount paid (> 0, at most the balance due)."),
    *,
    database_url: str | None = DATABASE_URL_OPTION,
    tenant: str = TENANT_OPTION,
) -> None:
    """Record a payment to a supplier and update the supplier's balance."""

    _exit(
        cmd_record_supplier_payment(
            supplier_name, amount, database_url=database_url, tenant_id=tenant
        )
    )


@app.callback(invoke_without_command=True)
def _root(
    ctx: typer.Context,
    *,
    log_level: str | None = typer.Option(
        None, "--log-level", help="Log level (falls back to RETAIL_LEDGER_LOG_LEVEL, then INFO)."
    ),
) -> None:
    """Root command.

    Loads ``.env`` from the current working directory (without overriding any
    already-set environment variables) and configures package logging.
    """

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)

    configure_logging(log_level)

    if ctx.invoked_subcommand is None:
        typer.echo("No subcommand provided. Use --help to see available commands.")
        raise typer.Exit(1)


if __name__ == "__main__":  # pragma: no cover
    # Running as a module: `python -m retail_ledger.cli`
    app()

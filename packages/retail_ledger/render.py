"""Terminal rendering for statements and account reports (``rich``).

Renderers build ``rich`` renderables and never print; the CLI decides where
they go. Amounts are shown with two decimals and the currency label used on
the printed statements.
"""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal

from rich.console import Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .models import (
    BalanceStatus,
    CustomerSummary,
    Reconciliation,
    Statement,
    StatementItem,
    SupplierSummary,
    TransactionKind,
)
from .statements import CURRENCY_LABEL

_STATUS_STYLE = {
    BalanceStatus.DEBIT: "red",
    BalanceStatus.CREDIT: "green",
    BalanceStatus.SETTLED: "dim",
}


def _money(value: Decimal) -> str:
    return f"{value:,.2f}"


def _qty(value: Decimal) -> str:
    return format(value.normalize(), "f")


def _blank_zero(value: Decimal) -> str:
    return _money(value) if value else "-"


def statement_table(statement: Statement, *, title: str | None = None) -> Table:
    table = Table(
        title=title or f"Statement: {statement.account_id}",
        show_footer=True,
        header_style="bold cyan",
    )
    table.add_column("Date", footer="Total")
    table.add_column("Ref")
    table.add_column("Description")
    table.add_column("Debit", justify="right", footer=_money(statement.total_debit))
    table.add_column("Credit", justify="right", footer=_money(statement.total_credit))
    table.add_column("Balance", justify="right", footer=_money(statement.current_balance))

    for row in statement.rows:
        style = None if row.kind is TransactionKind.INVOICE else "green"
        table.add_row(
            row.date.date().isoformat(),
            row.reference or "",
            row.description,
            _blank_zero(row.debit),
            _blank_zero(row.credit),
            _money(row.balance),
            style=style,
        )
    return table


def render_statement(
    statement: Statement,
    *,
    title: str | None = None,
    reconciliation: Reconciliation | None = None,
) -> Group:
    """Statement table plus the current-balance line and any warnings."""

    parts: list[Table | Panel | Text] = [statement_table(statement, title=title)]
    balance = Text(f"Current balance: {_money(statement.current_balance)} {CURRENCY_LABEL}")
    balance.stylize("bold")
    parts.append(balance)

    if reconciliation is not None and not reconciliation.is_balanced:
        parts.append(
            Text(
                f"Stored balance {_money(reconciliation.stored_balance)} differs by "
                f"{_money(reconciliation.difference)}",
                style="yellow",
            )
        )
    if statement.warnings:
        parts.append(
            Panel("\n".join(statement.warnings), title="Warnings", border_style="yellow")
        )
    return Group(*parts)


def items_table(items: Sequence[StatementItem]) -> Table:
    table = Table(title="Items", header_style="bold cyan")
    table.add_column("Invoice")
    table.add_column("Date")
    table.add_column("Product")
    table.add_column("Qty", justify="right")
    table.add_column("Unit price", justify="right")
    table.add_column("Total", justify="right")
    for it in items:
        table.add_row(
            it.invoice_number,
            it.date.date().isoformat(),
            it.product_name,
            _qty(it.quantity),
            _money(it.unit_price),
            _money(it.total_price),
        )
    return table


def customers_table(summaries: Sequence[CustomerSummary]) -> Table:
    table = Table(title="Customers", header_style="bold cyan")
    table.add_column("ID")
    table.add_column("Name")
    table.add_column("Phone")
    table.add_column("Invoices", justify="right")
    table.add_column("Total sales", justify="right")
    table.add_column("Balance", justify="right")
    table.add_column("Status")
    for s in summaries:
        table.add_row(
            s.customer_id,
            s.name,
            s.phone,
            str(s.sale_count),
            _money(s.total_amount),
            _money(s.current_balance),
            Text(str(s.balance_status), style=_STATUS_STYLE[s.balance_status]),
        )
    return table


def suppliers_table(summaries: Sequence[SupplierSummary]) -> Table:
    table = Table(title="Suppliers", header_style="bold cyan")
    table.add_column("Supplier")
    table.add_column("Phone")
    table.add_column("Purchases", justify="right")
    table.add_column("Quantity", justify="right")
    table.add_column("Total", justify="right")
    for s in summaries:
        table.add_row(
            s.supplier_name,
            s.phone,
            str(s.purchase_count),
            _qty(s.total_quantity),
            _money(s.total_amount),
        )
    return table


__all__ = [
    "statement_table",
    "render_statement",
    "items_table",
    "customers_table",
    "suppliers_table",
]

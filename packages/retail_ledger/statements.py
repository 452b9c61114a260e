"""Account statements: one account's transactions as a chronological ledger.

Customer statements interleave sales (invoices and payment-type invoices) with
cash receipts; supplier statements interleave purchases with supplier
payments. Each statement is a single pass over the merged, date-ordered rows
carrying ``running += debit - credit`` forward, plus debit/credit totals.

Balance column policy
---------------------
- Customer: every row shows the cumulative running balance.
- Supplier: purchase rows show their own amount; payment rows show the
  cumulative balance after the payment. The column therefore mixes two
  quantities; both are always available on the row as ``own_amount`` and
  ``cumulative_balance``.

Ordering
--------
Rows sort ascending by ``date``. Equal dates keep merge order: sales (or
purchases) in input order first, then receipts (or payments) in input order.

Inputs may be model instances or raw mappings (camelCase store documents or
snake_case). Records are first selected by plain equality of their account
key (``customerId`` or ``supplierName``) with the requested account; only the
selected mappings are validated, so a malformed record raises
``pydantic.ValidationError`` before reaching the arithmetic while other
accounts' records are never inspected.
"""

from __future__ import annotations

import datetime as dt
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, TypeVar

from pydantic import BaseModel
from pydantic.alias_generators import to_camel

from .logging_setup import get_logger
from .models import (
    ZERO,
    AccountType,
    DebitSource,
    PurchaseRecord,
    ReceiptRecord,
    Reconciliation,
    SaleRecord,
    Statement,
    StatementItem,
    StatementRow,
    SupplierPaymentRecord,
    TransactionKind,
    coerce_records,
)

_logger = get_logger("retail_ledger.statements")

CURRENCY_LABEL = "ج.م"
CASH_PAYMENT_LABEL = "دفعة نقدية"
RECEIPT_LABEL = "إيصال استلام نقدي"
SUPPLIER_PAYMENT_LABEL = "دفعة مستحقات"

_CENT = Decimal("0.01")


@dataclass(frozen=True, slots=True)
class _Entry:
    id: str
    date: dt.datetime
    kind: TransactionKind
    description: str
    debit: Decimal
    credit: Decimal
    reference: str | None


M = TypeVar("M", bound=BaseModel)


def _for_account(
    records: Iterable[M | Mapping[str, Any]], model: type[M], field: str, key: str
) -> list[M]:
    alias = to_camel(field)
    mine: list[M | Mapping[str, Any]] = []
    for r in records:
        if isinstance(r, model):
            value = getattr(r, field)
        elif isinstance(r, Mapping):
            value = r.get(alias, r.get(field))
        else:
            # not a document at all; let validation report it
            mine.append(r)
            continue
        if value is not None and str(value) == key:
            mine.append(r)
    return coerce_records(mine, model)


def _scan(
    entries: list[_Entry], *, account_type: AccountType
) -> tuple[tuple[StatementRow, ...], Decimal, Decimal]:
    """Order ``entries`` and compute per-row balances and totals."""

    ordered = [e for _, e in sorted(enumerate(entries), key=lambda p: (p[1].date, p[0]))]

    rows: list[StatementRow] = []
    running = ZERO
    total_debit = ZERO
    total_credit = ZERO
    for e in ordered:
        running += e.debit - e.credit
        total_debit += e.debit
        total_credit += e.credit
        own_amount = e.debit if e.kind is TransactionKind.INVOICE else e.credit
        if account_type is AccountType.SUPPLIER and e.kind is TransactionKind.INVOICE:
            shown = e.debit
        else:
            shown = running
        rows.append(
            StatementRow(
                id=e.id,
                date=e.date,
                kind=e.kind,
                description=e.description,
                debit=e.debit,
                credit=e.credit,
                own_amount=own_amount,
                cumulative_balance=running,
                balance=shown,
                reference=e.reference,
            )
        )
    return tuple(rows), total_debit, total_credit


def _mismatch(
    warnings: list[str], sale: SaleRecord, field: str, stored: Decimal, expected: Decimal
) -> None:
    warnings.append(
        f"sale {sale.id} ({sale.invoice_number or '-'}): stored {field} {stored} != expected {expected}"
    )
    _logger.warning(
        "customer_statement:stored_balance_mismatch sale_id=%s field=%s stored=%s expected=%s",
        sale.id,
        field,
        stored,
        expected,
    )


def _invoice_debit(sale: SaleRecord, debit_source: DebitSource, warnings: list[str]) -> Decimal:
    if debit_source is DebitSource.STORED_BALANCE:
        assert sale.current_balance is not None  # enforced by SaleRecord
        return sale.current_balance

    # Overpayment beyond the invoice total settles earlier debt, not this invoice.
    deferred = sale.total_amount - min(sale.paid_amount, sale.total_amount)
    if sale.deferred_amount is not None and sale.deferred_amount != deferred:
        _mismatch(warnings, sale, "deferredAmount", sale.deferred_amount, deferred)
    if sale.previous_balance is not None and sale.current_balance is not None:
        expected = max(ZERO, sale.previous_balance + sale.total_amount - sale.paid_amount)
        if expected != sale.current_balance:
            _mismatch(warnings, sale, "currentBalance", sale.current_balance, expected)
    return deferred


def build_customer_statement(
    sales: Iterable[SaleRecord | Mapping[str, Any]],
    receipts: Iterable[ReceiptRecord | Mapping[str, Any]],
    customer_id: str,
    *,
    debit_source: DebitSource = DebitSource.STORED_BALANCE,
) -> Statement:
    """Build the customer's statement with a cumulative running balance.

    Row mapping:

    - payment-type sale: ``debit=0``, ``credit=abs(totalAmount)``;
    - other sale: ``debit=currentBalance`` as stored on the sale (or
      ``totalAmount - min(paidAmount, totalAmount)`` with
      ``DebitSource.DEFERRED_AMOUNT``),
      ``credit=0``;
    - receipt: ``debit=0``, ``credit=paidAmount``.

    Each row's ``balance`` is the running ``debit - credit`` total including
    that row; it may go negative. Empty inputs give an empty statement with
    zero totals.
    """

    sale_records = _for_account(sales, SaleRecord, "customer_id", customer_id)
    receipt_records = _for_account(receipts, ReceiptRecord, "customer_id", customer_id)

    warnings: list[str] = []
    entries: list[_Entry] = []
    for sale in sale_records:
        if sale.is_payment:
            entries.append(
                _Entry(
                    id=sale.id,
                    date=sale.date,
                    kind=TransactionKind.ACCOUNT_PAYMENT,
                    description=CASH_PAYMENT_LABEL,
                    debit=ZERO,
                    credit=abs(sale.total_amount),
                    reference=sale.invoice_number or None,
                )
            )
        else:
            entries.append(
                _Entry(
                    id=sale.id,
                    date=sale.date,
                    kind=TransactionKind.INVOICE,
                    description=f"فاتورة بيع - إجمالي: {sale.total_amount:.2f} {CURRENCY_LABEL}",
                    debit=_invoice_debit(sale, debit_source, warnings),
                    credit=ZERO,
                    reference=sale.invoice_number or None,
                )
            )
    for receipt in receipt_records:
        entries.append(
            _Entry(
                id=receipt.id,
                date=receipt.date,
                kind=TransactionKind.PAYMENT_RECEIVED,
                description=RECEIPT_LABEL,
                debit=ZERO,
                credit=receipt.paid_amount,
                reference=receipt.receipt_number or None,
            )
        )

    rows, total_debit, total_credit = _scan(entries, account_type=AccountType.CUSTOMER)
    _logger.debug(
        "customer_statement:built customer_id=%s rows=%d total_debit=%s total_credit=%s",
        customer_id,
        len(rows),
        total_debit,
        total_credit,
    )
    return Statement(
        account_id=customer_id,
        account_type=AccountType.CUSTOMER,
        rows=rows,
        total_debit=total_debit,
        total_credit=total_credit,
        warnings=tuple(warnings),
    )


def _purchase_description(purchase: PurchaseRecord) -> str:
    if not purchase.product_name:
        return "شراء"
    quantity = format(purchase.quantity.normalize(), "f")
    return f"شراء {purchase.product_name} - كمية {quantity}"


def build_supplier_statement(
    purchases: Iterable[PurchaseRecord | Mapping[str, Any]],
    payments: Iterable[SupplierPaymentRecord | Mapping[str, Any]],
    supplier_name: str,
) -> Statement:
    """Build the supplier's statement.

    Purchases are debits (``purchasePrice`` is already the total); payments
    are credits. The running balance is carried across all rows, but the
    displayed ``balance`` of a purchase row is that purchase's own debit while
    a payment row shows the running balance after the payment. The overall
    balance is ``Statement.current_balance``.
    """

    purchase_records = _for_account(purchases, PurchaseRecord, "supplier_name", supplier_name)
    payment_records = _for_account(payments, SupplierPaymentRecord, "supplier_name", supplier_name)

    entries: list[_Entry] = [
        _Entry(
            id=p.id,
            date=p.date,
            kind=TransactionKind.INVOICE,
            description=_purchase_description(p),
            debit=p.purchase_price,
            credit=ZERO,
            reference=None,
        )
        for p in purchase_records
    ]
    entries.extend(
        _Entry(
            id=p.id,
            date=p.date,
            kind=TransactionKind.ACCOUNT_PAYMENT,
            description=SUPPLIER_PAYMENT_LABEL,
            debit=ZERO,
            credit=p.payment_amount,
            reference=None,
        )
        for p in payment_records
    )

    rows, total_debit, total_credit = _scan(entries, account_type=AccountType.SUPPLIER)
    _logger.debug(
        "supplier_statement:built supplier=%s rows=%d total_debit=%s total_credit=%s",
        supplier_name,
        len(rows),
        total_debit,
        total_credit,
    )
    return Statement(
        account_id=supplier_name,
        account_type=AccountType.SUPPLIER,
        rows=rows,
        total_debit=total_debit,
        total_credit=total_credit,
    )


def customer_items(
    sales: Iterable[SaleRecord | Mapping[str, Any]], customer_id: str
) -> list[StatementItem]:
    """Return every product line on the customer's non-payment invoices, oldest first."""

    invoices = [
        s for s in _for_account(sales, SaleRecord, "customer_id", customer_id) if not s.is_payment
    ]
    invoices = [s for _, s in sorted(enumerate(invoices), key=lambda p: (p[1].date, p[0]))]
    return [
        StatementItem(
            invoice_number=sale.invoice_number,
            date=sale.date,
            product_name=item.product_name,
            quantity=item.quantity,
            unit_price=item.unit_price,
            total_price=item.total_price,
        )
        for sale in invoices
        for item in sale.items
    ]


def reconcile(statement: Statement, stored_balance: Decimal | int | float | str) -> Reconciliation:
    """Compare the statement's balance against the account's stored ``totalBalance``.

    Both figures are rounded to cents before comparing. A mismatch is reported
    (and logged), never corrected.
    """

    stored = stored_balance if isinstance(stored_balance, Decimal) else Decimal(str(stored_balance))
    computed = statement.current_balance.quantize(_CENT, rounding=ROUND_HALF_UP)
    stored = stored.quantize(_CENT, rounding=ROUND_HALF_UP)
    result = Reconciliation(
        account_id=statement.account_id,
        computed_balance=computed,
        stored_balance=stored,
        difference=computed - stored,
    )
    if not result.is_balanced:
        _logger.warning(
            "reconcile:mismatch account_type=%s account_id=%s computed=%s stored=%s diff=%s",
            statement.account_type,
            statement.account_id,
            computed,
            stored,
            result.difference,
        )
    return result


__all__ = [
    "build_customer_statement",
    "build_supplier_statement",
    "customer_items",
    "reconcile",
]

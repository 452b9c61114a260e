"""Per-account summary rows for the customers and suppliers reports."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from decimal import Decimal
from typing import Any

from .models import (
    ZERO,
    BalanceStatus,
    CustomerRecord,
    CustomerSummary,
    PurchaseRecord,
    SaleRecord,
    SupplierRecord,
    SupplierSummary,
    coerce_records,
)


def customer_summaries(
    customers: Iterable[CustomerRecord | Mapping[str, Any]],
    sales: Iterable[SaleRecord | Mapping[str, Any]],
) -> list[CustomerSummary]:
    """Summarize every customer, sorted by name.

    ``total_amount`` sums ``totalAmount`` over all of the customer's sales, so
    payment-type invoices (negative totals) reduce it. ``current_balance`` is
    the customer's stored ``totalBalance``; it is not recomputed here.
    """

    sale_records = coerce_records(sales, SaleRecord)
    count_by_customer: dict[str, int] = {}
    amount_by_customer: dict[str, Decimal] = {}
    for sale in sale_records:
        count_by_customer[sale.customer_id] = count_by_customer.get(sale.customer_id, 0) + 1
        amount_by_customer[sale.customer_id] = (
            amount_by_customer.get(sale.customer_id, ZERO) + sale.total_amount
        )

    out = [
        CustomerSummary(
            customer_id=c.id,
            name=c.name,
            phone=c.phone,
            sale_count=count_by_customer.get(c.id, 0),
            total_amount=amount_by_customer.get(c.id, ZERO),
            current_balance=c.total_balance,
            balance_status=BalanceStatus.of(c.total_balance),
        )
        for c in coerce_records(customers, CustomerRecord)
    ]
    out.sort(key=lambda s: (s.name.casefold(), s.customer_id))
    return out


def supplier_summaries(
    purchases: Iterable[PurchaseRecord | Mapping[str, Any]],
    suppliers: Iterable[SupplierRecord | Mapping[str, Any]] = (),
) -> list[SupplierSummary]:
    """Group purchases by supplier name, sorted by name.

    Suppliers appear only when they have at least one purchase. ``suppliers``
    is used to fill in a phone number when the purchases carry none.
    """

    phones = {s.name: s.phone for s in coerce_records(suppliers, SupplierRecord)}

    grouped: dict[str, dict[str, Any]] = {}
    for p in coerce_records(purchases, PurchaseRecord):
        acc = grouped.get(p.supplier_name)
        if acc is None:
            grouped[p.supplier_name] = {
                "count": 1,
                "amount": p.purchase_price,
                "quantity": p.quantity,
                "phone": p.supplier_phone,
            }
            continue
        acc["count"] += 1
        acc["amount"] += p.purchase_price
        acc["quantity"] += p.quantity
        if not acc["phone"]:
            acc["phone"] = p.supplier_phone

    out = [
        SupplierSummary(
            supplier_name=name,
            purchase_count=acc["count"],
            total_amount=acc["amount"],
            total_quantity=acc["quantity"],
            phone=acc["phone"] or phones.get(name, ""),
        )
        for name, acc in grouped.items()
    ]
    out.sort(key=lambda s: s.supplier_name.casefold())
    return out


__all__ = ["customer_summaries", "supplier_summaries"]

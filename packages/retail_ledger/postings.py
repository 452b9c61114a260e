# ruff: noqa: I001
"""Write paths that keep the store's denormalized balances current.

The statement builders trust two persisted figures: the ``current_balance``
written onto each sale and each account's ``total_balance``. Every function
here writes the new document and moves the account balance in the same
session; the caller owns the transaction (``db.client.session_scope``).

Failures:
- ``ValueError`` for an amount that is not a positive number (a sale's paid
  amount may be zero), an amount that exceeds the balance it is paid against,
  or an incomplete sale;
- ``LookupError`` for an unknown customer or sale, or a supplier with neither
  a record nor any purchases.
"""

from __future__ import annotations

import datetime as dt
import time
import uuid
from collections.abc import Iterable, Mapping
from decimal import Decimal, InvalidOperation
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from db.models.retail import (
    RlCustomer,
    RlCustomerReceipt,
    RlPurchase,
    RlSale,
    RlSupplier,
    RlSupplierPayment,
)
from .logging_setup import get_logger
from .models import (
    ZERO,
    InvoiceItem,
    ReceiptRecord,
    SaleRecord,
    SupplierPaymentRecord,
    coerce_records,
)
from .repository import _receipt_snapshot, _sale_snapshot, _supplier_payment_snapshot

_logger = get_logger("retail_ledger.postings")

_RECEIPT_PREFIX = "REC"


def _to_amount(raw: Decimal | int | float | str, *, allow_zero: bool = False) -> Decimal:
    try:
        amount = raw if isinstance(raw, Decimal) else Decimal(str(raw).strip())
    except (InvalidOperation, ValueError) as exc:
        raise ValueError(f"invalid amount: {raw!r}") from exc
    if not amount.is_finite():
        raise ValueError(f"invalid amount: {raw!r}")
    if amount < 0 or (amount == 0 and not allow_zero):
        bound = "zero or more" if allow_zero else "greater than zero"
        raise ValueError(f"amount must be {bound} (got {amount})")
    return amount


def _now() -> dt.datetime:
    return dt.datetime.now(dt.UTC)


def _new_id() -> str:
    return uuid.uuid4().hex


def _load_customer(session: Session, tenant_id: str, customer_id: str) -> RlCustomer:
    row = session.scalars(
        select(RlCustomer).where(
            (RlCustomer.tenant_id == tenant_id) & (RlCustomer.id == customer_id)
        )
    ).one_or_none()
    if row is None:
        raise LookupError(f"customer {customer_id!r} not found")
    return row


# ---------------------------
# Sales
# ---------------------------


def _customer_for_sale(
    session: Session,
    tenant_id: str,
    customer_id: str | None,
    customer_name: str,
    customer_phone: str,
    now: dt.datetime,
) -> RlCustomer:
    if customer_id:
        return _load_customer(session, tenant_id, customer_id)

    name, phone = customer_name.strip(), customer_phone.strip()
    if not name or not phone:
        raise ValueError("a sale needs a customer id, or a customer name and phone")
    existing = session.scalars(
        select(RlCustomer)
        .where(
            (RlCustomer.tenant_id == tenant_id)
            & (RlCustomer.name == name)
            & (RlCustomer.phone == phone)
        )
        .order_by(RlCustomer.created_at, RlCustomer.id)
        .limit(1)
    ).first()
    if existing is not None:
        return existing

    customer = RlCustomer(
        id=_new_id(),
        tenant_id=tenant_id,
        name=name,
        phone=phone,
        total_balance=ZERO,
        created_at=now,
        updated_at=now,
    )
    session.add(customer)
    _logger.info(
        "record_sale:created_customer tenant=%s customer_id=%s name=%s",
        tenant_id,
        customer.id,
        name,
    )
    return customer


def record_sale(
    session: Session,
    *,
    tenant_id: str,
    invoice_number: str,
    items: Iterable[InvoiceItem | Mapping[str, Any]],
    paid_amount: Decimal | int | float | str = 0,
    invoice_type: str = "cash",
    customer_id: str | None = None,
    customer_name: str = "",
    customer_phone: str = "",
    sold_at: dt.datetime | None = None,
) -> SaleRecord:
    """Write a cash or credit invoice and carry the customer's balance forward.

    The customer is ``customer_id`` when given; otherwise it is found by exact
    name and phone, and created with a zero balance when no such customer
    exists. With ``total`` the sum of the items' ``total_price`` and
    ``previous`` the customer's balance before the sale:

    - ``current_balance = max(0, previous + total - paid)``, which also becomes
      the customer's ``total_balance``;
    - ``deferred_amount = total - min(paid, total)``, the unpaid part of this
      invoice alone.

    ``paid_amount`` may be zero and may exceed the invoice total to settle
    older debt, but not the total plus whatever the customer owed before.
    """

    number = invoice_number.strip()
    if not number:
        raise ValueError("invoice number is required")
    if invoice_type not in ("cash", "credit"):
        raise ValueError(
            f"invoice type must be 'cash' or 'credit' (got {invoice_type!r}); "
            "use add_customer_payment for payments"
        )
    lines = coerce_records(items, InvoiceItem)
    if not lines:
        raise ValueError("a sale needs at least one item")
    paid = _to_amount(paid_amount, allow_zero=True)

    now = sold_at or _now()
    customer = _customer_for_sale(
        session, tenant_id, customer_id, customer_name, customer_phone, now
    )
    total = sum((it.total_price for it in lines), ZERO)
    previous = customer.total_balance
    ceiling = total + max(previous, ZERO)
    if paid > ceiling:
        raise ValueError(f"paid amount {paid} exceeds invoice total plus balance owed {ceiling}")

    current = max(ZERO, previous + total - paid)
    row = RlSale(
        id=_new_id(),
        tenant_id=tenant_id,
        invoice_number=number,
        customer_id=customer.id,
        customer_name=customer.name,
        customer_phone=customer.phone,
        invoice_type=invoice_type,
        items=[it.model_dump(mode="json", by_alias=True) for it in lines],
        total_amount=total,
        paid_amount=paid,
        deferred_amount=total - min(paid, total),
        previous_balance=previous,
        current_balance=current,
        created_at=now,
        updated_at=now,
    )
    session.add(row)
    customer.total_balance = current
    customer.updated_at = now
    session.flush()

    _logger.info(
        "record_sale:posted tenant=%s customer_id=%s invoice=%s total=%s paid=%s balance=%s->%s",
        tenant_id,
        customer.id,
        number,
        total,
        paid,
        previous,
        current,
    )
    return _sale_snapshot(row)


def delete_sale(session: Session, *, tenant_id: str, sale_id: str) -> SaleRecord:
    """Delete a sale and undo its effect on the customer's balance.

    The balance moves back by ``current_balance - previous_balance`` as stored
    on the sale, so deleting a payment invoice raises the balance again. A
    sale whose customer record is gone is deleted without a balance change.
    Returns the deleted sale.
    """

    row = session.scalars(
        select(RlSale).where((RlSale.tenant_id == tenant_id) & (RlSale.id == sale_id))
    ).one_or_none()
    if row is None:
        raise LookupError(f"sale {sale_id!r} not found")
    snapshot = _sale_snapshot(row)

    customer = session.scalars(
        select(RlCustomer).where(
            (RlCustomer.tenant_id == tenant_id) & (RlCustomer.id == row.customer_id)
        )
    ).one_or_none()
    if customer is not None:
        previous = customer.total_balance
        customer.total_balance = previous - (row.current_balance - row.previous_balance)
        customer.updated_at = _now()
        _logger.info(
            "delete_sale:rebalanced tenant=%s customer_id=%s balance=%s->%s",
            tenant_id,
            customer.id,
            previous,
            customer.total_balance,
        )
    else:
        _logger.warning(
            "delete_sale:customer_missing tenant=%s sale_id=%s customer_id=%s",
            tenant_id,
            sale_id,
            row.customer_id,
        )

    session.delete(row)
    session.flush()
    _logger.info("delete_sale:deleted tenant=%s sale_id=%s", tenant_id, sale_id)
    return snapshot


# ---------------------------
# Customer receipts
# ---------------------------


def next_receipt_number(session: Session, *, tenant_id: str) -> str:
    """Return the number for the tenant's next receipt.

    ``REC-001`` when no receipt exists yet; otherwise the numeric part of the
    most recently created receipt plus one, zero-padded to three digits. A
    last number that does not parse yields ``REC-<epoch millis>``.
    """

    last = session.scalars(
        select(RlCustomerReceipt.receipt_number)
        .where(RlCustomerReceipt.tenant_id == tenant_id)
        .order_by(RlCustomerReceipt.seq.desc(), RlCustomerReceipt.created_at.desc())
        .limit(1)
    ).first()
    if last is None:
        return f"{_RECEIPT_PREFIX}-001"

    parts = last.split("-")
    try:
        number = int(parts[1]) + 1
    except (IndexError, ValueError):
        fallback = f"{_RECEIPT_PREFIX}-{int(time.time() * 1000)}"
        _logger.warning(
            "next_receipt_number:unparseable tenant=%s last=%r fallback=%s",
            tenant_id,
            last,
            fallback,
        )
        return fallback
    return f"{_RECEIPT_PREFIX}-{number:03d}"


def record_receipt(
    session: Session,
    *,
    tenant_id: str,
    customer_id: str,
    paid_amount: Decimal | int | float | str,
    notes: str | None = None,
    receipt_date: dt.datetime | None = None,
) -> ReceiptRecord:
    """Record cash received from a customer and lower their balance.

    The receipt stores the customer's balance before and after the payment.
    """

    amount = _to_amount(paid_amount)
    customer = _load_customer(session, tenant_id, customer_id)

    previous = customer.total_balance
    current = previous - amount
    number = next_receipt_number(session, tenant_id=tenant_id)
    last_seq = session.scalar(
        select(func.max(RlCustomerReceipt.seq)).where(RlCustomerReceipt.tenant_id == tenant_id)
    )
    now = _now()

    row = RlCustomerReceipt(
        id=_new_id(),
        tenant_id=tenant_id,
        receipt_number=number,
        customer_id=customer.id,
        customer_name=customer.name,
        paid_amount=amount,
        previous_balance=previous,
        current_balance=current,
        receipt_date=receipt_date or now,
        notes=notes,
        seq=(last_seq or 0) + 1,
        created_at=now,
        updated_at=now,
    )
    session.add(row)
    customer.total_balance = current
    customer.updated_at = now
    session.flush()

    _logger.info(
        "record_receipt:posted tenant=%s customer_id=%s receipt=%s amount=%s balance=%s->%s",
        tenant_id,
        customer.id,
        number,
        amount,
        previous,
        current,
    )
    return _receipt_snapshot(row)


# ---------------------------
# Customer account payments
# ---------------------------


def _next_invoice_number(session: Session, tenant_id: str, customer_id: str) -> str:
    numbers = session.scalars(
        select(RlSale.invoice_number).where(
            (RlSale.tenant_id == tenant_id) & (RlSale.customer_id == customer_id)
        )
    ).all()
    highest = 0
    for raw in numbers:
        try:
            highest = max(highest, int(raw))
        except (TypeError, ValueError):
            continue
    return str(highest + 1)


def add_customer_payment(
    session: Session,
    *,
    tenant_id: str,
    customer_id: str,
    amount: Decimal | int | float | str,
    posted_at: dt.datetime | None = None,
) -> SaleRecord:
    """Post a payment against a customer's account as a ``payment`` invoice.

    The invoice carries ``total_amount = -amount`` and ``paid_amount = amount``
    with no items; its number continues the customer's numeric invoice
    sequence. ``amount`` may not exceed the customer's current balance.
    """

    value = _to_amount(amount)
    customer = _load_customer(session, tenant_id, customer_id)
    previous = customer.total_balance
    if value > previous:
        raise ValueError(f"payment {value} exceeds the customer's balance {previous}")

    current = previous - value
    invoice_number = _next_invoice_number(session, tenant_id, customer.id)
    now = posted_at or _now()
    row = RlSale(
        id=_new_id(),
        tenant_id=tenant_id,
        invoice_number=invoice_number,
        customer_id=customer.id,
        customer_name=customer.name,
        customer_phone=customer.phone,
        invoice_type="payment",
        items=[],
        total_amount=-value,
        paid_amount=value,
        deferred_amount=Decimal("0"),
        previous_balance=previous,
        current_balance=current,
        created_at=now,
        updated_at=now,
    )
    session.add(row)
    customer.total_balance = current
    customer.updated_at = now
    session.flush()

    _logger.info(
        "add_customer_payment:posted tenant=%s customer_id=%s invoice=%s amount=%s balance=%s->%s",
        tenant_id,
        customer.id,
        invoice_number,
        value,
        previous,
        current,
    )
    return _sale_snapshot(row)


# ---------------------------
# Supplier payments
# ---------------------------


def record_supplier_payment(
    session: Session,
    *,
    tenant_id: str,
    supplier_name: str,
    amount: Decimal | int | float | str,
    payment_date: dt.datetime | None = None,
) -> SupplierPaymentRecord:
    """Pay a supplier, creating the supplier record on first payment.

    The balance due is the supplier's stored ``total_balance`` when it is
    non-zero. A zero (or missing) stored balance falls back to what the
    purchases still leave outstanding: their sum minus every payment already
    made to that supplier. A supplier paid down to zero therefore owes nothing
    until new purchases arrive.
    """

    value = _to_amount(amount)
    supplier = session.scalars(
        select(RlSupplier).where(
            (RlSupplier.tenant_id == tenant_id) & (RlSupplier.name == supplier_name)
        )
    ).one_or_none()
    purchase_total, purchase_count, phone = session.execute(
        select(
            func.coalesce(func.sum(RlPurchase.purchase_price), 0),
            func.count(RlPurchase.id),
            func.max(RlPurchase.supplier_phone),
        ).where((RlPurchase.tenant_id == tenant_id) & (RlPurchase.supplier_name == supplier_name))
    ).one()
    if supplier is None and purchase_count == 0:
        raise LookupError(f"supplier {supplier_name!r} has no record and no purchases")

    stored = supplier.total_balance if supplier is not None else ZERO
    if stored != 0:
        due = stored
    else:
        paid_total = session.scalar(
            select(func.coalesce(func.sum(RlSupplierPayment.payment_amount), 0)).where(
                (RlSupplierPayment.tenant_id == tenant_id)
                & (RlSupplierPayment.supplier_name == supplier_name)
            )
        )
        due = Decimal(str(purchase_total)) - Decimal(str(paid_total))
    if value > due:
        raise ValueError(f"payment {value} exceeds the balance due {due}")

    now = _now()
    if supplier is None:
        supplier = RlSupplier(
            id=_new_id(),
            tenant_id=tenant_id,
            name=supplier_name,
            phone=phone or "",
            total_balance=due,
            created_at=now,
            updated_at=now,
        )
        session.add(supplier)
        _logger.info(
            "record_supplier_payment:created_supplier tenant=%s supplier=%s balance=%s",
            tenant_id,
            supplier_name,
            due,
        )

    current = due - value
    row = RlSupplierPayment(
        id=_new_id(),
        tenant_id=tenant_id,
        supplier_id=supplier.id,
        supplier_name=supplier_name,
        payment_amount=value,
        previous_balance=due,
        current_balance=current,
        payment_date=payment_date or now,
    )
    session.add(row)
    supplier.total_balance = current
    supplier.updated_at = now
    session.flush()

    _logger.info(
        "record_supplier_payment:posted tenant=%s supplier=%s amount=%s balance=%s->%s",
        tenant_id,
        supplier_name,
        value,
        due,
        current,
    )
    return _supplier_payment_snapshot(row)


__all__ = [
    "record_sale",
    "delete_sale",
    "next_receipt_number",
    "record_receipt",
    "add_customer_payment",
    "record_supplier_payment",
]

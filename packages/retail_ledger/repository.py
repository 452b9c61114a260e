# ruff: noqa: I001
"""Read side of the ledger store.

Every function takes an open SQLAlchemy ``Session`` plus the ``tenant_id`` it
is scoped to and returns frozen snapshot models from :mod:`retail_ledger.models`.
Nothing here caches: each call reflects the store as of that query, and the
returned snapshots are safe to hand to the statement builders unchanged.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from db.models.retail import (
    RlCustomer,
    RlCustomerReceipt,
    RlPurchase,
    RlSale,
    RlSupplier,
    RlSupplierPayment,
)
from .models import (
    CustomerRecord,
    PurchaseRecord,
    ReceiptRecord,
    SaleRecord,
    SupplierPaymentRecord,
    SupplierRecord,
)


def _customer_snapshot(row: RlCustomer) -> CustomerRecord:
    return CustomerRecord(
        id=row.id, name=row.name, phone=row.phone, total_balance=row.total_balance
    )


def _supplier_snapshot(row: RlSupplier) -> SupplierRecord:
    return SupplierRecord(
        id=row.id, name=row.name, phone=row.phone, total_balance=row.total_balance
    )


def _sale_snapshot(row: RlSale) -> SaleRecord:
    items: list[Any] = list(row.items or [])
    return SaleRecord(
        id=row.id,
        date=row.created_at,
        invoice_number=row.invoice_number,
        customer_id=row.customer_id,
        customer_name=row.customer_name,
        customer_phone=row.customer_phone,
        invoice_type=row.invoice_type,
        items=items,
        total_amount=row.total_amount,
        paid_amount=row.paid_amount,
        deferred_amount=row.deferred_amount,
        previous_balance=row.previous_balance,
        current_balance=row.current_balance,
    )


def _receipt_snapshot(row: RlCustomerReceipt) -> ReceiptRecord:
    return ReceiptRecord(
        id=row.id,
        date=row.receipt_date,
        receipt_number=row.receipt_number,
        customer_id=row.customer_id,
        customer_name=row.customer_name,
        paid_amount=row.paid_amount,
        previous_balance=row.previous_balance,
        current_balance=row.current_balance,
        notes=row.notes,
    )


def _purchase_snapshot(row: RlPurchase) -> PurchaseRecord:
    return PurchaseRecord(
        id=row.id,
        date=row.created_at,
        supplier_name=row.supplier_name,
        supplier_phone=row.supplier_phone,
        product_name=row.product_name,
        quantity=row.quantity,
        unit_purchase_price=row.unit_purchase_price,
        purchase_price=row.purchase_price,
        currency=row.currency,
    )


def _supplier_payment_snapshot(row: RlSupplierPayment) -> SupplierPaymentRecord:
    return SupplierPaymentRecord(
        id=row.id,
        date=row.payment_date,
        supplier_id=row.supplier_id,
        supplier_name=row.supplier_name,
        payment_amount=row.payment_amount,
        previous_balance=row.previous_balance,
        current_balance=row.current_balance,
    )


# ---------------------------
# Customers
# ---------------------------


def fetch_customers(session: Session, *, tenant_id: str) -> list[CustomerRecord]:
    stmt = (
        select(RlCustomer)
        .where(RlCustomer.tenant_id == tenant_id)
        .order_by(RlCustomer.name, RlCustomer.id)
    )
    return [_customer_snapshot(r) for r in session.scalars(stmt)]


def get_customer(session: Session, *, tenant_id: str, customer_id: str) -> CustomerRecord | None:
    """Return the customer, or ``None`` when it does not exist in ``tenant_id``."""

    row = session.scalars(
        select(RlCustomer).where(
            (RlCustomer.tenant_id == tenant_id) & (RlCustomer.id == customer_id)
        )
    ).one_or_none()
    return _customer_snapshot(row) if row is not None else None


def fetch_sales(
    session: Session, *, tenant_id: str, customer_id: str | None = None
) -> list[SaleRecord]:
    """Sales in creation order, optionally limited to one customer."""

    stmt = select(RlSale).where(RlSale.tenant_id == tenant_id)
    if customer_id is not None:
        stmt = stmt.where(RlSale.customer_id == customer_id)
    stmt = stmt.order_by(RlSale.created_at, RlSale.id)
    return [_sale_snapshot(r) for r in session.scalars(stmt)]


def fetch_customer_receipts(
    session: Session, *, tenant_id: str, customer_id: str | None = None
) -> list[ReceiptRecord]:
    stmt = select(RlCustomerReceipt).where(RlCustomerReceipt.tenant_id == tenant_id)
    if customer_id is not None:
        stmt = stmt.where(RlCustomerReceipt.customer_id == customer_id)
    stmt = stmt.order_by(RlCustomerReceipt.receipt_date, RlCustomerReceipt.seq)
    return [_receipt_snapshot(r) for r in session.scalars(stmt)]


# ---------------------------
# Suppliers
# ---------------------------


def fetch_suppliers(session: Session, *, tenant_id: str) -> list[SupplierRecord]:
    stmt = (
        select(RlSupplier)
        .where(RlSupplier.tenant_id == tenant_id)
        .order_by(RlSupplier.name)
    )
    return [_supplier_snapshot(r) for r in session.scalars(stmt)]


def get_supplier_by_name(
    session: Session, *, tenant_id: str, supplier_name: str
) -> SupplierRecord | None:
    row = session.scalars(
        select(RlSupplier).where(
            (RlSupplier.tenant_id == tenant_id) & (RlSupplier.name == supplier_name)
        )
    ).one_or_none()
    return _supplier_snapshot(row) if row is not None else None


def fetch_purchases(
    session: Session, *, tenant_id: str, supplier_name: str | None = None
) -> list[PurchaseRecord]:
    stmt = select(RlPurchase).where(RlPurchase.tenant_id == tenant_id)
    if supplier_name is not None:
        stmt = stmt.where(RlPurchase.supplier_name == supplier_name)
    stmt = stmt.order_by(RlPurchase.created_at, RlPurchase.id)
    return [_purchase_snapshot(r) for r in session.scalars(stmt)]


def fetch_supplier_payments(
    session: Session, *, tenant_id: str, supplier_name: str | None = None
) -> list[SupplierPaymentRecord]:
    stmt = select(RlSupplierPayment).where(RlSupplierPayment.tenant_id == tenant_id)
    if supplier_name is not None:
        stmt = stmt.where(RlSupplierPayment.supplier_name == supplier_name)
    stmt = stmt.order_by(RlSupplierPayment.payment_date, RlSupplierPayment.id)
    return [_supplier_payment_snapshot(r) for r in session.scalars(stmt)]


__all__ = [
    "fetch_customers",
    "get_customer",
    "fetch_sales",
    "fetch_customer_receipts",
    "fetch_suppliers",
    "get_supplier_by_name",
    "fetch_purchases",
    "fetch_supplier_payments",
]

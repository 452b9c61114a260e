from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import (
    JSON,
    CheckConstraint,
    DateTime,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    func,
    text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


# ---------------------------
# Accounts: customers / suppliers
# ---------------------------


class RlCustomer(Base):
    __tablename__ = "rl_customers"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    tenant_id: Mapped[str] = mapped_column(String, nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    phone: Mapped[str] = mapped_column(String, nullable=False, server_default=text("''"))
    # Denormalized: sum of outstanding amounts across all invoices and receipts.
    # Maintained by the posting paths; statements only report against it.
    total_balance: Mapped[Decimal] = mapped_column(
        Numeric(18, 2), nullable=False, server_default=text("0")
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    __table_args__ = (Index("ix_rl_customers_tenant", "tenant_id"),)


class RlSupplier(Base):
    __tablename__ = "rl_suppliers"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    tenant_id: Mapped[str] = mapped_column(String, nullable=False)
    # Purchases and payments reference suppliers by name, not by id.
    name: Mapped[str] = mapped_column(Text, nullable=False)
    phone: Mapped[str] = mapped_column(String, nullable=False, server_default=text("''"))
    total_balance: Mapped[Decimal] = mapped_column(
        Numeric(18, 2), nullable=False, server_default=text("0")
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    __table_args__ = (Index("uq_rl_suppliers_tenant_name", "tenant_id", "name", unique=True),)


# ---------------------------
# Customer side: sales / receipts
# ---------------------------


class RlSale(Base):
    __tablename__ = "rl_sales"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    tenant_id: Mapped[str] = mapped_column(String, nullable=False)
    invoice_number: Mapped[str] = mapped_column(String, nullable=False)
    customer_id: Mapped[str] = mapped_column(String, nullable=False)
    customer_name: Mapped[str] = mapped_column(Text, nullable=False, server_default=text("''"))
    customer_phone: Mapped[str] = mapped_column(String, nullable=False, server_default=text("''"))
    invoice_type: Mapped[str] = mapped_column(String, nullable=False)
    # Line items as a JSON array of {productId, productName, quantity, unitPrice, totalPrice}.
    items: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    # Negative for payment-type invoices.
    total_amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    paid_amount: Mapped[Decimal] = mapped_column(
        Numeric(18, 2), nullable=False, server_default=text("0")
    )
    deferred_amount: Mapped[Decimal] = mapped_column(
        Numeric(18, 2), nullable=False, server_default=text("0")
    )
    previous_balance: Mapped[Decimal] = mapped_column(
        Numeric(18, 2), nullable=False, server_default=text("0")
    )
    # previous_balance + deferred_amount at write time; read back verbatim by
    # the customer statement as the invoice's debit.
    current_balance: Mapped[Decimal] = mapped_column(
        Numeric(18, 2), nullable=False, server_default=text("0")
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    __table_args__ = (
        CheckConstraint(
            "invoice_type in ('cash','credit','payment')",
            name="ck_rl_sales_invoice_type",
        ),
        Index("ix_rl_sales_tenant_customer", "tenant_id", "customer_id"),
    )


class RlCustomerReceipt(Base):
    __tablename__ = "rl_customer_receipts"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    tenant_id: Mapped[str] = mapped_column(String, nullable=False)
    receipt_number: Mapped[str] = mapped_column(String, nullable=False)
    customer_id: Mapped[str] = mapped_column(String, nullable=False)
    customer_name: Mapped[str] = mapped_column(Text, nullable=False, server_default=text("''"))
    paid_amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    previous_balance: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    current_balance: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    receipt_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    # Monotonic insertion order; receipt numbering reads the latest row.
    seq: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    __table_args__ = (
        CheckConstraint("paid_amount > 0", name="ck_rl_receipts_paid_positive"),
        Index("ix_rl_receipts_tenant_customer", "tenant_id", "customer_id"),
    )


# ---------------------------
# Supplier side: purchases / payments
# ---------------------------


class RlPurchase(Base):
    __tablename__ = "rl_purchases"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    tenant_id: Mapped[str] = mapped_column(String, nullable=False)
    product_name: Mapped[str] = mapped_column(Text, nullable=False)
    # Fractional for goods sold by weight or length.
    quantity: Mapped[Decimal] = mapped_column(Numeric(18, 3), nullable=False)
    unit_purchase_price: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    # Total: unit_purchase_price * quantity.
    purchase_price: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    unit_selling_price: Mapped[Decimal] = mapped_column(
        Numeric(18, 2), nullable=False, server_default=text("0")
    )
    selling_price: Mapped[Decimal] = mapped_column(
        Numeric(18, 2), nullable=False, server_default=text("0")
    )
    supplier_name: Mapped[str] = mapped_column(Text, nullable=False)
    supplier_phone: Mapped[str] = mapped_column(String, nullable=False, server_default=text("''"))
    currency: Mapped[str] = mapped_column(String(3), nullable=False, server_default=text("'EGP'"))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    __table_args__ = (
        CheckConstraint("currency in ('EGP','USD','GBP')", name="ck_rl_purchases_currency"),
        Index("ix_rl_purchases_tenant_supplier", "tenant_id", "supplier_name"),
    )


class RlSupplierPayment(Base):
    __tablename__ = "rl_supplier_payments"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    tenant_id: Mapped[str] = mapped_column(String, nullable=False)
    supplier_id: Mapped[str] = mapped_column(String, nullable=False)
    supplier_name: Mapped[str] = mapped_column(Text, nullable=False)
    payment_amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    previous_balance: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    current_balance: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    payment_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        CheckConstraint("payment_amount > 0", name="ck_rl_supplier_payments_positive"),
        Index("ix_rl_supplier_payments_tenant_supplier", "tenant_id", "supplier_name"),
    )


__all__ = [
    "Base",
    "RlCustomer",
    "RlSupplier",
    "RlSale",
    "RlCustomerReceipt",
    "RlPurchase",
    "RlSupplierPayment",
]

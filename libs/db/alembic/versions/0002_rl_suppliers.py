# ruff: noqa: I001
"""Supplier side: suppliers, purchases, supplier payments.

Revision ID: 0002_rl_suppliers
Revises: 0001_rl_core
Create Date: 2026-10-19
"""

from __future__ import annotations  # ruff: noqa: I001

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "0002_rl_suppliers"
down_revision: str | None = "0001_rl_core"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "rl_suppliers",
        sa.Column("id", sa.Text(), primary_key=True),
        sa.Column("tenant_id", sa.Text(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("phone", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("total_balance", sa.Numeric(18, 2), nullable=False, server_default=sa.text("0")),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
    )
    op.create_index(
        "uq_rl_suppliers_tenant_name", "rl_suppliers", ["tenant_id", "name"], unique=True
    )

    op.create_table(
        "rl_purchases",
        sa.Column("id", sa.Text(), primary_key=True),
        sa.Column("tenant_id", sa.Text(), nullable=False),
        sa.Column("product_name", sa.Text(), nullable=False),
        sa.Column("quantity", sa.BigInteger(), nullable=False),
        sa.Column("unit_purchase_price", sa.Numeric(18, 2), nullable=False),
        sa.Column("purchase_price", sa.Numeric(18, 2), nullable=False),
        sa.Column(
            "unit_selling_price", sa.Numeric(18, 2), nullable=False, server_default=sa.text("0")
        ),
        sa.Column("selling_price", sa.Numeric(18, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("supplier_name", sa.Text(), nullable=False),
        sa.Column("supplier_phone", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("currency", sa.String(3), nullable=False, server_default=sa.text("'EGP'")),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.CheckConstraint("currency in ('EGP','USD','GBP')", name="ck_rl_purchases_currency"),
    )
    op.create_index(
        "ix_rl_purchases_tenant_supplier",
        "rl_purchases",
        ["tenant_id", "supplier_name"],
        unique=False,
    )

    op.create_table(
        "rl_supplier_payments",
        sa.Column("id", sa.Text(), primary_key=True),
        sa.Column("tenant_id", sa.Text(), nullable=False),
        sa.Column("supplier_id", sa.Text(), nullable=False),
        sa.Column("supplier_name", sa.Text(), nullable=False),
        sa.Column("payment_amount", sa.Numeric(18, 2), nullable=False),
        sa.Column("previous_balance", sa.Numeric(18, 2), nullable=False),
        sa.Column("current_balance", sa.Numeric(18, 2), nullable=False),
        sa.Column("payment_date", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("payment_amount > 0", name="ck_rl_supplier_payments_positive"),
    )
    op.create_index(
        "ix_rl_supplier_payments_tenant_supplier",
        "rl_supplier_payments",
        ["tenant_id", "supplier_name"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index(
        "ix_rl_supplier_payments_tenant_supplier", table_name="rl_supplier_payments"
    )
    op.drop_table("rl_supplier_payments")
    op.drop_index("ix_rl_purchases_tenant_supplier", table_name="rl_purchases")
    op.drop_table("rl_purchases")
    op.drop_index("uq_rl_suppliers_tenant_name", table_name="rl_suppliers")
    op.drop_table("rl_suppliers")

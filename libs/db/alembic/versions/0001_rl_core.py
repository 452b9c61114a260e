# ruff: noqa: I001
"""Retail ledger core tables: accounts, sales, receipts.

Revision ID: 0001_rl_core
Revises: None
Create Date: 2026-10-19
"""

from __future__ import annotations  # ruff: noqa: I001

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = "0001_rl_core"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps() -> list[sa.Column]:
    return [
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
    ]


def upgrade() -> None:
    # rl_customers
    op.create_table(
        "rl_customers",
        sa.Column("id", sa.Text(), primary_key=True),
        sa.Column("tenant_id", sa.Text(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("phone", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("total_balance", sa.Numeric(18, 2), nullable=False, server_default=sa.text("0")),
        *_timestamps(),
    )
    op.create_index("ix_rl_customers_tenant", "rl_customers", ["tenant_id"], unique=False)

    # rl_sales
    op.create_table(
        "rl_sales",
        sa.Column("id", sa.Text(), primary_key=True),
        sa.Column("tenant_id", sa.Text(), nullable=False),
        sa.Column("invoice_number", sa.Text(), nullable=False),
        sa.Column("customer_id", sa.Text(), nullable=False),
        sa.Column("customer_name", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("customer_phone", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("invoice_type", sa.Text(), nullable=False),
        sa.Column("items", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("total_amount", sa.Numeric(18, 2), nullable=False),
        sa.Column("paid_amount", sa.Numeric(18, 2), nullable=False, server_default=sa.text("0")),
        sa.Column(
            "deferred_amount", sa.Numeric(18, 2), nullable=False, server_default=sa.text("0")
        ),
        sa.Column(
            "previous_balance", sa.Numeric(18, 2), nullable=False, server_default=sa.text("0")
        ),
        sa.Column(
            "current_balance", sa.Numeric(18, 2), nullable=False, server_default=sa.text("0")
        ),
        *_timestamps(),
        sa.CheckConstraint(
            "invoice_type in ('cash','credit','payment')",
            name="ck_rl_sales_invoice_type",
        ),
    )
    op.create_index(
        "ix_rl_sales_tenant_customer", "rl_sales", ["tenant_id", "customer_id"], unique=False
    )

    # rl_customer_receipts
    op.create_table(
        "rl_customer_receipts",
        sa.Column("id", sa.Text(), primary_key=True),
        sa.Column("tenant_id", sa.Text(), nullable=False),
        sa.Column("receipt_number", sa.Text(), nullable=False),
        sa.Column("customer_id", sa.Text(), nullable=False),
        sa.Column("customer_name", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("paid_amount", sa.Numeric(18, 2), nullable=False),
        sa.Column("previous_balance", sa.Numeric(18, 2), nullable=False),
        sa.Column("current_balance", sa.Numeric(18, 2), nullable=False),
        sa.Column("receipt_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("seq", sa.Integer(), nullable=False, server_default=sa.text("0")),
        *_timestamps(),
        sa.CheckConstraint("paid_amount > 0", name="ck_rl_receipts_paid_positive"),
    )
    op.create_index(
        "ix_rl_receipts_tenant_customer",
        "rl_customer_receipts",
        ["tenant_id", "customer_id"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_rl_receipts_tenant_customer", table_name="rl_customer_receipts")
    op.drop_table("rl_customer_receipts")
    op.drop_index("ix_rl_sales_tenant_customer", table_name="rl_sales")
    op.drop_table("rl_sales")
    op.drop_index("ix_rl_customers_tenant", table_name="rl_customers")
    op.drop_table("rl_customers")

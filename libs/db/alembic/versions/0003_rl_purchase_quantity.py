# ruff: noqa: I001
"""Allow fractional purchase quantities.

Revision ID: 0003_rl_purchase_quantity
Revises: 0002_rl_suppliers
Create Date: 2026-10-19
"""

from __future__ import annotations  # ruff: noqa: I001

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "0003_rl_purchase_quantity"
down_revision: str | None = "0002_rl_suppliers"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    with op.batch_alter_table("rl_purchases") as batch:
        batch.alter_column(
            "quantity",
            existing_type=sa.BigInteger(),
            type_=sa.Numeric(18, 3),
            existing_nullable=False,
        )


def downgrade() -> None:
    with op.batch_alter_table("rl_purchases") as batch:
        batch.alter_column(
            "quantity",
            existing_type=sa.Numeric(18, 3),
            type_=sa.BigInteger(),
            existing_nullable=False,
        )

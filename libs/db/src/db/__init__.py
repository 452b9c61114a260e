"""db: shared database library (SQLAlchemy/Alembic).

Public exports
--------------
- ``Base`` and ``metadata`` for Alembic autogenerate/targeting
- ORM models in ``db.models.retail`` (re-exported for convenience)
- Engine/session helpers in ``db.client``
"""

from __future__ import annotations

from .models.retail import (
    Base,
    RlCustomer,
    RlCustomerReceipt,
    RlPurchase,
    RlSale,
    RlSupplier,
    RlSupplierPayment,
)

# Re-export SQLAlchemy metadata for Alembic's env.py
metadata = Base.metadata

__all__ = [
    "Base",
    "metadata",
    "RlCustomer",
    "RlCustomerReceipt",
    "RlPurchase",
    "RlSale",
    "RlSupplier",
    "RlSupplierPayment",
]

"""Shared SQLAlchemy models registry for the workspace database.

Currently includes the retail ledger models used by ``retail_ledger``.
"""

from .retail import (
    Base,
    RlCustomer,
    RlCustomerReceipt,
    RlPurchase,
    RlSale,
    RlSupplier,
    RlSupplierPayment,
)

__all__ = [
    "Base",
    "RlCustomer",
    "RlCustomerReceipt",
    "RlPurchase",
    "RlSale",
    "RlSupplier",
    "RlSupplierPayment",
]

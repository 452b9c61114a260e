"""Public interface for the ``retail_ledger`` package.

This module exposes the statement builders, report summaries and public
models as the stable import surface. There is no runtime logic here, only
symbol re-exports. Database-backed helpers live in
``retail_ledger.repository`` and ``retail_ledger.postings`` and are imported
explicitly so that the pure engine does not pull in SQLAlchemy.
"""

from .models import (
    AccountType,
    BalanceStatus,
    CustomerRecord,
    CustomerSummary,
    DebitSource,
    InvoiceItem,
    PurchaseRecord,
    ReceiptRecord,
    Reconciliation,
    SaleRecord,
    Statement,
    StatementItem,
    StatementRow,
    SupplierPaymentRecord,
    SupplierRecord,
    SupplierSummary,
    TransactionKind,
)
from .statements import (
    build_customer_statement,
    build_supplier_statement,
    customer_items,
    reconcile,
)
from .summaries import customer_summaries, supplier_summaries

__all__ = [
    # Engine
    "build_customer_statement",
    "build_supplier_statement",
    "customer_items",
    "reconcile",
    # Reports
    "customer_summaries",
    "supplier_summaries",
    # Models / types
    "TransactionKind",
    "AccountType",
    "DebitSource",
    "BalanceStatus",
    "InvoiceItem",
    "SaleRecord",
    "ReceiptRecord",
    "PurchaseRecord",
    "SupplierPaymentRecord",
    "CustomerRecord",
    "SupplierRecord",
    "StatementRow",
    "Statement",
    "StatementItem",
    "Reconciliation",
    "CustomerSummary",
    "SupplierSummary",
]

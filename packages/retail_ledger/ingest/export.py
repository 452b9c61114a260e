"""Load a JSON export of the document store for offline statements.

The export is one JSON object whose top-level keys name collections, each a
list of documents in the store's own camelCase shape::

    {
      "customers": [{"id": "c1", "name": "...", "totalBalance": 120}],
      "sales": [{"id": "s1", "customerId": "c1", "invoiceType": "credit", ...}],
      "receipts": [...],
      "suppliers": [...],
      "purchases": [...],
      "supplierPayments": [...]
    }

Every collection is optional. Timestamps may be ISO strings, Unix seconds,
or Firestore ``Timestamp`` objects as the console exports them
(``{"seconds": 1704067200, "nanoseconds": 0}``). Documents are validated into
the snapshot models; a malformed document fails the whole load with a
``pydantic.ValidationError``.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from os import PathLike
from pathlib import Path
from typing import Any

from ..logging_setup import get_logger
from ..models import (
    CustomerRecord,
    PurchaseRecord,
    ReceiptRecord,
    SaleRecord,
    SupplierPaymentRecord,
    SupplierRecord,
    coerce_records,
)

_logger = get_logger("retail_ledger.ingest.export")

# Export key -> accepted spellings (first wins).
_COLLECTION_KEYS: dict[str, tuple[str, ...]] = {
    "customers": ("customers",),
    "suppliers": ("suppliers",),
    "sales": ("sales",),
    "receipts": ("receipts", "customerReceipts", "customer_receipts"),
    "purchases": ("purchases",),
    "supplier_payments": ("supplierPayments", "supplier_payments"),
}


@dataclass(frozen=True, slots=True)
class LedgerExport:
    customers: tuple[CustomerRecord, ...] = ()
    suppliers: tuple[SupplierRecord, ...] = ()
    sales: tuple[SaleRecord, ...] = ()
    receipts: tuple[ReceiptRecord, ...] = ()
    purchases: tuple[PurchaseRecord, ...] = ()
    supplier_payments: tuple[SupplierPaymentRecord, ...] = ()

    def customer(self, customer_id: str) -> CustomerRecord | None:
        return next((c for c in self.customers if c.id == customer_id), None)

    def supplier(self, supplier_name: str) -> SupplierRecord | None:
        return next((s for s in self.suppliers if s.name == supplier_name), None)


def _collection(doc: Mapping[str, Any], key: str) -> list[Any]:
    for name in _COLLECTION_KEYS[key]:
        value = doc.get(name)
        if value is None:
            continue
        if not isinstance(value, list):
            raise ValueError(f"export collection {name!r} must be a list, got {type(value).__name__}")
        return value
    return []


def parse_export(doc: Mapping[str, Any]) -> LedgerExport:
    """Validate an already-decoded export document."""

    if not isinstance(doc, Mapping):
        raise ValueError("export must be a JSON object of collections")
    return LedgerExport(
        customers=tuple(coerce_records(_collection(doc, "customers"), CustomerRecord)),
        suppliers=tuple(coerce_records(_collection(doc, "suppliers"), SupplierRecord)),
        sales=tuple(coerce_records(_collection(doc, "sales"), SaleRecord)),
        receipts=tuple(coerce_records(_collection(doc, "receipts"), ReceiptRecord)),
        purchases=tuple(coerce_records(_collection(doc, "purchases"), PurchaseRecord)),
        supplier_payments=tuple(
            coerce_records(_collection(doc, "supplier_payments"), SupplierPaymentRecord)
        ),
    )


def load_export(path: str | PathLike[str]) -> LedgerExport:
    """Read and validate the JSON export at ``path``."""

    p = Path(path)
    with p.open(encoding="utf-8") as f:
        doc = json.load(f)
    export = parse_export(doc)
    _logger.info(
        "load_export:done path=%s customers=%d sales=%d receipts=%d suppliers=%d "
        "purchases=%d supplier_payments=%d",
        p,
        len(export.customers),
        len(export.sales),
        len(export.receipts),
        len(export.suppliers),
        len(export.purchases),
        len(export.supplier_payments),
    )
    return export


__all__ = ["LedgerExport", "load_export", "parse_export"]

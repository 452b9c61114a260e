"""Data models for ``retail_ledger``.

Two families live here:

- Input snapshots (pydantic, frozen): validated views of the documents the
  store holds for sales, receipts, purchases, supplier payments, customers and
  suppliers. Field names are snake_case; the store's camelCase document keys
  (``customerId``, ``invoiceType``, ``createdAt`` ...) are accepted as aliases
  so raw documents validate without a mapping step.
- Derived outputs (frozen dataclasses): statement rows, statements, line items,
  reconciliation results and account summaries. These are rebuilt per request
  and never persisted.

Dates
-----
Every record carries a single ``date`` (timezone-aware ``datetime``). The
document timestamp it comes from differs per collection (``createdAt`` for
sales and purchases, ``receiptDate`` for receipts, ``paymentDate`` for supplier
payments); all of them are accepted. Naive timestamps are taken as UTC, plain
dates become midnight UTC, integers are Unix seconds, and Firestore
``Timestamp`` exports (``{"seconds": ..., "nanoseconds": ...}``, or the
underscored ``_seconds``/``_nanoseconds`` spelling) are converted exactly.

Identity fields (``id``, ``customer_id``, ``supplier_name``) are kept verbatim;
account filters compare them to the caller's key with plain equality.
"""

from __future__ import annotations

import datetime as dt
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from decimal import Decimal
from enum import StrEnum
from typing import Any, Literal, TypeVar

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class TransactionKind(StrEnum):
    """Normalized kind of a statement row."""

    INVOICE = "invoice"
    PAYMENT_RECEIVED = "payment-received"
    ACCOUNT_PAYMENT = "account-payment"


class AccountType(StrEnum):
    CUSTOMER = "customer"
    SUPPLIER = "supplier"


class DebitSource(StrEnum):
    """Where a customer invoice's debit comes from.

    ``STORED_BALANCE`` reads the ``currentBalance`` persisted on the sale when
    it was written. ``DEFERRED_AMOUNT`` recomputes the debit as
    ``totalAmount - min(paidAmount, totalAmount)`` and reports sales whose
    stored ``deferredAmount`` or ``currentBalance`` (expected
    ``max(0, previousBalance + totalAmount - paidAmount)``) does not agree.
    """

    STORED_BALANCE = "stored-balance"
    DEFERRED_AMOUNT = "deferred-amount"


class BalanceStatus(StrEnum):
    DEBIT = "debit"
    CREDIT = "credit"
    SETTLED = "settled"

    @classmethod
    def of(cls, balance: Decimal) -> BalanceStatus:
        if balance > 0:
            return cls.DEBIT
        if balance < 0:
            return cls.CREDIT
        return cls.SETTLED


InvoiceType = Literal["cash", "credit", "payment"]
Currency = Literal["EGP", "USD", "GBP"]

ZERO = Decimal("0")

M = TypeVar("M", bound=BaseModel)


def coerce_records(records: Iterable[M | Mapping[str, Any]], model: type[M]) -> list[M]:
    """Validate raw mappings into ``model``; instances pass through untouched."""

    return [r if isinstance(r, model) else model.model_validate(r) for r in records]


# ---------------------------------------------------------------------------
# Input snapshots
# ---------------------------------------------------------------------------


def _from_timestamp_doc(value: Mapping[str, Any]) -> Any:
    seconds = value.get("seconds", value.get("_seconds"))
    nanos = value.get("nanoseconds", value.get("_nanoseconds", 0))
    if isinstance(seconds, bool) or not isinstance(seconds, int):
        return value
    if isinstance(nanos, bool) or not isinstance(nanos, int) or not 0 <= nanos < 1_000_000_000:
        return value
    base = dt.datetime.fromtimestamp(seconds, tz=dt.UTC)
    return base + dt.timedelta(microseconds=nanos // 1000)


def _to_aware_datetime(value: Any) -> Any:
    if isinstance(value, Mapping):
        # Firestore Timestamp
        return _from_timestamp_doc(value)
    if isinstance(value, dt.datetime):
        return value if value.tzinfo is not None else value.replace(tzinfo=dt.UTC)
    if isinstance(value, dt.date):
        return dt.datetime.combine(value, dt.time(), tzinfo=dt.UTC)
    if isinstance(value, str) and len(value.strip()) == 10 and value.count("-") == 2:
        # Bare YYYY-MM-DD
        return dt.datetime.combine(dt.date.fromisoformat(value.strip()), dt.time(), tzinfo=dt.UTC)
    return value


class _Record(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
        coerce_numbers_to_str=True,
    )

    id: str = Field(min_length=1)


class _DatedRecord(_Record):
    date: dt.datetime

    @field_validator("date", mode="before")
    @classmethod
    def _coerce_date(cls, v: Any) -> Any:
        return _to_aware_datetime(v)

    @field_validator("date")
    @classmethod
    def _ensure_aware(cls, v: dt.datetime) -> dt.datetime:
        return v if v.tzinfo is not None else v.replace(tzinfo=dt.UTC)


class InvoiceItem(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
        str_strip_whitespace=True,
        coerce_numbers_to_str=True,
    )

    product_id: str = ""
    product_name: str
    quantity: Decimal
    unit_price: Decimal
    total_price: Decimal


class SaleRecord(_DatedRecord):
    """An invoice document. ``payment`` invoices carry a negative total."""

    date: dt.datetime = Field(validation_alias=AliasChoices("date", "createdAt", "created_at"))
    invoice_number: str = ""
    customer_id: str = Field(min_length=1)
    customer_name: str = ""
    customer_phone: str = ""
    invoice_type: InvoiceType
    items: tuple[InvoiceItem, ...] = ()
    total_amount: Decimal
    paid_amount: Decimal = ZERO
    deferred_amount: Decimal | None = None
    previous_balance: Decimal | None = None
    current_balance: Decimal | None = None

    @model_validator(mode="after")
    def _balance_required_for_invoices(self) -> SaleRecord:
        if self.invoice_type != "payment" and self.current_balance is None:
            raise ValueError(
                f"sale {self.id!r}: currentBalance is required for {self.invoice_type} invoices"
            )
        return self

    @property
    def is_payment(self) -> bool:
        return self.invoice_type == "payment"


class ReceiptRecord(_DatedRecord):
    date: dt.datetime = Field(
        validation_alias=AliasChoices("date", "receiptDate", "receipt_date")
    )
    receipt_number: str = ""
    customer_id: str = Field(min_length=1)
    customer_name: str = ""
    paid_amount: Decimal = Field(ge=0)
    previous_balance: Decimal | None = None
    current_balance: Decimal | None = None
    notes: str | None = None


class PurchaseRecord(_DatedRecord):
    """A purchase document; ``purchase_price`` is already the line total."""

    date: dt.datetime = Field(validation_alias=AliasChoices("date", "createdAt", "created_at"))
    supplier_name: str = Field(min_length=1)
    supplier_phone: str = ""
    product_name: str = ""
    quantity: Decimal = Field(default=ZERO, ge=0)
    unit_purchase_price: Decimal | None = None
    purchase_price: Decimal = Field(ge=0)
    currency: Currency = "EGP"


class SupplierPaymentRecord(_DatedRecord):
    date: dt.datetime = Field(
        validation_alias=AliasChoices("date", "paymentDate", "payment_date")
    )
    supplier_id: str = ""
    supplier_name: str = Field(min_length=1)
    payment_amount: Decimal = Field(ge=0)
    previous_balance: Decimal | None = None
    current_balance: Decimal | None = None


class CustomerRecord(_Record):
    name: str
    phone: str = ""
    total_balance: Decimal = ZERO


class SupplierRecord(_Record):
    name: str
    phone: str = ""
    total_balance: Decimal = ZERO


# ---------------------------------------------------------------------------
# Derived outputs
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class StatementRow:
    """One line of an account statement.

    Attributes
    ----------
    own_amount:
        The row's own amount (its debit, or its credit for credit rows).
    cumulative_balance:
        Running ``debit - credit`` after this row, unclamped.
    balance:
        The figure shown in the statement's balance column. Customer
        statements always show ``cumulative_balance``; supplier statements
        show ``own_amount`` on purchase rows and ``cumulative_balance`` on
        payment rows.
    """

    id: str
    date: dt.datetime
    kind: TransactionKind
    description: str
    debit: Decimal
    credit: Decimal
    own_amount: Decimal
    cumulative_balance: Decimal
    balance: Decimal
    reference: str | None = None

    def as_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "date": self.date.isoformat(),
            "kind": str(self.kind),
            "description": self.description,
            "reference": self.reference,
            "debit": str(self.debit),
            "credit": str(self.credit),
            "ownAmount": str(self.own_amount),
            "cumulativeBalance": str(self.cumulative_balance),
            "balance": str(self.balance),
        }


@dataclass(frozen=True, slots=True)
class Statement:
    account_id: str
    account_type: AccountType
    rows: tuple[StatementRow, ...] = ()
    total_debit: Decimal = ZERO
    total_credit: Decimal = ZERO
    warnings: tuple[str, ...] = ()

    @property
    def current_balance(self) -> Decimal:
        return self.total_debit - self.total_credit

    def as_dict(self) -> dict[str, Any]:
        return {
            "accountId": self.account_id,
            "accountType": str(self.account_type),
            "rows": [r.as_dict() for r in self.rows],
            "totalDebit": str(self.total_debit),
            "totalCredit": str(self.total_credit),
            "currentBalance": str(self.current_balance),
            "warnings": list(self.warnings),
        }


@dataclass(frozen=True, slots=True)
class StatementItem:
    """A product line bought by a customer, flattened out of its invoice."""

    invoice_number: str
    date: dt.datetime
    product_name: str
    quantity: Decimal
    unit_price: Decimal
    total_price: Decimal


@dataclass(frozen=True, slots=True)
class Reconciliation:
    account_id: str
    computed_balance: Decimal
    stored_balance: Decimal
    difference: Decimal

    @property
    def is_balanced(self) -> bool:
        return self.difference == 0


@dataclass(frozen=True, slots=True)
class CustomerSummary:
    customer_id: str
    name: str
    phone: str
    sale_count: int
    total_amount: Decimal
    current_balance: Decimal
    balance_status: BalanceStatus


@dataclass(frozen=True, slots=True)
class SupplierSummary:
    supplier_name: str
    purchase_count: int
    total_amount: Decimal
    total_quantity: Decimal
    phone: str = ""


__all__ = [
    "TransactionKind",
    "AccountType",
    "DebitSource",
    "BalanceStatus",
    "InvoiceType",
    "Currency",
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
    "ZERO",
    "coerce_records",
]

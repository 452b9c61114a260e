from __future__ import annotations

import datetime as dt
import logging
from decimal import Decimal

import pytest
from pydantic import ValidationError

from retail_ledger import (
    DebitSource,
    SaleRecord,
    TransactionKind,
    build_customer_statement,
    customer_items,
    reconcile,
)

CID = "c1"


def _sale(sid: str, date, *, total, current, paid=0, previous=None, kind="credit", **extra):
    doc = {
        "id": sid,
        "customerId": CID,
        "createdAt": date,
        "invoiceNumber": sid,
        "invoiceType": kind,
        "totalAmount": total,
        "paidAmount": paid,
        "currentBalance": current,
    }
    if previous is not None:
        doc["previousBalance"] = previous
    doc.update(extra)
    return doc


def _receipt(rid: str, date, amount, *, customer_id: str = CID):
    return {
        "id": rid,
        "customerId": customer_id,
        "receiptDate": date,
        "receiptNumber": rid,
        "paidAmount": amount,
    }


def test_mixed_history_scenario():
    sales = [{"id": "s1", "date": 1, "customerId": CID, "invoiceType": "credit",
              "totalAmount": 200, "currentBalance": 200}]
    receipts = [{"id": "r1", "date": 2, "customerId": CID, "paidAmount": 80}]

    st = build_customer_statement(sales, receipts, CID)

    assert [(r.debit, r.credit, r.balance) for r in st.rows] == [
        (Decimal("200"), Decimal("0"), Decimal("200")),
        (Decimal("0"), Decimal("80"), Decimal("120")),
    ]
    assert st.total_debit == Decimal("200")
    assert st.total_credit == Decimal("80")
    assert [r.kind for r in st.rows] == [
        TransactionKind.INVOICE,
        TransactionKind.PAYMENT_RECEIVED,
    ]


def test_last_row_balance_equals_totals_difference():
    sales = [
        _sale("s1", "2024-01-01", total=300, paid=100, current=200),
        _sale("s2", "2024-01-05", total=50, paid=50, current=0),
        _sale("s3", "2024-01-07", total=-40, current=None, kind="payment"),
    ]
    receipts = [_receipt("r1", "2024-01-03", 25), _receipt("r2", "2024-01-09", 500)]

    st = build_customer_statement(sales, receipts, CID)

    assert st.rows[-1].balance == st.total_debit - st.total_credit
    assert st.current_balance == st.total_debit - st.total_credit
    # Customer balances are never clamped.
    assert st.rows[-1].balance < 0


def test_rows_sorted_by_date_ascending():
    sales = [
        _sale("s-late", "2024-03-01", total=10, current=10),
        _sale("s-early", "2024-01-01", total=10, current=10),
    ]
    receipts = [_receipt("r-mid", "2024-02-01", 5)]

    st = build_customer_statement(sales, receipts, CID)

    dates = [r.date for r in st.rows]
    assert dates == sorted(dates)
    assert [r.id for r in st.rows] == ["s-early", "r-mid", "s-late"]


def test_equal_dates_keep_sales_before_receipts_in_input_order():
    same = "2024-01-01T10:00:00Z"
    sales = [_sale("s1", same, total=10, current=10), _sale("s2", same, total=20, current=20)]
    receipts = [_receipt("r1", same, 5), _receipt("r2", same, 6)]

    st = build_customer_statement(receipts=receipts, sales=sales, customer_id=CID)

    assert [r.id for r in st.rows] == ["s1", "s2", "r1", "r2"]


def test_building_twice_gives_identical_output():
    sales = [_sale("s1", "2024-01-01", total=100, current=100)]
    receipts = [_receipt("r1", "2024-01-02", 30)]

    first = build_customer_statement(sales, receipts, CID)
    second = build_customer_statement(sales, receipts, CID)

    assert first == second
    assert first.as_dict() == second.as_dict()


def test_empty_inputs_give_empty_statement():
    st = build_customer_statement([], [], CID)

    assert st.rows == ()
    assert st.total_debit == 0
    assert st.total_credit == 0
    assert st.current_balance == 0


def test_payment_invoice_is_a_credit_of_its_absolute_total():
    sales = [_sale("p1", "2024-01-01", total=-50, current=None, kind="payment")]

    st = build_customer_statement(sales, [], CID)

    (row,) = st.rows
    assert row.debit == 0
    assert row.credit == Decimal("50")
    assert row.kind is TransactionKind.ACCOUNT_PAYMENT
    assert row.description == "دفعة نقدية"


def test_other_customers_are_filtered_out():
    sales = [
        _sale("s1", "2024-01-01", total=10, current=10),
        {**_sale("s2", "2024-01-01", total=99, current=99), "customerId": "someone-else"},
    ]
    receipts = [_receipt("r1", "2024-01-02", 3, customer_id="someone-else")]

    st = build_customer_statement(sales, receipts, CID)

    assert [r.id for r in st.rows] == ["s1"]


def test_invoice_debit_defaults_to_stored_current_balance():
    # currentBalance carries the previous balance forward (50 + 70 deferred).
    sales = [_sale("s1", "2024-01-01", total=100, paid=30, previous=50, current=120)]

    st = build_customer_statement(sales, [], CID)

    assert st.rows[0].debit == Decimal("120")
    assert st.rows[0].description.startswith("فاتورة بيع - إجمالي: 100.00")
    assert st.warnings == ()


def test_deferred_amount_debit_source_and_mismatch_warning(caplog: pytest.LogCaptureFixture):
    sales = [
        _sale("s1", "2024-01-01", total=100, paid=30, previous=0, current=70),
        _sale("s2", "2024-01-02", total=40, paid=0, previous=70, current=999),
    ]

    with caplog.at_level(logging.WARNING, logger="retail_ledger"):
        st = build_customer_statement(sales, [], CID, debit_source=DebitSource.DEFERRED_AMOUNT)

    assert [r.debit for r in st.rows] == [Decimal("70"), Decimal("40")]
    assert st.current_balance == Decimal("110")
    assert len(st.warnings) == 1
    assert "s2" in st.warnings[0]
    assert any("stored_balance_mismatch" in rec.getMessage() for rec in caplog.records)


def test_reference_carries_invoice_and_receipt_numbers():
    sales = [_sale("s1", "2024-01-01", total=10, current=10, invoiceNumber="INV-7")]
    receipts = [_receipt("REC-002", "2024-01-02", 4)]

    st = build_customer_statement(sales, receipts, CID)

    assert [r.reference for r in st.rows] == ["INV-7", "REC-002"]


def test_model_instances_and_mappings_are_interchangeable():
    doc = _sale("s1", "2024-01-01", total=10, current=10)
    via_model = build_customer_statement([SaleRecord.model_validate(doc)], [], CID)
    via_mapping = build_customer_statement([doc], [], CID)

    assert via_model == via_mapping


def test_dates_are_normalized_to_utc():
    sales = [
        _sale("naive", dt.datetime(2024, 1, 1, 9, 0), total=1, current=1),
        _sale("plain-date", dt.date(2024, 1, 2), total=1, current=1),
        _sale("epoch", 1704240000, total=1, current=1),  # 2024-01-03T00:00:00Z
    ]

    st = build_customer_statement(sales, [], CID)

    assert all(r.date.tzinfo is not None for r in st.rows)
    assert [r.date.date() for r in st.rows] == [
        dt.date(2024, 1, 1),
        dt.date(2024, 1, 2),
        dt.date(2024, 1, 3),
    ]


@pytest.mark.parametrize(
    "bad",
    [
        {"createdAt": "not-a-date"},
        {"createdAt": None},
        {"totalAmount": "abc"},
        {"invoiceType": "barter"},
        {"currentBalance": None},
    ],
)
def test_malformed_sales_raise_validation_error(bad):
    doc = {**_sale("s1", "2024-01-01", total=10, current=10), **bad}

    with pytest.raises(ValidationError):
        build_customer_statement([doc], [], CID)


def test_negative_receipt_is_rejected():
    with pytest.raises(ValidationError):
        build_customer_statement([], [_receipt("r1", "2024-01-01", -1)], CID)


def test_zero_receipt_is_a_zero_credit():
    st = build_customer_statement(
        [_sale("s1", "2024-01-01", total=10, current=10)], [_receipt("r1", "2024-01-02", 0)], CID
    )

    assert [r.credit for r in st.rows] == [Decimal("0"), Decimal("0")]
    assert st.current_balance == Decimal("10")


def test_other_customers_records_are_not_validated():
    sales = [
        _sale("s1", "2024-01-01", total=10, current=10),
        {"id": "broken", "customerId": "c2", "createdAt": "not-a-date", "invoiceType": "barter"},
    ]
    receipts = [{"id": "r-bad", "customerId": "c2", "receiptDate": "2024-01-02", "paidAmount": -3}]

    st = build_customer_statement(sales, receipts, CID)

    assert [r.id for r in st.rows] == ["s1"]
    assert [i.invoice_number for i in customer_items(sales, CID)] == []


def test_customer_id_is_matched_verbatim():
    padded = " c1 "
    sales = [{**_sale("s1", "2024-01-01", total=10, current=10), "customerId": padded}]
    receipts = [_receipt("r1", "2024-01-02", 4, customer_id=padded)]

    exact = build_customer_statement(sales, receipts, padded)
    stripped = build_customer_statement(sales, receipts, CID)

    assert [r.id for r in exact.rows] == ["s1", "r1"]
    assert exact.account_id == padded
    assert stripped.rows == ()


def test_deferred_amount_clamps_like_the_sale_form():
    # A customer in credit (-50) buys 30 on account: balance floors at zero.
    sales = [
        _sale("s1", "2024-01-01", total=30, paid=0, previous=-50, current=0, deferredAmount=30),
        # Paying 120 on a 100 invoice settles 20 of older debt; the invoice defers nothing.
        _sale("s2", "2024-01-02", total=100, paid=120, previous=40, current=20, deferredAmount=0),
    ]

    st = build_customer_statement(sales, [], CID, debit_source=DebitSource.DEFERRED_AMOUNT)

    assert [r.debit for r in st.rows] == [Decimal("30"), Decimal("0")]
    assert st.warnings == ()


def test_stored_deferred_amount_disagreement_is_reported():
    sales = [_sale("s1", "2024-01-01", total=100, paid=30, previous=0, current=70, deferredAmount=60)]

    st = build_customer_statement(sales, [], CID, debit_source=DebitSource.DEFERRED_AMOUNT)

    assert st.rows[0].debit == Decimal("70")
    (warning,) = st.warnings
    assert "deferredAmount 60" in warning


def test_customer_items_flatten_non_payment_invoices_oldest_first():
    item = {"productId": "p1", "productName": "Tea", "quantity": 2, "unitPrice": 5, "totalPrice": 10}
    sales = [
        _sale("s2", "2024-02-01", total=10, current=10, items=[item]),
        _sale("s1", "2024-01-01", total=20, current=20,
              items=[{**item, "productName": "Sugar", "totalPrice": 20, "unitPrice": 10}]),
        _sale("p1", "2024-01-15", total=-5, current=None, kind="payment"),
    ]

    items = customer_items(sales, CID)

    assert [(i.invoice_number, i.product_name) for i in items] == [("s1", "Sugar"), ("s2", "Tea")]
    assert items[1].total_price == Decimal("10")


def test_reconcile_reports_balanced_and_mismatched(caplog: pytest.LogCaptureFixture):
    sales = [_sale("s1", "2024-01-01", total=100, current=100)]
    receipts = [_receipt("r1", "2024-01-02", 40)]
    st = build_customer_statement(sales, receipts, CID)

    ok = reconcile(st, "60.001")
    assert ok.is_balanced
    assert ok.computed_balance == Decimal("60.00")

    with caplog.at_level(logging.WARNING, logger="retail_ledger"):
        off = reconcile(st, 75)
    assert not off.is_balanced
    assert off.difference == Decimal("-15.00")
    assert any("reconcile:mismatch" in rec.getMessage() for rec in caplog.records)

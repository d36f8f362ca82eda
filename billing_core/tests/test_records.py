import datetime
from decimal import Decimal

import pytest

from billing_core.exceptions import MalformedRecord
from billing_core.services.periods import (due_date_for, end_of_month,
                                           in_month, month_key, shift_month,
                                           start_of_month, trailing_months)
from billing_core.services.records import (ExpenseRecord, InvoiceRecord,
                                           PaymentRecord, coerce_amount,
                                           parse_date, parse_datetime,
                                           require_date)


@pytest.mark.parametrize("raw, expected", [
    (None, 0),
    (True, 0),
    (150000, 150000),
    ("150,000", 150000),
    (" 75000 ", 75000),
    ("", 0),
    ("abc", 0),
    (float("nan"), 0),
    (float("inf"), 0),
    (99999.5, 100000),
    (Decimal("10.49"), 10),
])
def test_coerce_amount(raw, expected):
    assert coerce_amount(raw) == expected


def test_parse_datetime_accepts_the_stored_formats():
    assert parse_datetime("2024-02-15") == datetime.datetime(2024, 2, 15)
    assert parse_datetime("2024-02-15 08:30:00") == datetime.datetime(2024, 2, 15, 8, 30)
    assert parse_datetime(datetime.date(2024, 2, 15)) == datetime.datetime(2024, 2, 15)
    assert parse_date("2024-02-15T08:30:00") == datetime.date(2024, 2, 15)


@pytest.mark.parametrize("raw", [None, "", "yesterday", "2024-02-30", 12345])
def test_unusable_dates_become_none(raw):
    assert parse_datetime(raw) is None


def test_require_date_raises_malformed_record():
    with pytest.raises(MalformedRecord) as excinfo:
        require_date("inv-1", "date", None)
    assert excinfo.value.record_id == "inv-1"
    assert require_date("inv-1", "date", datetime.date(2024, 1, 1)) == datetime.date(2024, 1, 1)


def test_invoice_from_legacy_document():
    record = InvoiceRecord.from_mapping({
        "id": 7, "customerId": 3, "customerName": "Andi",
        "date": "2024-01-01", "dueDate": "2024-01-05",
        "amount": 150000.0, "status": "lunas",
    })

    assert record.id == "7"
    assert record.customer_id == "3"
    assert record.amount == 150000
    assert record.status == "paid"
    assert record.due_date == datetime.date(2024, 1, 5)


@pytest.mark.parametrize("raw", [-150000, "-5000", -0.4])
def test_negative_invoice_amount_owes_nothing(raw):
    record = InvoiceRecord.from_mapping({"id": "x", "customerId": "c1", "date": "2024-01-01", "amount": raw})
    assert record.amount == 0


def test_payment_from_document_without_total_payment():
    record = PaymentRecord.from_mapping({
        "id": "p1", "customerId": "c1", "paymentDate": "2024-02-15 10:00:00",
        "invoiceIds": ["a", "b"], "paidAmount": "150000", "changeAmount": None,
    })

    assert record.invoice_ids == ("a", "b")
    assert record.change_amount == 0
    assert record.total_payment is None
    assert record.revenue == 150000
    assert record.collector_name == ""


def test_payment_keeps_collector_name():
    record = PaymentRecord.from_mapping({
        "id": "p2", "customerId": "c1", "paymentDate": "2024-02-15",
        "paidAmount": 100000, "collectorName": "Rudi",
    })
    assert record.collector_name == "Rudi"


def test_expense_from_document():
    template = ExpenseRecord.from_mapping({"id": "e1", "name": "OLT", "category": "angsuran",
                                           "amount": 500000, "tenor": "12", "dueDateDay": 10})
    booked = ExpenseRecord.from_mapping({"id": "e2", "name": "Fuel", "category": "lainnya",
                                         "amount": 20000, "date": "2024-03-04"})

    assert template.category == "installment"
    assert template.tenor == 12
    assert not template.is_transaction
    assert not template.malformed_date
    assert booked.category == "other"
    assert booked.is_transaction


def test_month_helpers():
    day = datetime.datetime(2024, 2, 10, 13, 0)
    assert start_of_month(day) == datetime.date(2024, 2, 1)
    assert end_of_month(day) == datetime.date(2024, 2, 29)
    assert month_key(day) == "2024-02"
    assert in_month(datetime.date(2024, 2, 29), day)
    assert not in_month(datetime.date(2024, 3, 1), day)
    assert not in_month(None, day)


def test_shift_and_trailing_months():
    assert shift_month(2024, 1, -1) == (2023, 12)
    assert shift_month(2023, 12, 1) == (2024, 1)
    assert trailing_months(datetime.date(2024, 2, 1), 3) == [(2023, 12), (2024, 1), (2024, 2)]


@pytest.mark.parametrize("year, month, code, expected", [
    (2024, 2, 31, datetime.date(2024, 2, 29)),
    (2023, 2, 30, datetime.date(2023, 2, 28)),
    (2024, 4, 31, datetime.date(2024, 4, 30)),
    (2024, 5, 31, datetime.date(2024, 5, 31)),
    (2024, 5, 5, datetime.date(2024, 5, 5)),
])
def test_due_date_is_clamped_to_month_length(year, month, code, expected):
    assert due_date_for(year, month, code) == expected

import datetime

import pytest

from billing_core.services.aggregation import (aggregate, customer_statement,
                                               delinquency_groups,
                                               payment_report,
                                               revenue_by_month)
from billing_core.services.records import (CustomerRecord, ExpenseRecord,
                                           InvoiceRecord, OtherIncomeRecord,
                                           PaymentRecord)

AS_OF = datetime.datetime(2024, 7, 15, 10, 0)


def customer(cid, name, price=150_000, mbps=10, due=5, installed=datetime.date(2023, 1, 1)):
    return CustomerRecord(
        id=cid, name=name, package_price=price, subscription_mbps=mbps,
        due_date_code=due, installation_date=installed,
    )


def invoice(iid, cid, date, amount=150_000):
    return InvoiceRecord(id=iid, customer_id=cid, date=date, amount=amount)


def payment(pid, cid, when, invoice_ids, paid, total=None, change=0):
    return PaymentRecord(
        id=pid, customer_id=cid, payment_date=when, invoice_ids=tuple(invoice_ids),
        paid_amount=paid, change_amount=change, total_payment=total,
    )


def run(customers=(), invoices=(), payments=(), expenses=(), other_incomes=(), as_of=AS_OF, **kwargs):
    return aggregate(customers, invoices, payments, expenses, other_incomes, as_of, **kwargs)


def test_arrears_boundary_is_start_of_month():
    customers = [customer("1", "Andi")]
    invoices = [
        invoice("june-last-day", "1", datetime.date(2024, 6, 30), 100_000),
        invoice("july-first", "1", datetime.date(2024, 7, 1), 150_000),
    ]

    report = run(customers, invoices)

    assert report.total_arrears == 100_000
    assert [(e.customer_id, e.amount, e.invoice_count) for e in report.arrears_details] == [("1", 100_000, 1)]


def test_arrears_use_allocation_not_status_flag():
    customers = [customer("1", "Andi"), customer("2", "Budi")]
    invoices = [
        # stale cache says paid, nothing was ever paid
        InvoiceRecord(id="a", customer_id="1", date=datetime.date(2024, 5, 1), amount=150_000, status="paid"),
        invoice("b", "2", datetime.date(2024, 5, 1), 200_000),
        invoice("c", "2", datetime.date(2024, 6, 1), 200_000),
    ]
    payments = [payment("p", "2", datetime.datetime(2024, 6, 3), ["b", "c"], 250_000, total=250_000)]

    report = run(customers, invoices, payments)

    assert {(e.name, e.amount) for e in report.arrears_details} == {("Andi", 150_000), ("Budi", 150_000)}
    assert report.total_arrears == 300_000


def test_arrears_sorted_descending():
    customers = [customer("1", "Andi"), customer("2", "Budi")]
    invoices = [
        invoice("a", "1", datetime.date(2024, 6, 1), 100_000),
        invoice("b", "2", datetime.date(2024, 5, 1), 200_000),
        invoice("c", "2", datetime.date(2024, 6, 1), 200_000),
    ]

    report = run(customers, invoices)

    assert [e.name for e in report.arrears_details] == ["Budi", "Andi"]
    assert report.arrears_details[0].invoice_count == 2


def test_revenue_series_is_zero_filled_and_oldest_first():
    payments = [
        payment("p1", "1", datetime.datetime(2024, 2, 10), [], 100_000, total=100_000),
        payment("p2", "1", datetime.datetime(2024, 4, 1), [], 50_000, total=50_000),
        payment("p3", "1", datetime.datetime(2024, 7, 2), [], 75_000, total=75_000),
        # outside the window
        payment("old", "1", datetime.datetime(2023, 12, 31), [], 999, total=999),
    ]

    series = revenue_by_month(payments, AS_OF, months=6)

    assert [(p.label, p.revenue) for p in series] == [
        ("Feb", 100_000), ("Mar", 0), ("Apr", 50_000), ("May", 0), ("Jun", 0), ("Jul", 75_000),
    ]


def test_revenue_series_falls_back_to_paid_amount_for_legacy_rows():
    payments = [payment("legacy", "1", datetime.datetime(2024, 7, 1), [], 120_000, total=None)]

    series = revenue_by_month(payments, AS_OF, months=1)

    assert [(p.year, p.month, p.revenue) for p in series] == [(2024, 7, 120_000)]


def test_revenue_series_crosses_year_boundary():
    series = revenue_by_month([], datetime.datetime(2024, 2, 1), months=4)
    assert [(p.year, p.label) for p in series] == [(2023, "Nov"), (2023, "Dec"), (2024, "Jan"), (2024, "Feb")]


def test_monthly_totals_use_each_record_own_date():
    invoices = [invoice("old", "1", datetime.date(2024, 3, 1))]
    payments = [
        # pays a March invoice in July: July income
        payment("p1", "1", datetime.datetime(2024, 7, 3), ["old"], 150_000, total=150_000),
        payment("p2", "1", datetime.datetime(2024, 6, 30, 23, 59), [], 40_000, total=40_000),
    ]
    expenses = [
        ExpenseRecord(id="e1", name="Bandwidth", category="recurring", amount=500_000, date=datetime.date(2024, 7, 1)),
        ExpenseRecord(id="e2", name="Bandwidth", category="recurring", amount=500_000, date=datetime.date(2024, 6, 1)),
        # template, not money spent
        ExpenseRecord(id="t1", name="Bandwidth", category="recurring", amount=500_000, due_date_day=1),
    ]
    other = [
        OtherIncomeRecord(id="o1", name="Router", amount=30_000, date=datetime.date(2024, 7, 31)),
        OtherIncomeRecord(id="o2", name="Cable", amount=10_000, date=datetime.date(2024, 8, 1)),
    ]

    report = run([customer("1", "Andi")], invoices, payments, expenses, other)

    assert report.monthly_payment_income == 150_000
    assert report.monthly_other_income == 30_000
    assert report.monthly_income == 180_000
    assert report.monthly_expense == 500_000
    assert report.net_profit == -320_000

    assert report.total_payment_income == 190_000
    assert report.total_other_income == 40_000
    assert report.total_income == 230_000
    assert report.total_expense == 1_000_000
    assert report.balance == -770_000


def test_invoice_status_breakdown_for_current_month():
    customers = [customer("1", "Andi"), customer("2", "Budi")]
    invoices = [
        invoice("a", "1", datetime.date(2024, 7, 1), 150_000),
        invoice("b", "2", datetime.date(2024, 7, 1), 200_000),
        invoice("june", "2", datetime.date(2024, 6, 1), 200_000),
    ]
    payments = [payment("p", "1", datetime.datetime(2024, 7, 2), ["a"], 150_000, total=150_000)]

    report = run(customers, invoices, payments)

    assert (report.paid_invoices.count, report.paid_invoices.amount) == (1, 150_000)
    assert (report.unpaid_invoices.count, report.unpaid_invoices.amount) == (1, 200_000)


def test_new_customers_and_omset():
    customers = [
        customer("1", "Andi", price=150_000, mbps=10, installed=datetime.date(2024, 7, 1)),
        customer("2", "Budi", price=150_000, mbps=10),
        customer("3", "Citra", price=250_000, mbps=30, installed=datetime.date(2024, 7, 31)),
        customer("4", "Free", price=0, mbps=5),
    ]

    report = run(customers)

    assert report.new_customers_count == 2
    assert {c.name for c in report.new_customers} == {"Andi", "Citra"}
    assert report.total_omset == 550_000
    assert [(e.subscription_mbps, e.package_price, e.count, e.total) for e in report.omset_details] == [
        (10, 150_000, 2, 300_000),
        (30, 250_000, 1, 250_000),
    ]


def test_malformed_records_are_skipped_and_counted():
    invoices = [
        invoice("a", "1", datetime.date(2024, 6, 1), 150_000),
        InvoiceRecord(id="bad", customer_id="1", date=None, amount=150_000),
    ]
    payments = [payment("nodate", "1", None, ["a"], 150_000, total=150_000)]
    expenses = [
        ExpenseRecord.from_mapping({"id": "x", "name": "Fuel", "category": "lainnya",
                                    "amount": "25000", "date": "not a date"}),
    ]

    report = run([customer("1", "Andi")], invoices, payments, expenses)

    # the undated payment still counts as income overall, not for arrears
    assert report.total_payment_income == 150_000
    assert report.total_arrears == 150_000
    assert report.monthly_expense == 0
    assert report.total_expense == 25_000
    assert report.skipped_records == 3


def test_report_is_deterministic_and_serializable():
    customers = [customer("1", "Andi", installed=datetime.date(2024, 7, 2))]
    invoices = [invoice("a", "1", datetime.date(2024, 7, 1))]
    stamp = datetime.datetime(2024, 7, 15, 11, 0)

    first = run(customers, invoices, last_updated=stamp)
    second = run(customers, invoices, last_updated=stamp)

    assert first == second
    data = first.to_dict()
    assert data["as_of"] == "2024-07-15T10:00:00"
    assert data["last_updated"] == "2024-07-15T11:00:00"
    assert data["new_customers"][0]["installation_date"] == "2024-07-02"
    assert data["unpaid_invoices"] == {"count": 1, "amount": 150_000}


def test_customer_statement_lines_and_totals():
    andi = CustomerRecord(id="1", name="Andi", credit_balance=5_000)
    invoices = [
        invoice("feb", "1", datetime.date(2024, 2, 1), 100_000),
        invoice("jan", "1", datetime.date(2024, 1, 1), 100_000),
        invoice("other", "2", datetime.date(2024, 1, 1), 100_000),
    ]
    payments = [payment("p", "1", datetime.datetime(2024, 2, 15), ["jan", "feb"], 150_000)]

    statement = customer_statement(andi, invoices, payments)

    assert [(line.invoice_id, line.paid, line.remaining) for line in statement.lines] == [
        ("jan", 100_000, 0),
        ("feb", 50_000, 50_000),
    ]
    assert statement.outstanding_balance == 50_000
    assert statement.total_paid_to_invoices + statement.outstanding_balance == statement.total_invoiced
    assert statement.to_dict()["credit_balance"] == 5_000


def test_delinquency_groups_by_due_code():
    customers = [
        customer("1", "Citra", due=15),
        customer("2", "Andi", due=15),
        customer("3", "Budi", due=5),
        customer("4", "Dewi", due=5),
    ]
    invoices = [
        invoice("a", "1", datetime.date(2024, 6, 1)),
        invoice("b", "2", datetime.date(2024, 6, 1)),
        invoice("c", "3", datetime.date(2024, 6, 1)),
        invoice("d", "4", datetime.date(2024, 6, 1)),
        invoice("future", "4", datetime.date(2024, 8, 1)),
    ]
    payments = [payment("p", "4", datetime.datetime(2024, 6, 5), ["d"], 150_000)]

    groups = delinquency_groups(customers, invoices, payments, as_of=AS_OF)

    assert list(groups) == [5, 15]
    assert [e.name for e in groups[5]] == ["Budi"]
    assert [e.name for e in groups[15]] == ["Andi", "Citra"]


def collected(pid, when, amount, method="cash", collector="", total=True):
    return PaymentRecord(
        id=pid, customer_id="1", payment_date=when, paid_amount=amount,
        total_payment=amount if total else None, payment_method=method,
        collector_name=collector,
    )


def test_payment_report_days_methods_and_collectors():
    payments = [
        collected("a", datetime.datetime(2024, 7, 1, 9, 0), 150_000, collector="Rudi"),
        collected("b", datetime.datetime(2024, 7, 1, 16, 0), 100_000, method="bank_transfer", collector="Sari"),
        collected("c", datetime.datetime(2024, 7, 3, 8, 0), 200_000, method="e_wallet", collector="Rudi"),
        # legacy row: revenue falls back to paid_amount
        collected("d", datetime.datetime(2024, 7, 3, 10, 0), 50_000, total=False),
        collected("june", datetime.datetime(2024, 6, 30, 23, 59), 999_000),
        collected("august", datetime.datetime(2024, 8, 1), 999_000),
    ]

    report = payment_report(payments, datetime.date(2024, 7, 1), datetime.date(2024, 7, 31))

    assert [d.date for d in report.days] == [datetime.date(2024, 7, 3), datetime.date(2024, 7, 1)]
    assert report.days[0].total == 250_000
    assert report.days[0].by_method == {"e_wallet": 200_000, "cash": 50_000}
    assert report.days[1].by_collector == {"Rudi": 150_000, "Sari": 100_000}
    assert report.by_method == {"cash": 200_000, "bank_transfer": 100_000, "e_wallet": 200_000}
    assert [(c.collector, c.total, c.payment_count) for c in report.collectors] == [
        ("Rudi", 350_000, 2), ("Sari", 100_000, 1), ("unassigned", 50_000, 1),
    ]
    assert report.total == 500_000
    assert report.payment_count == 4


def test_payment_report_range_is_inclusive_and_skips_undated():
    payments = [
        collected("first", datetime.datetime(2024, 7, 1, 0, 0), 10_000),
        collected("last", datetime.datetime(2024, 7, 2, 23, 59), 20_000),
        collected("nodate", None, 5_000),
    ]

    report = payment_report(payments, datetime.date(2024, 7, 1), datetime.date(2024, 7, 2))

    assert report.total == 30_000
    assert report.skipped_records == 1
    assert report.to_dict()["days"][0]["date"] == "2024-07-02"


def test_payment_report_rejects_reversed_range():
    with pytest.raises(ValueError):
        payment_report([], datetime.date(2024, 7, 2), datetime.date(2024, 7, 1))

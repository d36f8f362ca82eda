"""
Financial summary of an ISP business at a given instant.

One aggregation run answers every dashboard question (global totals, this
month's totals, arrears, new customers, revenue series, invoice status,
potential revenue) from the same materialized records and the same `as_of`,
so the figures on a page always agree with each other.
"""
import calendar
import datetime
import logging
from dataclasses import asdict, dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence

from .allocation import AllocationResult, run_allocation
from .periods import end_of_month, in_month, start_of_month, trailing_months
from .records import (CustomerRecord, ExpenseRecord, InvoiceRecord,
                      OtherIncomeRecord, PaymentRecord)

logger = logging.getLogger(__name__)

DEFAULT_REVENUE_MONTHS = 6


# ----------------------------
# Report value objects
# ----------------------------
@dataclass(frozen=True)
class ArrearsEntry:
    customer_id: str
    name: str
    amount: int
    invoice_count: int


@dataclass(frozen=True)
class RevenuePoint:
    year: int
    month: int
    label: str  # 'Mar'
    revenue: int


@dataclass(frozen=True)
class StatusBucket:
    count: int = 0
    amount: int = 0


@dataclass(frozen=True)
class OmsetEntry:
    subscription_mbps: int
    package_price: int
    count: int
    total: int


@dataclass(frozen=True)
class NewCustomer:
    customer_id: str
    name: str
    subscription_mbps: int
    package_price: int
    installation_date: datetime.date


@dataclass(frozen=True)
class SummaryReport:
    as_of: datetime.datetime
    last_updated: datetime.datetime

    # all-time
    total_payment_income: int
    total_other_income: int
    total_income: int
    total_expense: int
    balance: int

    # calendar month of as_of
    monthly_payment_income: int
    monthly_other_income: int
    monthly_income: int
    monthly_expense: int
    net_profit: int

    total_arrears: int
    arrears_details: List[ArrearsEntry]

    new_customers_count: int
    new_customers: List[NewCustomer]

    revenue_by_month: List[RevenuePoint]

    paid_invoices: StatusBucket
    unpaid_invoices: StatusBucket

    total_omset: int
    omset_details: List[OmsetEntry]

    # records left out of date- or allocation-sensitive figures
    skipped_records: int = 0

    def to_dict(self):
        """JSON-ready dict (dates as ISO strings) for persistence and HTTP."""
        return _jsonable(asdict(self))


def _jsonable(value):
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    if isinstance(value, (datetime.date, datetime.datetime)):
        return value.isoformat()
    return value


@dataclass
class _Skips:
    # (kind, record id) pairs, so a record skipped twice counts once
    seen: set = field(default_factory=set)

    def add(self, kind, record_id):
        self.seen.add((kind, record_id))

    @property
    def count(self):
        return len(self.seen)

    @property
    def reasons(self):
        kinds = {}
        for kind, _ in self.seen:
            kinds[kind] = kinds.get(kind, 0) + 1
        return kinds


# ----------------------------
# Individual figures
# ----------------------------
def income_totals(payments: Sequence[PaymentRecord], other_incomes: Sequence[OtherIncomeRecord]):
    payment_income = sum(p.total_payment or 0 for p in payments)
    other_income = sum(i.amount for i in other_incomes)
    return payment_income, other_income


def expense_total(expenses: Iterable[ExpenseRecord]) -> int:
    # templates (no date) are future obligations, not money spent;
    # a transaction whose date is unreadable still counts here
    return sum(e.amount for e in expenses if e.is_transaction or e.malformed_date)


def monthly_totals(payments, expenses, other_incomes, as_of, skips=None):
    """(payment income, other income, expense) for the calendar month of as_of.

    Each record is filtered by its own date, never by the invoice it pays.
    """
    payment_income = 0
    for p in payments:
        if p.payment_date is None:
            if skips is not None:
                skips.add("payment", p.id)
            continue
        if in_month(p.payment_date, as_of):
            payment_income += p.total_payment or 0

    other_income = 0
    for i in other_incomes:
        if i.date is None:
            if skips is not None:
                skips.add("other_income", i.id)
            continue
        if in_month(i.date, as_of):
            other_income += i.amount

    expense = 0
    for e in expenses:
        if e.date is None:
            if e.malformed_date and skips is not None:
                skips.add("expense", e.id)
            continue
        if in_month(e.date, as_of):
            expense += e.amount

    return payment_income, other_income, expense


def arrears_by_customer(invoices, allocation: AllocationResult, as_of, customer_names=None):
    """Unpaid remainder of invoices issued before the month of as_of, per customer, largest first."""
    cutoff = start_of_month(as_of)
    customer_names = customer_names or {}
    grouped: Dict[str, Dict] = {}

    for invoice in invoices:
        if invoice.date is None or invoice.id not in allocation.remaining:
            continue
        if invoice.date >= cutoff:
            continue
        owed = allocation.remaining[invoice.id]
        if owed <= 0:
            continue
        entry = grouped.setdefault(invoice.customer_id, {
            "name": customer_names.get(invoice.customer_id) or invoice.customer_name or "N/A",
            "amount": 0,
            "invoice_count": 0,
        })
        entry["amount"] += owed
        entry["invoice_count"] += 1

    details = [
        ArrearsEntry(customer_id=cid, name=e["name"], amount=e["amount"],
                     invoice_count=e["invoice_count"])
        for cid, e in grouped.items()
    ]
    details.sort(key=lambda e: e.amount, reverse=True)
    return details


def new_customers_in_month(customers: Iterable[CustomerRecord], as_of):
    return [
        NewCustomer(
            customer_id=c.id,
            name=c.name,
            subscription_mbps=c.subscription_mbps,
            package_price=c.package_price,
            installation_date=c.installation_date,
        )
        for c in customers
        if in_month(c.installation_date, as_of)
    ]


def revenue_by_month(payments: Iterable[PaymentRecord], as_of, months=DEFAULT_REVENUE_MONTHS):
    """Payment revenue for the trailing `months` months, oldest first, empty months as 0."""
    buckets = {ym: 0 for ym in trailing_months(as_of, months)}
    for p in payments:
        if p.payment_date is None:
            continue
        key = (p.payment_date.year, p.payment_date.month)
        if key in buckets:
            buckets[key] += p.revenue
    return [
        RevenuePoint(year=y, month=m, label=calendar.month_abbr[m], revenue=amount)
        for (y, m), amount in buckets.items()
    ]


def invoice_status_breakdown(invoices, allocation: AllocationResult, as_of):
    """(paid, unpaid) buckets for invoices issued in the month of as_of."""
    paid_count = paid_amount = unpaid_count = unpaid_amount = 0
    for invoice in invoices:
        if invoice.id not in allocation.remaining or not in_month(invoice.date, as_of):
            continue
        if allocation.is_settled(invoice.id):
            paid_count += 1
            paid_amount += invoice.amount
        else:
            unpaid_count += 1
            unpaid_amount += invoice.amount
    return StatusBucket(paid_count, paid_amount), StatusBucket(unpaid_count, unpaid_amount)


def omset_breakdown(customers: Iterable[CustomerRecord]):
    """Potential monthly revenue per (tier, price) pair, largest total first."""
    groups: Dict[tuple, List[int]] = {}
    for c in customers:
        if c.package_price <= 0:
            continue
        count_total = groups.setdefault((c.subscription_mbps, c.package_price), [0, 0])
        count_total[0] += 1
        count_total[1] += c.package_price
    details = [
        OmsetEntry(subscription_mbps=mbps, package_price=price, count=count, total=total)
        for (mbps, price), (count, total) in groups.items()
    ]
    details.sort(key=lambda e: e.total, reverse=True)
    return details


# ----------------------------
# Whole report
# ----------------------------
def aggregate(
    customers: Sequence[CustomerRecord],
    invoices: Sequence[InvoiceRecord],
    payments: Sequence[PaymentRecord],
    expenses: Sequence[ExpenseRecord],
    other_incomes: Sequence[OtherIncomeRecord],
    as_of: datetime.datetime,
    months: int = DEFAULT_REVENUE_MONTHS,
    last_updated: Optional[datetime.datetime] = None,
    allocation: Optional[AllocationResult] = None,
) -> SummaryReport:
    customers = list(customers)
    invoices = list(invoices)
    payments = list(payments)
    expenses = list(expenses)
    other_incomes = list(other_incomes)

    if allocation is None:
        allocation = run_allocation(invoices, payments)

    skips = _Skips()
    for invoice_id in allocation.rejected_invoices:
        skips.add("invoice", invoice_id)
    for payment_id in allocation.rejected_payments:
        skips.add("payment", payment_id)

    total_payment_income, total_other_income = income_totals(payments, other_incomes)
    total_income = total_payment_income + total_other_income
    total_expense = expense_total(expenses)

    month_payments, month_other, month_expense = monthly_totals(
        payments, expenses, other_incomes, as_of, skips)
    monthly_income = month_payments + month_other

    names = {c.id: c.name for c in customers}
    arrears = arrears_by_customer(invoices, allocation, as_of, names)

    new_customers = new_customers_in_month(customers, as_of)
    paid, unpaid = invoice_status_breakdown(invoices, allocation, as_of)

    if skips.count:
        logger.warning(
            "Aggregation for %s skipped %d record(s): %s",
            as_of.date() if isinstance(as_of, datetime.datetime) else as_of,
            skips.count, skips.reasons,
        )

    return SummaryReport(
        as_of=as_of,
        last_updated=last_updated or as_of,
        total_payment_income=total_payment_income,
        total_other_income=total_other_income,
        total_income=total_income,
        total_expense=total_expense,
        balance=total_income - total_expense,
        monthly_payment_income=month_payments,
        monthly_other_income=month_other,
        monthly_income=monthly_income,
        monthly_expense=month_expense,
        net_profit=monthly_income - month_expense,
        total_arrears=sum(e.amount for e in arrears),
        arrears_details=arrears,
        new_customers_count=len(new_customers),
        new_customers=new_customers,
        revenue_by_month=revenue_by_month(payments, as_of, months),
        paid_invoices=paid,
        unpaid_invoices=unpaid,
        total_omset=sum(c.package_price for c in customers),
        omset_details=omset_breakdown(customers),
        skipped_records=skips.count,
    )


# ----------------------------
# Per-customer views
# ----------------------------
@dataclass(frozen=True)
class StatementLine:
    invoice_id: str
    date: datetime.date
    due_date: Optional[datetime.date]
    amount: int
    paid: int
    remaining: int


@dataclass(frozen=True)
class CustomerStatement:
    customer_id: str
    lines: List[StatementLine]
    outstanding_balance: int
    total_paid_to_invoices: int
    total_invoiced: int
    credit_balance: int = 0

    def to_dict(self):
        return _jsonable(asdict(self))


def customer_statement(customer: CustomerRecord, invoices, payments) -> CustomerStatement:
    """Remaining balance of each of one customer's invoices, oldest first."""
    own_invoices = [i for i in invoices if i.customer_id == customer.id]
    own_payments = [p for p in payments if p.customer_id == customer.id]
    allocation = run_allocation(own_invoices, own_payments)

    lines = [
        StatementLine(
            invoice_id=i.id,
            date=i.date,
            due_date=i.due_date,
            amount=i.amount,
            paid=allocation.applied[i.id],
            remaining=allocation.remaining[i.id],
        )
        for i in own_invoices
        if i.id in allocation.remaining
    ]
    lines.sort(key=lambda line: line.date)
    return CustomerStatement(
        customer_id=customer.id,
        lines=lines,
        outstanding_balance=sum(line.remaining for line in lines),
        total_paid_to_invoices=sum(line.paid for line in lines),
        total_invoiced=sum(line.amount for line in lines),
        credit_balance=customer.credit_balance,
    )


def delinquency_groups(customers: Iterable[CustomerRecord], invoices, payments, as_of=None):
    """Customers with anything still owed, grouped by due-date code (ascending).

    With `as_of`, only invoices issued up to the end of that month count.
    """
    invoices = list(invoices)
    if as_of is not None:
        last_day = end_of_month(as_of)
        invoices = [i for i in invoices if i.date is not None and i.date <= last_day]
    allocation = run_allocation(invoices, payments)

    owed: Dict[str, int] = {}
    for invoice in invoices:
        remaining = allocation.remaining.get(invoice.id, 0)
        if remaining > 0:
            owed[invoice.customer_id] = owed.get(invoice.customer_id, 0) + remaining

    groups: Dict[int, List[ArrearsEntry]] = {}
    for c in customers:
        if owed.get(c.id, 0) <= 0:
            continue
        unpaid = sum(1 for i in invoices if i.customer_id == c.id
                     and allocation.remaining.get(i.id, 0) > 0)
        groups.setdefault(c.due_date_code, []).append(
            ArrearsEntry(customer_id=c.id, name=c.name, amount=owed[c.id], invoice_count=unpaid))

    return {code: sorted(groups[code], key=lambda e: e.name) for code in sorted(groups)}


# ----------------------------
# Payment report
# ----------------------------
UNASSIGNED_COLLECTOR = "unassigned"


@dataclass(frozen=True)
class PaymentDay:
    date: datetime.date
    total: int
    payment_count: int
    by_method: Dict[str, int]
    by_collector: Dict[str, int]


@dataclass(frozen=True)
class CollectorTotal:
    collector: str
    total: int
    payment_count: int


@dataclass(frozen=True)
class PaymentReport:
    start: datetime.date
    end: datetime.date
    days: List[PaymentDay]  # newest first
    by_method: Dict[str, int]
    collectors: List[CollectorTotal]
    total: int
    payment_count: int
    skipped_records: int = 0

    def to_dict(self):
        return _jsonable(asdict(self))


def payment_report(payments: Iterable[PaymentRecord], start: datetime.date, end: datetime.date) -> PaymentReport:
    """Money collected between `start` and `end` (both inclusive).

    Totals per day, per payment method and per collector, counted as
    `revenue`. Payments without a date are skipped and counted.
    """
    if start > end:
        raise ValueError(f"Report start {start} is after end {end}")

    days: Dict[datetime.date, dict] = {}
    by_method: Dict[str, int] = {}
    collectors: Dict[str, List[int]] = {}
    total = count = skipped = 0

    for payment in payments:
        if payment.payment_date is None:
            skipped += 1
            continue
        day = payment.payment_date.date()
        if not start <= day <= end:
            continue
        amount = payment.revenue
        collector = payment.collector_name.strip() or UNASSIGNED_COLLECTOR

        bucket = days.setdefault(day, {"total": 0, "count": 0, "methods": {}, "collectors": {}})
        bucket["total"] += amount
        bucket["count"] += 1
        bucket["methods"][payment.payment_method] = bucket["methods"].get(payment.payment_method, 0) + amount
        bucket["collectors"][collector] = bucket["collectors"].get(collector, 0) + amount

        by_method[payment.payment_method] = by_method.get(payment.payment_method, 0) + amount
        per_collector = collectors.setdefault(collector, [0, 0])
        per_collector[0] += amount
        per_collector[1] += 1
        total += amount
        count += 1

    if skipped:
        logger.warning("Payment report skipped %d payment(s) without a date", skipped)

    return PaymentReport(
        start=start,
        end=end,
        days=[
            PaymentDay(date=day, total=b["total"], payment_count=b["count"],
                       by_method=b["methods"], by_collector=b["collectors"])
            for day, b in sorted(days.items(), reverse=True)
        ],
        by_method=by_method,
        # biggest collector first, ties by name
        collectors=sorted(
            (CollectorTotal(collector=name, total=t, payment_count=n) for name, (t, n) in collectors.items()),
            key=lambda c: (-c.total, c.collector),
        ),
        total=total,
        payment_count=count,
        skipped_records=skipped,
    )

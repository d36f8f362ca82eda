"""
Flat, immutable record view of billing data.

The allocation and aggregation engines only ever see these records, never
model instances or raw documents. Records are built either from Django model
instances (`from_model`) or from raw documents shaped like the old document
store (`from_mapping`, camelCase keys). Conversion never raises for bad
data: amounts fall back to 0 and dates to None, and each engine decides what
a missing date means for it.
"""
import datetime
import math
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional, Tuple

from django.utils import timezone
from django.utils.dateparse import parse_date as _parse_date
from django.utils.dateparse import parse_datetime as _parse_datetime

from ..exceptions import MalformedRecord


# ----------------------------
# Coercion helpers
# ----------------------------
def coerce_amount(value) -> int:
    """Integer minor units (rupiah). Anything unusable counts as 0."""
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return 0
        value = Decimal(repr(value))
    if isinstance(value, str):
        value = value.strip().replace(",", "").replace("_", "")
        if not value:
            return 0
    try:
        number = Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        return 0
    if not number.is_finite():
        return 0
    return int(number.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _naive(value: datetime.datetime) -> datetime.datetime:
    # Aware values are compared in the project time zone
    if timezone.is_aware(value):
        return timezone.make_naive(value)
    return value


def parse_datetime(value) -> Optional[datetime.datetime]:
    """datetime, date, 'yyyy-MM-dd', 'yyyy-MM-dd HH:mm:ss' or ISO-8601; else None."""
    if value is None:
        return None
    if isinstance(value, datetime.datetime):
        return _naive(value)
    if isinstance(value, datetime.date):
        return datetime.datetime(value.year, value.month, value.day)
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    try:
        parsed = _parse_datetime(text)
        if parsed is not None:
            return _naive(parsed)
        day = _parse_date(text)
    except ValueError:
        # well formatted but not a real date, e.g. 2024-02-30
        return None
    if day is None:
        return None
    return datetime.datetime(day.year, day.month, day.day)


def parse_date(value) -> Optional[datetime.date]:
    parsed = parse_datetime(value)
    return parsed.date() if parsed is not None else None


def require_date(record_id, field_name, value):
    """Strict variant for callers that must reject a record without a date."""
    if value is None:
        raise MalformedRecord(record_id, field_name, value)
    return value


def _optional_amount(value) -> Optional[int]:
    if value is None:
        return None
    return coerce_amount(value)


def _int_or_none(value) -> Optional[int]:
    if value is None or value == "":
        return None
    return coerce_amount(value)


# ----------------------------
# Records
# ----------------------------
@dataclass(frozen=True)
class CustomerRecord:
    id: str
    name: str = ""
    package_price: int = 0
    due_date_code: int = 1
    installation_date: Optional[datetime.date] = None
    subscription_mbps: int = 0
    credit_balance: int = 0

    @classmethod
    def from_mapping(cls, data):
        return cls(
            id=str(data.get("id")),
            name=data.get("name") or "",
            package_price=coerce_amount(data.get("packagePrice")),
            due_date_code=coerce_amount(data.get("dueDateCode")) or 1,
            installation_date=parse_date(data.get("installationDate")),
            subscription_mbps=coerce_amount(data.get("subscriptionMbps")),
            credit_balance=coerce_amount(data.get("creditBalance")),
        )

    @classmethod
    def from_model(cls, customer):
        return cls(
            id=str(customer.pk),
            name=customer.name,
            package_price=coerce_amount(customer.package_price),
            due_date_code=customer.due_date_code,
            installation_date=parse_date(customer.installation_date),
            subscription_mbps=coerce_amount(customer.subscription_mbps),
            credit_balance=coerce_amount(customer.credit_balance),
        )


@dataclass(frozen=True)
class InvoiceRecord:
    id: str
    customer_id: str
    date: Optional[datetime.date]
    amount: int
    due_date: Optional[datetime.date] = None
    customer_name: str = ""
    # cached hint only; allocation decides what is paid
    status: str = "unpaid"

    @classmethod
    def from_mapping(cls, data):
        status = data.get("status")
        return cls(
            id=str(data.get("id")),
            customer_id=str(data.get("customerId")),
            customer_name=data.get("customerName") or "",
            date=parse_date(data.get("date")),
            due_date=parse_date(data.get("dueDate")),
            # a negative face amount is unusable; it owes nothing
            amount=max(coerce_amount(data.get("amount")), 0),
            # legacy documents used 'lunas' / 'belum lunas'
            status="paid" if status in ("paid", "lunas") else "unpaid",
        )

    @classmethod
    def from_model(cls, invoice, customer_name=""):
        return cls(
            id=str(invoice.pk),
            customer_id=str(invoice.customer_id),
            customer_name=customer_name,
            date=parse_date(invoice.date),
            due_date=parse_date(invoice.due_date),
            amount=max(coerce_amount(invoice.amount), 0),
            status=invoice.status,
        )


@dataclass(frozen=True)
class PaymentRecord:
    id: str
    customer_id: str
    payment_date: Optional[datetime.datetime]
    invoice_ids: Tuple[str, ...] = ()
    paid_amount: int = 0
    change_amount: int = 0
    # None on legacy records that predate the field
    total_payment: Optional[int] = None
    total_bill: int = 0
    discount: int = 0
    credit_applied: int = 0
    payment_method: str = "cash"
    collector_name: str = ""

    @property
    def revenue(self) -> int:
        """Revenue credited to the payment's month; legacy rows fall back to paid_amount."""
        if self.total_payment is None:
            return self.paid_amount
        return self.total_payment

    @classmethod
    def from_mapping(cls, data):
        raw_ids = data.get("invoiceIds") or ()
        if isinstance(raw_ids, str):
            raw_ids = (raw_ids,)
        return cls(
            id=str(data.get("id")),
            customer_id=str(data.get("customerId")),
            payment_date=parse_datetime(data.get("paymentDate")),
            invoice_ids=tuple(str(i) for i in raw_ids),
            paid_amount=coerce_amount(data.get("paidAmount")),
            change_amount=coerce_amount(data.get("changeAmount")),
            total_payment=_optional_amount(data.get("totalPayment")),
            total_bill=coerce_amount(data.get("totalBill")),
            discount=coerce_amount(data.get("discount")),
            credit_applied=coerce_amount(data.get("creditApplied")),
            payment_method=data.get("paymentMethod") or "cash",
            collector_name=data.get("collectorName") or "",
        )

    @classmethod
    def from_model(cls, payment, invoice_ids=None):
        if invoice_ids is None:
            invoice_ids = [inv.pk for inv in payment.invoices.all()]
        return cls(
            id=str(payment.pk),
            customer_id=str(payment.customer_id),
            payment_date=parse_datetime(payment.payment_date),
            invoice_ids=tuple(str(i) for i in invoice_ids),
            paid_amount=coerce_amount(payment.paid_amount),
            change_amount=coerce_amount(payment.change_amount),
            total_payment=_optional_amount(payment.total_payment),
            total_bill=coerce_amount(payment.total_bill),
            discount=coerce_amount(payment.discount),
            credit_applied=coerce_amount(payment.credit_applied),
            payment_method=payment.payment_method,
            collector_name=payment.collector_name,
        )


@dataclass(frozen=True)
class ExpenseRecord:
    id: str
    name: str = ""
    category: str = "other"
    amount: int = 0
    # None for recurring templates
    date: Optional[datetime.date] = None
    due_date_day: Optional[int] = None
    tenor: Optional[int] = None
    paid_tenor: int = 0
    # the raw value carried a date that could not be parsed
    malformed_date: bool = field(default=False, compare=False)

    @property
    def is_transaction(self) -> bool:
        return self.date is not None

    @classmethod
    def from_mapping(cls, data):
        raw_date = data.get("date")
        parsed = parse_date(raw_date)
        category = {"utama": "recurring", "angsuran": "installment",
                    "lainnya": "other"}.get(data.get("category"), data.get("category") or "other")
        return cls(
            id=str(data.get("id")),
            name=data.get("name") or "",
            category=category,
            amount=coerce_amount(data.get("amount")),
            date=parsed,
            due_date_day=_int_or_none(data.get("dueDateDay")),
            tenor=_int_or_none(data.get("tenor")),
            paid_tenor=coerce_amount(data.get("paidTenor")),
            malformed_date=bool(raw_date) and parsed is None,
        )

    @classmethod
    def from_model(cls, expense):
        return cls(
            id=str(expense.pk),
            name=expense.name,
            category=expense.category,
            amount=coerce_amount(expense.amount),
            date=parse_date(expense.date),
            due_date_day=expense.due_date_day,
            tenor=expense.tenor,
            paid_tenor=expense.paid_tenor,
        )


@dataclass(frozen=True)
class OtherIncomeRecord:
    id: str
    name: str = ""
    amount: int = 0
    date: Optional[datetime.date] = None

    @classmethod
    def from_mapping(cls, data):
        return cls(
            id=str(data.get("id")),
            name=data.get("name") or "",
            amount=coerce_amount(data.get("amount")),
            date=parse_date(data.get("date")),
        )

    @classmethod
    def from_model(cls, income):
        return cls(
            id=str(income.pk),
            name=income.name,
            amount=coerce_amount(income.amount),
            date=parse_date(income.date),
        )

from collections import defaultdict

from ..models import Customer, Expense, Invoice, OtherIncome, Payment
from .records import (CustomerRecord, ExpenseRecord, InvoiceRecord,
                      OtherIncomeRecord, PaymentRecord)

# ------------------------------------
# ORM -> record conversion
# ------------------------------------
""" Read querysets into the flat records the engines work on.
    Payment -> invoice links are read in one query from the M2M
    through table instead of one query per payment. """


def invoice_records(queryset):
    rows = queryset.select_related("customer")
    return [InvoiceRecord.from_model(inv, customer_name=inv.customer.name) for inv in rows]


def payment_records(queryset):
    payments = list(queryset)
    links = defaultdict(list)
    through = Payment.invoices.through
    for payment_id, invoice_id in (
        through.objects.filter(payment_id__in=[p.pk for p in payments])
        .order_by("id")
        .values_list("payment_id", "invoice_id")
    ):
        links[payment_id].append(invoice_id)
    return [PaymentRecord.from_model(p, invoice_ids=links[p.pk]) for p in payments]


def customer_records(queryset):
    return [CustomerRecord.from_model(c) for c in queryset]


def expense_records(queryset):
    return [ExpenseRecord.from_model(e) for e in queryset]


def other_income_records(queryset):
    return [OtherIncomeRecord.from_model(i) for i in queryset]


def records_for_customer(customer):
    """(invoice records, payment records) of one customer."""
    invoices = invoice_records(Invoice.objects.filter(customer=customer))
    payments = payment_records(Payment.objects.filter(customer=customer))
    return invoices, payments


def records_for_company(company):
    return {
        "customers": customer_records(Customer.objects.for_company(company)),
        "invoices": invoice_records(Invoice.objects.for_company(company)),
        "payments": payment_records(Payment.objects.for_company(company)),
        "expenses": expense_records(Expense.objects.for_company(company)),
        "other_incomes": other_income_records(OtherIncome.objects.for_company(company)),
    }

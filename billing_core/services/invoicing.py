import datetime
import logging
from dataclasses import dataclass, field
from typing import List

from django.db import IntegrityError, transaction
from django.utils import timezone

from ..models import Customer, Invoice, Payment
from .allocation import run_allocation
from .audit_helper import log_action
from .loaders import invoice_records, payment_records, records_for_customer
from .periods import due_date_for, end_of_month, month_key, start_of_month

logger = logging.getLogger(__name__)


@dataclass
class GenerationResult:
    month: str
    created: List[int] = field(default_factory=list)
    skipped_existing: List[int] = field(default_factory=list)
    skipped_no_price: List[int] = field(default_factory=list)
    skipped_not_installed: List[int] = field(default_factory=list)

    @property
    def created_count(self):
        return len(self.created)


# ----------------------------------------------
# Monthly invoice generation
# ----------------------------------------------
def generate_monthly_invoices(company, as_of=None, user=None) -> GenerationResult:
    """
    Create one invoice per customer for the calendar month of `as_of`.
    Safe to run repeatedly: customers who already have an invoice for the
    month are skipped, and the (customer, date) unique constraint backs the
    check up if two runs race.
    """
    as_of = as_of or timezone.localdate()
    if isinstance(as_of, datetime.datetime):
        as_of = timezone.localtime(as_of).date() if timezone.is_aware(as_of) else as_of.date()

    issue_date = start_of_month(as_of)
    result = GenerationResult(month=month_key(as_of))
    logger.info("Generating invoices for %s (%s)", company, result.month)

    existing = set(
        Invoice.objects.for_company(company)
        .issued_between(issue_date, end_of_month(as_of))
        .values_list("customer_id", flat=True)
    )

    for customer in Customer.objects.for_company(company).order_by("id"):
        if customer.pk in existing:
            result.skipped_existing.append(customer.pk)
            continue
        if not customer.package_price or customer.package_price <= 0:
            logger.info("Customer %s has no package price, skipping", customer.pk)
            result.skipped_no_price.append(customer.pk)
            continue
        if customer.installation_date > as_of:
            logger.info("Customer %s is installed after %s, skipping", customer.pk, as_of)
            result.skipped_not_installed.append(customer.pk)
            continue

        try:
            with transaction.atomic():
                invoice = Invoice.objects.create(
                    company=company,
                    customer=customer,
                    date=issue_date,
                    due_date=due_date_for(issue_date.year, issue_date.month, customer.due_date_code),
                    amount=customer.package_price,
                    status="unpaid",
                )
                log_action(
                    action="generate_invoice",
                    instance=invoice,
                    user=user,
                    changes={"month": result.month, "amount": invoice.amount},
                )
        except IntegrityError:
            # another run created it between our check and the insert
            result.skipped_existing.append(customer.pk)
            continue
        result.created.append(invoice.pk)

    logger.info(
        "Invoice generation for %s (%s): %d created, %d already existed",
        company, result.month, result.created_count, len(result.skipped_existing),
    )
    return result


# ----------------------------------------------
# Invoice status cache
# ----------------------------------------------
def refresh_invoice_status(company, customer=None) -> int:
    """
    Recompute remaining balances and write `status` back as a cache:
    "paid" iff nothing remains. Returns the number of invoices changed.
    """
    invoices = Invoice.objects.for_company(company)
    if customer is not None:
        invoices = invoices.for_customer(customer)
    payments = Payment.objects.for_company(company)
    if customer is not None:
        payments = payments.filter(customer=customer)

    allocation = run_allocation(invoice_records(invoices), payment_records(payments))

    paid_ids, unpaid_ids = [], []
    for invoice_id, remaining in allocation.remaining.items():
        (paid_ids if remaining <= 0 else unpaid_ids).append(int(invoice_id))

    changed = invoices.filter(pk__in=paid_ids).exclude(status="paid").update(status="paid")
    changed += invoices.filter(pk__in=unpaid_ids).exclude(status="unpaid").update(status="unpaid")
    return changed


# ----------------------------------------------
# Archival
# ----------------------------------------------
def _archivable(invoices, payments, allocation, before):
    """
    Settled invoices issued before `before` that can go without changing any
    other invoice's balance: every payment touching one of them must only
    touch invoices that go too. Otherwise its money would flow to its other
    invoices once the link disappears.
    """
    candidates = {
        i.id for i in invoices
        if i.date is not None and i.date < before and allocation.is_settled(i.id)
    }
    changed = True
    while changed:
        changed = False
        for payment in payments:
            targets = set(payment.invoice_ids)
            if targets & candidates and not targets <= candidates:
                candidates -= targets
                changed = True
    return candidates


def archive_paid_invoices(company, before, user=None) -> int:
    """
    Delete invoices issued before `before` that allocation shows as fully
    paid, together with every other invoice their payments settled.
    Payments stay; they just lose their links.
    """
    deleted = 0
    customers = Customer.objects.for_company(company).filter(invoices__date__lt=before).distinct()
    for customer in customers:
        invoices, payments = records_for_customer(customer)
        allocation = run_allocation(invoices, payments)
        archivable = _archivable(invoices, payments, allocation, before)
        if not archivable:
            continue
        with transaction.atomic():
            for invoice in Invoice.objects.filter(pk__in=[int(i) for i in archivable]):
                # read by the pre_delete guard in signals.py
                invoice._allocation_settled = True
                log_action(
                    action="archive",
                    instance=invoice,
                    user=user,
                    changes={"date": invoice.date.isoformat(), "amount": invoice.amount},
                )
                invoice.delete()
                deleted += 1
    logger.info("Archived %d paid invoice(s) of %s issued before %s", deleted, company, before)
    return deleted

"""
Payment allocation.

Given a customer's (or the whole business's) invoices and payments, work out
how much of every invoice is still unpaid. Payments are applied oldest first,
and within one payment its selected invoices are settled oldest first. A
payment only ever pays down the invoices it selected; whatever is left over
is reported as surplus and never spills onto other invoices.

Pure and deterministic: no ORM, no clock, no shared state. All amounts are
integers in the smallest currency unit.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List

from ..exceptions import MalformedRecord
from .records import InvoiceRecord, PaymentRecord, require_date

logger = logging.getLogger(__name__)


@dataclass
class AllocationResult:
    # invoice id -> amount still owed
    remaining: Dict[str, int] = field(default_factory=dict)
    # invoice id -> amount settled by payments
    applied: Dict[str, int] = field(default_factory=dict)
    # payment id -> amount left after all of its selected invoices were settled
    surplus: Dict[str, int] = field(default_factory=dict)
    rejected_invoices: List[str] = field(default_factory=list)
    rejected_payments: List[str] = field(default_factory=list)
    unknown_references: int = 0

    @property
    def rejected_count(self):
        return len(self.rejected_invoices) + len(self.rejected_payments)

    def is_settled(self, invoice_id):
        return self.remaining.get(str(invoice_id), 0) <= 0

    def total_remaining(self, invoice_ids=None):
        if invoice_ids is None:
            return sum(self.remaining.values())
        return sum(self.remaining.get(str(i), 0) for i in invoice_ids)

    def total_applied(self, invoice_ids=None):
        if invoice_ids is None:
            return sum(self.applied.values())
        return sum(self.applied.get(str(i), 0) for i in invoice_ids)


def amount_to_distribute(payment: PaymentRecord) -> int:
    """What a payment settles on its invoices.

    Cash kept (paid minus change handed back) plus the discount granted and
    the credit balance spent at the counter. A negative change (the customer
    paid short) never adds money that was not handed over.
    """
    change = max(payment.change_amount, 0)
    cash = max(payment.paid_amount - change, 0)
    return cash + max(payment.discount, 0) + max(payment.credit_applied, 0)


def _accept_invoices(invoices: Iterable[InvoiceRecord], result: AllocationResult):
    accepted = {}
    for invoice in invoices:
        try:
            require_date(invoice.id, "date", invoice.date)
        except MalformedRecord as exc:
            result.rejected_invoices.append(invoice.id)
            logger.warning("Allocation rejected invoice: %s", exc)
            continue
        accepted[invoice.id] = invoice
    return accepted


def _accept_payments(payments: Iterable[PaymentRecord], result: AllocationResult):
    accepted = []
    for payment in payments:
        try:
            require_date(payment.id, "payment_date", payment.payment_date)
        except MalformedRecord as exc:
            result.rejected_payments.append(payment.id)
            logger.warning("Allocation rejected payment: %s", exc)
            continue
        accepted.append(payment)
    return accepted


def run_allocation(invoices: Iterable[InvoiceRecord], payments: Iterable[PaymentRecord]) -> AllocationResult:
    result = AllocationResult()
    by_id = _accept_invoices(invoices, result)

    for invoice_id, invoice in by_id.items():
        result.remaining[invoice_id] = max(invoice.amount, 0)
        result.applied[invoice_id] = 0

    # sorted() is stable: equal timestamps keep their input order
    ordered = sorted(_accept_payments(payments, result), key=lambda p: p.payment_date)

    for payment in ordered:
        left = amount_to_distribute(payment)

        targets = []
        for invoice_id in payment.invoice_ids:
            if invoice_id in by_id:
                targets.append(by_id[invoice_id])
            else:
                # archived or foreign invoice: nothing to pay down
                result.unknown_references += 1
        # oldest debt first; same-date invoices stay in the order the payment lists them
        targets.sort(key=lambda inv: inv.date)

        for invoice in targets:
            if left <= 0:
                break
            outstanding = result.remaining[invoice.id]
            if outstanding <= 0:
                continue
            portion = min(left, outstanding)
            result.remaining[invoice.id] = outstanding - portion
            result.applied[invoice.id] += portion
            left -= portion

        result.surplus[payment.id] = left

    return result


def allocate(invoices: Iterable[InvoiceRecord], payments: Iterable[PaymentRecord]) -> Dict[str, int]:
    """Remaining balance per invoice id after applying every payment."""
    return run_allocation(invoices, payments).remaining

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from ..models import PAYMENT_METHODS, Customer, Invoice, Payment
from .audit_helper import log_action
from .invoicing import refresh_invoice_status

DISCOUNT_TYPES = ("amount", "percentage")


@dataclass(frozen=True)
class PaymentQuote:
    total_bill: int
    discount: int
    credit_applied: int
    total_payment: int
    paid_amount: int
    change_amount: int  # signed: negative when the customer paid short
    new_credit_balance: int


# ----------------------------
# Payment-related workflows
# ----------------------------
def compute_discount(total_bill: int, discount_value, discount_type: str = "amount") -> int:
    if discount_type not in DISCOUNT_TYPES:
        raise ValidationError(f"Unknown discount type {discount_type!r}")
    value = Decimal(discount_value or 0)
    if value < 0:
        raise ValidationError("Discount cannot be negative")
    if discount_type == "percentage":
        if value > 100:
            raise ValidationError("Percentage discount must be between 0 and 100")
        return int((Decimal(total_bill) * value / 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    return min(total_bill, int(value))


def quote_payment(
    total_bill: int,
    discount_value=0,
    discount_type: str = "amount",
    credit_balance: int = 0,
    paid_amount: int = 0,
) -> PaymentQuote:
    """
    What the customer owes for the selected invoices and what happens to
    their credit balance. E.g. bill 100,000, discount 10,000 and credit
    20,000 leave 70,000 to pay.
    """
    if total_bill < 0 or credit_balance < 0 or paid_amount < 0:
        raise ValidationError("Amounts cannot be negative")

    discount = compute_discount(total_bill, discount_value, discount_type)
    after_discount = total_bill - discount
    credit_applied = min(credit_balance, after_discount)
    total_payment = max(0, after_discount - credit_applied)
    change = paid_amount - total_payment

    return PaymentQuote(
        total_bill=total_bill,
        discount=discount,
        credit_applied=credit_applied,
        total_payment=total_payment,
        paid_amount=paid_amount,
        change_amount=change,
        # overpayment stays with the customer as credit
        new_credit_balance=credit_balance - credit_applied + max(0, change),
    )


def record_payment(
    customer: Customer,
    invoices: Iterable[Invoice],
    paid_amount: int,
    payment_method: str = "cash",
    payment_date=None,
    discount_value=0,
    discount_type: str = "amount",
    collector_name: str = "",
    user=None,
) -> Payment:
    """
    Record one collection event against a customer's selected invoices.
    Locks the customer row so two collectors cannot spend the same credit
    balance, then refreshes the invoice status cache from allocation.
    """
    invoices = list(invoices)
    if not invoices:
        raise ValidationError("Select at least one invoice to pay")
    if payment_method not in dict(PAYMENT_METHODS):
        raise ValidationError(f"Unknown payment method {payment_method!r}")

    payment_date = payment_date or timezone.now()

    with transaction.atomic():
        customer = Customer.objects.select_for_update().get(pk=customer.pk)

        for inv in invoices:
            if inv.customer_id != customer.pk:
                raise ValidationError(f"Invoice {inv.pk} does not belong to {customer}")

        quote = quote_payment(
            total_bill=sum(inv.amount for inv in invoices),
            discount_value=discount_value,
            discount_type=discount_type,
            credit_balance=customer.credit_balance,
            paid_amount=int(paid_amount),
        )

        payment = Payment.objects.create(
            company=customer.company,
            customer=customer,
            payment_date=payment_date,
            payment_method=payment_method,
            total_bill=quote.total_bill,
            discount=quote.discount,
            credit_applied=quote.credit_applied,
            total_payment=quote.total_payment,
            paid_amount=quote.paid_amount,
            change_amount=quote.change_amount,
            collector_name=collector_name,
        )
        payment.invoices.set(invoices)

        old_credit = customer.credit_balance
        customer.credit_balance = quote.new_credit_balance
        customer.save(update_fields=["credit_balance"])

        refresh_invoice_status(customer.company, customer=customer)

        # AUDIT LOGS
        log_action(
            action="record_payment",
            instance=payment,
            user=user,
            changes={
                "invoice_ids": [inv.pk for inv in invoices],
                "total_payment": quote.total_payment,
                "paid_amount": quote.paid_amount,
                "change_amount": quote.change_amount,
            },
        )
        if old_credit != customer.credit_balance:
            log_action(
                action="update",
                instance=customer,
                user=user,
                changes={"credit_balance": [old_credit, customer.credit_balance]},
            )

    return payment

from django.core.exceptions import ValidationError
from django.db import models

from ..exceptions import ImmutableRecordError
from ..managers import TenantManager
from .customer import Customer
from .entitymembership import Company
from .invoice import Invoice

PAYMENT_METHODS = [
    ("cash", "Cash"),
    ("bank_transfer", "Bank Transfer"),
    ("e_wallet", "E-Wallet"),
]


class Payment(models.Model):  # One collection event from one customer
    """
    Immutable once saved: corrections are new payments, not edits.

    total_bill     sum of the selected invoices before discount
    discount       discount granted on total_bill
    credit_applied part of the customer's credit balance used
    total_payment  what was owed after discount and credit
                   (null on legacy rows imported without it)
    paid_amount    cash the customer handed over
    change_amount  paid_amount - total_payment (signed)
    """

    company = models.ForeignKey(Company, on_delete=models.CASCADE)
    customer = models.ForeignKey(
        Customer, on_delete=models.PROTECT, related_name="payments"
    )
    payment_date = models.DateTimeField()
    payment_method = models.CharField(
        max_length=20, choices=PAYMENT_METHODS, default="cash"
    )

    # Invoices this payment settles; archived (deleted) invoices drop out
    invoices = models.ManyToManyField(
        Invoice, related_name="payments", blank=True
    )

    total_bill = models.BigIntegerField(default=0)
    discount = models.BigIntegerField(default=0)
    credit_applied = models.BigIntegerField(default=0)
    total_payment = models.BigIntegerField(null=True, blank=True)
    paid_amount = models.BigIntegerField(default=0)
    change_amount = models.BigIntegerField(default=0)

    collector_name = models.CharField(max_length=200, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = TenantManager()

    class Meta:
        indexes = [
            models.Index(fields=["company", "payment_date"], name="payment_company_date_idx"),
            models.Index(fields=["company", "customer"], name="payment_company_cust_idx"),
        ]
        ordering = ["payment_date", "id"]

    def __str__(self):
        return f"Payment {self.pk} {self.customer} {self.payment_date:%Y-%m-%d}"

    def clean(self):
        if self.customer_id and self.company_id and self.customer.company_id != self.company_id:
            raise ValidationError("Payment & customer must belong to the same company")
        for field in ("total_bill", "discount", "credit_applied", "paid_amount"):
            if getattr(self, field) < 0:
                raise ValidationError({field: "Amount cannot be negative"})
        if self.discount > self.total_bill:
            raise ValidationError("Discount cannot exceed the total bill")

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ImmutableRecordError(
                "Payments cannot be edited; record a correcting payment instead")
        self.full_clean()  # run validations before saving
        return super().save(*args, **kwargs)

from django.core.exceptions import ValidationError
from django.db import models

from ..managers import InvoiceManager
from .customer import Customer
from .entitymembership import Company

INV_STATUS_CHOICES = [
    ("unpaid", "Unpaid"),
    ("paid", "Paid"),
]


class Invoice(models.Model):  # One monthly bill for one customer

    company = models.ForeignKey(Company, on_delete=models.CASCADE)

    # prevent deleting a customer who still has invoices
    customer = models.ForeignKey(
        Customer, on_delete=models.PROTECT, related_name="invoices"
    )

    date = models.DateField()  # issue date, first day of the billing month
    due_date = models.DateField()
    amount = models.PositiveBigIntegerField()

    """ `status` is a cache written back from payment allocation
        (services.invoicing.refresh_invoice_status). Never read it as the
        source of truth for what is still owed. """
    status = models.CharField(
        max_length=10, choices=INV_STATUS_CHOICES, default="unpaid"
    )

    created_at = models.DateTimeField(auto_now_add=True)

    objects = InvoiceManager()

    class Meta:
        indexes = [
            models.Index(fields=["company", "date"], name="invoice_company_date_idx"),
            models.Index(fields=["company", "customer"], name="invoice_company_cust_idx"),
        ]
        constraints = [
            # One invoice per customer per billing month
            models.UniqueConstraint(
                fields=["customer", "date"], name="uq_invoice_customer_month"
            ),
        ]
        ordering = ["date", "id"]

    def __str__(self):
        return f"Inv {self.pk} {self.customer} {self.date:%Y-%m}"

    def clean(self):
        if self.customer_id and self.company_id and self.customer.company_id != self.company_id:
            raise ValidationError("Invoice & customer must belong to the same company")
        if self.date and self.due_date and self.due_date < self.date:
            raise ValidationError("Due date cannot be before the invoice date")

    def save(self, *args, **kwargs):
        self.full_clean()  # run validations before saving
        return super().save(*args, **kwargs)

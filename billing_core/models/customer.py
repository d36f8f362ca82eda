from django.core.exceptions import ValidationError
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

from ..managers import TenantManager
from .entitymembership import Company


# ---------- Customer ----------
# Internet subscriber who receives one invoice per month
class Customer(models.Model):
    company = models.ForeignKey(Company, on_delete=models.CASCADE)

    name = models.CharField(max_length=200)
    phone = models.CharField(max_length=32, blank=True)
    address = models.TextField(blank=True)

    # Subscription tier and the recurring monthly charge for it
    subscription_mbps = models.PositiveIntegerField(default=0)
    package_price = models.PositiveBigIntegerField(default=0)

    # Day of month the invoice falls due (1–31, clamped to short months)
    due_date_code = models.PositiveSmallIntegerField(
        default=1,
        validators=[MinValueValidator(1), MaxValueValidator(31)],
    )
    installation_date = models.DateField()

    # Prepaid / overpaid amount offsetting future invoices
    credit_balance = models.BigIntegerField(default=0)

    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = TenantManager()

    class Meta:
        indexes = [
            models.Index(fields=["company", "name"], name="customer_company_name_idx"),
            models.Index(fields=["company", "due_date_code"], name="customer_company_due_idx"),
        ]

    def __str__(self):
        return self.name

    def clean(self):
        if self.credit_balance is not None and self.credit_balance < 0:
            raise ValidationError("Credit balance cannot be negative")
        return super().clean()

    def save(self, *args, **kwargs):
        self.full_clean()  # run validations before saving
        return super().save(*args, **kwargs)

from django.core.exceptions import ValidationError
from django.db import models

from ..managers import TenantManager
from .entitymembership import Company


# Income outside the invoice/payment flow (e.g. selling a router)
class OtherIncome(models.Model):
    company = models.ForeignKey(Company, on_delete=models.CASCADE)
    name = models.CharField(max_length=200)
    amount = models.BigIntegerField()
    date = models.DateField()
    created_at = models.DateTimeField(auto_now_add=True)

    objects = TenantManager()

    class Meta:
        indexes = [models.Index(fields=["company", "date"], name="otherincome_company_date_idx")]

    def __str__(self):
        return f"{self.name} {self.date}"

    def clean(self):
        if self.amount is not None and self.amount < 0:
            raise ValidationError({"amount": "Amount cannot be negative"})

    def save(self, *args, **kwargs):
        self.full_clean()  # run validations before saving
        return super().save(*args, **kwargs)

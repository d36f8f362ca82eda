from django.core.exceptions import ValidationError
from django.db import models

from ..managers import ExpenseManager
from .entitymembership import Company

EXPENSE_CATEGORIES = [
    ("recurring", "Fixed / recurring"),
    ("installment", "Installment"),
    ("other", "Other / incidental"),
]


class Expense(models.Model):
    """
    A business cost. Two shapes share this table:
      - template: no `date`, a `due_date_day` instead (recurring obligation)
      - transaction: a concrete `date` (money actually spent)
    Only transactions count towards realized expense totals.
    """

    company = models.ForeignKey(Company, on_delete=models.CASCADE)
    name = models.CharField(max_length=200)
    category = models.CharField(max_length=20, choices=EXPENSE_CATEGORIES)
    amount = models.BigIntegerField(null=True, blank=True)

    date = models.DateField(null=True, blank=True)
    due_date_day = models.PositiveSmallIntegerField(null=True, blank=True)

    # Installments only
    tenor = models.PositiveSmallIntegerField(null=True, blank=True)
    paid_tenor = models.PositiveSmallIntegerField(default=0)
    last_paid_date = models.DateField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    objects = ExpenseManager()

    class Meta:
        indexes = [
            models.Index(fields=["company", "date"], name="expense_company_date_idx"),
            models.Index(fields=["company", "category"], name="expense_company_cat_idx"),
        ]

    def __str__(self):
        when = self.date.isoformat() if self.date else f"day {self.due_date_day}"
        return f"{self.name} ({self.get_category_display()}, {when})"

    @property
    def is_template(self):
        return self.date is None

    @property
    def remaining_tenor(self):
        return max((self.tenor or 0) - self.paid_tenor, 0)

    def clean(self):
        if self.amount is not None and self.amount < 0:
            raise ValidationError({"amount": "Amount cannot be negative"})

        if self.date is not None and self.amount is None:
            raise ValidationError({"amount": "A dated expense needs an amount"})

        if self.due_date_day is not None and not 1 <= self.due_date_day <= 31:
            raise ValidationError({"due_date_day": "Due day must be between 1 and 31"})

        # Templates of installments carry the tenor counters
        if self.category == "installment" and self.is_template:
            if not self.tenor:
                raise ValidationError({"tenor": "Installments need a tenor"})
            if self.paid_tenor > self.tenor:
                raise ValidationError(
                    {"paid_tenor": "Paid installments cannot exceed the tenor"})

    def save(self, *args, **kwargs):
        self.full_clean()  # run validations before saving
        return super().save(*args, **kwargs)

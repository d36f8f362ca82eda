from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from ..managers import TenantManager


# ---------- Tenant / Company ----------
class Company(models.Model):

    """The ISP business running its billing here (tenant)"""
    name = models.CharField(max_length=200)

    slug = models.SlugField(  # A URL-friendly identifier
        max_length=80, unique=True  # no two companies can have the same slug
    )

    # Every amount is stored as an integer in the smallest currency unit
    currency_code = models.CharField(max_length=10, default="IDR")

    # Store timestamp when the record is first created
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name_plural = "companies"

    def __str__(self):
        return self.name


# ---------- EntityMembership ----------
class EntityMembership(
    models.Model
):  # Bridge table between User and Company

    ROLE_CHOICES = [
        ("owner", "Owner"),        # full control
        ("admin", "Admin"),        # manage customers, invoices, settings
        ("collector", "Collector"),  # records payments in the field
        ("viewer", "Viewer"),      # read-only dashboards
    ]

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="memberships",  # See all companies users belong to
    )
    company = models.ForeignKey(
        Company, on_delete=models.CASCADE, related_name="memberships"
    )
    role = models.CharField(
        max_length=20, choices=ROLE_CHOICES, default="viewer"
    )

    # Suspend someone's access without deleting the record
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = TenantManager()

    class Meta:
        # one user can only have one membership per company
        constraints = [
            models.UniqueConstraint(
                fields=["user", "company"], name="uq_user_company_membership"
            ),
        ]
        indexes = [
            models.Index(fields=["company", "user"], name="membership_company_user_idx"),
        ]

    def __str__(self):
        return f"{self.user} @ {self.company} ({self.role})"

    def clean(self):
        if self.role not in dict(self.ROLE_CHOICES):
            raise ValidationError(f"Unknown role {self.role!r}")

    def save(self, *args, **kwargs):
        self.full_clean()  # run validations before saving
        return super().save(*args, **kwargs)

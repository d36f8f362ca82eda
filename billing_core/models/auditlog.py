from django.conf import settings
from django.db import models

from ..managers import TenantManager
from .entitymembership import Company


# ---------- Audit / Event log ----------
class AuditLog(models.Model):
    company = models.ForeignKey(
        Company, null=True, blank=True, on_delete=models.SET_NULL,
    )
    # Null when the action came from a scheduled job
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True, blank=True, on_delete=models.SET_NULL
    )
    action = models.CharField(
        max_length=50
    )  # e.g. record_payment, generate_invoice, archive, pay_installment
    object_type = models.CharField(max_length=100)
    object_id = models.CharField(max_length=100)
    changes = models.JSONField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = TenantManager()

    class Meta:
        indexes = [
            models.Index(fields=["company", "user"], name="auditlog_company_user_idx"),
            models.Index(fields=["company", "created_at"], name="auditlog_company_created_idx"),
        ]

    def __str__(self):
        return f"[{self.created_at:%Y-%m-%d %H:%M}] {self.user} {self.action} {self.object_type}({self.object_id})"

from django.contrib import admin

from billing_core.models import AuditLog, SummarySnapshot

from .mixins import TenantAdminMixin
from .ReadOnly import ReadOnlyAdmin


@admin.register(SummarySnapshot)
class SummarySnapshotAdmin(TenantAdminMixin, ReadOnlyAdmin):
    list_display = ("id", "company", "as_of", "last_updated")


@admin.register(AuditLog)
class AuditLogAdmin(TenantAdminMixin, ReadOnlyAdmin):
    list_display = (
        "id",
        "company",
        "user",
        "action",
        "object_type",
        "object_id",
        "created_at",
    )
    search_fields = ("object_type", "object_id", "user__username")
    list_filter = ("company", "action", "created_at")

    # Fetch everything in one SQL join
    def get_queryset(self, request):
        qs = super().get_queryset(request)
        return qs.select_related("company", "user")

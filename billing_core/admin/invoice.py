from django.contrib import admin

from billing_core.models import Invoice, Payment

from .actions import refresh_status
from .mixins import TenantAdminMixin
from .ReadOnly import ReadOnlyAdmin


@admin.register(Invoice)
class InvoiceAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = (
        "id",
        "company",
        "customer",
        "date",
        "due_date",
        "amount",
        "status",
    )
    list_filter = ("company", "status", "date")
    search_fields = ("customer__name",)
    # status is a cache written from allocation
    readonly_fields = ("status",)
    actions = [refresh_status]

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        return qs.select_related("company", "customer")


@admin.register(Payment)
class PaymentAdmin(TenantAdminMixin, ReadOnlyAdmin):
    """Payments are created by record_payment() and never edited."""
    list_display = (
        "id",
        "company",
        "customer",
        "payment_date",
        "payment_method",
        "total_bill",
        "discount",
        "total_payment",
        "paid_amount",
        "change_amount",
        "collector_name",
    )
    list_filter = ("company", "payment_method", "payment_date")
    search_fields = ("customer__name", "collector_name")

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        return qs.select_related("company", "customer")

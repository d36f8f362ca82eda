from django.contrib import admin

from billing_core.models import Customer, OtherIncome

from .mixins import TenantAdminMixin


@admin.register(Customer)
class CustomerAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = (
        "id",
        "name",
        "company",
        "subscription_mbps",
        "package_price",
        "due_date_code",
        "installation_date",
        "credit_balance",
    )
    list_filter = ("company", "due_date_code", "subscription_mbps")
    search_fields = ("name", "phone", "address")


@admin.register(OtherIncome)
class OtherIncomeAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = ("id", "company", "name", "amount", "date")
    list_filter = ("company", "date")
    search_fields = ("name",)

from django.contrib import admin

from billing_core.models import Expense

from .actions import pay_selected_installments
from .mixins import TenantAdminMixin


@admin.register(Expense)
class ExpenseAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = (
        "id",
        "company",
        "name",
        "category",
        "amount",
        "date",
        "due_date_day",
        "tenor",
        "paid_tenor",
    )
    list_filter = ("company", "category", "date")
    search_fields = ("name",)
    actions = [pay_selected_installments]

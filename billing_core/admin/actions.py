from django.contrib import admin, messages
from django.core.exceptions import ValidationError

from ..exceptions import UpstreamFetchFailure
from ..models import Company
from ..services.expenses import pay_installment
from ..services.invoicing import refresh_invoice_status
from ..services.summary import recompute_summary

# ---------- Admin actions ----------


@admin.action(description="Refresh paid/unpaid status from payments")
def refresh_status(modeladmin, request, queryset):
    changed = 0
    for company in Company.objects.filter(pk__in=queryset.values_list("company_id", flat=True)):
        changed += refresh_invoice_status(company)
    modeladmin.message_user(request, f"{changed} invoice status(es) updated.", level=messages.SUCCESS)


@admin.action(description="Pay one installment")
def pay_selected_installments(modeladmin, request, queryset):
    success = 0
    for expense in queryset:
        try:
            pay_installment(expense, user=request.user)
            success += 1
        except ValidationError as e:
            modeladmin.message_user(request, f"{expense}: {e}", level=messages.ERROR)
    modeladmin.message_user(request, f"Paid {success} of {queryset.count()} installments.",
                            level=messages.SUCCESS)


@admin.action(description="Recompute summary now")
def recompute_selected_summaries(modeladmin, request, queryset):
    for company in queryset:
        try:
            recompute_summary(company)
        except UpstreamFetchFailure as e:
            modeladmin.message_user(request, f"{company}: {e}", level=messages.ERROR)
            continue
        modeladmin.message_user(request, f"Summary of {company} recomputed.")

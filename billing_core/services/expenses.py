from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from ..models import Expense
from .audit_helper import log_action


# ------------------------------------
# Installment workflows
# ------------------------------------
def pay_installment(expense: Expense, paid_on=None, user=None) -> Expense:
    """
    Pay one installment of an installment template: bump the tenor counter
    and book the money as a dated expense so it counts as realized spend.
    Returns the dated expense row.
    """
    paid_on = paid_on or timezone.localdate()

    with transaction.atomic():
        template = Expense.objects.select_for_update().get(pk=expense.pk)
        if template.category != "installment" or not template.is_template:
            raise ValidationError("Only installment templates can be paid by tenor")
        if template.paid_tenor >= (template.tenor or 0):
            raise ValidationError(f"{template.name} is already fully paid")

        template.paid_tenor += 1
        template.last_paid_date = paid_on
        template.save(update_fields=["paid_tenor", "last_paid_date"])

        booked = Expense.objects.create(
            company=template.company,
            name=f"{template.name} ({template.paid_tenor}/{template.tenor})",
            category="installment",
            amount=template.amount or 0,
            date=paid_on,
        )

        log_action(
            action="pay_installment",
            instance=template,
            user=user,
            changes={"paid_tenor": template.paid_tenor, "expense_id": booked.pk},
        )

    expense.paid_tenor = template.paid_tenor
    expense.last_paid_date = template.last_paid_date
    return booked

from django.core.exceptions import ValidationError
from django.db.models.signals import pre_delete
from django.dispatch import receiver

from .models import Invoice

""" Block deleting an invoice that still has money owed on it.
    Archival marks instances it has already verified. """


@receiver(pre_delete, sender=Invoice)
def prevent_delete_unpaid_invoice(sender, instance, **kwargs):
    if getattr(instance, "_allocation_settled", False):
        return
    # imported lazily: services import models at module load
    from .services.allocation import run_allocation
    from .services.loaders import records_for_customer

    invoices, payments = records_for_customer(instance.customer)
    allocation = run_allocation(invoices, payments)
    if not allocation.is_settled(instance.pk):
        raise ValidationError("Cannot delete an invoice that is not fully paid.")


from django.db import models

# -----------------------------------------
# Enforce tenant scoping across all models
# that belong to a company
# -----------------------------------------
class TenantQuerySet(models.QuerySet):
    def for_company(self, company):
        return self.filter(company=company)


class TenantManager(models.Manager):
    # ensure every model gets TenantQuerySet
    # (so .for_company() is always available)
    def get_queryset(self):
        return TenantQuerySet(self.model, using=self._db)

    def for_company(self, company):
        return self.get_queryset().for_company(company)

    # every model using TenantManager can call:
    # Invoice.objects.for_company(request.company)


class InvoiceQuerySet(TenantQuerySet):
    def issued_between(self, start, end):
        return self.filter(date__gte=start, date__lte=end)

    def for_customer(self, customer):
        return self.filter(customer=customer)


class InvoiceManager(TenantManager):
    def get_queryset(self):
        return InvoiceQuerySet(self.model, using=self._db)

    def issued_between(self, start, end):
        return self.get_queryset().issued_between(start, end)


class ExpenseQuerySet(TenantQuerySet):
    # Dated rows are realized spend; rows without a date are recurring templates
    def transactions(self):
        return self.filter(date__isnull=False)

    def templates(self):
        return self.filter(date__isnull=True)


class ExpenseManager(TenantManager):
    def get_queryset(self):
        return ExpenseQuerySet(self.model, using=self._db)

    def transactions(self):
        return self.get_queryset().transactions()

    def templates(self):
        return self.get_queryset().templates()

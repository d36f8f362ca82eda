import datetime

from django.core.management.base import CommandError

from billing_core.models import Company


def companies_from_option(slug):
    companies = Company.objects.order_by("pk")
    if slug:
        companies = companies.filter(slug=slug)
        if not companies.exists():
            raise CommandError(f"No company with slug {slug!r}")
    return companies


def date_from_option(value):
    if not value:
        return None
    try:
        return datetime.date.fromisoformat(value)
    except ValueError:
        raise CommandError(f"Invalid date {value!r}, expected yyyy-MM-dd")

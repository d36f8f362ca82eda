from django.core.management.base import BaseCommand
from django.utils import timezone

from billing_core.services.invoicing import generate_monthly_invoices

from ._helpers import companies_from_option, date_from_option


class Command(BaseCommand):
    help = "Create this month's invoices (one per customer, skipping existing ones)."

    def add_arguments(self, parser):
        parser.add_argument("--company", help="Company slug (default: every company)")
        parser.add_argument("--date", help="Any day of the billing month, yyyy-MM-dd (default: today)")

    def handle(self, *args, **options):
        as_of = date_from_option(options["date"]) or timezone.localdate()
        for company in companies_from_option(options["company"]):
            result = generate_monthly_invoices(company, as_of=as_of)
            self.stdout.write(self.style.SUCCESS(
                f"{company}: {result.created_count} invoice(s) created for {result.month}, "
                f"{len(result.skipped_existing)} already existed"
            ))

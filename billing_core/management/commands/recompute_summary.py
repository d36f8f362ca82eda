import datetime

from django.core.management.base import BaseCommand
from django.utils import timezone

from billing_core.services.summary import recompute_summary

from ._helpers import companies_from_option, date_from_option


class Command(BaseCommand):
    help = "Recompute the cached financial summary."

    def add_arguments(self, parser):
        parser.add_argument("--company", help="Company slug (default: every company)")
        parser.add_argument("--date", help="Evaluate as of this day, yyyy-MM-dd (default: now)")

    def handle(self, *args, **options):
        day = date_from_option(options["date"])
        as_of = None
        if day is not None:
            # end of that day in the project time zone
            as_of = timezone.make_aware(datetime.datetime.combine(day, datetime.time(23, 59, 59)))
        for company in companies_from_option(options["company"]):
            snapshot = recompute_summary(company, as_of=as_of)
            data = snapshot.data
            self.stdout.write(self.style.SUCCESS(
                f"{company}: income {data['total_income']}, expense {data['total_expense']}, "
                f"arrears {data['total_arrears']}"
            ))

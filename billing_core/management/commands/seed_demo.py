import datetime

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone
from django.utils.text import slugify

from billing_core.models import (Company, Customer, EntityMembership, Expense,
                                 Invoice, OtherIncome)
from billing_core.services.invoicing import generate_monthly_invoices
from billing_core.services.payment import record_payment
from billing_core.services.periods import shift_month
from billing_core.services.summary import recompute_summary

User = get_user_model()

# (name, mbps, monthly price, due day, months since installation)
DEMO_CUSTOMERS = [
    ("Andi", 10, 150_000, 5, 6),
    ("Budi", 20, 200_000, 10, 5),
    ("Citra", 10, 150_000, 15, 4),
    ("Dewi", 30, 250_000, 20, 3),
    ("Eko", 20, 200_000, 31, 1),
]


class Command(BaseCommand):
    help = "Create a demo ISP (company, user, customers, invoices, payments, expenses)."

    def add_arguments(self, parser):
        parser.add_argument(
            "--company",
            type=str,
            default="Demo Net",
            help="Name of the demo company (default: Demo Net)",
        )
        parser.add_argument("--username", default="demo", help="Username for the demo user.")
        parser.add_argument("--password", default="demo123", help="Password for the demo user.")

    def _unique_slug(self, name, max_tries=100):
        base = slugify(name) or "company"
        slug, i = base, 1
        # If plain slug is taken, append -1, -2, etc.
        while Company.objects.filter(slug=slug).exists():
            slug = f"{base}-{i}"
            i += 1
            if i > max_tries:
                raise RuntimeError("Couldn't generate unique slug")
        return slug

    @transaction.atomic
    def handle(self, *args, **options):
        company_name = options["company"]
        self.stdout.write(self.style.NOTICE(f"Seeding demo data for {company_name}..."))

        # 1. Company and user
        company = Company.objects.filter(name=company_name).first()
        if company is None:
            company = Company.objects.create(name=company_name, slug=self._unique_slug(company_name))
        user, created = User.objects.get_or_create(
            username=options["username"],
            defaults={"email": f"{options['username']}@example.com", "is_staff": True},
        )
        if created:
            user.set_password(options["password"])
            user.save()
        EntityMembership.objects.get_or_create(user=user, company=company, defaults={"role": "owner"})
        self.stdout.write(self.style.SUCCESS(f"Company {company} / user {user.username}"))

        # 2. Customers installed over the last months
        today = timezone.localdate()
        customers = []
        for name, mbps, price, due_day, months_ago in DEMO_CUSTOMERS:
            year, month = shift_month(today.year, today.month, -months_ago)
            customer, _ = Customer.objects.get_or_create(
                company=company,
                name=name,
                defaults={
                    "subscription_mbps": mbps,
                    "package_price": price,
                    "due_date_code": due_day,
                    "installation_date": datetime.date(year, month, 1),
                },
            )
            customers.append(customer)

        # 3. Invoices for every month since the first installation
        oldest = max(row[4] for row in DEMO_CUSTOMERS)
        for offset in range(oldest, -1, -1):
            year, month = shift_month(today.year, today.month, -offset)
            generate_monthly_invoices(company, as_of=datetime.date(year, month, 1), user=user)
        self.stdout.write(self.style.SUCCESS(f"{Invoice.objects.for_company(company).count()} invoices"))

        # 4. Payments: everybody pays their oldest invoice, a few clear everything
        for index, customer in enumerate(customers):
            unpaid = list(Invoice.objects.filter(customer=customer, status="unpaid").order_by("date"))
            if not unpaid:
                continue
            selection = unpaid if index % 2 == 0 else unpaid[:1]
            record_payment(
                customer,
                selection,
                paid_amount=sum(inv.amount for inv in selection),
                payment_method="cash" if index % 2 == 0 else "bank_transfer",
                collector_name="Demo collector",
                user=user,
            )

        # 5. Expenses and other income
        Expense.objects.get_or_create(
            company=company, name="Upstream bandwidth", category="recurring",
            date=None, defaults={"amount": 1_500_000, "due_date_day": 1},
        )
        Expense.objects.get_or_create(
            company=company, name="OLT device", category="installment", date=None,
            defaults={"amount": 500_000, "due_date_day": 10, "tenor": 12, "paid_tenor": 2},
        )
        Expense.objects.get_or_create(
            company=company, name="Upstream bandwidth", category="recurring",
            date=today.replace(day=1), defaults={"amount": 1_500_000},
        )
        OtherIncome.objects.get_or_create(
            company=company, name="Router sale", date=today.replace(day=1),
            defaults={"amount": 350_000},
        )

        snapshot = recompute_summary(company)
        self.stdout.write(self.style.SUCCESS(
            f"Demo data seeded; arrears {snapshot.data['total_arrears']}"
        ))

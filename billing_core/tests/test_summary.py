import datetime
import io
from unittest import mock

from django.core.exceptions import ValidationError
from django.core.management import call_command
from django.db import DatabaseError
from django.test import TestCase
from django.utils import timezone

from ..exceptions import UpstreamFetchFailure
from ..models import (Company, Customer, Expense, Invoice, OtherIncome,
                      SummarySnapshot)
from ..services import (get_summary, pay_installment, record_payment,
                        recompute_summary)
from ..tasks import (generate_monthly_invoices_task, recompute_all_summaries,
                     recompute_summary_task)


class PayInstallmentTests(TestCase):
    def setUp(self):
        self.company = Company.objects.create(name="Net A", slug="net-a")
        self.olt = Expense.objects.create(
            company=self.company, name="OLT", category="installment",
            amount=500_000, due_date_day=10, tenor=2,
        )

    def test_books_a_dated_expense_and_counts_the_tenor(self):
        booked = pay_installment(self.olt, paid_on=datetime.date(2024, 7, 10))

        self.olt.refresh_from_db()
        self.assertEqual(self.olt.paid_tenor, 1)
        self.assertEqual(self.olt.remaining_tenor, 1)
        self.assertEqual(self.olt.last_paid_date, datetime.date(2024, 7, 10))
        self.assertEqual(booked.name, "OLT (1/2)")
        self.assertEqual(booked.amount, 500_000)
        self.assertEqual(booked.date, datetime.date(2024, 7, 10))
        self.assertEqual(list(Expense.objects.for_company(self.company).transactions()), [booked])

    def test_cannot_pay_past_the_tenor(self):
        pay_installment(self.olt)
        pay_installment(self.olt)
        with self.assertRaises(ValidationError):
            pay_installment(self.olt)

    def test_only_installment_templates(self):
        rent = Expense.objects.create(
            company=self.company, name="Rent", category="recurring", amount=1_000_000, due_date_day=1,
        )
        with self.assertRaises(ValidationError):
            pay_installment(rent)


class RecomputeSummaryTests(TestCase):
    def setUp(self):
        self.company = Company.objects.create(name="Net A", slug="net-a")
        self.customer = Customer.objects.create(
            company=self.company, name="Andi", package_price=150_000,
            installation_date=datetime.date(2024, 7, 2),
        )
        self.june = Invoice.objects.create(
            company=self.company, customer=self.customer,
            date=datetime.date(2024, 6, 1), due_date=datetime.date(2024, 6, 5), amount=150_000,
        )
        self.july = Invoice.objects.create(
            company=self.company, customer=self.customer,
            date=datetime.date(2024, 7, 1), due_date=datetime.date(2024, 7, 5), amount=150_000,
        )
        record_payment(
            self.customer, [self.july], paid_amount=150_000,
            payment_date=timezone.make_aware(datetime.datetime(2024, 7, 3, 9, 0)),
        )
        Expense.objects.create(
            company=self.company, name="Bandwidth", category="recurring",
            amount=100_000, date=datetime.date(2024, 7, 1),
        )
        OtherIncome.objects.create(
            company=self.company, name="Router sale", amount=50_000, date=datetime.date(2024, 7, 4),
        )
        self.as_of = timezone.make_aware(datetime.datetime(2024, 7, 15, 12, 0))

    def test_snapshot_holds_the_report(self):
        snapshot = recompute_summary(self.company, as_of=self.as_of)

        data = snapshot.data
        self.assertEqual(data["monthly_payment_income"], 150_000)
        self.assertEqual(data["monthly_other_income"], 50_000)
        self.assertEqual(data["monthly_expense"], 100_000)
        self.assertEqual(data["net_profit"], 100_000)
        self.assertEqual(data["total_arrears"], 150_000)
        self.assertEqual(data["arrears_details"][0]["name"], "Andi")
        self.assertEqual(data["new_customers_count"], 1)
        self.assertEqual(data["paid_invoices"], {"count": 1, "amount": 150_000})
        self.assertEqual([p["label"] for p in data["revenue_by_month"]],
                         ["Feb", "Mar", "Apr", "May", "Jun", "Jul"])
        self.assertEqual(snapshot.as_of, self.as_of)

    def test_recompute_updates_the_same_row(self):
        first = recompute_summary(self.company, as_of=self.as_of)
        second = recompute_summary(self.company, as_of=self.as_of)

        self.assertEqual(first.pk, second.pk)
        self.assertEqual(SummarySnapshot.objects.count(), 1)
        self.assertEqual(get_summary(self.company).pk, second.pk)

    def test_database_errors_surface_as_upstream_failure(self):
        with mock.patch("billing_core.services.summary.records_for_company", side_effect=DatabaseError("gone")):
            with self.assertRaises(UpstreamFetchFailure):
                recompute_summary(self.company)
        self.assertIsNone(get_summary(self.company))


class TaskTests(TestCase):
    def setUp(self):
        self.company_a = Company.objects.create(name="Net A", slug="net-a")
        self.company_b = Company.objects.create(name="Net B", slug="net-b")
        Customer.objects.create(
            company=self.company_a, name="Andi", package_price=150_000,
            installation_date=datetime.date(2020, 1, 1),
        )

    def test_recompute_summary_task(self):
        snapshot_pk = recompute_summary_task(self.company_a.pk)
        self.assertEqual(SummarySnapshot.objects.get(pk=snapshot_pk).company, self.company_a)

    def test_recompute_all_summaries_continues_past_a_failure(self):
        real = recompute_summary

        def flaky(company, *args, **kwargs):
            if company.pk == self.company_a.pk:
                raise UpstreamFetchFailure("down")
            return real(company, *args, **kwargs)

        with mock.patch("billing_core.services.summary.recompute_summary", side_effect=flaky):
            with self.assertRaises(UpstreamFetchFailure):
                recompute_all_summaries()

        self.assertTrue(SummarySnapshot.objects.filter(company=self.company_b).exists())
        self.assertFalse(SummarySnapshot.objects.filter(company=self.company_a).exists())

    def test_generate_monthly_invoices_task(self):
        created = generate_monthly_invoices_task()
        self.assertEqual(created, {self.company_a.pk: 1, self.company_b.pk: 0})
        self.assertEqual(generate_monthly_invoices_task(self.company_a.pk), {self.company_a.pk: 0})


class ManagementCommandTests(TestCase):
    def test_seed_demo_then_recompute(self):
        call_command("seed_demo", "--company", "Demo Net", "--username", "demo", stdout=io.StringIO())

        company = Company.objects.get(name="Demo Net")
        self.assertTrue(Invoice.objects.for_company(company).exists())
        self.assertIsNotNone(get_summary(company))

        call_command("generate_invoices", "--company", company.slug, stdout=io.StringIO())
        call_command("recompute_summary", "--company", company.slug, stdout=io.StringIO())
        self.assertEqual(SummarySnapshot.objects.filter(company=company).count(), 1)

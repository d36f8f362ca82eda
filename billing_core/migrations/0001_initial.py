import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Company",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=200)),
                ("slug", models.SlugField(max_length=80, unique=True)),
                ("currency_code", models.CharField(default="IDR", max_length=10)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "verbose_name_plural": "companies",
            },
        ),
        migrations.CreateModel(
            name="Customer",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=200)),
                ("phone", models.CharField(blank=True, max_length=32)),
                ("address", models.TextField(blank=True)),
                ("subscription_mbps", models.PositiveIntegerField(default=0)),
                ("package_price", models.PositiveBigIntegerField(default=0)),
                ("due_date_code", models.PositiveSmallIntegerField(
                    default=1,
                    validators=[
                        django.core.validators.MinValueValidator(1),
                        django.core.validators.MaxValueValidator(31),
                    ],
                )),
                ("installation_date", models.DateField()),
                ("credit_balance", models.BigIntegerField(default=0)),
                ("notes", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("company", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to="billing_core.company")),
            ],
            options={
                "indexes": [
                    models.Index(fields=["company", "name"], name="customer_company_name_idx"),
                    models.Index(fields=["company", "due_date_code"], name="customer_company_due_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Invoice",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("date", models.DateField()),
                ("due_date", models.DateField()),
                ("amount", models.PositiveBigIntegerField()),
                ("status", models.CharField(choices=[("unpaid", "Unpaid"), ("paid", "Paid")], default="unpaid", max_length=10)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("company", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to="billing_core.company")),
                ("customer", models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name="invoices",
                    to="billing_core.customer",
                )),
            ],
            options={
                "ordering": ["date", "id"],
                "indexes": [
                    models.Index(fields=["company", "date"], name="invoice_company_date_idx"),
                    models.Index(fields=["company", "customer"], name="invoice_company_cust_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(fields=("customer", "date"), name="uq_invoice_customer_month"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Payment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("payment_date", models.DateTimeField()),
                ("payment_method", models.CharField(
                    choices=[("cash", "Cash"), ("bank_transfer", "Bank Transfer"), ("e_wallet", "E-Wallet")],
                    default="cash",
                    max_length=20,
                )),
                ("total_bill", models.BigIntegerField(default=0)),
                ("discount", models.BigIntegerField(default=0)),
                ("credit_applied", models.BigIntegerField(default=0)),
                ("total_payment", models.BigIntegerField(blank=True, null=True)),
                ("paid_amount", models.BigIntegerField(default=0)),
                ("change_amount", models.BigIntegerField(default=0)),
                ("collector_name", models.CharField(blank=True, max_length=200)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("company", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to="billing_core.company")),
                ("customer", models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name="payments",
                    to="billing_core.customer",
                )),
                ("invoices", models.ManyToManyField(blank=True, related_name="payments", to="billing_core.invoice")),
            ],
            options={
                "ordering": ["payment_date", "id"],
                "indexes": [
                    models.Index(fields=["company", "payment_date"], name="payment_company_date_idx"),
                    models.Index(fields=["company", "customer"], name="payment_company_cust_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Expense",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=200)),
                ("category", models.CharField(
                    choices=[("recurring", "Fixed / recurring"), ("installment", "Installment"), ("other", "Other / incidental")],
                    max_length=20,
                )),
                ("amount", models.BigIntegerField(blank=True, null=True)),
                ("date", models.DateField(blank=True, null=True)),
                ("due_date_day", models.PositiveSmallIntegerField(blank=True, null=True)),
                ("tenor", models.PositiveSmallIntegerField(blank=True, null=True)),
                ("paid_tenor", models.PositiveSmallIntegerField(default=0)),
                ("last_paid_date", models.DateField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("company", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to="billing_core.company")),
            ],
            options={
                "indexes": [
                    models.Index(fields=["company", "date"], name="expense_company_date_idx"),
                    models.Index(fields=["company", "category"], name="expense_company_cat_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="OtherIncome",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=200)),
                ("amount", models.BigIntegerField()),
                ("date", models.DateField()),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("company", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to="billing_core.company")),
            ],
            options={
                "indexes": [
                    models.Index(fields=["company", "date"], name="otherincome_company_date_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="SummarySnapshot",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("as_of", models.DateTimeField()),
                ("data", models.JSONField(default=dict)),
                ("last_updated", models.DateTimeField()),
                ("company", models.OneToOneField(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="summary_snapshot",
                    to="billing_core.company",
                )),
            ],
        ),
        migrations.CreateModel(
            name="EntityMembership",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("role", models.CharField(
                    choices=[("owner", "Owner"), ("admin", "Admin"), ("collector", "Collector"), ("viewer", "Viewer")],
                    default="viewer",
                    max_length=20,
                )),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("company", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="memberships",
                    to="billing_core.company",
                )),
                ("user", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="memberships",
                    to=settings.AUTH_USER_MODEL,
                )),
            ],
            options={
                "indexes": [
                    models.Index(fields=["company", "user"], name="membership_company_user_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(fields=("user", "company"), name="uq_user_company_membership"),
                ],
            },
        ),
        migrations.CreateModel(
            name="AuditLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("action", models.CharField(max_length=50)),
                ("object_type", models.CharField(max_length=100)),
                ("object_id", models.CharField(max_length=100)),
                ("changes", models.JSONField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("company", models.ForeignKey(
                    blank=True,
                    null=True,
                    on_delete=django.db.models.deletion.SET_NULL,
                    to="billing_core.company",
                )),
                ("user", models.ForeignKey(
                    blank=True,
                    null=True,
                    on_delete=django.db.models.deletion.SET_NULL,
                    to=settings.AUTH_USER_MODEL,
                )),
            ],
            options={
                "indexes": [
                    models.Index(fields=["company", "user"], name="auditlog_company_user_idx"),
                    models.Index(fields=["company", "created_at"], name="auditlog_company_created_idx"),
                ],
            },
        ),
    ]

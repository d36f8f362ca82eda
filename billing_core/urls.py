from django.urls import path

from . import views

app_name = "billing"

urlpatterns = [
    path("summary/", views.summary_view, name="summary"),
    path("summary/recompute/", views.recompute_summary_view, name="summary-recompute"),
    path("customers/<int:customer_id>/statement/", views.customer_statement_view, name="customer-statement"),
    path("invoices/generate/", views.generate_invoices_view, name="invoices-generate"),
    path("payments/report/", views.payment_report_view, name="payment-report"),
]

import logging

from django.contrib.auth.decorators import login_required
from django.core.exceptions import ValidationError
from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.utils import timezone
from django.utils.dateparse import parse_date
from django.views.decorators.http import require_GET, require_POST

from .exceptions import UpstreamFetchFailure
from .models import Customer, Payment
from .services import (customer_statement, generate_monthly_invoices,
                       get_summary, payment_report, recompute_summary)
from .services.loaders import payment_records, records_for_customer
from .services.records import CustomerRecord

logger = logging.getLogger(__name__)


def _no_company():
    return JsonResponse({"ok": False, "error": "No active company"}, status=403)


def _snapshot_payload(snapshot):
    return {
        "ok": True,
        "last_updated": snapshot.last_updated.isoformat(),
        "summary": snapshot.data,
    }


@login_required
@require_GET
def summary_view(request):
    if request.company is None:
        return _no_company()
    snapshot = get_summary(request.company)
    if snapshot is None:
        return JsonResponse({"ok": False, "error": "Summary not computed yet"}, status=404)
    return JsonResponse(_snapshot_payload(snapshot))


@login_required
@require_POST
def recompute_summary_view(request):
    # "recompute now" button on the dashboard
    if request.company is None:
        return _no_company()
    try:
        snapshot = recompute_summary(request.company)
    except UpstreamFetchFailure as exc:
        logger.exception("Manual summary recompute failed for %s", request.company)
        return JsonResponse({"ok": False, "error": str(exc)}, status=503)
    return JsonResponse(_snapshot_payload(snapshot))


@login_required
@require_GET
def customer_statement_view(request, customer_id):
    if request.company is None:
        return _no_company()
    # tenant scoping: other companies' customers are a 404
    customer = get_object_or_404(Customer.objects.for_company(request.company), pk=customer_id)
    invoices, payments = records_for_customer(customer)
    statement = customer_statement(CustomerRecord.from_model(customer), invoices, payments)
    return JsonResponse({"ok": True, "customer": customer.name, **statement.to_dict()})


@login_required
@require_POST
def generate_invoices_view(request):
    if request.company is None:
        return _no_company()
    try:
        result = generate_monthly_invoices(request.company, user=request.user)
    except ValidationError as e:
        return JsonResponse({"ok": False, "error": str(e)}, status=400)
    return JsonResponse({
        "ok": True,
        "month": result.month,
        "created": result.created_count,
        "skipped_existing": len(result.skipped_existing),
        "skipped_no_price": len(result.skipped_no_price),
        "skipped_not_installed": len(result.skipped_not_installed),
    })


def _report_day(request, name, default):
    raw = request.GET.get(name)
    if not raw:
        return default
    try:
        day = parse_date(raw)
    except ValueError:
        day = None
    if day is None:
        raise ValidationError(f"{name} must be a yyyy-MM-dd date")
    return day


@login_required
@require_GET
def payment_report_view(request):
    # defaults to the current month so far
    if request.company is None:
        return _no_company()
    today = timezone.localdate()
    try:
        start = _report_day(request, "start", today.replace(day=1))
        end = _report_day(request, "end", today)
        if start > end:
            raise ValidationError("start must not be after end")
    except ValidationError as e:
        return JsonResponse({"ok": False, "error": e.messages[0]}, status=400)

    payments = payment_records(
        Payment.objects.for_company(request.company).filter(
            payment_date__date__gte=start, payment_date__date__lte=end)
    )
    report = payment_report(payments, start, end)
    return JsonResponse({"ok": True, **report.to_dict()})

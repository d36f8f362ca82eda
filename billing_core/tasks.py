import logging

from celery import shared_task
from django.utils import timezone

from .exceptions import UpstreamFetchFailure

logger = logging.getLogger(__name__)


@shared_task  # register this function as a Celery task
def recompute_summary_task(company_id):
    # import models lazily to avoid circular imports at module import time
    from .models import Company
    from .services.summary import recompute_summary

    company = Company.objects.get(pk=company_id)
    snapshot = recompute_summary(company)
    return snapshot.pk


@shared_task
def recompute_all_summaries():
    """Hourly: refresh the cached summary of every company."""
    from .models import Company

    logger.info("Running scheduled summary aggregation...")
    done, failed = [], []
    for company_id in Company.objects.order_by("pk").values_list("pk", flat=True):
        # one unreadable company must not stop the others
        try:
            recompute_summary_task(company_id)
        except UpstreamFetchFailure:
            logger.exception("Summary aggregation failed for company %s", company_id)
            failed.append(company_id)
            continue
        done.append(company_id)
    if failed:
        raise UpstreamFetchFailure(f"Summary aggregation failed for companies {failed}")
    return done


@shared_task
def generate_monthly_invoices_task(company_id=None):
    """Monthly (01:00 on day 1): create this month's invoices."""
    from .models import Company
    from .services.invoicing import generate_monthly_invoices

    companies = Company.objects.order_by("pk")
    if company_id is not None:
        companies = companies.filter(pk=company_id)

    today = timezone.localdate()
    created = {}
    for company in companies:
        result = generate_monthly_invoices(company, as_of=today)
        created[company.pk] = result.created_count
    return created

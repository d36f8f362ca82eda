import logging

from django.conf import settings
from django.db import DatabaseError, transaction
from django.utils import timezone

from ..exceptions import UpstreamFetchFailure
from ..models import SummarySnapshot
from .aggregation import DEFAULT_REVENUE_MONTHS, aggregate
from .loaders import records_for_company

logger = logging.getLogger(__name__)


def load_records(company):
    """Everything the aggregation needs for one company, as records."""
    try:
        return records_for_company(company)
    except DatabaseError as exc:
        raise UpstreamFetchFailure(f"Could not read billing records of {company}") from exc


def build_report(company, as_of=None, months=None):
    # one clock reading per run, shared by every figure
    as_of = as_of or timezone.now()
    months = months or getattr(settings, "BILLING_REVENUE_MONTHS", DEFAULT_REVENUE_MONTHS)
    records = load_records(company)
    local_as_of = timezone.localtime(as_of).replace(tzinfo=None) if timezone.is_aware(as_of) else as_of
    return aggregate(as_of=local_as_of, months=months, **records)


def recompute_summary(company, as_of=None, months=None) -> SummarySnapshot:
    """Aggregate and upsert the cached summary row of a company."""
    as_of = as_of or timezone.now()
    report = build_report(company, as_of=as_of, months=months)
    now = timezone.now()
    data = report.to_dict()
    data["last_updated"] = now.isoformat()

    with transaction.atomic():
        snapshot, _ = SummarySnapshot.objects.update_or_create(
            company=company,
            defaults={"as_of": as_of, "data": data, "last_updated": now},
        )
    logger.info(
        "Summary of %s recomputed: income %s, arrears %s",
        company, report.total_income, report.total_arrears,
    )
    return snapshot


def get_summary(company):
    return SummarySnapshot.objects.filter(company=company).first()

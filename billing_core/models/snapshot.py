from django.db import models

from ..managers import TenantManager
from .entitymembership import Company


# ---------- Summary Snapshot (materialized) ----------
class SummarySnapshot(models.Model):
    """Cached output of the aggregation engine, one row per company.

    Rewritten by the hourly job and by "recompute now"; dashboards read it
    instead of aggregating on every page load.
    """

    company = models.OneToOneField(
        Company, on_delete=models.CASCADE, related_name="summary_snapshot"
    )
    # Evaluation instant the figures were computed for
    as_of = models.DateTimeField()
    # SummaryReport.to_dict()
    data = models.JSONField(default=dict)
    last_updated = models.DateTimeField()

    objects = TenantManager()

    def __str__(self):
        return f"{self.company.slug} summary @ {self.last_updated:%Y-%m-%d %H:%M}"

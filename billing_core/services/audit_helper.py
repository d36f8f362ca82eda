from typing import Optional

from ..models import AuditLog, Company


def log_action(
    *,
    action: str,
    instance,
    user=None,
    company: Optional[Company] = None,
    changes: dict | None = None,
):
    """
    Central audit logger.
    Safe to call multiple times (caller ensures idempotency).
    """

    if not company:
        company = getattr(instance, "company", None)

    # scheduled jobs run without a user
    if user is not None and not getattr(user, "is_authenticated", False):
        user = None

    AuditLog.objects.create(
        company=company,
        user=user,
        action=action,
        object_type=instance.__class__.__name__,
        object_id=str(instance.pk),
        changes=changes,
    )

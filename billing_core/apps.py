from django.apps import AppConfig


class BillingCoreConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "billing_core"
    verbose_name = "ISP billing"

    # ensure receivers are registered
    def ready(self):
        import billing_core.signals  # noqa: F401

from __future__ import annotations
import os
from celery import Celery

# ensure Django settings are set for Celery
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "isp_project.settings")

celery_app = Celery("isp_project")

# read config from Django settings, using CELERY_ prefix
# (broker, result backend, beat schedule, eager mode for tests)
celery_app.config_from_object("django.conf:settings", namespace="CELERY")

# autoload tasks.py from installed apps
celery_app.autodiscover_tasks()

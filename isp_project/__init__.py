# Celery instance is defined in isp_project/celery.py
# Importing it here makes sure the app is loaded when Django starts,
# so @shared_task binds to it
from .celery import celery_app

__all__ = ("celery_app",)

""" Run the worker and the scheduler with:
    celery -A isp_project worker -l info
    celery -A isp_project beat -l info """

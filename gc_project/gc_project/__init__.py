# Celery instance is defined in gc_project/celery.py
# Importing it here makes @shared_task bind to it when Django starts
from .celery import celery_app

__all__ = ("celery_app",)

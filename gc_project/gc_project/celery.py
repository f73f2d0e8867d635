""" Worker:  celery -A gc_project worker -l info
    Beat:    celery -A gc_project beat -l info   (mobile-money sweep) """
from __future__ import annotations
import os
from celery import Celery

# ensure Django settings are set for Celery
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "gc_project.settings")

celery_app = Celery("gc_project")

# read config from Django settings, using CELERY_ prefix
celery_app.config_from_object("django.conf:settings", namespace="CELERY")

# autoload tasks from installed apps
celery_app.autodiscover_tasks()

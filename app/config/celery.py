"""
Celery configuration for the chat backend.

Background work is limited to media housekeeping (see media/tasks.py);
CELERY_BEAT_SCHEDULE in settings runs it periodically. Redis serves as
both broker and result backend. Tasks are auto-discovered from installed
apps.

Run a worker and the scheduler:
    celery -A config worker -l info
    celery -A config beat -l info
"""

import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("config")

# All Celery settings are prefixed with CELERY_ in settings.py
app.config_from_object("django.conf:settings", namespace="CELERY")

app.autodiscover_tasks()

"""
Celery configuration for the Django application.

Celery runs the periodic payment sweeps (see payments.tasks). Redis is the
broker and result backend. Periodic schedules are stored in the database
by django-celery-beat.

Usage:
    # Worker
    celery -A config worker -l info

    # Scheduler
    celery -A config beat -l info --scheduler django_celery_beat.schedulers:DatabaseScheduler
"""

import os

from celery import Celery

# Set the default Django settings module for the Celery worker
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("config")

# All Celery settings are prefixed with CELERY_ in settings.py
app.config_from_object("django.conf:settings", namespace="CELERY")

# Picks up payments.tasks and any other app's tasks.py
app.autodiscover_tasks()

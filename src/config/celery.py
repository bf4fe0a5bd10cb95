"""
Celery application for the order metronome project.

DJANGO_SETTINGS_MODULE is set before the app is created so Celery reads the
Django settings (``CELERY_`` prefix), including the beat schedule that runs
the due-milestone scan.
"""

import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("metronome")

app.config_from_object("django.conf:settings", namespace="CELERY")

# Finds tasks.py in every installed app
app.autodiscover_tasks()

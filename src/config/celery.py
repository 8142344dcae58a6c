"""
Celery application for the storefront.

``DJANGO_SETTINGS_MODULE`` is set before the app is created so Celery
reads its configuration from Django settings (``CELERY_`` prefix).
Only notification e-mails run here; order and payment writes are always
synchronous.
"""

import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("storefront")

app.config_from_object("django.conf:settings", namespace="CELERY")

# Picks up tasks.py from every installed app (modules.notifications).
app.autodiscover_tasks()

"""
Celery application configuration for ShiftDesk.

Tasks are auto-discovered from each Django app's tasks.py module:
  - scheduling.expire_stale_assignments
  - tools.mark_overdue_rentals
"""

import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "shiftdesk.settings.local")

app = Celery("shiftdesk")

# Read configuration from Django settings, namespaced under CELERY_
app.config_from_object("django.conf:settings", namespace="CELERY")

# Auto-discover tasks in all installed apps
app.autodiscover_tasks()

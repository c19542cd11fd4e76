"""
ShiftDesk root URL configuration.

URL namespaces follow the pattern: app_name:view_name
  - accounts:       login, profile, permissions, tags
  - scheduling:     calendar, layout, shifts, assignments
  - events:         calendar item review
  - courses:        enrollments
  - notifications:  inbox
  - audit:          log, export
"""

import logging

from django.contrib import admin
from django.db import DatabaseError, connection
from django.http import JsonResponse
from django.urls import include, path
from django.utils import timezone

logger = logging.getLogger(__name__)


def health_check(request):
    """Return 200 when the database is reachable, 503 otherwise."""
    try:
        connection.ensure_connection()
        db_ok = True
    except DatabaseError as exc:
        logger.error("Health check could not reach the database: %s", exc)
        db_ok = False

    return JsonResponse(
        {
            "status": "ok" if db_ok else "degraded",
            "db": db_ok,
            "timestamp": timezone.now().isoformat(),
        },
        status=200 if db_ok else 503,
    )


urlpatterns = [
    path("health/", health_check, name="health_check"),
    path("admin/", admin.site.urls),
    path("accounts/", include("apps.accounts.urls", namespace="accounts")),
    path("calendar/review/", include("apps.events.urls", namespace="events")),
    path("courses/", include("apps.courses.urls", namespace="courses")),
    path("notifications/", include("apps.notifications.urls", namespace="notifications")),
    path("audit/", include("apps.audit.urls", namespace="audit")),
    path("", include("apps.scheduling.urls", namespace="scheduling")),
]

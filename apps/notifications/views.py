"""
Notifications views for ShiftDesk.

View inventory:
  NotificationCenterView → latest notifications for the current user (GET)
  mark_read              → POST: mark one or all notifications read
"""

import logging

from django.contrib.auth.decorators import login_required
from django.http import HttpRequest, HttpResponse, JsonResponse
from django.utils import timezone
from django.utils.decorators import method_decorator
from django.views import View

from apps.notifications.models import Notification
from core.http import request_data

logger = logging.getLogger(__name__)


@method_decorator(login_required, name="dispatch")
class NotificationCenterView(View):
    """Notification inbox for the current user, newest first."""

    def get(self, request: HttpRequest) -> JsonResponse:
        qs = Notification.objects.filter(recipient=request.user).order_by("-created_at")

        # Count on the full queryset before slicing
        unread_count = qs.filter(is_read=False).count()

        return JsonResponse({
            "unread_count": unread_count,
            "notifications": [n.as_dict() for n in qs[:50]],
        })


@login_required
def mark_read(request: HttpRequest) -> HttpResponse:
    """
    Mark one or all notifications as read.

    POST body:
      notification_id: int   → mark a single notification
                       "all" → mark every unread notification
    """
    if request.method != "POST":
        return HttpResponse(status=405)

    notification_id = str(request_data(request).get("notification_id", ""))
    unread = Notification.objects.filter(recipient=request.user, is_read=False)

    if notification_id == "all":
        updated = unread.update(is_read=True, read_at=timezone.now())
        logger.info("User %d marked all notifications read", request.user.pk)
    elif notification_id.isdigit():
        updated = unread.filter(pk=notification_id).update(is_read=True, read_at=timezone.now())
    else:
        updated = 0

    return JsonResponse({"success": True, "updated": updated})

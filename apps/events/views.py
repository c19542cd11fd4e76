"""
Calendar review views.

View inventory:
  ReviewItemView  → approve or reject one event / tool rental (POST, manager)
  BulkReviewView  → approve or reject many at once (POST, manager)
"""

import logging

from django.http import HttpRequest, JsonResponse
from django.views import View

from apps.events.services import CalendarReviewService
from core.http import error_response, request_data, result_response
from core.permissions import PermissionRequiredMixin
from core.results import Reason

logger = logging.getLogger(__name__)


def _approve_flag(data) -> bool:
    return data.get("approve") in (True, "true", "on", "1", 1)


class ReviewItemView(PermissionRequiredMixin, View):
    """POST body: item_type ("event" | "tool_rental"), item_id, approve, reason?"""

    def post(self, request: HttpRequest) -> JsonResponse:
        data = request_data(request)
        if not data.get("item_type") or not data.get("item_id"):
            return error_response(Reason.NOT_FOUND, "item_type and item_id are required")

        result = CalendarReviewService.review(
            request.user,
            data["item_type"],
            data["item_id"],
            _approve_flag(data),
            data.get("reason", ""),
        )
        return result_response(result, lambda item: {"id": item.pk, "status": item.status})


class BulkReviewView(PermissionRequiredMixin, View):
    """POST body: items [{item_type, item_id}, ...], approve, reason?"""

    def post(self, request: HttpRequest) -> JsonResponse:
        data = request_data(request)
        items = data.get("items")
        if not isinstance(items, list):
            return error_response(Reason.INVARIANT_VIOLATION, "items must be a list")
        items = [entry for entry in items if isinstance(entry, dict)]

        result = CalendarReviewService.bulk_review(
            request.user, items, _approve_flag(data), data.get("reason", "")
        )
        return result_response(result)

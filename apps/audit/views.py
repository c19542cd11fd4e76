"""
Audit views for ShiftDesk.

View inventory:
  AuditLogView → manager-only audit trail as JSON, with CSV export
"""

import csv
import logging

from django.http import HttpRequest, HttpResponse, JsonResponse
from django.views import View

from apps.audit.models import AuditLog
from core.permissions import ManagerRequiredMixin

logger = logging.getLogger(__name__)


class AuditLogView(ManagerRequiredMixin, View):
    """
    Immutable audit log viewer (managers only).

    Supports filtering by action and actor, and CSV export.
    """

    def get(self, request: HttpRequest) -> HttpResponse:
        """
        Return the audit log with optional filters.

        Query params:
          action: filter by action string (partial match)
          actor:  filter by actor user ID
          export: 'csv' triggers a file download
        """
        logs = AuditLog.objects.select_related("actor").order_by("-created_at")

        action_filter = request.GET.get("action", "").strip()
        if action_filter:
            logs = logs.filter(action__icontains=action_filter)

        actor_filter = request.GET.get("actor", "").strip()
        if actor_filter.isdigit():
            logs = logs.filter(actor__id=actor_filter)

        if request.GET.get("export") == "csv":
            return self._export_csv(logs)

        return JsonResponse({"entries": [
            {
                "id": log.pk,
                "created_at": log.created_at.isoformat(),
                "actor": log.actor.get_full_name() if log.actor else "System",
                "action": log.action,
                "object_id": log.object_id,
                "before": log.before,
                "after": log.after,
                "note": log.note,
            }
            for log in logs[:200]
        ]})

    @staticmethod
    def _export_csv(logs) -> HttpResponse:
        """
        Write audit log entries as a CSV file download.

        Args:
            logs: AuditLog queryset to export.
        """
        response = HttpResponse(content_type="text/csv")
        response["Content-Disposition"] = 'attachment; filename="shiftdesk_audit.csv"'
        writer = csv.writer(response)
        writer.writerow(["Timestamp", "Actor", "Action", "Object ID", "Note"])
        for log in logs:
            writer.writerow([
                log.created_at.isoformat(),
                log.actor.get_full_name() if log.actor else "System",
                log.action,
                log.object_id or "",
                log.note,
            ])
        return response

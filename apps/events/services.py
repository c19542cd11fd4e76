"""
Manager review of calendar items (events and tool rentals).

Approving sets the item to "approved"; rejecting sets it to "cancelled".
Bulk review runs each item independently and reports a result per item.
"""

import logging

from django.db import transaction

from apps.audit.models import AuditLog
from apps.events.models import Event
from apps.notifications.models import Notification
from apps.notifications.services import notify
from apps.tools.models import ToolRental
from core.results import OperationResult, Reason

logger = logging.getLogger(__name__)

ITEM_TYPES = {
    "event": (Event, "created_by"),
    "tool_rental": (ToolRental, "renter"),
}


class CalendarReviewService:
    """Service object for approving or rejecting calendar items."""

    @staticmethod
    @transaction.atomic
    def review(actor, item_type: str, item_id, approve: bool, reason: str = "") -> OperationResult:
        """
        Approve or reject one event or tool rental.

        Args:
            actor: Must hold the manager permission.
            item_type: "event" or "tool_rental".
            item_id: Primary key of the item.
            approve: True to approve, False to reject.
            reason: Optional note kept in the audit log.
        """
        if not actor.permissions.has("manager"):
            logger.warning("User %d attempted to review %s %s.", actor.pk, item_type, item_id)
            return OperationResult.denied("Only managers can approve/reject items")

        if item_type not in ITEM_TYPES:
            return OperationResult.failure(Reason.NOT_FOUND, f"Unknown item type: {item_type}")
        model, owner_field = ITEM_TYPES[item_type]

        try:
            item = model.objects.select_for_update().filter(pk=int(item_id)).first()
        except (TypeError, ValueError):
            item = None
        if item is None:
            label = "Event" if item_type == "event" else "Tool rental"
            return OperationResult.failure(Reason.NOT_FOUND, f"{label} not found")

        before = item.status
        item.status = model.Status.APPROVED if approve else model.Status.CANCELLED
        item.approved_by = actor
        item.save(update_fields=["status", "approved_by", "updated_at"])

        verb = "approved" if approve else "rejected"
        AuditLog.record(actor, f"{item_type}.{verb}", item, before={"status": before},
                        after={"status": item.status}, note=reason)

        owner = getattr(item, owner_field)
        if owner is not None and owner.pk != actor.pk:
            notify(
                owner,
                Notification.Type.ITEM_REVIEWED,
                f"{'Event' if item_type == 'event' else 'Tool rental'} {verb}",
                f"{item} was {verb}." + (f" Reason: {reason}" if reason else ""),
                {"item_type": item_type, "item_id": item.pk},
            )
        return OperationResult.success(item, message=f"Item {verb} successfully")

    @staticmethod
    def bulk_review(actor, items, approve: bool, reason: str = "") -> OperationResult:
        """
        Review several items; one failure does not stop the rest.

        Args:
            items: Iterable of {"item_type": ..., "item_id": ...}.

        Returns:
            OperationResult whose details carry "results" (one entry per item)
            and "summary" (a one-line count).
        """
        if not actor.permissions.has("manager"):
            return OperationResult.denied("Only managers can perform bulk approvals")

        results = []
        for entry in items:
            item_id = entry.get("item_id")
            outcome = CalendarReviewService.review(
                actor, entry.get("item_type", ""), item_id, approve, reason
            )
            row = {"item_id": item_id, "success": outcome.ok}
            if not outcome.ok:
                row["error"] = outcome.message
            results.append(row)

        succeeded = sum(1 for r in results if r["success"])
        failed = len(results) - succeeded
        verb = "approved" if approve else "rejected"
        summary = f"{succeeded} items {verb} successfully" + (f", {failed} failed" if failed else "")
        logger.info("User %d bulk %s: %s", actor.pk, verb, summary)
        return OperationResult.success(results=results, summary=summary)

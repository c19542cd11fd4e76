"""
Notifications models for ShiftDesk.

All user-facing notifications are persisted here. Real-time delivery happens
via WebSocket (Django Channels) on the recipient's personal group.

The `data` field carries the ids needed to link the notification back to the
assignment, shift, enrollment or calendar item it is about.
"""

from django.conf import settings
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _


class Notification(models.Model):
    """A persisted notification for a specific user."""

    class Type(models.TextChoices):
        # Worker notifications
        ASSIGNMENT_PROPOSED = "assignment_proposed", _("Shift Assignment Awaiting Your Approval")
        ASSIGNMENT_CONFIRMED = "assignment_confirmed", _("Shift Assignment Confirmed")
        ASSIGNMENT_REJECTED = "assignment_rejected", _("Shift Assignment Rejected")
        ASSIGNMENT_CANCELLED = "assignment_cancelled", _("Shift Assignment Cancelled")
        SHIFT_HOURS_CHANGED = "shift_hours_changed", _("Shift Hours Changed")
        # Manager notifications
        JOIN_REQUESTED = "join_requested", _("Worker Requested a Shift")
        # Courses and calendar
        ENROLLMENT_UPDATED = "enrollment_updated", _("Enrollment Updated")
        ITEM_REVIEWED = "item_reviewed", _("Calendar Item Reviewed")

    recipient = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="notifications",
    )
    notification_type = models.CharField(max_length=30, choices=Type.choices)

    title = models.CharField(max_length=200)
    body = models.TextField()
    data = models.JSONField(default=dict, blank=True)

    is_read = models.BooleanField(default=False)
    read_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = "Notification"
        verbose_name_plural = "Notifications"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["recipient", "is_read"]),
            models.Index(fields=["recipient", "-created_at"]),
        ]

    def __str__(self) -> str:
        return f"[{self.get_notification_type_display()}] -> {self.recipient.get_short_name()}"

    def mark_read(self) -> None:
        """Mark this notification as read and record the timestamp."""
        if not self.is_read:
            self.is_read = True
            self.read_at = timezone.now()
            self.save(update_fields=["is_read", "read_at"])

    def as_dict(self) -> dict:
        return {
            "id": self.pk,
            "type": self.notification_type,
            "title": self.title,
            "body": self.body,
            "data": self.data,
            "is_read": self.is_read,
            "created_at": self.created_at.isoformat(),
        }

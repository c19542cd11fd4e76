"""
Calendar events for ShiftDesk.

Events are one-off (or multi-day) calendar entries: staff meetings,
maintenance windows, team days, workshops. Events created by staff start in
PENDING_APPROVAL and become visible to customers once a manager approves them.
"""

from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _


class Event(models.Model):
    """A calendar entry that is not a recurring shift."""

    class Type(models.TextChoices):
        WORK = "work", _("Work")
        MEETING = "meeting", _("Meeting")
        MAINTENANCE = "maintenance", _("Maintenance")
        TEAM = "team", _("Team")
        EDUCATIONAL = "educational", _("Educational")

    class Status(models.TextChoices):
        PENDING_APPROVAL = "pending_approval", _("Pending Approval")
        APPROVED = "approved", _("Approved")
        IN_PROGRESS = "in_progress", _("In Progress")
        COMPLETED = "completed", _("Completed")
        CANCELLED = "cancelled", _("Cancelled")

    title = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    event_type = models.CharField(max_length=20, choices=Type.choices, default=Type.WORK)

    start_date = models.DateField()
    end_date = models.DateField(null=True, blank=True, help_text="Defaults to start_date.")
    start_time = models.TimeField(null=True, blank=True)
    end_time = models.TimeField(null=True, blank=True)

    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING_APPROVAL)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="events_created",
    )
    assigned_to = models.ManyToManyField(settings.AUTH_USER_MODEL, blank=True, related_name="events_assigned")
    participants = models.ManyToManyField(settings.AUTH_USER_MODEL, blank=True, related_name="events_joined")
    approved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="events_approved",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Event"
        verbose_name_plural = "Events"
        ordering = ["start_date", "start_time"]
        indexes = [
            models.Index(fields=["status"]),
            models.Index(fields=["start_date", "end_date"]),
        ]

    def __str__(self) -> str:
        return f"{self.title} ({self.start_date}) [{self.get_status_display()}]"

    @property
    def last_date(self):
        return self.end_date or self.start_date

    @property
    def is_pending(self) -> bool:
        return self.status == self.Status.PENDING_APPROVAL

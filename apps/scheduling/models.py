"""
Scheduling models for ShiftDesk.

The core of the platform. Defines:
  - ShiftTemplate: a recurring block of operating hours on chosen weekdays
  - HourlyRequirement: a sub-range of a template with its own headcount targets
  - ShiftAssignment: links a worker to one template on one date

Shift times are wall-clock times in the business's timezone (settings.TIME_ZONE).
A shift instance is a (template, date) pair; it is not stored, only derived.
"""

from datetime import datetime, timedelta

from django.conf import settings
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from apps.scheduling.timeutils import WEEKDAYS, to_hhmm, weekday_name


class ShiftTemplate(models.Model):
    """
    A reusable recurring work shift.

    A template specifies WHEN the business is staffed (open_time to close_time)
    and on WHICH weekdays. Staffing targets live on HourlyRequirement rows;
    hours with no matching requirement are not rated.
    """

    name = models.CharField(max_length=120)
    description = models.TextField(blank=True)

    open_time = models.TimeField(help_text="Start of operating hours (local wall clock).")
    close_time = models.TimeField(help_text="End of operating hours (local wall clock).")

    recurring_days = models.JSONField(
        default=list,
        help_text="Lower-case weekday names, e.g. ['monday', 'friday'].",
    )
    color = models.CharField(max_length=20, blank=True, default="#3B82F6")
    is_active = models.BooleanField(default=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name="created_shift_templates",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Shift Template"
        verbose_name_plural = "Shift Templates"
        ordering = ["open_time", "name"]

    def __str__(self) -> str:
        return f"{self.name} ({to_hhmm(self.open_time)}-{to_hhmm(self.close_time)})"

    def runs_on(self, day) -> bool:
        """Return True if this template has an instance on the given date."""
        return weekday_name(day) in (self.recurring_days or [])

    def starts_at(self, day) -> datetime:
        """Timezone-aware start of the shift instance on the given date."""
        return timezone.make_aware(datetime.combine(day, self.open_time))

    def hours_until(self, day) -> float:
        """Hours from now until the shift instance on `day` starts (negative if past)."""
        delta: timedelta = self.starts_at(day) - timezone.now()
        return delta.total_seconds() / 3600

    @property
    def ordered_requirements(self) -> list:
        return list(self.requirements.order_by("position", "start_time"))

    @staticmethod
    def clean_days(days) -> list:
        """Keep known weekday names, lower-cased, in calendar order."""
        wanted = {str(d).lower() for d in days or []}
        return [d for d in WEEKDAYS if d in wanted]

    def as_dict(self) -> dict:
        return {
            "id": self.pk,
            "name": self.name,
            "description": self.description,
            "open_time": to_hhmm(self.open_time),
            "close_time": to_hhmm(self.close_time),
            "recurring_days": self.recurring_days,
            "color": self.color,
            "is_active": self.is_active,
            "requirements": [r.as_dict() for r in self.ordered_requirements],
        }


class HourlyRequirement(models.Model):
    """
    Staffing target for a sub-range of a shift's operating hours.

    Ranges need not be contiguous; they must lie inside the shift's hours and
    must not overlap each other.
    """

    shift = models.ForeignKey(ShiftTemplate, on_delete=models.CASCADE, related_name="requirements")
    position = models.PositiveSmallIntegerField(default=0)
    start_time = models.TimeField()
    end_time = models.TimeField()
    min_workers = models.PositiveSmallIntegerField(default=1)
    optimal_workers = models.PositiveSmallIntegerField(default=1)
    notes = models.CharField(max_length=200, blank=True)

    class Meta:
        verbose_name = "Hourly Requirement"
        verbose_name_plural = "Hourly Requirements"
        ordering = ["shift", "position", "start_time"]

    def __str__(self) -> str:
        return (
            f"{self.shift.name} {to_hhmm(self.start_time)}-{to_hhmm(self.end_time)} "
            f"(min {self.min_workers}, optimal {self.optimal_workers})"
        )

    def as_dict(self) -> dict:
        return {
            "start_time": to_hhmm(self.start_time),
            "end_time": to_hhmm(self.end_time),
            "min_workers": self.min_workers,
            "optimal_workers": self.optimal_workers,
            "notes": self.notes,
        }


class ShiftAssignment(models.Model):
    """
    A worker's binding to one shift instance (template + date).

    Status machine:
      PENDING_WORKER_APPROVAL  -> CONFIRMED (worker accepts) | REJECTED (worker declines)
      PENDING_MANAGER_APPROVAL -> CONFIRMED (manager approves) | REJECTED (manager declines)
      CONFIRMED                -> REJECTED (cancelled) | COMPLETED (worked)

    A worker holds at most one non-rejected assignment per (shift, date).
    Time slots are stored as [{"start_time": "HH:MM", "end_time": "HH:MM"}];
    break periods add an "is_paid" flag.
    """

    class Status(models.TextChoices):
        PENDING_WORKER_APPROVAL = "pending_worker_approval", _("Awaiting Worker Approval")
        PENDING_MANAGER_APPROVAL = "pending_manager_approval", _("Awaiting Manager Approval")
        CONFIRMED = "confirmed", _("Confirmed")
        REJECTED = "rejected", _("Rejected")
        COMPLETED = "completed", _("Completed")

    shift = models.ForeignKey(ShiftTemplate, on_delete=models.CASCADE, related_name="assignments")
    worker = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="shift_assignments",
    )
    date = models.DateField()
    status = models.CharField(
        max_length=30, choices=Status.choices, default=Status.PENDING_MANAGER_APPROVAL
    )

    time_slots = models.JSONField(default=list, blank=True)
    break_periods = models.JSONField(default=list, blank=True)
    notes = models.TextField(blank=True)

    assigned_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name="assignments_made",
    )
    approved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="assignments_approved",
    )
    worker_approved_at = models.DateTimeField(null=True, blank=True)
    manager_approved_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    PENDING_STATUSES = (Status.PENDING_WORKER_APPROVAL, Status.PENDING_MANAGER_APPROVAL)

    class Meta:
        verbose_name = "Shift Assignment"
        verbose_name_plural = "Shift Assignments"
        ordering = ["date", "shift__open_time"]
        constraints = [
            # A worker can only hold one live assignment per shift instance
            models.UniqueConstraint(
                fields=["shift", "worker", "date"],
                condition=~models.Q(status="rejected"),
                name="unique_live_assignment_per_shift_date",
            )
        ]
        indexes = [
            models.Index(fields=["shift", "date"]),
            models.Index(fields=["worker", "date"]),
            models.Index(fields=["status"]),
        ]

    def __str__(self) -> str:
        return f"{self.worker.get_full_name()} -> {self.shift.name} {self.date} [{self.get_status_display()}]"

    @property
    def is_pending(self) -> bool:
        return self.status in self.PENDING_STATUSES

    @property
    def is_confirmed(self) -> bool:
        return self.status == self.Status.CONFIRMED

    def append_note(self, line: str) -> None:
        """Add a line to the free-text notes."""
        self.notes = f"{self.notes}\n{line}".strip() if self.notes else line

    def as_dict(self) -> dict:
        return {
            "id": self.pk,
            "shift_id": self.shift_id,
            "worker_id": self.worker_id,
            "date": self.date.isoformat(),
            "status": self.status,
            "time_slots": self.time_slots,
            "break_periods": self.break_periods,
            "notes": self.notes,
            "assigned_by": self.assigned_by_id,
            "approved_by": self.approved_by_id,
        }

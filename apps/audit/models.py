"""
Audit trail models for ShiftDesk.

Every assignment transition, shift template edit, enrollment decision and tag
change is logged immutably: who did it, when, and the state before and after.

Rows are written inside the same transaction as the change they describe, so
a change never exists without its audit record.
"""

from django.conf import settings
from django.contrib.contenttypes.fields import GenericForeignKey
from django.contrib.contenttypes.models import ContentType
from django.db import models


class AuditLogQuerySet(models.QuerySet):
    def for_object(self, obj):
        """Entries about one model instance, newest first."""
        return self.filter(
            content_type=ContentType.objects.get_for_model(obj),
            object_id=obj.pk,
        ).order_by("-created_at")


class AuditLog(models.Model):
    """
    Immutable record of a change made in ShiftDesk.

    The changed object is referenced through a generic relation so any model
    can be audited.

    Action strings follow the pattern "model.event":
      - "shift_template.updated"
      - "shift_assignment.created"
      - "shift_assignment.confirmed"
      - "course_enrollment.approved"
      - "user.tags_updated"
      - "event.approved"
    """

    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name="audit_actions",
    )
    action = models.CharField(
        max_length=100,
        db_index=True,
        help_text="Dot-separated action identifier, e.g., 'shift_assignment.confirmed'",
    )

    content_type = models.ForeignKey(ContentType, on_delete=models.SET_NULL, null=True)
    object_id = models.PositiveBigIntegerField(null=True)
    content_object = GenericForeignKey("content_type", "object_id")

    before = models.JSONField(default=dict, blank=True, help_text="State before the change. Empty for creations.")
    after = models.JSONField(default=dict, blank=True, help_text="State after the change. Empty for deletions.")

    # Rejection reason, cancellation note, boundary adjustment summary
    note = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    objects = AuditLogQuerySet.as_manager()

    class Meta:
        verbose_name = "Audit Log Entry"
        verbose_name_plural = "Audit Log"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["content_type", "object_id"]),
            models.Index(fields=["actor", "-created_at"]),
            models.Index(fields=["action", "-created_at"]),
        ]

    def __str__(self) -> str:
        actor_name = self.actor.get_full_name() if self.actor else "System"
        return f"[{self.created_at.strftime('%Y-%m-%d %H:%M')}] {actor_name} -> {self.action}"

    def save(self, *args, **kwargs):
        """
        Insert only.

        Raises:
            RuntimeError: If attempting to update an existing audit log entry.
        """
        if self.pk:
            raise RuntimeError("AuditLog entries are immutable and cannot be updated.")
        super().save(*args, **kwargs)

    @classmethod
    def record(cls, actor, action: str, obj, before=None, after=None, note: str = "") -> "AuditLog":
        """Write one entry about `obj`."""
        return cls.objects.create(
            actor=actor,
            action=action,
            content_object=obj,
            before=before or {},
            after=after or {},
            note=note,
        )

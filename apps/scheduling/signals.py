from django.db.models.signals import post_save
from django.dispatch import receiver

from apps.audit.models import AuditLog
from apps.notifications.models import Notification
from apps.notifications.services import notify, notify_managers
from apps.scheduling.models import ShiftAssignment
from core.realtime import assignment_changed


@receiver(post_save, sender=ShiftAssignment)
def log_assignment(sender, instance, created, **kwargs):
    """Audit a new assignment and tell whoever has to act on it."""
    if not created:
        return

    AuditLog.record(
        actor=instance.assigned_by,
        action="shift_assignment.created",
        obj=instance,
        after={
            "shift": instance.shift_id,
            "worker": instance.worker_id,
            "date": instance.date.isoformat(),
            "status": instance.status,
        },
    )

    label = f"{instance.shift.name} on {instance.date}"
    data = {"assignment_id": instance.pk, "shift_id": instance.shift_id}

    if instance.status == ShiftAssignment.Status.PENDING_WORKER_APPROVAL:
        notify(
            instance.worker,
            Notification.Type.ASSIGNMENT_PROPOSED,
            "New shift assignment",
            f"You have been assigned to {label}. Please accept or decline.",
            data,
        )
    elif instance.status == ShiftAssignment.Status.PENDING_MANAGER_APPROVAL:
        notify_managers(
            Notification.Type.JOIN_REQUESTED,
            "Shift request awaiting approval",
            f"{instance.worker.get_full_name()} asked to work {label}.",
            data,
            exclude=instance.worker,
        )
    elif instance.assigned_by_id and instance.assigned_by_id != instance.worker_id:
        notify(
            instance.worker,
            Notification.Type.ASSIGNMENT_CONFIRMED,
            "Shift assignment confirmed",
            f"You are confirmed for {label}.",
            data,
        )

    assignment_changed(instance, "created")

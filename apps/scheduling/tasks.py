"""
Celery tasks for ShiftDesk scheduling.

Tasks:
  expire_stale_assignments: runs nightly; rejects assignments still pending
                            approval after their shift date has passed.

Registered with django-celery-beat (see CELERY_BEAT_SCHEDULE in settings/base.py).

Design notes:
  - Idempotent: a second run finds nothing left to expire.
  - Logs one line per run that expires anything.
"""

import logging
from datetime import timedelta

from celery import shared_task
from django.conf import settings
from django.utils import timezone

logger = logging.getLogger(__name__)


@shared_task(name="scheduling.expire_stale_assignments")
def expire_stale_assignments() -> dict:
    """
    Reject pending assignments whose date is in the past.

    Nobody can still accept or approve work on a day that is over, so the
    assignment is closed out with an "Expired" note. The grace period is
    SHIFTDESK["PENDING_EXPIRY_GRACE_DAYS"].

    Returns:
        Dict with count of records expired.
    """
    from apps.audit.models import AuditLog
    from apps.scheduling.models import ShiftAssignment

    grace = settings.SHIFTDESK["PENDING_EXPIRY_GRACE_DAYS"]
    cutoff = timezone.localdate() - timedelta(days=grace)
    stale = ShiftAssignment.objects.filter(
        status__in=ShiftAssignment.PENDING_STATUSES,
        date__lt=cutoff,
    )

    count = 0
    for assignment in stale:
        before = assignment.status
        assignment.status = ShiftAssignment.Status.REJECTED
        assignment.append_note("Expired: not approved before the shift date")
        assignment.save(update_fields=["status", "notes", "updated_at"])
        AuditLog.record(
            actor=None,
            action="shift_assignment.expired",
            obj=assignment,
            before={"status": before},
            after={"status": assignment.status},
        )
        count += 1

    if count:
        logger.info("Expired %d stale pending assignment(s).", count)

    return {"expired_assignments": count}

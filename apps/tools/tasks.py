"""
Celery tasks for ShiftDesk tool rentals.

Tasks:
  mark_overdue_rentals: runs nightly; flags approved or active rentals whose
                        end date has passed as OVERDUE.
"""

import logging

from celery import shared_task
from django.utils import timezone

logger = logging.getLogger(__name__)


@shared_task(name="tools.mark_overdue_rentals")
def mark_overdue_rentals() -> dict:
    """
    Flag rentals that should have come back by now.

    Returns:
        Dict with count of rentals marked overdue.
    """
    from apps.tools.models import ToolRental

    count = ToolRental.objects.filter(
        status__in=[ToolRental.Status.APPROVED, ToolRental.Status.ACTIVE],
        rental_end_date__lt=timezone.localdate(),
    ).update(status=ToolRental.Status.OVERDUE, updated_at=timezone.now())

    if count:
        logger.info("Marked %d rental(s) overdue.", count)

    return {"overdue_rentals": count}

"""
Persist a notification, push it to the recipient's WebSocket stream, and
email it when the recipient opted in.
"""

import logging

from django.core.mail import send_mail

from apps.notifications.models import Notification
from core.realtime import broadcast

logger = logging.getLogger(__name__)


def notify(recipient, notification_type: str, title: str, body: str, data: dict = None) -> Notification:
    """
    Create a Notification and deliver it in real time.

    Args:
        recipient:         The user to notify.
        notification_type: One of Notification.Type.
        title:             Short notification title.
        body:              Full notification body text.
        data:              Ids linking back to the subject of the notification.

    Returns:
        The persisted Notification.
    """
    notification = Notification.objects.create(
        recipient=recipient,
        notification_type=notification_type,
        title=title,
        body=body,
        data=data or {},
    )
    if recipient.notify_in_app:
        broadcast(f"user_{recipient.pk}", {
            "type": "notification",
            "notification_id": notification.pk,
            "notification_type": notification_type,
            "title": title,
            "body": body,
        })
    if recipient.notify_email and recipient.email:
        try:
            send_mail(title, body, None, [recipient.email])
        except OSError as exc:
            logger.warning("Email notification %d to user %d failed: %s", notification.pk, recipient.pk, exc)
    return notification


def notify_managers(notification_type: str, title: str, body: str, data: dict = None, exclude=None) -> int:
    """Notify every active manager; returns the number notified."""
    from apps.accounts.models import User

    managers = User.objects.managers()
    if exclude is not None:
        managers = managers.exclude(pk=exclude.pk)

    count = 0
    for manager in managers:
        notify(manager, notification_type, title, body, data)
        count += 1
    if count:
        logger.info("Notified %d manager(s): %s", count, title)
    return count

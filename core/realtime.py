"""
Channel-layer broadcast helpers.

Group naming convention:
  - calendar:       every connected calendar viewer
  - user_{user_id}: personal notification stream
"""

import logging

logger = logging.getLogger(__name__)

CALENDAR_GROUP = "calendar"


def broadcast(group: str, payload: dict) -> None:
    """
    Fire-and-forget channel layer group_send from synchronous code.

    Failures are logged; a WebSocket glitch must never break the HTTP response
    or roll back the transaction that triggered it.

    Args:
        group:   Channel group name (e.g. "calendar", "user_7").
        payload: Dict passed to group_send; its "type" key names the consumer
                 handler (dots converted to underscores by Channels).
    """
    try:
        from asgiref.sync import async_to_sync
        from channels.layers import get_channel_layer

        channel_layer = get_channel_layer()
        if channel_layer is not None:
            async_to_sync(channel_layer.group_send)(group, payload)
    except Exception as exc:  # pragma: no cover
        logger.warning("WebSocket broadcast to group '%s' failed: %s", group, exc)


def assignment_changed(assignment, action: str) -> None:
    """Tell calendar viewers that a shift instance's roster changed."""
    broadcast(CALENDAR_GROUP, {
        "type": "assignment_changed",
        "assignment_id": assignment.pk,
        "shift_id": assignment.shift_id,
        "date": assignment.date.isoformat(),
        "worker_id": assignment.worker_id,
        "status": assignment.status,
        "action": action,
    })

"""
WebSocket consumers for ShiftDesk's real-time features.

Two consumers handle different real-time concerns:
  1. CalendarConsumer: broadcasts roster changes to every calendar viewer
  2. UserConsumer: delivers personal notifications

Channel group naming convention:
  - calendar:       all viewers of the shared calendar
  - user_{user_id}: personal notification stream

Security: both consumers require authentication. Anonymous connections are
closed immediately.
"""

import json
import logging

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncWebsocketConsumer
from django.utils import timezone

from core.realtime import CALENDAR_GROUP

logger = logging.getLogger(__name__)


class CalendarConsumer(AsyncWebsocketConsumer):
    """
    Live calendar updates.

    URL: /ws/calendar/
    Group: calendar

    Events broadcast:
      - assignment.changed: an assignment was created, approved, rejected,
        cancelled, completed or edited
    """

    async def connect(self) -> None:
        self.user = self.scope["user"]

        if not self.user.is_authenticated:
            logger.warning("Unauthenticated WebSocket connection attempt rejected.")
            await self.close(code=4001)
            return

        await self.channel_layer.group_add(CALENDAR_GROUP, self.channel_name)
        await self.accept()
        logger.info("User %d connected to calendar WebSocket.", self.user.pk)

    async def disconnect(self, close_code: int) -> None:
        if getattr(self.user, "is_authenticated", False):
            await self.channel_layer.group_discard(CALENDAR_GROUP, self.channel_name)

    async def assignment_changed(self, event: dict) -> None:
        """
        Forward an assignment change to the client.

        Args:
            event: The event dict sent via group_send.
        """
        await self.send(text_data=json.dumps({
            "type": "assignment.changed",
            "assignment_id": event["assignment_id"],
            "shift_id": event["shift_id"],
            "date": event["date"],
            "worker_id": event["worker_id"],
            "status": event["status"],
            "action": event["action"],
        }))


class UserConsumer(AsyncWebsocketConsumer):
    """
    Personal WebSocket channel for one authenticated user.

    URL: /ws/user/
    Group: user_{user_id}
    """

    async def connect(self) -> None:
        self.user = self.scope["user"]

        if not self.user.is_authenticated:
            await self.close(code=4001)
            return

        self.group_name = f"user_{self.user.pk}"
        await self.channel_layer.group_add(self.group_name, self.channel_name)
        await self.accept()

    async def disconnect(self, close_code: int) -> None:
        if hasattr(self, "group_name"):
            await self.channel_layer.group_discard(self.group_name, self.channel_name)

    async def receive(self, text_data: str) -> None:
        """
        Handle client-to-server messages.

        Currently supports:
          - mark_read: mark one notification as read
        """
        try:
            data = json.loads(text_data)
        except json.JSONDecodeError:
            logger.warning("Invalid JSON received from user %d", self.user.pk)
            return

        notification_id = str(data.get("notification_id", ""))
        if data.get("type") == "mark_read" and notification_id.isdigit():
            await self._mark_notification_read(int(notification_id))

    async def notification(self, event: dict) -> None:
        await self.send(text_data=json.dumps({
            "type": "notification",
            "notification_id": event["notification_id"],
            "notification_type": event["notification_type"],
            "title": event["title"],
            "body": event["body"],
        }))

    @database_sync_to_async
    def _mark_notification_read(self, notification_id) -> None:
        from apps.notifications.models import Notification

        Notification.objects.filter(
            pk=notification_id, recipient=self.user, is_read=False
        ).update(is_read=True, read_at=timezone.now())

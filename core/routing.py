"""WebSocket URL routing for ShiftDesk Channels consumers."""

from django.urls import re_path

from core.consumers import CalendarConsumer, UserConsumer

websocket_urlpatterns = [
    # Shared calendar: roster changes for every viewer
    re_path(r"ws/calendar/$", CalendarConsumer.as_asgi()),
    # Personal notification stream for each user
    re_path(r"ws/user/$", UserConsumer.as_asgi()),
]

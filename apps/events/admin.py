from django.contrib import admin
from .models import Event


@admin.register(Event)
class EventAdmin(admin.ModelAdmin):
    list_display = ("title", "event_type", "start_date", "end_date", "status", "created_by", "approved_by")
    list_filter = ("event_type", "status")
    search_fields = ("title", "description", "created_by__email")
    filter_horizontal = ("assigned_to", "participants")
    ordering = ("-start_date",)

from django.contrib import admin
from .models import AuditLog


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ("created_at", "actor", "action", "content_type", "object_id", "note")
    list_filter = ("content_type",)
    search_fields = ("actor__email", "action", "note")
    ordering = ("-created_at",)

    # Audit rows are append-only
    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

from django.contrib import admin
from .models import HourlyRequirement, ShiftAssignment, ShiftTemplate


class HourlyRequirementInline(admin.TabularInline):
    model = HourlyRequirement
    extra = 0
    ordering = ("position", "start_time")


@admin.register(ShiftTemplate)
class ShiftTemplateAdmin(admin.ModelAdmin):
    list_display = ("name", "open_time", "close_time", "recurring_days", "is_active", "created_by")
    list_filter = ("is_active",)
    search_fields = ("name", "description")
    ordering = ("open_time", "name")
    inlines = [HourlyRequirementInline]


@admin.register(ShiftAssignment)
class ShiftAssignmentAdmin(admin.ModelAdmin):
    list_display = ("shift", "worker", "date", "status", "assigned_by", "approved_by", "updated_at")
    list_filter = ("status", "shift")
    search_fields = ("worker__email", "worker__first_name", "worker__last_name", "shift__name")
    date_hierarchy = "date"
    ordering = ("-date", "shift")

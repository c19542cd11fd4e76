from django.contrib import admin
from .models import Tool, ToolRental


@admin.register(Tool)
class ToolAdmin(admin.ModelAdmin):
    list_display = ("name", "category", "daily_rate", "is_available", "is_active")
    list_filter = ("category", "is_available", "is_active")
    search_fields = ("name",)


@admin.register(ToolRental)
class ToolRentalAdmin(admin.ModelAdmin):
    list_display = ("tool", "renter", "rental_start_date", "rental_end_date", "total_cost", "status")
    list_filter = ("status",)
    search_fields = ("tool__name", "renter__email")
    ordering = ("-rental_start_date",)

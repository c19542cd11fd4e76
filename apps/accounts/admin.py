from django.contrib import admin
from .models import User


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = (
        "email", "first_name", "last_name", "staff_tag", "worker_tag",
        "manager_tag", "is_dev", "is_active", "date_joined",
    )
    list_filter = (
        "staff_tag", "worker_tag", "instructor_tag", "tool_handler_tag",
        "manager_tag", "rental_approved_tag", "is_dev", "is_active",
    )
    search_fields = ("email", "first_name", "last_name")
    ordering = ("last_name", "first_name")

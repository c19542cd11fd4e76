from django.contrib import admin
from .models import Course, CourseEnrollment


class CourseEnrollmentInline(admin.TabularInline):
    model = CourseEnrollment
    fk_name = "course"
    extra = 0
    readonly_fields = ("enrolled_at",)


@admin.register(Course)
class CourseAdmin(admin.ModelAdmin):
    list_display = ("title", "instructor", "start_date", "current_participants", "max_participants", "is_active")
    list_filter = ("is_active",)
    search_fields = ("title", "instructor__email")
    inlines = [CourseEnrollmentInline]

"""
Courses and enrollments for ShiftDesk.

Course.current_participants is a denormalized count of approved enrollments.
It is a cache: EnrollmentService keeps it in step with status changes inside
the same transaction, and it never goes below zero.
"""

from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _


class Course(models.Model):
    title = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    instructor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="courses_taught",
    )
    start_date = models.DateField()
    end_date = models.DateField()
    start_time = models.TimeField()
    end_time = models.TimeField()
    max_participants = models.PositiveSmallIntegerField(default=10)
    current_participants = models.PositiveSmallIntegerField(default=0)
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["start_date", "start_time"]

    def __str__(self) -> str:
        return f"{self.title} ({self.start_date})"

    @property
    def is_full(self) -> bool:
        return self.current_participants >= self.max_participants

    @property
    def spots_left(self) -> int:
        return max(0, self.max_participants - self.current_participants)


class CourseEnrollment(models.Model):
    """
    A student's place in a course.

    Status machine:
      PENDING  -> APPROVED | REJECTED | CANCELLED
      APPROVED -> CANCELLED | COMPLETED
    """

    class Status(models.TextChoices):
        PENDING = "pending", _("Pending")
        APPROVED = "approved", _("Approved")
        REJECTED = "rejected", _("Rejected")
        CANCELLED = "cancelled", _("Cancelled")
        COMPLETED = "completed", _("Completed")

    course = models.ForeignKey(Course, on_delete=models.CASCADE, related_name="enrollments")
    student = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="course_enrollments",
    )
    status = models.CharField(max_length=15, choices=Status.choices, default=Status.PENDING)
    approved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="enrollments_approved",
    )
    enrolled_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    CLOSED_STATUSES = (Status.REJECTED, Status.CANCELLED)

    class Meta:
        ordering = ["-enrolled_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["course", "student"],
                condition=~models.Q(status__in=["rejected", "cancelled"]),
                name="unique_open_enrollment_per_course",
            )
        ]

    def __str__(self) -> str:
        return f"{self.student} in {self.course} [{self.get_status_display()}]"

"""
Enrollment lifecycle for ShiftDesk courses.

The participant counter on Course moves with enrollment status:
  - entering APPROVED increments it
  - leaving APPROVED for REJECTED or CANCELLED decrements it, floored at zero

Both writes happen in one transaction with the course row locked, so two
managers approving at once cannot drift the counter.
"""

import logging

from django.db import IntegrityError, transaction

from apps.audit.models import AuditLog
from apps.courses.models import Course, CourseEnrollment
from apps.notifications.models import Notification
from apps.notifications.services import notify
from core.results import OperationResult, Reason

logger = logging.getLogger(__name__)

Status = CourseEnrollment.Status

TRANSITIONS = {
    Status.PENDING: {Status.APPROVED, Status.REJECTED, Status.CANCELLED},
    Status.APPROVED: {Status.CANCELLED, Status.COMPLETED},
    Status.REJECTED: set(),
    Status.CANCELLED: set(),
    Status.COMPLETED: set(),
}


def _can_manage(actor, course) -> bool:
    return actor.permissions.has("manager") or course.instructor_id == actor.pk


def _counter_delta(before: str, after: str) -> int:
    if after == Status.APPROVED and before != Status.APPROVED:
        return 1
    if before == Status.APPROVED and after in CourseEnrollment.CLOSED_STATUSES:
        return -1
    return 0


def _apply(actor, enrollment, course, new_status: str) -> OperationResult:
    """Write the status change and counter change together. Caller holds the locks."""
    before = enrollment.status
    delta = _counter_delta(before, new_status)

    if delta > 0 and course.current_participants >= course.max_participants:
        return OperationResult.failure(Reason.CAPACITY_EXCEEDED, "Course is full")

    enrollment.status = new_status
    if new_status == Status.APPROVED:
        enrollment.approved_by = actor
    enrollment.save(update_fields=["status", "approved_by", "updated_at"])

    if delta:
        # Counter writes clamp at zero rather than failing
        course.current_participants = max(0, course.current_participants + delta)
        course.save(update_fields=["current_participants", "updated_at"])

    AuditLog.record(
        actor,
        f"course_enrollment.{new_status}",
        enrollment,
        before={"status": before},
        after={"status": new_status, "current_participants": course.current_participants},
    )
    if actor.pk != enrollment.student_id:
        notify(
            enrollment.student,
            Notification.Type.ENROLLMENT_UPDATED,
            "Enrollment updated",
            f"Your enrollment in {course.title} is now {enrollment.get_status_display().lower()}.",
            {"enrollment_id": enrollment.pk, "course_id": course.pk},
        )
    logger.info("User %d moved enrollment %d %s -> %s", actor.pk, enrollment.pk, before, new_status)
    return OperationResult.success(enrollment)


def _lock(enrollment):
    locked = CourseEnrollment.objects.select_for_update().filter(pk=enrollment.pk).first()
    if locked is None:
        return None, None
    course = Course.objects.select_for_update().get(pk=locked.course_id)
    return locked, course


class EnrollmentService:
    """Service object for course enrollments."""

    @staticmethod
    @transaction.atomic
    def request(student, course) -> OperationResult:
        """
        Ask for a place in a course.

        Returns:
            OperationResult with the new pending enrollment, or a rejection if
            the student already holds an open enrollment or the course is full.
        """
        course = Course.objects.select_for_update().filter(pk=course.pk, is_active=True).first()
        if course is None:
            return OperationResult.failure(Reason.NOT_FOUND, "Course not found")

        open_enrollment = CourseEnrollment.objects.filter(course=course, student=student).exclude(
            status__in=CourseEnrollment.CLOSED_STATUSES
        )
        if open_enrollment.exists():
            return OperationResult.failure(Reason.DUPLICATE_ASSIGNMENT, "Already enrolled in this course")
        if course.is_full:
            return OperationResult.failure(Reason.CAPACITY_EXCEEDED, "Course is full")

        try:
            with transaction.atomic():
                enrollment = CourseEnrollment.objects.create(course=course, student=student)
        except IntegrityError:
            return OperationResult.failure(Reason.DUPLICATE_ASSIGNMENT, "Already enrolled in this course")

        AuditLog.record(student, "course_enrollment.requested", enrollment, after={"status": enrollment.status})
        if course.instructor_id != student.pk:
            notify(
                course.instructor,
                Notification.Type.ENROLLMENT_UPDATED,
                "New enrollment request",
                f"{student.get_full_name()} asked to join {course.title}.",
                {"enrollment_id": enrollment.pk, "course_id": course.pk},
            )
        return OperationResult.success(enrollment)

    @staticmethod
    @transaction.atomic
    def set_status(actor, enrollment, status: str) -> OperationResult:
        """
        Approve, reject, cancel or complete an enrollment.

        Args:
            actor: The course instructor, a manager or a developer.
            enrollment: The enrollment to move.
            status: Target CourseEnrollment.Status value.
        """
        locked, course = _lock(enrollment)
        if locked is None:
            return OperationResult.failure(Reason.NOT_FOUND, "Enrollment not found")
        if not _can_manage(actor, course):
            logger.warning("User %d attempted to change enrollment %d.", actor.pk, locked.pk)
            return OperationResult.denied("Only the instructor or a manager can update enrollments")
        if status not in TRANSITIONS.get(locked.status, set()):
            return OperationResult.failure(
                Reason.INVALID_TRANSITION, f"Cannot move enrollment from {locked.status} to {status}"
            )
        return _apply(actor, locked, course, status)

    @staticmethod
    @transaction.atomic
    def cancel(actor, enrollment) -> OperationResult:
        """Cancel an enrollment (the student, the instructor, a manager or a developer)."""
        locked, course = _lock(enrollment)
        if locked is None:
            return OperationResult.failure(Reason.NOT_FOUND, "Enrollment not found")
        if actor.pk != locked.student_id and not _can_manage(actor, course):
            return OperationResult.denied("Not authorized to cancel this enrollment")
        if Status.CANCELLED not in TRANSITIONS.get(locked.status, set()):
            return OperationResult.failure(
                Reason.INVALID_TRANSITION, f"Cannot cancel a {locked.status} enrollment"
            )
        return _apply(actor, locked, course, Status.CANCELLED)

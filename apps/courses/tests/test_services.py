"""
Tests for EnrollmentService and the participant counter.

Run with:
    python manage.py test apps.courses.tests.test_services
"""

from datetime import time, timedelta

from django.test import TestCase
from django.urls import reverse
from django.utils import timezone

from apps.courses.models import Course, CourseEnrollment
from apps.courses.services import EnrollmentService
from apps.scheduling.tests.factories import make_customer, make_manager, make_user
from core.results import Reason

Status = CourseEnrollment.Status


def make_course(instructor, max_participants=2, **kwargs):
    start = timezone.localdate() + timedelta(days=14)
    return Course.objects.create(
        title=kwargs.pop("title", "Intro to woodturning"),
        instructor=instructor,
        start_date=start,
        end_date=start,
        start_time=time(18),
        end_time=time(21),
        max_participants=max_participants,
        **kwargs,
    )


class EnrollmentServiceTests(TestCase):
    def setUp(self):
        self.instructor = make_user(staff_tag=True, instructor_tag=True)
        self.course = make_course(self.instructor)
        self.student = make_customer()

    def approved(self, student=None):
        enrollment = EnrollmentService.request(student or make_customer(), self.course).obj
        EnrollmentService.set_status(self.instructor, enrollment, Status.APPROVED)
        return enrollment

    def test_request_creates_pending(self):
        result = EnrollmentService.request(self.student, self.course)
        self.assertTrue(result.ok)
        self.assertEqual(result.obj.status, Status.PENDING)
        self.course.refresh_from_db()
        self.assertEqual(self.course.current_participants, 0)

    def test_duplicate_request(self):
        EnrollmentService.request(self.student, self.course)
        result = EnrollmentService.request(self.student, self.course)
        self.assertEqual(result.reason, Reason.DUPLICATE_ASSIGNMENT)

    def test_approval_increments_counter(self):
        self.approved(self.student)
        self.course.refresh_from_db()
        self.assertEqual(self.course.current_participants, 1)

    def test_cancelling_approved_decrements_counter(self):
        enrollment = self.approved(self.student)
        result = EnrollmentService.cancel(self.student, enrollment)
        self.assertTrue(result.ok)
        self.course.refresh_from_db()
        self.assertEqual(self.course.current_participants, 0)

    def test_counter_never_goes_negative(self):
        enrollment = self.approved(self.student)
        Course.objects.filter(pk=self.course.pk).update(current_participants=0)
        EnrollmentService.set_status(self.instructor, enrollment, Status.CANCELLED)
        self.course.refresh_from_db()
        self.assertEqual(self.course.current_participants, 0)

    def test_cancelling_pending_leaves_counter(self):
        self.approved()
        pending = EnrollmentService.request(self.student, self.course).obj
        EnrollmentService.cancel(self.student, pending)
        self.course.refresh_from_db()
        self.assertEqual(self.course.current_participants, 1)

    def test_capacity(self):
        self.approved()
        self.approved()
        result = EnrollmentService.request(self.student, self.course)
        self.assertEqual(result.reason, Reason.CAPACITY_EXCEEDED)

    def test_approval_past_capacity(self):
        waiting = EnrollmentService.request(self.student, self.course).obj
        self.approved()
        self.approved()
        result = EnrollmentService.set_status(self.instructor, waiting, Status.APPROVED)
        self.assertEqual(result.reason, Reason.CAPACITY_EXCEEDED)

    def test_only_instructor_or_manager_decides(self):
        enrollment = EnrollmentService.request(self.student, self.course).obj
        self.assertEqual(
            EnrollmentService.set_status(self.student, enrollment, Status.APPROVED).reason,
            Reason.PERMISSION_DENIED,
        )
        self.assertTrue(EnrollmentService.set_status(make_manager(), enrollment, Status.APPROVED).ok)

    def test_invalid_transition(self):
        enrollment = EnrollmentService.request(self.student, self.course).obj
        EnrollmentService.set_status(self.instructor, enrollment, Status.REJECTED)
        result = EnrollmentService.set_status(self.instructor, enrollment, Status.APPROVED)
        self.assertEqual(result.reason, Reason.INVALID_TRANSITION)

    def test_new_request_after_rejection(self):
        enrollment = EnrollmentService.request(self.student, self.course).obj
        EnrollmentService.set_status(self.instructor, enrollment, Status.REJECTED)
        self.assertTrue(EnrollmentService.request(self.student, self.course).ok)


class EnrollmentViewTests(TestCase):
    def setUp(self):
        self.instructor = make_user(staff_tag=True, instructor_tag=True)
        self.course = make_course(self.instructor)
        self.student = make_customer()

    def test_enroll_and_approve(self):
        self.client.force_login(self.student)
        response = self.client.post(reverse("courses:enroll", args=[self.course.pk]))
        self.assertEqual(response.status_code, 201)
        enrollment_id = response.json()["data"]["id"]

        self.client.force_login(self.instructor)
        response = self.client.post(
            reverse("courses:enrollment_status", args=[enrollment_id]), {"status": "approved"}
        )
        self.assertEqual(response.status_code, 200)
        self.course.refresh_from_db()
        self.assertEqual(self.course.current_participants, 1)

    def test_course_list(self):
        self.client.force_login(self.student)
        data = self.client.get(reverse("courses:list")).json()
        self.assertEqual(data["courses"][0]["spots_left"], 2)

"""
Course enrollment views.

View inventory:
  CourseListView        → active courses with free places (GET)
  EnrollView            → request a place in a course (POST)
  EnrollmentStatusView  → approve / reject / complete an enrollment (POST)
  CancelEnrollmentView  → withdraw an enrollment (POST)
"""

import logging

from django.http import HttpRequest, JsonResponse
from django.shortcuts import get_object_or_404
from django.views import View

from apps.courses.models import Course, CourseEnrollment
from apps.courses.services import EnrollmentService
from core.http import request_data, result_response
from core.permissions import PermissionRequiredMixin

logger = logging.getLogger(__name__)


def _serialize_enrollment(enrollment) -> dict:
    return {
        "id": enrollment.pk,
        "course_id": enrollment.course_id,
        "student_id": enrollment.student_id,
        "status": enrollment.status,
        "current_participants": enrollment.course.current_participants,
    }


class CourseListView(PermissionRequiredMixin, View):
    def get(self, request: HttpRequest) -> JsonResponse:
        courses = Course.objects.filter(is_active=True)
        return JsonResponse({"courses": [
            {
                "id": c.pk,
                "title": c.title,
                "instructor_id": c.instructor_id,
                "start_date": c.start_date.isoformat(),
                "end_date": c.end_date.isoformat(),
                "max_participants": c.max_participants,
                "current_participants": c.current_participants,
                "spots_left": c.spots_left,
            }
            for c in courses
        ]})


class EnrollView(PermissionRequiredMixin, View):
    def post(self, request: HttpRequest, pk: int) -> JsonResponse:
        course = get_object_or_404(Course, pk=pk)
        result = EnrollmentService.request(request.user, course)
        return result_response(result, _serialize_enrollment, status=201)


class EnrollmentStatusView(PermissionRequiredMixin, View):
    """POST body: status (one of CourseEnrollment.Status)."""

    def post(self, request: HttpRequest, pk: int) -> JsonResponse:
        enrollment = get_object_or_404(CourseEnrollment, pk=pk)
        status = request_data(request).get("status", "")
        result = EnrollmentService.set_status(request.user, enrollment, status)
        return result_response(result, _serialize_enrollment)


class CancelEnrollmentView(PermissionRequiredMixin, View):
    def post(self, request: HttpRequest, pk: int) -> JsonResponse:
        enrollment = get_object_or_404(CourseEnrollment, pk=pk)
        return result_response(EnrollmentService.cancel(request.user, enrollment), _serialize_enrollment)

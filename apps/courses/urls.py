"""URL patterns for the courses app."""
from django.urls import path
from . import views

app_name = "courses"

urlpatterns = [
    path("", views.CourseListView.as_view(), name="list"),
    path("<int:pk>/enroll/", views.EnrollView.as_view(), name="enroll"),
    path("enrollments/<int:pk>/status/", views.EnrollmentStatusView.as_view(), name="enrollment_status"),
    path("enrollments/<int:pk>/cancel/", views.CancelEnrollmentView.as_view(), name="enrollment_cancel"),
]

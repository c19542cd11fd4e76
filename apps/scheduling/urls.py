"""URL patterns for the scheduling app."""
from django.urls import path
from . import views

app_name = "scheduling"

urlpatterns = [
    path("calendar/", views.CalendarView.as_view(), name="calendar"),
    path("layout/", views.DayLayoutView.as_view(), name="layout"),
    path("shifts/", views.ShiftListCreateView.as_view(), name="shifts"),
    path("shifts/<int:pk>/", views.ShiftUpdateView.as_view(), name="shift_update"),
    path("shifts/<int:pk>/delete/", views.ShiftDeleteView.as_view(), name="shift_delete"),
    path("shifts/<int:pk>/staffing/", views.ShiftStaffingView.as_view(), name="shift_staffing"),
    path("assignments/", views.AssignWorkerView.as_view(), name="assign_worker"),
    path("assignments/request/", views.RequestJoinView.as_view(), name="request_join"),
    path("assignments/pending/", views.PendingAssignmentsView.as_view(), name="pending_assignments"),
    path("assignments/<int:pk>/edit/", views.AssignmentEditView.as_view(), name="assignment_edit"),
    path(
        "assignments/<int:pk>/<str:action>/",
        views.AssignmentActionView.as_view(),
        name="assignment_action",
    ),
]

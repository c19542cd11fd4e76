"""
Scheduling views for ShiftDesk.

All views speak JSON. Business rules live in the service layer; views parse
input, call one service, and map the OperationResult to a response.

View inventory:
  CalendarView            → unified calendar projection for a date range (GET)
  DayLayoutView           → {left, width} boxes for one day (GET)
  ShiftStaffingView       → aggregate / per-range / per-hour staffing (GET)
  ShiftListCreateView     → list templates (GET), create one (POST, manager)
  ShiftUpdateView         → edit a template, clamping assignments (POST, manager)
  ShiftDeleteView         → delete or deactivate a template (POST, manager)
  AssignWorkerView        → manager assigns a worker (POST)
  RequestJoinView         → worker asks to join a shift instance (POST)
  AssignmentActionView    → approve / reject / cancel / complete (POST)
  AssignmentEditView      → replace an assignment's time data (POST)
  PendingAssignmentsView  → assignments waiting on the current user (GET)
"""

import logging
from datetime import timedelta

from django.http import HttpRequest, JsonResponse
from django.shortcuts import get_object_or_404
from django.utils import timezone
from django.views import View

from apps.accounts.models import User
from apps.courses.models import Course
from apps.scheduling.layout import assignment_items, layout
from apps.scheduling.models import ShiftAssignment, ShiftTemplate
from apps.scheduling.projection import CalendarFilters, CalendarProjectionAssembler, layout_for_day
from apps.scheduling.services import TEMPLATE_FIELDS, AssignmentService, ShiftTemplateService
from apps.scheduling.staffing import shift_staffing
from core.http import error_response, parse_date, parse_int, request_data, result_response
from core.permissions import (
    ManagerRequiredMixin,
    PermissionRequiredMixin,
    StaffRequiredMixin,
    WorkerRequiredMixin,
)
from core.results import Reason

logger = logging.getLogger(__name__)

# Longest range the calendar endpoint will expand in one request
MAX_CALENDAR_DAYS = 62


def _serialize_assignment(assignment) -> dict:
    return assignment.as_dict()


def _serialize_shift(shift) -> dict:
    return shift.as_dict()


# ---------------------------------------------------------------------------
# Read-only projections
# ---------------------------------------------------------------------------


class CalendarView(PermissionRequiredMixin, View):
    """
    Unified calendar for the signed-in user.

    Query params:
      start, end: YYYY-MM-DD (default: the current week, Monday to Sunday)
      show_events, show_shifts, show_tools, show_pending_only: 0/1
    """

    def get(self, request: HttpRequest) -> JsonResponse:
        today = timezone.localdate()
        week_start = today - timedelta(days=today.weekday())
        start = parse_date(request.GET.get("start"), week_start)
        end = parse_date(request.GET.get("end"), start + timedelta(days=6))

        if end < start:
            return error_response(Reason.INVALID_TIME_RANGE, "End date must not be before start date")
        if (end - start).days >= MAX_CALENDAR_DAYS:
            return error_response(
                Reason.INVALID_TIME_RANGE, f"Date range may span at most {MAX_CALENDAR_DAYS} days"
            )

        projection = CalendarProjectionAssembler.from_database(start, end).assemble(
            start, end, viewer=request.user, filters=CalendarFilters.from_params(request.GET)
        )
        return JsonResponse(projection.as_dict())


class DayLayoutView(PermissionRequiredMixin, View):
    """
    Horizontal layout for one day.

    Query params:
      date:  YYYY-MM-DD (default: today)
      shift: optional template id; lays out that instance's assignment slots
             instead of the whole calendar day

    The whole-day layout covers calendar items and the courses running that day.
    """

    def get(self, request: HttpRequest) -> JsonResponse:
        day = parse_date(request.GET.get("date"), timezone.localdate())

        shift_id = parse_int(request.GET.get("shift"))
        if shift_id is not None:
            shift = get_object_or_404(ShiftTemplate, pk=shift_id)
            roster = ShiftAssignment.objects.filter(shift=shift, date=day).exclude(
                status=ShiftAssignment.Status.REJECTED
            ).select_related("shift")
            items = [item for assignment in roster for item in assignment_items(assignment)]
            positions = layout(items)
        else:
            projection = CalendarProjectionAssembler.from_database(day, day).assemble(
                day, day, viewer=request.user, filters=CalendarFilters.from_params(request.GET)
            )
            courses = Course.objects.filter(is_active=True, start_date__lte=day, end_date__gte=day)
            positions = layout_for_day(projection, day, courses=courses)

        return JsonResponse({
            "date": day.isoformat(),
            "positions": {str(key): pos.as_css() for key, pos in positions.items()},
        })


class ShiftStaffingView(StaffRequiredMixin, View):
    """Staffing badges for one shift instance (?date=YYYY-MM-DD)."""

    def get(self, request: HttpRequest, pk: int) -> JsonResponse:
        shift = get_object_or_404(ShiftTemplate.objects.prefetch_related("requirements"), pk=pk)
        day = parse_date(request.GET.get("date"), timezone.localdate())
        if not shift.runs_on(day):
            return error_response(Reason.NOT_FOUND, f"{shift.name} does not run on {day}")

        assignments = ShiftAssignment.objects.filter(shift=shift, date=day)
        return JsonResponse({
            "shift_id": shift.pk,
            "date": day.isoformat(),
            **shift_staffing(shift, assignments),
        })


# ---------------------------------------------------------------------------
# Shift templates
# ---------------------------------------------------------------------------


class ShiftListCreateView(PermissionRequiredMixin, View):
    """GET lists active templates; POST creates one (managers only)."""

    def get(self, request: HttpRequest) -> JsonResponse:
        shifts = ShiftTemplate.objects.filter(is_active=True).prefetch_related("requirements")
        return JsonResponse({"shifts": [s.as_dict() for s in shifts]})

    def post(self, request: HttpRequest) -> JsonResponse:
        data = request_data(request)
        missing = [f for f in ("name", "open_time", "close_time") if not data.get(f)]
        if missing:
            return error_response(Reason.INVARIANT_VIOLATION, f"Missing field(s): {', '.join(missing)}")

        result = ShiftTemplateService.create(
            request.user,
            name=data["name"],
            open_time=data["open_time"],
            close_time=data["close_time"],
            recurring_days=data.get("recurring_days") or [],
            requirements=data.get("requirements") or [],
            description=data.get("description", ""),
            color=data.get("color", ""),
        )
        return result_response(result, _serialize_shift, status=201)


class ShiftUpdateView(ManagerRequiredMixin, View):
    """Edit a template's fields and requirements."""

    def post(self, request: HttpRequest, pk: int) -> JsonResponse:
        shift = get_object_or_404(ShiftTemplate, pk=pk)
        data = request_data(request)
        changes = {name: data[name] for name in TEMPLATE_FIELDS if name in data}
        result = ShiftTemplateService.update(
            request.user, shift, requirements=data.get("requirements"), **changes
        )
        return result_response(result, _serialize_shift)


class ShiftDeleteView(ManagerRequiredMixin, View):
    def post(self, request: HttpRequest, pk: int) -> JsonResponse:
        shift = get_object_or_404(ShiftTemplate, pk=pk)
        return result_response(ShiftTemplateService.delete(request.user, shift), _serialize_shift)


# ---------------------------------------------------------------------------
# Assignments
# ---------------------------------------------------------------------------


def _shift_and_date(data):
    """Resolve shift_id and date from a payload; (None, None) if either is bad."""
    day = parse_date(data.get("date"))
    shift = ShiftTemplate.objects.filter(pk=parse_int(data.get("shift_id"), 0)).first()
    return shift, day


class AssignWorkerView(PermissionRequiredMixin, View):
    """
    Manager assigns a worker to a shift instance.

    POST body: shift_id, worker_id, date, time_slots?, break_periods?, notes?
    """

    def post(self, request: HttpRequest) -> JsonResponse:
        data = request_data(request)
        shift, day = _shift_and_date(data)
        worker = User.objects.filter(pk=parse_int(data.get("worker_id"), 0), is_active=True).first()
        if shift is None or day is None or worker is None:
            return error_response(Reason.NOT_FOUND, "Shift, worker or date not found")

        result = AssignmentService.assign_worker(
            request.user, shift, worker, day,
            time_slots=data.get("time_slots"),
            break_periods=data.get("break_periods"),
            notes=data.get("notes", ""),
        )
        return result_response(result, _serialize_assignment, status=201)


class RequestJoinView(WorkerRequiredMixin, View):
    """
    Worker asks to join a shift instance.

    POST body: shift_id, date, time_slots?, break_periods?, notes?
    """

    def post(self, request: HttpRequest) -> JsonResponse:
        data = request_data(request)
        shift, day = _shift_and_date(data)
        if shift is None or day is None:
            return error_response(Reason.NOT_FOUND, "Shift or date not found")

        result = AssignmentService.request_join(
            request.user, shift, day,
            time_slots=data.get("time_slots"),
            break_periods=data.get("break_periods"),
            notes=data.get("notes", ""),
        )
        return result_response(result, _serialize_assignment, status=201)


class AssignmentActionView(PermissionRequiredMixin, View):
    """POST /assignments/<pk>/<action>/ for approve, reject, cancel and complete."""

    ACTIONS = ("approve", "reject", "cancel", "complete")

    def post(self, request: HttpRequest, pk: int, action: str) -> JsonResponse:
        if action not in self.ACTIONS:
            return error_response(Reason.NOT_FOUND, f"Unknown action: {action}")

        assignment = get_object_or_404(ShiftAssignment, pk=pk)
        reason = request_data(request).get("reason", "")

        if action == "approve":
            result = AssignmentService.approve(request.user, assignment)
        elif action == "reject":
            result = AssignmentService.reject(request.user, assignment, reason)
        elif action == "cancel":
            result = AssignmentService.cancel(request.user, assignment, reason)
        else:
            result = AssignmentService.complete(request.user, assignment)
        return result_response(result, _serialize_assignment)


class AssignmentEditView(PermissionRequiredMixin, View):
    """POST body: time_slots?, break_periods?, notes?; omitted slots keep the current hours."""

    def post(self, request: HttpRequest, pk: int) -> JsonResponse:
        assignment = get_object_or_404(ShiftAssignment, pk=pk)
        data = request_data(request)
        result = AssignmentService.edit(
            request.user, assignment,
            time_slots=data.get("time_slots"),
            break_periods=data.get("break_periods"),
            notes=data.get("notes"),
        )
        return result_response(result, _serialize_assignment)


class PendingAssignmentsView(PermissionRequiredMixin, View):
    def get(self, request: HttpRequest) -> JsonResponse:
        pending = AssignmentService.pending_for(request.user)
        return JsonResponse({"assignments": [a.as_dict() for a in pending]})

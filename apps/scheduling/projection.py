"""
Unified calendar projection for ShiftDesk.

Merges three sources into one ordered, filtered, summarized list for a date
range:
  - events       (visibility depends on who is looking)
  - shift instances, expanded from active templates on their recurring days
  - tool rentals whose date range intersects the query, unless returned

The assembler works on snapshots: from_database() loads them, assemble()
only reads what it was given. Calendar items are derived on every call and
never stored.

Usage:
    assembler = CalendarProjectionAssembler.from_database(start, end)
    projection = assembler.assemble(start, end, viewer=request.user,
                                    filters=CalendarFilters(show_pending_only=True))
    projection.summary["pending_approvals"]
"""

from collections import defaultdict
from dataclasses import asdict, dataclass, field
from datetime import date, timedelta
from typing import Iterable, Optional

from django.conf import settings

from apps.accounts.permissions import permissions_for
from apps.scheduling.layout import TimedItem, layout
from apps.scheduling.staffing import aggregate_status
from apps.scheduling.timeutils import to_hhmm

EVENT = "event"
SHIFT = "shift"
TOOL_RENTAL = "tool_rental"
COURSE = "course"


# ---------------------------------------------------------------------------
# Types
# ---------------------------------------------------------------------------


def _flag(params, name: str, default: bool) -> bool:
    value = params.get(name)
    if value in (None, ""):
        return default
    return str(value).lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class CalendarFilters:
    show_events: bool = True
    show_shifts: bool = True
    show_tools: bool = True
    show_pending_only: bool = False

    @classmethod
    def from_params(cls, params) -> "CalendarFilters":
        """Read filters from a QueryDict or dict of strings."""
        return cls(
            show_events=_flag(params, "show_events", True),
            show_shifts=_flag(params, "show_shifts", True),
            show_tools=_flag(params, "show_tools", True),
            show_pending_only=_flag(params, "show_pending_only", False),
        )


@dataclass
class CalendarItem:
    id: str
    item_type: str
    title: str
    date: str
    start_time: str
    end_time: str
    status: str
    pending_approval: bool
    can_edit: bool
    can_approve: bool
    description: str = ""
    metadata: dict = field(default_factory=dict)

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass
class CalendarProjection:
    items: list
    summary: dict

    def as_dict(self) -> dict:
        return {"items": [i.as_dict() for i in self.items], "summary": self.summary}

    def for_day(self, day: date) -> list:
        iso = day.isoformat()
        return [i for i in self.items if i.date == iso]


def summarize(items: list) -> dict:
    return {
        "total_items": len(items),
        "pending_approvals": sum(1 for i in items if i.pending_approval),
        "item_types": {
            "events": sum(1 for i in items if i.item_type == EVENT),
            "shifts": sum(1 for i in items if i.item_type == SHIFT),
            "tool_rentals": sum(1 for i in items if i.item_type == TOOL_RENTAL),
        },
    }


def daterange(start: date, end: date):
    day = start
    while day <= end:
        yield day
        day += timedelta(days=1)


# ---------------------------------------------------------------------------
# Assembler
# ---------------------------------------------------------------------------


class CalendarProjectionAssembler:
    """
    Builds CalendarProjection objects from snapshots of events, shift
    templates, assignments and tool rentals.
    """

    def __init__(self, events: Iterable = (), shifts: Iterable = (), rentals: Iterable = (),
                 assignments: Iterable = ()):
        self.events = list(events)
        self.shifts = list(shifts)
        self.rentals = list(rentals)
        self.assignments_by_instance = defaultdict(list)
        for assignment in assignments:
            self.assignments_by_instance[(assignment.shift_id, assignment.date)].append(assignment)

    @classmethod
    def from_database(cls, start: date, end: date) -> "CalendarProjectionAssembler":
        """Load every snapshot the projection of [start, end] could need."""
        from django.db.models import Q

        from apps.events.models import Event
        from apps.scheduling.models import ShiftAssignment, ShiftTemplate
        from apps.tools.models import ToolRental

        events = Event.objects.filter(
            Q(end_date__gte=start) | Q(end_date__isnull=True, start_date__gte=start),
            start_date__lte=end,
        ).prefetch_related("assigned_to", "participants")
        shifts = ShiftTemplate.objects.filter(is_active=True).prefetch_related("requirements")
        rentals = ToolRental.objects.filter(
            rental_start_date__lte=end, rental_end_date__gte=start
        ).exclude(status=ToolRental.Status.RETURNED).select_related("tool")
        assignments = ShiftAssignment.objects.filter(
            date__gte=start, date__lte=end
        ).exclude(status=ShiftAssignment.Status.REJECTED)
        return cls(events, shifts, rentals, assignments)

    def assemble(self, start: date, end: date, viewer=None,
                 filters: Optional[CalendarFilters] = None) -> CalendarProjection:
        """
        Produce the projection for one viewer.

        Args:
            start: First date of the range (inclusive).
            end: Last date of the range (inclusive).
            viewer: The requesting user, or None / AnonymousUser.
            filters: Which item kinds to include; defaults to all.

        Returns:
            CalendarProjection sorted by date, then start time.
        """
        filters = filters or CalendarFilters()
        perms = permissions_for(viewer)
        viewer_id = viewer.pk if viewer is not None and viewer.is_authenticated else None
        is_manager = perms.has("manager")

        items = []
        if filters.show_events:
            items.extend(self._event_items(start, end, perms, viewer_id, is_manager))
        if filters.show_shifts:
            items.extend(self._shift_items(start, end, is_manager))
        if filters.show_tools:
            items.extend(self._rental_items(start, end, viewer_id, is_manager))

        if filters.show_pending_only:
            items = [i for i in items if i.pending_approval]

        items.sort(key=lambda i: (i.date, i.start_time))
        return CalendarProjection(items=items, summary=summarize(items))

    # ------------------------------------------------------------------

    def _event_items(self, start, end, perms, viewer_id, is_manager) -> list:
        config = settings.SHIFTDESK
        items = []
        for event in self.events:
            last = event.end_date or event.start_date
            if event.start_date > end or last < start:
                continue

            if perms.sees_internal_calendar:
                involved = (
                    event.created_by_id == viewer_id
                    or viewer_id in {u.pk for u in event.assigned_to.all()}
                    or viewer_id in {u.pk for u in event.participants.all()}
                )
                if not (involved or is_manager):
                    continue
            elif event.status != "approved":
                continue

            pending = event.status == "pending_approval"
            items.append(CalendarItem(
                id=str(event.pk),
                item_type=EVENT,
                title=event.title,
                description=event.description,
                date=event.start_date.isoformat(),
                start_time=to_hhmm(event.start_time or config["DEFAULT_EVENT_START"]),
                end_time=to_hhmm(event.end_time or config["DEFAULT_EVENT_END"]),
                status=event.status,
                pending_approval=pending,
                can_edit=viewer_id is not None and (event.created_by_id == viewer_id or is_manager),
                can_approve=is_manager and pending,
                metadata={"event_type": event.event_type, "created_by": event.created_by_id},
            ))
        return items

    def _shift_items(self, start, end, is_manager) -> list:
        items = []
        for day in daterange(start, end):
            for shift in self.shifts:
                if not shift.is_active or not shift.runs_on(day):
                    continue
                roster = self.assignments_by_instance.get((shift.pk, day), [])
                staffing = aggregate_status(shift.requirements.all(), roster)
                items.append(CalendarItem(
                    id=f"{shift.pk}-{day.isoformat()}",
                    item_type=SHIFT,
                    title=shift.name,
                    description=shift.description,
                    date=day.isoformat(),
                    start_time=to_hhmm(shift.open_time),
                    end_time=to_hhmm(shift.close_time),
                    status="approved",
                    pending_approval=False,
                    can_edit=is_manager,
                    can_approve=False,
                    metadata={
                        "shift_id": shift.pk,
                        "color": shift.color,
                        "assignments": len(roster),
                        "staffing": staffing.as_dict() if staffing else None,
                    },
                ))
        return items

    def _rental_items(self, start, end, viewer_id, is_manager) -> list:
        config = settings.SHIFTDESK
        items = []
        for rental in self.rentals:
            if rental.rental_end_date < start or rental.rental_start_date > end:
                continue
            if rental.status == "returned":
                continue
            pending = rental.status == "pending"
            items.append(CalendarItem(
                id=str(rental.pk),
                item_type=TOOL_RENTAL,
                title=f"Tool Rental: {rental.tool.name}",
                date=rental.rental_start_date.isoformat(),
                start_time=to_hhmm(config["RENTAL_DISPLAY_START"]),
                end_time=to_hhmm(config["RENTAL_DISPLAY_END"]),
                status=rental.status,
                pending_approval=pending,
                can_edit=viewer_id is not None and (rental.created_by_id == viewer_id or is_manager),
                can_approve=is_manager and pending,
                metadata={
                    "tool_id": rental.tool_id,
                    "renter_id": rental.renter_id,
                    "end_date": rental.rental_end_date.isoformat(),
                    "total_cost": str(rental.total_cost),
                },
            ))
        return items


def layout_for_day(projection: CalendarProjection, day: date, padding_px=None, courses: Iterable = ()) -> dict:
    """
    Lay out one date: the projection's items, then every active course
    running that day. Keys are "<type>:<id>".
    """
    timed = [
        TimedItem(f"{item.item_type}:{item.id}", item.start_time, item.end_time)
        for item in projection.for_day(day)
    ]
    timed.extend(
        TimedItem(f"{COURSE}:{course.pk}", course.start_time, course.end_time)
        for course in courses
        if course.is_active and course.start_date <= day <= course.end_date
    )
    return layout(timed, padding_px)

"""
Staffing adequacy for a shift instance.

One classification function is the single source of truth for every badge in
the product (shift cards, timelines, the staffing endpoint):

    current <  min        -> UNDERSTAFFED
    current == min        -> MINIMUM
    current <= optimal    -> GOOD
    current >  optimal    -> OVERSTAFFED

Only confirmed assignments count. Pending and rejected assignments never do.

Three views are offered:
  - aggregate_status: one badge per shift instance, using the largest min and
    optimal across requirement ranges
  - range_statuses:   one badge per requirement range
  - hourly_statuses:  one badge per whole hour covered by a requirement range
"""

from dataclasses import dataclass
from typing import Iterable, Optional

from django.db import models
from django.utils.translation import gettext_lazy as _

from apps.scheduling.timeutils import TimeLike, format_minutes, ranges_overlap, to_minutes

CONFIRMED = "confirmed"


class StaffingStatus(models.TextChoices):
    UNDERSTAFFED = "understaffed", _("Understaffed")
    MINIMUM = "minimum", _("Minimum staffed")
    GOOD = "good", _("Well staffed")
    OVERSTAFFED = "overstaffed", _("Overstaffed")


# Worst to best; used to compare classifications.
STATUS_ORDER = [
    StaffingStatus.UNDERSTAFFED,
    StaffingStatus.MINIMUM,
    StaffingStatus.GOOD,
    StaffingStatus.OVERSTAFFED,
]


def classify(current: int, min_workers: int, optimal_workers: int) -> StaffingStatus:
    """
    Classify a headcount against its targets.

    Args:
        current: Confirmed workers present.
        min_workers: Minimum acceptable headcount.
        optimal_workers: Desired headcount.

    Returns:
        The StaffingStatus for this headcount.
    """
    if current < min_workers:
        return StaffingStatus.UNDERSTAFFED
    if current == min_workers:
        return StaffingStatus.MINIMUM
    if current <= optimal_workers:
        return StaffingStatus.GOOD
    return StaffingStatus.OVERSTAFFED


def worst_status(statuses: Iterable) -> Optional[StaffingStatus]:
    """The least staffed of several classifications; None when there are none."""
    ranked = [StaffingStatus(s) for s in statuses]
    return min(ranked, key=STATUS_ORDER.index) if ranked else None


# ---------------------------------------------------------------------------
# Snapshot types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RequirementRange:
    start: int
    end: int
    min_workers: int
    optimal_workers: int

    @classmethod
    def from_obj(cls, obj) -> "RequirementRange":
        """Build from a HourlyRequirement model or a dict with the same keys."""
        get = obj.get if isinstance(obj, dict) else lambda key: getattr(obj, key)
        return cls(
            start=to_minutes(get("start_time")),
            end=to_minutes(get("end_time")),
            min_workers=int(get("min_workers")),
            optimal_workers=int(get("optimal_workers")),
        )

    def contains_minute(self, minute: int) -> bool:
        return self.start <= minute < self.end


@dataclass
class StaffingSummary:
    status: StaffingStatus
    current_workers: int
    min_workers: int
    optimal_workers: int
    start_time: str = ""
    end_time: str = ""

    def as_dict(self) -> dict:
        data = {
            "status": str(self.status),
            "current_workers": self.current_workers,
            "min_workers": self.min_workers,
            "optimal_workers": self.optimal_workers,
        }
        if self.start_time:
            data["start_time"] = self.start_time
            data["end_time"] = self.end_time
        return data


@dataclass
class HourStatus:
    hour: int
    summary: StaffingSummary

    def as_dict(self) -> dict:
        return {"hour": self.hour, **self.summary.as_dict()}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _status_of(assignment) -> str:
    return assignment.get("status") if isinstance(assignment, dict) else assignment.status


def _slots_of(assignment) -> list:
    return (assignment.get("time_slots") if isinstance(assignment, dict) else assignment.time_slots) or []


def confirmed_only(assignments: Iterable) -> list:
    return [a for a in assignments if _status_of(a) == CONFIRMED]


def covers(assignment, start: int, end: int) -> bool:
    """
    Return True if any of the assignment's slots intersects [start, end).

    An assignment without slots is taken to work the whole shift.
    """
    slots = _slots_of(assignment)
    if not slots:
        return True
    return any(
        ranges_overlap(to_minutes(s["start_time"]), to_minutes(s["end_time"]), start, end)
        for s in slots
    )


def _ranges(requirements: Iterable) -> list[RequirementRange]:
    return [r if isinstance(r, RequirementRange) else RequirementRange.from_obj(r) for r in requirements]


# ---------------------------------------------------------------------------
# Views
# ---------------------------------------------------------------------------


def aggregate_status(requirements: Iterable, assignments: Iterable) -> Optional[StaffingSummary]:
    """
    One badge for the whole shift instance.

    min and optimal are the maxima across requirement ranges, so the most
    demanding range drives the badge. Returns None when the shift has no
    requirement ranges.
    """
    ranges = _ranges(requirements)
    if not ranges:
        return None
    min_workers = max(r.min_workers for r in ranges)
    optimal_workers = max(r.optimal_workers for r in ranges)
    current = len(confirmed_only(assignments))
    return StaffingSummary(classify(current, min_workers, optimal_workers), current, min_workers, optimal_workers)


def range_statuses(requirements: Iterable, assignments: Iterable) -> list[StaffingSummary]:
    """One badge per requirement range, counting workers whose hours intersect it."""
    confirmed = confirmed_only(assignments)
    summaries = []
    for r in _ranges(requirements):
        current = sum(1 for a in confirmed if covers(a, r.start, r.end))
        summaries.append(StaffingSummary(
            classify(current, r.min_workers, r.optimal_workers),
            current,
            r.min_workers,
            r.optimal_workers,
            start_time=format_minutes(r.start),
            end_time=format_minutes(r.end),
        ))
    return summaries


def hourly_statuses(
    open_time: TimeLike,
    close_time: TimeLike,
    requirements: Iterable,
    assignments: Iterable,
) -> list[HourStatus]:
    """
    One badge per whole hour of the shift that falls in a requirement range.

    The range is looked up by containment of the hour's first minute; the
    first matching range wins. Hours with no range are skipped.

    Args:
        open_time: Shift start.
        close_time: Shift end.
        requirements: HourlyRequirement rows, dicts or RequirementRange.
        assignments: Assignments for the shift instance (any status).

    Returns:
        HourStatus list in hour order.
    """
    ranges = _ranges(requirements)
    confirmed = confirmed_only(assignments)
    first_hour = to_minutes(open_time) // 60
    end_minute = to_minutes(close_time)

    result = []
    hour = first_hour
    while hour * 60 < end_minute:
        minute = hour * 60
        match = next((r for r in ranges if r.contains_minute(minute)), None)
        if match is not None:
            current = sum(1 for a in confirmed if covers(a, minute, minute + 60))
            result.append(HourStatus(hour, StaffingSummary(
                classify(current, match.min_workers, match.optimal_workers),
                current,
                match.min_workers,
                match.optimal_workers,
            )))
        hour += 1
    return result


def shift_staffing(shift, assignments: Iterable) -> dict:
    """Bundle all three views for one shift instance (used by the JSON endpoint)."""
    requirements = shift.ordered_requirements
    assignments = list(assignments)
    aggregate = aggregate_status(requirements, assignments)
    hours = hourly_statuses(shift.open_time, shift.close_time, requirements, assignments)
    weakest = worst_status(h.summary.status for h in hours)
    return {
        "aggregate": aggregate.as_dict() if aggregate else None,
        "ranges": [s.as_dict() for s in range_statuses(requirements, assignments)],
        "hours": [h.as_dict() for h in hours],
        "weakest_hour_status": str(weakest) if weakest else None,
    }

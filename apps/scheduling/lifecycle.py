"""
Assignment lifecycle rules for ShiftDesk.

Pure functions over snapshots: no queries, no writes. AssignmentService calls
these before touching the database, so a rejected operation never leaves a
partial change behind.

The state machine:

    pending_worker_approval  --worker approves-->   confirmed
    pending_worker_approval  --worker declines-->   rejected
    pending_manager_approval --manager approves-->  confirmed
    pending_manager_approval --manager declines-->  rejected
    confirmed                --cancel-->            rejected
    confirmed                --complete-->          completed

Time data is validated in a fixed order; the first failure is returned:
  1. every slot has start < end
  2. every slot lies inside the shift's operating hours
  3. no two slots overlap (first conflicting pair, 1-based, is reported)
  4. every break has start < end
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, Optional

from apps.scheduling.timeutils import TimeLike, format_minutes, ranges_overlap, to_minutes
from core.results import OperationResult, Reason

if TYPE_CHECKING:
    from apps.accounts.permissions import EffectivePermissions

PENDING_WORKER = "pending_worker_approval"
PENDING_MANAGER = "pending_manager_approval"
CONFIRMED = "confirmed"
REJECTED = "rejected"
COMPLETED = "completed"

TRANSITIONS = {
    PENDING_WORKER: {CONFIRMED, REJECTED},
    PENDING_MANAGER: {CONFIRMED, REJECTED},
    CONFIRMED: {REJECTED, COMPLETED},
    REJECTED: set(),
    COMPLETED: set(),
}


# ---------------------------------------------------------------------------
# Time data
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TimeSlot:
    start: int
    end: int

    @classmethod
    def from_obj(cls, data) -> "TimeSlot":
        return cls(to_minutes(data["start_time"]), to_minutes(data["end_time"]))

    def label(self) -> str:
        return f"{format_minutes(self.start)}-{format_minutes(self.end)}"

    def as_dict(self) -> dict:
        return {"start_time": format_minutes(self.start), "end_time": format_minutes(self.end)}


@dataclass(frozen=True)
class BreakPeriod:
    start: int
    end: int
    is_paid: bool = False

    @classmethod
    def from_obj(cls, data) -> "BreakPeriod":
        return cls(
            to_minutes(data["start_time"]),
            to_minutes(data["end_time"]),
            bool(data.get("is_paid", False)),
        )

    def as_dict(self) -> dict:
        return {
            "start_time": format_minutes(self.start),
            "end_time": format_minutes(self.end),
            "is_paid": self.is_paid,
        }


def parse_slots(raw: Optional[Iterable]) -> list[TimeSlot]:
    return [TimeSlot.from_obj(s) for s in raw or []]


def parse_breaks(raw: Optional[Iterable]) -> list[BreakPeriod]:
    return [BreakPeriod.from_obj(b) for b in raw or []]


def validate_time_slots(slots: list[TimeSlot], open_time: TimeLike, close_time: TimeLike) -> OperationResult:
    """
    Check an assignment's slots against each other and the shift's hours.

    Args:
        slots: Parsed slots in the order the user entered them.
        open_time: Shift start.
        close_time: Shift end.

    Returns:
        Success, or the first failure with slot indices in the details.
    """
    open_min, close_min = to_minutes(open_time), to_minutes(close_time)

    for i, slot in enumerate(slots, start=1):
        if slot.start >= slot.end:
            return OperationResult.failure(
                Reason.INVALID_TIME_RANGE,
                f"Time slot {i}: start time must be before end time",
                slot=i,
            )
        if slot.start < open_min or slot.end > close_min:
            return OperationResult.failure(
                Reason.INVALID_TIME_RANGE,
                f"Time slot {i} ({slot.label()}) must be within shift hours "
                f"({format_minutes(open_min)}-{format_minutes(close_min)})",
                slot=i,
            )

    conflict = first_overlap(slots)
    if conflict:
        i, j = conflict
        return OperationResult.failure(
            Reason.OVERLAPPING_TIME_SLOTS,
            f"Time slots {i} ({slots[i - 1].label()}) and {j} ({slots[j - 1].label()}) overlap",
            slots=[i, j],
        )
    return OperationResult.success()


def first_overlap(slots: list[TimeSlot]) -> Optional[tuple[int, int]]:
    """Return the first overlapping pair as 1-based indices, or None."""
    for i in range(len(slots)):
        for j in range(i + 1, len(slots)):
            a, b = slots[i], slots[j]
            if ranges_overlap(a.start, a.end, b.start, b.end):
                return i + 1, j + 1
    return None


def validate_breaks(breaks: list[BreakPeriod]) -> OperationResult:
    """Breaks only need a positive duration; they are not bound to shift hours."""
    for i, period in enumerate(breaks, start=1):
        if period.start >= period.end:
            return OperationResult.failure(
                Reason.INVALID_TIME_RANGE,
                f"Break {i}: start time must be before end time",
                break_period=i,
            )
    return OperationResult.success()


def clamp_slots(slots: list[TimeSlot], open_time: TimeLike, close_time: TimeLike) -> list[TimeSlot]:
    """Trim slots to new operating hours, dropping any left without duration."""
    open_min, close_min = to_minutes(open_time), to_minutes(close_time)
    clamped = []
    for slot in slots:
        start, end = max(slot.start, open_min), min(slot.end, close_min)
        if start < end:
            clamped.append(TimeSlot(start, end))
    return clamped


# ---------------------------------------------------------------------------
# Creation
# ---------------------------------------------------------------------------


def status_for_manager_assignment(actor_id, worker_id) -> str:
    """A manager assigning themself needs no approval; anyone else must accept."""
    return CONFIRMED if actor_id == worker_id else PENDING_WORKER


def status_for_join_request(perms: "EffectivePermissions") -> str:
    """Join requests from managers are approved on the spot."""
    return CONFIRMED if perms.has("manager") else PENDING_MANAGER


def status_for_edit(actor_id, worker_id, perms: "EffectivePermissions") -> Optional[str]:
    """
    Status of the replacement assignment created by an edit.

    Returns None when the actor may not edit the assignment at all.
    """
    if perms.has("manager"):
        return CONFIRMED if actor_id == worker_id else PENDING_WORKER
    if actor_id == worker_id:
        return PENDING_MANAGER
    return None


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------


def can_transition(current: str, target: str) -> bool:
    return target in TRANSITIONS.get(current, set())


def check_approve(status: str, actor_id, worker_id, perms: "EffectivePermissions") -> OperationResult:
    """
    Decide whether the actor may approve an assignment in its current state.

    pending_worker_approval is approved by the assigned worker,
    pending_manager_approval by a manager. Developers pass both.
    """
    if status == PENDING_WORKER:
        if actor_id == worker_id or perms.is_dev:
            return OperationResult.success()
        return OperationResult.denied("Only the assigned worker can accept this assignment")
    if status == PENDING_MANAGER:
        if perms.has("manager"):
            return OperationResult.success()
        return OperationResult.denied("Only managers can approve this request")
    return OperationResult.failure(
        Reason.INVALID_TRANSITION, "Assignment is not pending your approval", status=status
    )


def check_reject(status: str, actor_id, worker_id, perms: "EffectivePermissions") -> OperationResult:
    """Pending assignments may be declined by the assigned worker or a manager."""
    if status not in (PENDING_WORKER, PENDING_MANAGER):
        return OperationResult.failure(
            Reason.INVALID_TRANSITION, "Can only reject pending assignments", status=status
        )
    if actor_id == worker_id or perms.has("manager"):
        return OperationResult.success()
    return OperationResult.denied("Only the assigned worker or a manager can reject this assignment")


def check_cancel(status: str, actor_id, worker_id, perms: "EffectivePermissions") -> OperationResult:
    """Live assignments may be cancelled by the assigned worker or a manager."""
    if status in (REJECTED, COMPLETED):
        return OperationResult.failure(
            Reason.INVALID_TRANSITION, f"Cannot cancel a {status} assignment", status=status
        )
    if actor_id == worker_id or perms.has("manager"):
        return OperationResult.success()
    return OperationResult.denied("Only the assigned worker or a manager can cancel this assignment")


def check_complete(status: str, perms: "EffectivePermissions") -> OperationResult:
    if not perms.has("manager"):
        return OperationResult.denied("Only managers can complete assignments")
    if not can_transition(status, COMPLETED):
        return OperationResult.failure(
            Reason.INVALID_TRANSITION, "Only confirmed assignments can be completed", status=status
        )
    return OperationResult.success()

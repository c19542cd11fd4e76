"""
Service objects for ShiftDesk scheduling mutations.

Responsibilities:
  - Gate every mutation on the actor's resolved permissions
  - Validate time data before any write (apps.scheduling.lifecycle)
  - Serialize check-then-insert with SELECT FOR UPDATE on the shift template,
    backed by the conditional unique constraint on ShiftAssignment
  - Audit each transition and notify the affected people
  - Return an OperationResult instead of raising for expected rejections
"""

import logging
from datetime import date as date_type

from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone

from apps.audit.models import AuditLog
from apps.notifications.models import Notification
from apps.notifications.services import notify
from apps.scheduling import lifecycle
from apps.scheduling.lifecycle import TimeSlot
from apps.scheduling.models import HourlyRequirement, ShiftAssignment, ShiftTemplate
from apps.scheduling.timeutils import format_minutes, parse_time, ranges_overlap, to_minutes, weekday_name
from core.realtime import assignment_changed
from core.results import OperationResult, Reason

logger = logging.getLogger(__name__)

Status = ShiftAssignment.Status


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _lock_assignment(assignment):
    """Re-read an assignment with a row lock; None if it no longer exists."""
    return ShiftAssignment.objects.select_for_update().filter(pk=assignment.pk).first()


def _parse_time_data(time_slots, break_periods, shift):
    """
    Parse and validate slots and breaks for a shift.

    Missing slots default to the shift's full operating hours.

    Returns:
        (slots, breaks, None) on success, (None, None, OperationResult) on failure.
    """
    try:
        slots = lifecycle.parse_slots(time_slots)
        breaks = lifecycle.parse_breaks(break_periods)
    except (KeyError, TypeError, ValueError, AttributeError):
        return None, None, OperationResult.failure(Reason.INVALID_TIME_RANGE, "Time values must be HH:MM")

    if not slots:
        slots = [TimeSlot(to_minutes(shift.open_time), to_minutes(shift.close_time))]

    result = lifecycle.validate_time_slots(slots, shift.open_time, shift.close_time)
    if not result.ok:
        return None, None, result
    result = lifecycle.validate_breaks(breaks)
    if not result.ok:
        return None, None, result
    return slots, breaks, None


def _record(actor, assignment, before_status: str, note: str = "") -> None:
    AuditLog.record(
        actor=actor,
        action=f"shift_assignment.{assignment.status}",
        obj=assignment,
        before={"status": before_status},
        after={"status": assignment.status, "time_slots": assignment.time_slots},
        note=note,
    )


def _create_assignment(*, actor, shift, worker, date: date_type, status: str,
                       time_slots=None, break_periods=None, notes: str = "") -> OperationResult:
    """
    Validate and insert one assignment. Must run inside a transaction.

    The shift template row is locked first so concurrent creations for the
    same shift queue up behind the duplicate check.
    """
    shift = ShiftTemplate.objects.select_for_update().filter(pk=shift.pk, is_active=True).first()
    if shift is None:
        return OperationResult.failure(Reason.NOT_FOUND, "Shift not found")
    if not shift.runs_on(date):
        return OperationResult.failure(
            Reason.NOT_FOUND, f"{shift.name} does not run on {weekday_name(date).title()}s"
        )

    slots, breaks, failure = _parse_time_data(time_slots, break_periods, shift)
    if failure:
        return failure

    live = ShiftAssignment.objects.filter(shift=shift, worker=worker, date=date).exclude(status=Status.REJECTED)
    if live.exists():
        return OperationResult.failure(
            Reason.DUPLICATE_ASSIGNMENT,
            "Worker already has an assignment for this shift on this date",
        )

    now = timezone.now()
    confirmed = status == Status.CONFIRMED
    try:
        with transaction.atomic():
            assignment = ShiftAssignment.objects.create(
                shift=shift,
                worker=worker,
                date=date,
                status=status,
                time_slots=[s.as_dict() for s in slots],
                break_periods=[b.as_dict() for b in breaks],
                notes=notes or "",
                assigned_by=actor,
                approved_by=actor if confirmed else None,
                worker_approved_at=now if confirmed and actor.pk == worker.pk else None,
                manager_approved_at=now if confirmed else None,
            )
    except IntegrityError:
        # A concurrent request won the race past the exists() check
        return OperationResult.failure(
            Reason.DUPLICATE_ASSIGNMENT,
            "Worker already has an assignment for this shift on this date",
        )

    logger.info(
        "User %d created assignment %d (worker=%d shift=%d date=%s status=%s)",
        actor.pk, assignment.pk, worker.pk, shift.pk, date, status,
    )
    return OperationResult.success(assignment)


# ---------------------------------------------------------------------------
# Assignment lifecycle
# ---------------------------------------------------------------------------


class AssignmentService:
    """
    Service object for the worker-to-shift assignment lifecycle.

    Creation:
      - assign_worker: manager proposes; the worker must accept, unless the
        manager assigned themself (confirmed at once)
      - request_join:  worker asks; a manager must approve, unless the
        requester is a manager (confirmed at once)
    """

    @staticmethod
    @transaction.atomic
    def assign_worker(actor, shift, worker, date, time_slots=None, break_periods=None,
                      notes: str = "") -> OperationResult:
        """
        Assign a worker to a shift instance.

        Args:
            actor: The manager making the assignment.
            shift: ShiftTemplate to assign to.
            worker: The user being assigned (must hold the worker permission).
            date: The date of the shift instance.
            time_slots: Optional list of {"start_time", "end_time"}; defaults to the full shift.
            break_periods: Optional list of {"start_time", "end_time", "is_paid"}.
            notes: Free text.

        Returns:
            OperationResult with the new ShiftAssignment.
        """
        if not actor.permissions.has("manager"):
            logger.warning("User %d attempted to assign user %d without manager permission.", actor.pk, worker.pk)
            return OperationResult.denied("Only managers can assign workers to shifts")
        if not worker.permissions.has("worker"):
            return OperationResult.denied("Only users with the worker tag can be assigned to shifts")

        status = lifecycle.status_for_manager_assignment(actor.pk, worker.pk)
        return _create_assignment(
            actor=actor, shift=shift, worker=worker, date=date, status=status,
            time_slots=time_slots, break_periods=break_periods, notes=notes,
        )

    @staticmethod
    @transaction.atomic
    def request_join(actor, shift, date, time_slots=None, break_periods=None,
                     notes: str = "") -> OperationResult:
        """
        Ask to work a shift instance.

        Managers' requests are confirmed immediately; everyone else waits for
        a manager.
        """
        perms = actor.permissions
        if not perms.has("worker"):
            logger.warning("User %d attempted to join shift %d without worker permission.", actor.pk, shift.pk)
            return OperationResult.denied("Only workers can request to join shifts")

        status = lifecycle.status_for_join_request(perms)
        return _create_assignment(
            actor=actor, shift=shift, worker=actor, date=date, status=status,
            time_slots=time_slots, break_periods=break_periods, notes=notes,
        )

    @staticmethod
    @transaction.atomic
    def approve(actor, assignment) -> OperationResult:
        """
        Move a pending assignment to confirmed.

        pending_worker_approval is approved by the assigned worker,
        pending_manager_approval by a manager.
        """
        locked = _lock_assignment(assignment)
        if locked is None:
            return OperationResult.failure(Reason.NOT_FOUND, "Assignment not found")

        check = lifecycle.check_approve(locked.status, actor.pk, locked.worker_id, actor.permissions)
        if not check.ok:
            logger.warning("User %d could not approve assignment %d: %s", actor.pk, locked.pk, check.message)
            return check

        before = locked.status
        now = timezone.now()
        if before == Status.PENDING_WORKER_APPROVAL:
            locked.worker_approved_at = now
        else:
            locked.manager_approved_at = now
        locked.status = Status.CONFIRMED
        locked.approved_by = actor
        locked.save(update_fields=["status", "approved_by", "worker_approved_at", "manager_approved_at", "updated_at"])

        _record(actor, locked, before)
        other = locked.assigned_by if actor.pk == locked.worker_id else locked.worker
        if other is not None and other.pk != actor.pk:
            notify(
                other,
                Notification.Type.ASSIGNMENT_CONFIRMED,
                "Shift assignment confirmed",
                f"{locked.worker.get_full_name()} is confirmed for {locked.shift.name} on {locked.date}.",
                {"assignment_id": locked.pk},
            )
        assignment_changed(locked, "confirmed")
        logger.info("User %d approved assignment %d (%s -> confirmed)", actor.pk, locked.pk, before)
        return OperationResult.success(locked)

    @staticmethod
    @transaction.atomic
    def reject(actor, assignment, reason: str = "") -> OperationResult:
        """Decline a pending assignment (assigned worker or manager)."""
        locked = _lock_assignment(assignment)
        if locked is None:
            return OperationResult.failure(Reason.NOT_FOUND, "Assignment not found")

        check = lifecycle.check_reject(locked.status, actor.pk, locked.worker_id, actor.permissions)
        if not check.ok:
            logger.warning("User %d could not reject assignment %d: %s", actor.pk, locked.pk, check.message)
            return check

        return AssignmentService._close(actor, locked, "Rejected", reason, Notification.Type.ASSIGNMENT_REJECTED)

    @staticmethod
    @transaction.atomic
    def cancel(actor, assignment, reason: str = "") -> OperationResult:
        """Withdraw a pending or confirmed assignment (assigned worker or manager)."""
        locked = _lock_assignment(assignment)
        if locked is None:
            return OperationResult.failure(Reason.NOT_FOUND, "Assignment not found")

        check = lifecycle.check_cancel(locked.status, actor.pk, locked.worker_id, actor.permissions)
        if not check.ok:
            logger.warning("User %d could not cancel assignment %d: %s", actor.pk, locked.pk, check.message)
            return check

        return AssignmentService._close(actor, locked, "Cancelled", reason, Notification.Type.ASSIGNMENT_CANCELLED)

    @staticmethod
    def _close(actor, locked, verb: str, reason: str, notification_type: str) -> OperationResult:
        before = locked.status
        locked.status = Status.REJECTED
        if reason:
            locked.append_note(f"{verb}: {reason}")
        locked.save(update_fields=["status", "notes", "updated_at"])

        _record(actor, locked, before, note=reason)
        if actor.pk != locked.worker_id:
            notify(
                locked.worker,
                notification_type,
                f"Shift assignment {verb.lower()}",
                f"Your assignment to {locked.shift.name} on {locked.date} was {verb.lower()}."
                + (f" Reason: {reason}" if reason else ""),
                {"assignment_id": locked.pk},
            )
        assignment_changed(locked, verb.lower())
        logger.info("User %d %s assignment %d (was %s)", actor.pk, verb.lower(), locked.pk, before)
        return OperationResult.success(locked)

    @staticmethod
    @transaction.atomic
    def complete(actor, assignment) -> OperationResult:
        """Mark a confirmed assignment as worked (manager only)."""
        locked = _lock_assignment(assignment)
        if locked is None:
            return OperationResult.failure(Reason.NOT_FOUND, "Assignment not found")

        check = lifecycle.check_complete(locked.status, actor.permissions)
        if not check.ok:
            return check

        before = locked.status
        locked.status = Status.COMPLETED
        locked.save(update_fields=["status", "updated_at"])
        _record(actor, locked, before)
        assignment_changed(locked, "completed")
        return OperationResult.success(locked)

    @staticmethod
    @transaction.atomic
    def edit(actor, assignment, time_slots, break_periods=None, notes=None) -> OperationResult:
        """
        Replace an assignment's time data.

        The original is rejected and a new assignment is created in the same
        transaction, so the history of who approved what is kept. The new
        status depends on who edits:
          - manager on their own assignment  -> confirmed
          - manager on someone else's        -> pending_worker_approval
          - worker on their own              -> pending_manager_approval
            (only more than WORKER_EDIT_CUTOFF_HOURS before the shift starts)
        """
        original = _lock_assignment(assignment)
        if original is None:
            return OperationResult.failure(Reason.NOT_FOUND, "Assignment not found")
        if original.status in (Status.REJECTED, Status.COMPLETED):
            return OperationResult.failure(
                Reason.INVALID_TRANSITION, f"Cannot edit a {original.status} assignment"
            )

        perms = actor.permissions
        status = lifecycle.status_for_edit(actor.pk, original.worker_id, perms)
        if status is None:
            logger.warning("User %d attempted to edit assignment %d of another worker.", actor.pk, original.pk)
            return OperationResult.denied("You can only edit your own assignments")

        if not perms.has("manager"):
            cutoff = settings.SHIFTDESK["WORKER_EDIT_CUTOFF_HOURS"]
            if original.shift.hours_until(original.date) <= cutoff:
                return OperationResult.denied(
                    f"Changes must be made more than {cutoff} hours before the shift starts"
                )

        if not time_slots:
            time_slots = original.time_slots
        _, _, failure = _parse_time_data(time_slots, break_periods, original.shift)
        if failure:
            return failure

        before = original.status
        original_notes = original.notes
        original.status = Status.REJECTED
        original.append_note(f"Replaced by edit from {actor.get_full_name() or actor.email}")
        original.save(update_fields=["status", "notes", "updated_at"])
        _record(actor, original, before, note="edited")

        result = _create_assignment(
            actor=actor,
            shift=original.shift,
            worker=original.worker,
            date=original.date,
            status=status,
            time_slots=time_slots,
            break_periods=break_periods if break_periods is not None else original.break_periods,
            notes=original_notes if notes is None else notes,
        )
        if not result.ok:
            transaction.set_rollback(True)
            return result

        result.details["replaces"] = original.pk
        assignment_changed(result.obj, "edited")
        return result

    @staticmethod
    def pending_for(actor):
        """
        Assignments waiting on this actor.

        Managers see every pending assignment; workers see the proposals
        waiting for their own acceptance.
        """
        qs = ShiftAssignment.objects.filter(
            status__in=ShiftAssignment.PENDING_STATUSES
        ).select_related("shift", "worker").order_by("date", "shift__open_time")
        if actor.permissions.has("manager"):
            return qs
        return qs.filter(worker=actor, status=Status.PENDING_WORKER_APPROVAL)


# ---------------------------------------------------------------------------
# Shift templates
# ---------------------------------------------------------------------------


TEMPLATE_FIELDS = ("name", "description", "open_time", "close_time", "recurring_days", "color", "is_active")


class ShiftTemplateService:
    """Create, edit and retire shift templates (managers only)."""

    @staticmethod
    def validate_hours(open_time, close_time) -> OperationResult:
        if to_minutes(open_time) >= to_minutes(close_time):
            return OperationResult.failure(Reason.INVALID_TIME_RANGE, "Opening time must be before closing time")
        return OperationResult.success()

    @staticmethod
    def validate_requirements(open_time, close_time, requirements) -> OperationResult:
        """
        Check requirement ranges against the shift's hours and each other.

        Rules, reported with 1-based "Requirement i":
          - at least one range
          - start < end, inside [open_time, close_time]
          - optimal >= min >= 0
          - no two ranges overlap

        Returns:
            Success with the normalized ranges in details["requirements"].
        """
        requirements = list(requirements or [])
        if not requirements:
            return OperationResult.failure(
                Reason.INVARIANT_VIOLATION, "At least one hourly requirement is needed"
            )

        open_min, close_min = to_minutes(open_time), to_minutes(close_time)
        parsed = []
        for i, req in enumerate(requirements, start=1):
            try:
                start = to_minutes(req["start_time"])
                end = to_minutes(req["end_time"])
                min_workers = int(req.get("min_workers", 1))
                optimal_workers = int(req.get("optimal_workers", min_workers))
            except (KeyError, TypeError, ValueError):
                return OperationResult.failure(Reason.INVALID_TIME_RANGE, f"Requirement {i}: malformed values")

            if start >= end:
                return OperationResult.failure(
                    Reason.INVALID_TIME_RANGE, f"Requirement {i}: start time must be before end time"
                )
            if start < open_min or end > close_min:
                return OperationResult.failure(
                    Reason.INVALID_TIME_RANGE,
                    f"Requirement {i}: time range must be within shift hours "
                    f"({format_minutes(open_min)}-{format_minutes(close_min)})",
                )
            if min_workers < 0:
                return OperationResult.failure(
                    Reason.INVARIANT_VIOLATION, f"Requirement {i}: minimum workers cannot be negative"
                )
            if optimal_workers < min_workers:
                return OperationResult.failure(
                    Reason.INVARIANT_VIOLATION,
                    f"Requirement {i}: optimal workers must be at least the minimum",
                )
            parsed.append({
                "start": start,
                "end": end,
                "min_workers": min_workers,
                "optimal_workers": optimal_workers,
                "notes": req.get("notes", "") or "",
            })

        for i in range(len(parsed)):
            for j in range(i + 1, len(parsed)):
                a, b = parsed[i], parsed[j]
                if ranges_overlap(a["start"], a["end"], b["start"], b["end"]):
                    return OperationResult.failure(
                        Reason.OVERLAPPING_TIME_SLOTS,
                        f"Requirement {i + 1} ({format_minutes(a['start'])}-{format_minutes(a['end'])}) and "
                        f"Requirement {j + 1} ({format_minutes(b['start'])}-{format_minutes(b['end'])}) overlap",
                    )
        return OperationResult.success(requirements=parsed)

    @staticmethod
    def _replace_requirements(shift, parsed) -> None:
        shift.requirements.all().delete()
        HourlyRequirement.objects.bulk_create([
            HourlyRequirement(
                shift=shift,
                position=i,
                start_time=parse_time(format_minutes(r["start"])),
                end_time=parse_time(format_minutes(r["end"])),
                min_workers=r["min_workers"],
                optimal_workers=r["optimal_workers"],
                notes=r["notes"],
            )
            for i, r in enumerate(parsed)
        ])

    @staticmethod
    @transaction.atomic
    def create(actor, *, name: str, open_time, close_time, recurring_days, requirements,
               description: str = "", color: str = "") -> OperationResult:
        """Create a template with its requirement ranges."""
        if not actor.permissions.has("manager"):
            logger.warning("User %d attempted to create a shift template.", actor.pk)
            return OperationResult.denied("Only managers can create shifts")

        try:
            check = ShiftTemplateService.validate_hours(open_time, close_time)
        except ValueError:
            return OperationResult.failure(Reason.INVALID_TIME_RANGE, "Time values must be HH:MM")
        if not check.ok:
            return check
        check = ShiftTemplateService.validate_requirements(open_time, close_time, requirements)
        if not check.ok:
            return check

        shift = ShiftTemplate.objects.create(
            name=name,
            description=description,
            open_time=parse_time(open_time),
            close_time=parse_time(close_time),
            recurring_days=ShiftTemplate.clean_days(recurring_days),
            color=color or "#3B82F6",
            created_by=actor,
        )
        ShiftTemplateService._replace_requirements(shift, check.details["requirements"])
        AuditLog.record(actor, "shift_template.created", shift, after={"name": shift.name})
        logger.info("User %d created shift template %d (%s)", actor.pk, shift.pk, shift.name)
        return OperationResult.success(shift)

    @staticmethod
    @transaction.atomic
    def update(actor, shift, requirements=None, **changes) -> OperationResult:
        """
        Edit a template; when its hours change, clamp existing assignments.

        Every upcoming non-rejected, non-completed assignment has its slots
        trimmed to the new hours. An assignment left with no slots is
        rejected; one whose slot count changed goes back to the worker for
        approval.

        Returns:
            OperationResult with details["boundary_adjustments"] listing each
            assignment whose slots changed.
        """
        if not actor.permissions.has("manager"):
            logger.warning("User %d attempted to update shift template %d.", actor.pk, shift.pk)
            return OperationResult.denied("Only managers can update shifts")

        unknown = set(changes) - set(TEMPLATE_FIELDS)
        if unknown:
            return OperationResult.failure(
                Reason.INVARIANT_VIOLATION, f"Unknown field(s): {', '.join(sorted(unknown))}"
            )

        locked = ShiftTemplate.objects.select_for_update().filter(pk=shift.pk).first()
        if locked is None:
            return OperationResult.failure(Reason.NOT_FOUND, "Shift not found")

        old_open, old_close = locked.open_time, locked.close_time
        try:
            new_open = parse_time(changes.get("open_time", old_open))
            new_close = parse_time(changes.get("close_time", old_close))
        except ValueError:
            return OperationResult.failure(Reason.INVALID_TIME_RANGE, "Time values must be HH:MM")

        check = ShiftTemplateService.validate_hours(new_open, new_close)
        if not check.ok:
            return check

        if requirements is None:
            requirements = [r.as_dict() for r in locked.ordered_requirements]
        check = ShiftTemplateService.validate_requirements(new_open, new_close, requirements)
        if not check.ok:
            return check

        before = {"open_time": format_minutes(to_minutes(old_open)), "close_time": format_minutes(to_minutes(old_close))}
        for name, value in changes.items():
            if name == "recurring_days":
                value = ShiftTemplate.clean_days(value)
            setattr(locked, name, value)
        locked.open_time, locked.close_time = new_open, new_close
        locked.save()
        ShiftTemplateService._replace_requirements(locked, check.details["requirements"])

        adjustments = []
        if (new_open, new_close) != (old_open, old_close):
            adjustments = ShiftTemplateService._clamp_assignments(actor, locked, old_open, old_close)

        AuditLog.record(
            actor,
            "shift_template.updated",
            locked,
            before=before,
            after={"open_time": format_minutes(to_minutes(new_open)), "close_time": format_minutes(to_minutes(new_close))},
            note=f"{len(adjustments)} assignment(s) adjusted" if adjustments else "",
        )
        logger.info("User %d updated shift template %d (%d adjustments)", actor.pk, locked.pk, len(adjustments))
        return OperationResult.success(locked, boundary_adjustments=adjustments)

    @staticmethod
    def _clamp_assignments(actor, shift, old_open, old_close) -> list:
        live = ShiftAssignment.objects.select_for_update().filter(
            shift=shift,
            date__gte=timezone.localdate(),
            status__in=[*ShiftAssignment.PENDING_STATUSES, Status.CONFIRMED],
        )

        adjustments = []
        for assignment in live:
            slots = lifecycle.parse_slots(assignment.time_slots) or [
                TimeSlot(to_minutes(old_open), to_minutes(old_close))
            ]
            clamped = lifecycle.clamp_slots(slots, shift.open_time, shift.close_time)
            if clamped == slots:
                continue

            before_status = assignment.status
            if not clamped:
                assignment.status = Status.REJECTED
                assignment.append_note("Rejected: no time left after shift hours changed")
            elif len(clamped) != len(slots):
                assignment.status = Status.PENDING_WORKER_APPROVAL
            assignment.time_slots = [s.as_dict() for s in clamped]
            assignment.save(update_fields=["status", "time_slots", "notes", "updated_at"])
            _record(actor, assignment, before_status, note="shift hours changed")

            adjustments.append({
                "assignment_id": assignment.pk,
                "worker_id": assignment.worker_id,
                "date": assignment.date.isoformat(),
                "before": [s.as_dict() for s in slots],
                "after": assignment.time_slots,
                "status_before": before_status,
                "status_after": assignment.status,
            })
            notify(
                assignment.worker,
                Notification.Type.SHIFT_HOURS_CHANGED,
                "Shift hours changed",
                f"{shift.name} now runs {format_minutes(to_minutes(shift.open_time))}-"
                f"{format_minutes(to_minutes(shift.close_time))}; your assignment on "
                f"{assignment.date} was adjusted.",
                {"assignment_id": assignment.pk},
            )
            assignment_changed(assignment, "adjusted")
        return adjustments

    @staticmethod
    @transaction.atomic
    def delete(actor, shift) -> OperationResult:
        """Delete a template, or deactivate it when assignments reference it."""
        if not actor.permissions.has("manager"):
            logger.warning("User %d attempted to delete shift template %d.", actor.pk, shift.pk)
            return OperationResult.denied("Only managers can delete shifts")

        if shift.assignments.exists():
            shift.is_active = False
            shift.save(update_fields=["is_active", "updated_at"])
            AuditLog.record(actor, "shift_template.deactivated", shift)
            return OperationResult.success(shift, message="Shift deactivated", deactivated=True)

        AuditLog.record(actor, "shift_template.deleted", shift, before={"name": shift.name})
        shift.delete()
        return OperationResult.success(None, message="Shift deleted", deleted=True)

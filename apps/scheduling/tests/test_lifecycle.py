"""
Tests for the assignment rule functions (no database).

Run with:
    python manage.py test apps.scheduling.tests.test_lifecycle
"""

from django.test import SimpleTestCase

from apps.accounts.permissions import EffectivePermissions
from apps.scheduling import lifecycle
from apps.scheduling.lifecycle import BreakPeriod, TimeSlot, parse_slots
from core.results import Reason

WORKER = EffectivePermissions(staff=True, worker=True)
MANAGER = EffectivePermissions(staff=True, worker=True, manager=True)
DEV = EffectivePermissions(is_dev=True)
CUSTOMER = EffectivePermissions()


def slots(*pairs):
    return parse_slots([{"start_time": s, "end_time": e} for s, e in pairs])


class TimeSlotValidationTests(SimpleTestCase):
    def test_valid_slots_pass(self):
        result = lifecycle.validate_time_slots(slots(("09:00", "12:00"), ("13:00", "17:00")), "09:00", "17:00")
        self.assertTrue(result.ok)

    def test_touching_slots_do_not_overlap(self):
        result = lifecycle.validate_time_slots(slots(("09:00", "12:00"), ("12:00", "17:00")), "09:00", "17:00")
        self.assertTrue(result.ok)

    def test_inverted_slot(self):
        result = lifecycle.validate_time_slots(slots(("09:00", "12:00"), ("14:00", "13:00")), "09:00", "17:00")
        self.assertEqual(result.reason, Reason.INVALID_TIME_RANGE)
        self.assertEqual(result.message, "Time slot 2: start time must be before end time")

    def test_slot_outside_shift_hours(self):
        result = lifecycle.validate_time_slots(slots(("08:00", "10:00")), "09:00", "17:00")
        self.assertEqual(result.reason, Reason.INVALID_TIME_RANGE)
        self.assertEqual(
            result.message, "Time slot 1 (08:00-10:00) must be within shift hours (09:00-17:00)"
        )

    def test_overlap_reports_first_pair(self):
        result = lifecycle.validate_time_slots(
            slots(("09:00", "11:00"), ("12:00", "14:00"), ("10:00", "13:00")), "09:00", "17:00"
        )
        self.assertEqual(result.reason, Reason.OVERLAPPING_TIME_SLOTS)
        self.assertEqual(result.details["slots"], [1, 3])
        self.assertEqual(result.message, "Time slots 1 (09:00-11:00) and 3 (10:00-13:00) overlap")

    def test_range_errors_win_over_overlaps(self):
        result = lifecycle.validate_time_slots(
            slots(("09:00", "11:00"), ("10:00", "12:00"), ("16:00", "18:00")), "09:00", "17:00"
        )
        self.assertEqual(result.reason, Reason.INVALID_TIME_RANGE)

    def test_breaks_need_positive_duration(self):
        self.assertTrue(lifecycle.validate_breaks([BreakPeriod(720, 750)]).ok)
        result = lifecycle.validate_breaks([BreakPeriod(720, 750), BreakPeriod(800, 800)])
        self.assertEqual(result.reason, Reason.INVALID_TIME_RANGE)
        self.assertEqual(result.details["break_period"], 2)

    def test_clamp_trims_and_drops(self):
        clamped = lifecycle.clamp_slots(
            [TimeSlot(480, 600), TimeSlot(660, 720), TimeSlot(1020, 1080)], "09:00", "17:00"
        )
        self.assertEqual(clamped, [TimeSlot(540, 600), TimeSlot(660, 720)])


class CreationStatusTests(SimpleTestCase):
    def test_manager_assigning_self_is_confirmed(self):
        self.assertEqual(lifecycle.status_for_manager_assignment(1, 1), lifecycle.CONFIRMED)

    def test_manager_assigning_other_awaits_worker(self):
        self.assertEqual(lifecycle.status_for_manager_assignment(1, 2), lifecycle.PENDING_WORKER)

    def test_join_request_status(self):
        self.assertEqual(lifecycle.status_for_join_request(MANAGER), lifecycle.CONFIRMED)
        self.assertEqual(lifecycle.status_for_join_request(WORKER), lifecycle.PENDING_MANAGER)

    def test_developer_is_treated_as_manager_everywhere(self):
        self.assertEqual(lifecycle.status_for_join_request(DEV), lifecycle.CONFIRMED)
        self.assertEqual(lifecycle.status_for_edit(1, 2, DEV), lifecycle.PENDING_WORKER)
        self.assertTrue(lifecycle.check_approve(lifecycle.PENDING_MANAGER, 1, 2, DEV).ok)

    def test_edit_status(self):
        self.assertEqual(lifecycle.status_for_edit(1, 1, MANAGER), lifecycle.CONFIRMED)
        self.assertEqual(lifecycle.status_for_edit(1, 2, MANAGER), lifecycle.PENDING_WORKER)
        self.assertEqual(lifecycle.status_for_edit(2, 2, WORKER), lifecycle.PENDING_MANAGER)
        self.assertIsNone(lifecycle.status_for_edit(1, 2, WORKER))


class TransitionTests(SimpleTestCase):
    def test_worker_approves_own_proposal(self):
        self.assertTrue(lifecycle.check_approve(lifecycle.PENDING_WORKER, 5, 5, WORKER).ok)

    def test_manager_cannot_accept_on_workers_behalf(self):
        result = lifecycle.check_approve(lifecycle.PENDING_WORKER, 1, 5, MANAGER)
        self.assertEqual(result.reason, Reason.PERMISSION_DENIED)

    def test_manager_approves_join_request(self):
        self.assertTrue(lifecycle.check_approve(lifecycle.PENDING_MANAGER, 1, 5, MANAGER).ok)
        self.assertEqual(
            lifecycle.check_approve(lifecycle.PENDING_MANAGER, 5, 5, WORKER).reason,
            Reason.PERMISSION_DENIED,
        )

    def test_developer_passes_both_approvals(self):
        self.assertTrue(lifecycle.check_approve(lifecycle.PENDING_WORKER, 1, 5, DEV).ok)
        self.assertTrue(lifecycle.check_approve(lifecycle.PENDING_MANAGER, 1, 5, DEV).ok)

    def test_approving_confirmed_is_invalid(self):
        result = lifecycle.check_approve(lifecycle.CONFIRMED, 5, 5, MANAGER)
        self.assertEqual(result.reason, Reason.INVALID_TRANSITION)
        self.assertEqual(result.message, "Assignment is not pending your approval")

    def test_reject_rules(self):
        self.assertTrue(lifecycle.check_reject(lifecycle.PENDING_MANAGER, 1, 5, MANAGER).ok)
        self.assertTrue(lifecycle.check_reject(lifecycle.PENDING_WORKER, 5, 5, WORKER).ok)
        self.assertEqual(
            lifecycle.check_reject(lifecycle.PENDING_WORKER, 6, 5, WORKER).reason, Reason.PERMISSION_DENIED
        )
        self.assertEqual(
            lifecycle.check_reject(lifecycle.CONFIRMED, 5, 5, WORKER).reason, Reason.INVALID_TRANSITION
        )

    def test_cancel_rules(self):
        self.assertTrue(lifecycle.check_cancel(lifecycle.CONFIRMED, 5, 5, WORKER).ok)
        self.assertTrue(lifecycle.check_cancel(lifecycle.PENDING_MANAGER, 1, 5, MANAGER).ok)
        self.assertEqual(
            lifecycle.check_cancel(lifecycle.CONFIRMED, 6, 5, CUSTOMER).reason, Reason.PERMISSION_DENIED
        )
        self.assertEqual(
            lifecycle.check_cancel(lifecycle.COMPLETED, 5, 5, WORKER).reason, Reason.INVALID_TRANSITION
        )

    def test_complete_rules(self):
        self.assertTrue(lifecycle.check_complete(lifecycle.CONFIRMED, MANAGER).ok)
        self.assertEqual(lifecycle.check_complete(lifecycle.CONFIRMED, WORKER).reason, Reason.PERMISSION_DENIED)
        self.assertEqual(
            lifecycle.check_complete(lifecycle.PENDING_WORKER, MANAGER).reason, Reason.INVALID_TRANSITION
        )

    def test_terminal_states_have_no_exits(self):
        self.assertFalse(lifecycle.can_transition(lifecycle.REJECTED, lifecycle.CONFIRMED))
        self.assertFalse(lifecycle.can_transition(lifecycle.COMPLETED, lifecycle.REJECTED))

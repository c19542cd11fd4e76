"""
HTTP tests for the scheduling endpoints.

Run with:
    python manage.py test apps.scheduling.tests.test_views
"""

import json
from datetime import time, timedelta

from django.test import TestCase
from django.urls import reverse

from apps.courses.models import Course
from apps.scheduling.models import ShiftAssignment, ShiftTemplate

from .factories import future_day, make_assignment, make_customer, make_manager, make_shift, make_worker


class JsonClientMixin:
    def post_json(self, url, payload):
        return self.client.post(url, json.dumps(payload), content_type="application/json")


class CalendarViewTests(TestCase):
    def setUp(self):
        self.worker = make_worker()
        self.shift = make_shift()

    def test_login_required(self):
        response = self.client.get(reverse("scheduling:calendar"))
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()["error"], "permission_denied")

    def test_default_week(self):
        self.client.force_login(self.worker)
        data = self.client.get(reverse("scheduling:calendar")).json()
        self.assertEqual(data["summary"]["item_types"]["shifts"], 7)

    def test_explicit_range_and_filters(self):
        self.client.force_login(self.worker)
        response = self.client.get(
            reverse("scheduling:calendar"),
            {"start": "2026-11-02", "end": "2026-11-03", "show_shifts": "0"},
        )
        self.assertEqual(response.json()["items"], [])

    def test_inverted_range(self):
        self.client.force_login(self.worker)
        response = self.client.get(reverse("scheduling:calendar"), {"start": "2026-11-05", "end": "2026-11-01"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "invalid_time_range")

    def test_range_too_long(self):
        self.client.force_login(self.worker)
        response = self.client.get(reverse("scheduling:calendar"), {"start": "2026-01-01", "end": "2026-12-31"})
        self.assertEqual(response.status_code, 400)


class LayoutViewTests(TestCase):
    def setUp(self):
        self.worker = make_worker()
        self.client.force_login(self.worker)

    def test_assignment_slots_are_laid_out(self):
        shift = make_shift(time(8), time(20))
        day = future_day()
        first = make_assignment(shift, self.worker, day, slots=[{"start_time": "08:00", "end_time": "14:00"}])
        second = make_assignment(shift, make_worker(), day, slots=[{"start_time": "12:00", "end_time": "16:00"}])

        data = self.client.get(
            reverse("scheduling:layout"), {"date": day.isoformat(), "shift": shift.pk}
        ).json()
        self.assertEqual(data["positions"][f"assignment-{first.pk}-0"], {"left": "0%", "width": "49.5%"})
        self.assertEqual(data["positions"][f"assignment-{second.pk}-0"], {"left": "50.5%", "width": "49.5%"})

    def test_calendar_day_layout(self):
        shift = make_shift()
        day = future_day()
        data = self.client.get(reverse("scheduling:layout"), {"date": day.isoformat()}).json()
        self.assertEqual(data["positions"][f"shift:{shift.pk}-{day.isoformat()}"]["width"], "100%")

    def test_courses_share_the_day_with_shifts(self):
        shift = make_shift(time(8), time(14))
        day = future_day()
        course = Course.objects.create(
            title="Intro to woodturning", instructor=make_manager(),
            start_date=day - timedelta(days=1), end_date=day + timedelta(days=1),
            start_time=time(12), end_time=time(16),
        )
        Course.objects.create(
            title="Cancelled class", instructor=course.instructor, is_active=False,
            start_date=day, end_date=day, start_time=time(9), end_time=time(11),
        )
        Course.objects.create(
            title="Next week", instructor=course.instructor,
            start_date=day + timedelta(days=7), end_date=day + timedelta(days=7),
            start_time=time(9), end_time=time(11),
        )

        positions = self.client.get(reverse("scheduling:layout"), {"date": day.isoformat()}).json()["positions"]
        self.assertEqual(positions[f"shift:{shift.pk}-{day.isoformat()}"], {"left": "0%", "width": "49.5%"})
        self.assertEqual(positions[f"course:{course.pk}"], {"left": "50.5%", "width": "49.5%"})
        self.assertEqual(len(positions), 2)

    def test_bad_shift_param_falls_back_to_calendar(self):
        response = self.client.get(reverse("scheduling:layout"), {"shift": "abc"})
        self.assertEqual(response.status_code, 200)


class StaffingViewTests(TestCase):
    def setUp(self):
        self.manager = make_manager()
        self.shift = make_shift(
            time(9), time(19),
            requirements=[(time(9), time(13), 2, 3), (time(13), time(19), 3, 5)],
        )
        self.day = future_day()

    def test_one_worker_leaves_shift_understaffed(self):
        make_assignment(self.shift, self.manager, self.day)
        self.client.force_login(self.manager)
        data = self.client.get(
            reverse("scheduling:shift_staffing", args=[self.shift.pk]), {"date": self.day.isoformat()}
        ).json()
        self.assertEqual(data["aggregate"]["status"], "understaffed")
        self.assertEqual([r["status"] for r in data["ranges"]], ["understaffed", "understaffed"])
        self.assertEqual(len(data["hours"]), 10)
        self.assertEqual(data["weakest_hour_status"], "understaffed")

    def test_customer_is_denied(self):
        self.client.force_login(make_customer())
        response = self.client.get(reverse("scheduling:shift_staffing", args=[self.shift.pk]))
        self.assertEqual(response.status_code, 403)

    def test_day_without_instance(self):
        shift = make_shift(days=[])
        self.client.force_login(self.manager)
        response = self.client.get(reverse("scheduling:shift_staffing", args=[shift.pk]))
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["error"], "not_found")


class ShiftTemplateViewTests(JsonClientMixin, TestCase):
    def setUp(self):
        self.manager = make_manager()
        self.worker = make_worker()

    def payload(self, **overrides):
        data = {
            "name": "Morning Shift",
            "open_time": "09:00",
            "close_time": "13:00",
            "recurring_days": ["sunday", "monday"],
            "requirements": [{"start_time": "09:00", "end_time": "13:00", "min_workers": 2, "optimal_workers": 4}],
        }
        data.update(overrides)
        return data

    def test_manager_creates_shift(self):
        self.client.force_login(self.manager)
        response = self.post_json(reverse("scheduling:shifts"), self.payload())
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["data"]["requirements"][0]["optimal_workers"], 4)

    def test_worker_gets_403(self):
        self.client.force_login(self.worker)
        response = self.post_json(reverse("scheduling:shifts"), self.payload())
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()["error"], "permission_denied")

    def test_missing_fields(self):
        self.client.force_login(self.manager)
        response = self.post_json(reverse("scheduling:shifts"), {"name": "Nameless hours"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "invariant_violation")

    def test_list(self):
        make_shift(name="Listed")
        self.client.force_login(self.worker)
        data = self.client.get(reverse("scheduling:shifts")).json()
        self.assertEqual([s["name"] for s in data["shifts"]], ["Listed"])

    def test_update_reports_adjustments(self):
        shift = make_shift(time(9), time(17))
        make_assignment(shift, self.worker, future_day(), slots=[{"start_time": "09:00", "end_time": "12:00"}])
        self.client.force_login(self.manager)
        response = self.post_json(
            reverse("scheduling:shift_update", args=[shift.pk]),
            {"open_time": "10:00", "requirements": [
                {"start_time": "10:00", "end_time": "17:00", "min_workers": 1, "optimal_workers": 2},
            ]},
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.json()["details"]["boundary_adjustments"]), 1)

    def test_delete_requires_manager(self):
        shift = make_shift()
        self.client.force_login(self.worker)
        response = self.client.post(reverse("scheduling:shift_delete", args=[shift.pk]))
        self.assertEqual(response.status_code, 403)
        self.assertTrue(ShiftTemplate.objects.filter(pk=shift.pk).exists())


class AssignmentViewTests(JsonClientMixin, TestCase):
    def setUp(self):
        self.manager = make_manager()
        self.worker = make_worker()
        self.shift = make_shift(time(9), time(19))
        self.day = future_day()

    def test_assign_and_duplicate_conflict(self):
        self.client.force_login(self.manager)
        payload = {"shift_id": self.shift.pk, "worker_id": self.worker.pk, "date": self.day.isoformat()}
        first = self.post_json(reverse("scheduling:assign_worker"), payload)
        self.assertEqual(first.status_code, 201)
        self.assertEqual(first.json()["data"]["status"], "pending_worker_approval")

        second = self.post_json(reverse("scheduling:assign_worker"), payload)
        self.assertEqual(second.status_code, 409)
        self.assertEqual(second.json()["error"], "duplicate_assignment")

    def test_assign_unknown_worker(self):
        self.client.force_login(self.manager)
        response = self.post_json(
            reverse("scheduling:assign_worker"),
            {"shift_id": self.shift.pk, "worker_id": "nope", "date": self.day.isoformat()},
        )
        self.assertEqual(response.status_code, 404)

    def test_customer_cannot_request_to_join(self):
        self.client.force_login(make_customer())
        response = self.post_json(reverse("scheduling:request_join"), {
            "shift_id": self.shift.pk,
            "date": self.day.isoformat(),
        })
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()["error"], "permission_denied")
        self.assertFalse(ShiftAssignment.objects.exists())

    def test_request_join_with_overlapping_slots(self):
        self.client.force_login(self.worker)
        response = self.post_json(reverse("scheduling:request_join"), {
            "shift_id": self.shift.pk,
            "date": self.day.isoformat(),
            "time_slots": [
                {"start_time": "09:00", "end_time": "12:00"},
                {"start_time": "11:00", "end_time": "14:00"},
            ],
        })
        self.assertEqual(response.status_code, 400)
        body = response.json()
        self.assertEqual(body["error"], "overlapping_time_slots")
        self.assertEqual(body["details"]["slots"], [1, 2])

    def test_approve_action(self):
        assignment = make_assignment(
            self.shift, self.worker, self.day, status=ShiftAssignment.Status.PENDING_MANAGER_APPROVAL
        )
        self.client.force_login(self.manager)
        response = self.client.post(reverse("scheduling:assignment_action", args=[assignment.pk, "approve"]))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["data"]["status"], "confirmed")

    def test_reject_with_reason_form_post(self):
        assignment = make_assignment(
            self.shift, self.worker, self.day, status=ShiftAssignment.Status.PENDING_MANAGER_APPROVAL
        )
        self.client.force_login(self.manager)
        self.client.post(
            reverse("scheduling:assignment_action", args=[assignment.pk, "reject"]), {"reason": "No cover needed"}
        )
        assignment.refresh_from_db()
        self.assertIn("No cover needed", assignment.notes)

    def test_unknown_action(self):
        assignment = make_assignment(self.shift, self.worker, self.day)
        self.client.force_login(self.manager)
        response = self.client.post(reverse("scheduling:assignment_action", args=[assignment.pk, "teleport"]))
        self.assertEqual(response.status_code, 404)

    def test_edit_by_worker(self):
        assignment = make_assignment(self.shift, self.worker, self.day + timedelta(days=3))
        self.client.force_login(self.worker)
        response = self.post_json(
            reverse("scheduling:assignment_edit", args=[assignment.pk]),
            {"time_slots": [{"start_time": "10:00", "end_time": "15:00"}]},
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["details"]["replaces"], assignment.pk)

    def test_pending_list(self):
        make_assignment(self.shift, self.worker, self.day, status=ShiftAssignment.Status.PENDING_WORKER_APPROVAL)
        self.client.force_login(self.worker)
        data = self.client.get(reverse("scheduling:pending_assignments")).json()
        self.assertEqual(len(data["assignments"]), 1)


class HealthCheckTests(TestCase):
    def test_health(self):
        response = self.client.get(reverse("health_check"))
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()["db"])

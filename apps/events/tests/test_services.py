"""
Tests for manager review of events and tool rentals.

Run with:
    python manage.py test apps.events.tests.test_services
"""

import json
from datetime import timedelta

from django.test import TestCase
from django.urls import reverse
from django.utils import timezone

from apps.audit.models import AuditLog
from apps.events.models import Event
from apps.events.services import CalendarReviewService
from apps.notifications.models import Notification
from apps.scheduling.tests.factories import make_customer, make_manager, make_worker
from apps.tools.models import Tool, ToolRental
from core.results import Reason


class CalendarReviewServiceTests(TestCase):
    def setUp(self):
        self.manager = make_manager()
        self.worker = make_worker()
        self.event = Event.objects.create(
            title="Deep clean", start_date=timezone.localdate() + timedelta(days=3), created_by=self.worker
        )
        tool = Tool.objects.create(name="Router")
        self.rental = ToolRental.objects.create(
            tool=tool,
            renter=make_customer(rental_approved_tag=True),
            rental_start_date=timezone.localdate(),
            rental_end_date=timezone.localdate() + timedelta(days=1),
        )

    def test_approve_event(self):
        result = CalendarReviewService.review(self.manager, "event", self.event.pk, approve=True)
        self.assertTrue(result.ok)
        self.event.refresh_from_db()
        self.assertEqual(self.event.status, Event.Status.APPROVED)
        self.assertEqual(self.event.approved_by, self.manager)
        self.assertTrue(
            Notification.objects.filter(
                recipient=self.worker, notification_type=Notification.Type.ITEM_REVIEWED
            ).exists()
        )

    def test_reject_rental_keeps_reason_in_audit(self):
        result = CalendarReviewService.review(
            self.manager, "tool_rental", str(self.rental.pk), approve=False, reason="Tool in repair"
        )
        self.assertTrue(result.ok)
        self.rental.refresh_from_db()
        self.assertEqual(self.rental.status, ToolRental.Status.CANCELLED)
        entry = AuditLog.objects.for_object(self.rental).get(action="tool_rental.rejected")
        self.assertEqual(entry.note, "Tool in repair")

    def test_worker_cannot_review(self):
        result = CalendarReviewService.review(self.worker, "event", self.event.pk, approve=True)
        self.assertEqual(result.reason, Reason.PERMISSION_DENIED)

    def test_unknown_type_and_missing_item(self):
        self.assertEqual(
            CalendarReviewService.review(self.manager, "course", 1, approve=True).reason, Reason.NOT_FOUND
        )
        self.assertEqual(
            CalendarReviewService.review(self.manager, "event", "x1", approve=True).reason, Reason.NOT_FOUND
        )

    def test_bulk_review_reports_each_item(self):
        result = CalendarReviewService.bulk_review(
            self.manager,
            [
                {"item_type": "event", "item_id": self.event.pk},
                {"item_type": "tool_rental", "item_id": self.rental.pk},
                {"item_type": "event", "item_id": 99999},
            ],
            approve=True,
        )
        self.assertTrue(result.ok)
        self.assertEqual([r["success"] for r in result.details["results"]], [True, True, False])
        self.assertEqual(result.details["summary"], "2 items approved successfully, 1 failed")

    def test_bulk_review_requires_manager(self):
        result = CalendarReviewService.bulk_review(self.worker, [], approve=True)
        self.assertEqual(result.reason, Reason.PERMISSION_DENIED)


class ReviewViewTests(TestCase):
    def setUp(self):
        self.manager = make_manager()
        self.event = Event.objects.create(title="Team day", start_date=timezone.localdate(), created_by=self.manager)

    def test_review_endpoint(self):
        self.client.force_login(self.manager)
        response = self.client.post(
            reverse("events:review"),
            json.dumps({"item_type": "event", "item_id": self.event.pk, "approve": True}),
            content_type="application/json",
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["data"]["status"], "approved")

    def test_missing_fields(self):
        self.client.force_login(self.manager)
        response = self.client.post(reverse("events:review"), {"item_type": "event"})
        self.assertEqual(response.status_code, 404)

    def test_bulk_requires_list(self):
        self.client.force_login(self.manager)
        response = self.client.post(
            reverse("events:bulk_review"), json.dumps({"items": "all"}), content_type="application/json"
        )
        self.assertEqual(response.status_code, 400)

"""
Tests for the shared result, HTTP and permission helpers.
"""

import json
from datetime import date

from django.contrib.auth.models import AnonymousUser
from django.http import HttpResponse
from django.test import RequestFactory, SimpleTestCase, TestCase
from django.views import View

from apps.scheduling.tests.factories import make_manager, make_worker
from core.http import parse_date, parse_int, request_data, result_response
from core.permissions import ManagerRequiredMixin
from core.results import OperationResult, Reason


class OperationResultTests(SimpleTestCase):
    def test_failure_payload(self):
        result = OperationResult.failure(Reason.OVERLAPPING_TIME_SLOTS, "Time slots 1 and 2 overlap", slots=[1, 2])
        self.assertEqual(result.as_dict(), {
            "success": False,
            "message": "Time slots 1 and 2 overlap",
            "error": "overlapping_time_slots",
            "details": {"slots": [1, 2]},
        })

    def test_success_payload(self):
        self.assertEqual(OperationResult.success().as_dict(), {"success": True})

    def test_denied(self):
        self.assertEqual(OperationResult.denied().reason, Reason.PERMISSION_DENIED)


class ResultResponseTests(SimpleTestCase):
    def status_for(self, reason):
        return result_response(OperationResult.failure(reason, "nope")).status_code

    def test_reason_to_status(self):
        self.assertEqual(self.status_for(Reason.PERMISSION_DENIED), 403)
        self.assertEqual(self.status_for(Reason.NOT_FOUND), 404)
        self.assertEqual(self.status_for(Reason.DUPLICATE_ASSIGNMENT), 409)
        self.assertEqual(self.status_for(Reason.INVALID_TIME_RANGE), 400)
        self.assertEqual(self.status_for(Reason.CAPACITY_EXCEEDED), 400)

    def test_success_with_serializer(self):
        response = result_response(OperationResult.success({"pk": 3}), lambda obj: {"id": obj["pk"]}, status=201)
        self.assertEqual(response.status_code, 201)
        self.assertEqual(json.loads(response.content)["data"], {"id": 3})


class RequestParsingTests(SimpleTestCase):
    def setUp(self):
        self.factory = RequestFactory()

    def test_json_body(self):
        request = self.factory.post("/", json.dumps({"a": 1}), content_type="application/json")
        self.assertEqual(request_data(request), {"a": 1})

    def test_bad_json_is_empty(self):
        request = self.factory.post("/", "{not json", content_type="application/json")
        self.assertEqual(request_data(request), {})

    def test_json_list_is_empty(self):
        request = self.factory.post("/", "[1, 2]", content_type="application/json")
        self.assertEqual(request_data(request), {})

    def test_form_body(self):
        request = self.factory.post("/", {"reason": "Sick"})
        self.assertEqual(request_data(request), {"reason": "Sick"})

    def test_parse_date(self):
        self.assertEqual(parse_date("2026-11-02"), date(2026, 11, 2))
        self.assertEqual(parse_date("02/11/2026", "fallback"), "fallback")
        self.assertIsNone(parse_date(None))

    def test_parse_int(self):
        self.assertEqual(parse_int("7"), 7)
        self.assertIsNone(parse_int("seven"))
        self.assertEqual(parse_int(None, 0), 0)


class ManagerOnlyView(ManagerRequiredMixin, View):
    def get(self, request):
        return HttpResponse("ok")


class PermissionMixinTests(TestCase):
    def setUp(self):
        self.factory = RequestFactory()

    def call(self, user):
        request = self.factory.get("/managers-only/")
        request.user = user
        return ManagerOnlyView.as_view()(request)

    def test_manager_passes(self):
        self.assertEqual(self.call(make_manager()).status_code, 200)

    def test_worker_is_denied_with_json(self):
        response = self.call(make_worker())
        self.assertEqual(response.status_code, 403)
        self.assertEqual(json.loads(response.content)["error"], "permission_denied")

    def test_anonymous_is_denied_with_json(self):
        response = self.call(AnonymousUser())
        self.assertEqual(response.status_code, 403)
        self.assertEqual(json.loads(response.content)["error"], "permission_denied")

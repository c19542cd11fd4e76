from django.test import TestCase
from django.urls import reverse

from apps.audit.models import AuditLog
from apps.scheduling.tests.factories import make_manager, make_shift


class TestAuditLogModel(TestCase):
    def setUp(self):
        self.user = make_manager(first_name="Audit", last_name="Tester")
        self.shift = make_shift(name="Morning Shift")

    def test_record_and_str(self):
        log = AuditLog.record(self.user, "shift_template.updated", self.shift,
                              before={"open_time": "09:00"}, after={"open_time": "10:00"})
        self.assertIn("shift_template.updated", str(log))
        self.assertIn("Audit Tester", str(log))
        self.assertEqual(log.content_object, self.shift)

    def test_system_actor(self):
        log = AuditLog.record(None, "shift_assignment.expired", self.shift)
        self.assertIn("System", str(log))

    def test_audit_log_is_immutable(self):
        log = AuditLog.record(self.user, "shift_template.updated", self.shift)
        log.action = "shift_template.deleted"
        with self.assertRaises(RuntimeError):
            log.save()

    def test_for_object(self):
        other = make_shift()
        AuditLog.record(self.user, "shift_template.created", self.shift)
        AuditLog.record(self.user, "shift_template.created", other)
        self.assertEqual(AuditLog.objects.for_object(self.shift).count(), 1)


class TestAuditLogView(TestCase):
    def setUp(self):
        self.manager = make_manager()
        AuditLog.record(self.manager, "shift_template.created", make_shift())

    def test_manager_reads_log(self):
        self.client.force_login(self.manager)
        data = self.client.get(reverse("audit:log")).json()
        self.assertEqual(data["entries"][0]["action"], "shift_template.created")

    def test_csv_export(self):
        self.client.force_login(self.manager)
        response = self.client.get(reverse("audit:log"), {"export": "csv"})
        self.assertEqual(response["Content-Type"], "text/csv")
        self.assertIn("shift_template.created", response.content.decode())

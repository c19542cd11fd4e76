from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.test import TestCase

from apps.accounts.models import User


class UserModelTests(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(
            email="Test@Example.com",
            password="pass123",
            first_name="Test",
            last_name="User",
            staff_tag=True,
            worker_tag=True,
        )

    def test_user_str(self):
        self.assertIn("Test User", str(self.user))

    def test_email_domain_is_normalized(self):
        self.assertEqual(self.user.email, "Test@example.com")

    def test_tags_resolve_to_permissions(self):
        perms = self.user.permissions
        self.assertTrue(perms.staff)
        self.assertTrue(perms.worker)
        self.assertFalse(perms.manager)

    def test_get_full_and_short_name(self):
        self.assertEqual(self.user.get_full_name(), "Test User")
        self.assertEqual(self.user.get_short_name(), "Test")

    def test_manager_without_worker_fails_validation(self):
        self.user.worker_tag = False
        self.user.manager_tag = True
        with self.assertRaises(ValidationError):
            self.user.full_clean()

    def test_manager_without_worker_is_rejected_by_database(self):
        self.user.worker_tag = False
        self.user.manager_tag = True
        with self.assertRaises(IntegrityError), transaction.atomic():
            self.user.save()

    def test_superuser_is_developer(self):
        admin = User.objects.create_superuser(
            email="dev@example.com", password="pass123", first_name="Dev", last_name="Eloper"
        )
        self.assertTrue(admin.is_dev)
        self.assertTrue(admin.permissions.has("manager"))

    def test_managers_queryset(self):
        manager = User.objects.create_user(
            email="boss@example.com", password="pass123", first_name="B", last_name="Oss",
            staff_tag=True, worker_tag=True, manager_tag=True,
        )
        self.assertEqual(list(User.objects.managers()), [manager])

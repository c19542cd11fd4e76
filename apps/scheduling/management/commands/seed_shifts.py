"""
Seed ShiftDesk with a small workshop roster.

Scenarios included:
  1. Three recurring shift patterns (full day, morning, evening) Sunday to Thursday
  2. A manager, three workers, an instructor and a tool handler
  3. Next week's full day shift: one confirmed worker, one proposal awaiting the
     worker, one join request awaiting a manager

Usage:
    python manage.py seed_shifts
    python manage.py seed_shifts --reset
"""

from datetime import timedelta

from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

PASSWORD = "ShiftDesk2026!"

TEMPLATES = [
    {
        "name": "Full Day Shift",
        "description": "Complete daily operations coverage",
        "open_time": "09:00",
        "close_time": "19:00",
        "color": "#3B82F6",
        "requirements": [
            {"start_time": "09:00", "end_time": "13:00", "min_workers": 2, "optimal_workers": 3},
            {"start_time": "13:00", "end_time": "19:00", "min_workers": 3, "optimal_workers": 5},
        ],
    },
    {
        "name": "Morning Shift",
        "description": "Morning operations and customer service",
        "open_time": "09:00",
        "close_time": "13:00",
        "color": "#10B981",
        "requirements": [
            {"start_time": "09:00", "end_time": "13:00", "min_workers": 2, "optimal_workers": 4},
        ],
    },
    {
        "name": "Evening Shift",
        "description": "Afternoon/evening operations and closing procedures",
        "open_time": "15:00",
        "close_time": "19:00",
        "color": "#F59E0B",
        "requirements": [
            {"start_time": "15:00", "end_time": "19:00", "min_workers": 2, "optimal_workers": 3},
        ],
    },
]
WORKING_DAYS = ["sunday", "monday", "tuesday", "wednesday", "thursday"]

PEOPLE = [
    ("manager@shiftdesk.local", "Maya", "Levi", {"staff_tag": True, "worker_tag": True, "manager_tag": True}),
    ("noa@shiftdesk.local", "Noa", "Cohen", {"staff_tag": True, "worker_tag": True}),
    ("eli@shiftdesk.local", "Eli", "Mizrahi", {"staff_tag": True, "worker_tag": True}),
    ("tal@shiftdesk.local", "Tal", "Peretz", {"staff_tag": True, "worker_tag": True}),
    ("dana@shiftdesk.local", "Dana", "Biton", {"staff_tag": True, "instructor_tag": True}),
    ("omer@shiftdesk.local", "Omer", "Friedman", {"staff_tag": True, "tool_handler_tag": True}),
]


class Command(BaseCommand):
    help = "Seed ShiftDesk with shift templates, staff and sample assignments"

    def add_arguments(self, parser):
        parser.add_argument("--reset", action="store_true",
                            help="Delete existing templates and assignments first (DESTRUCTIVE).")

    def handle(self, *args, **options):
        if options["reset"]:
            self.stdout.write(self.style.WARNING("Resetting scheduling data..."))
            self._reset_data()

        people = self._create_people()
        manager = people["manager@shiftdesk.local"]
        templates = self._create_templates(manager)
        self._create_assignments(manager, people, templates["Full Day Shift"])

        self.stdout.write(self.style.SUCCESS("Seed complete."))
        self.stdout.write(f"All users sign in with password {PASSWORD}")

    # ------------------------------------------------------------------
    def _reset_data(self):
        from apps.scheduling.models import ShiftAssignment, ShiftTemplate

        ShiftAssignment.objects.all().delete()
        ShiftTemplate.objects.all().delete()

    # ------------------------------------------------------------------
    def _create_people(self) -> dict:
        from apps.accounts.models import User

        people = {}
        for email, first, last, tags in PEOPLE:
            user, created = User.objects.get_or_create(
                email=email, defaults={"first_name": first, "last_name": last, **tags}
            )
            if created:
                user.set_password(PASSWORD)
                user.save()
                self.stdout.write(f"  User: {email}")
            people[email] = user
        return people

    # ------------------------------------------------------------------
    def _create_templates(self, manager) -> dict:
        from apps.scheduling.models import ShiftTemplate
        from apps.scheduling.services import ShiftTemplateService

        templates = {}
        for template in TEMPLATES:
            existing = ShiftTemplate.objects.filter(name=template["name"], is_active=True).first()
            if existing:
                templates[template["name"]] = existing
                continue
            result = ShiftTemplateService.create(manager, recurring_days=WORKING_DAYS, **template)
            if not result.ok:
                raise CommandError(f"{template['name']}: {result.message}")
            templates[template["name"]] = result.obj
            self.stdout.write(f"  Shift: {template['name']}")
        return templates

    # ------------------------------------------------------------------
    def _create_assignments(self, manager, people, shift):
        from apps.scheduling.services import AssignmentService

        today = timezone.localdate()
        day = next(today + timedelta(days=n) for n in range(7, 14) if shift.runs_on(today + timedelta(days=n)))

        outcomes = [
            AssignmentService.request_join(manager, shift, day),
            AssignmentService.assign_worker(manager, shift, people["noa@shiftdesk.local"], day),
            AssignmentService.request_join(
                people["eli@shiftdesk.local"], shift, day,
                time_slots=[{"start_time": "13:00", "end_time": "19:00"}],
            ),
        ]
        for result in outcomes:
            if result.ok:
                self.stdout.write(f"  Assignment: {result.obj}")
            else:
                self.stdout.write(self.style.WARNING(f"  Skipped: {result.message}"))

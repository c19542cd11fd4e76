"""
Lightweight factories for ShiftDesk tests (no factory_boy dependency).
"""

import itertools
from datetime import date, time, timedelta

from django.utils import timezone

from apps.accounts.models import User
from apps.scheduling.models import HourlyRequirement, ShiftAssignment, ShiftTemplate
from apps.scheduling.timeutils import WEEKDAYS

_counter = itertools.count(1)

ALL_DAYS = list(WEEKDAYS)


def make_user(**tags) -> User:
    """Create a user; keyword arguments set tags and other fields."""
    n = next(_counter)
    return User.objects.create_user(
        email=tags.pop("email", f"user{n}@test.com"),
        password="testpass",
        first_name=tags.pop("first_name", "Test"),
        last_name=tags.pop("last_name", f"User{n}"),
        **tags,
    )


def make_worker(**kwargs) -> User:
    return make_user(staff_tag=True, worker_tag=True, **kwargs)


def make_manager(**kwargs) -> User:
    return make_user(staff_tag=True, worker_tag=True, manager_tag=True, **kwargs)


def make_customer(**kwargs) -> User:
    return make_user(**kwargs)


def make_shift(open_time=time(9), close_time=time(17), days=None, requirements=None, **kwargs) -> ShiftTemplate:
    """
    Create a template that runs every day unless `days` is given.

    requirements: list of (start, end, min, optimal) tuples; defaults to one
    range covering the whole shift with min 1, optimal 2.
    """
    shift = ShiftTemplate.objects.create(
        name=kwargs.pop("name", f"Shift {next(_counter)}"),
        open_time=open_time,
        close_time=close_time,
        recurring_days=ALL_DAYS if days is None else days,
        **kwargs,
    )
    if requirements is None:
        requirements = [(open_time, close_time, 1, 2)]
    for position, (start, end, min_workers, optimal_workers) in enumerate(requirements):
        HourlyRequirement.objects.create(
            shift=shift,
            position=position,
            start_time=start,
            end_time=end,
            min_workers=min_workers,
            optimal_workers=optimal_workers,
        )
    return shift


def make_assignment(shift, worker, day, status=ShiftAssignment.Status.CONFIRMED, slots=None, **kwargs):
    return ShiftAssignment.objects.create(
        shift=shift,
        worker=worker,
        date=day,
        status=status,
        time_slots=slots or [],
        assigned_by=kwargs.pop("assigned_by", worker),
        **kwargs,
    )


def future_day(days_ahead: int = 7) -> date:
    return timezone.localdate() + timedelta(days=days_ahead)

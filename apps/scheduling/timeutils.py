"""
Wall-clock helpers shared by the scheduling core.

Times cross the boundary as 24-hour "HH:MM" strings and are stored in the
database as TimeField values. Everything in the core compares minutes since
midnight, so both representations are accepted here.
"""

from datetime import date, time
from typing import Union

TimeLike = Union[str, time]

WEEKDAYS = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]


def to_minutes(value: TimeLike) -> int:
    """
    Convert an "HH:MM" string or a datetime.time to minutes since midnight.

    Raises:
        ValueError: If a string is not in HH:MM form.
    """
    if isinstance(value, time):
        return value.hour * 60 + value.minute
    hours, sep, minutes = str(value).partition(":")
    if not sep or not hours.isdigit() or not minutes[:2].isdigit():
        raise ValueError(f"Expected HH:MM, got {value!r}")
    if int(hours) > 23 or int(minutes[:2]) > 59:
        raise ValueError(f"Time out of range: {value!r}")
    return int(hours) * 60 + int(minutes[:2])


def format_minutes(minutes: int) -> str:
    """Render minutes since midnight as zero-padded HH:MM."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def to_hhmm(value: TimeLike) -> str:
    """Normalize a time value to its HH:MM string form."""
    return format_minutes(to_minutes(value))


def parse_time(value: TimeLike) -> time:
    """Return a datetime.time for an HH:MM string (or pass a time through)."""
    if isinstance(value, time):
        return value
    minutes = to_minutes(value)
    return time(minutes // 60, minutes % 60)


def ranges_overlap(start_a: int, end_a: int, start_b: int, end_b: int) -> bool:
    """Half-open interval intersection; touching ranges do not overlap."""
    return start_a < end_b and start_b < end_a


def weekday_name(day: date) -> str:
    """Return the lower-case English weekday name for a date."""
    return WEEKDAYS[day.weekday()]

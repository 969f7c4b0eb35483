"""Argument checks run before a workflow opens its transaction."""

import re
from datetime import date, datetime

from gym_booking import clock
from gym_booking.errors import invalid_input

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def require_id(value, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise invalid_input(f"{name} must be a positive integer", field=name)
    return value


def parse_date(value, name: str = "date") -> date:
    """Accept a date or a strict YYYY-MM-DD string."""
    if isinstance(value, datetime):
        raise invalid_input(f"{name} must be a calendar date, not a timestamp", field=name)
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not _DATE_RE.match(value):
        raise invalid_input(f"{name} must be in YYYY-MM-DD format (e.g., 2025-11-24)", field=name)
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise invalid_input(f"{name} is not a valid calendar date", field=name) from None


def parse_timestamp(value, name: str = "start_time") -> datetime:
    """
    Accept a datetime or an ISO string ("YYYY-MM-DD HH:MM:SS" or with a "T").

    Naive values are wall-clock time in the service timezone; aware values are
    converted to it. Seconds and below are kept as given.
    """
    if isinstance(value, datetime):
        return clock.to_local_naive(value)
    if not isinstance(value, str) or len(value) < 16:
        raise invalid_input(f"Invalid {name} format. Use YYYY-MM-DD HH:MM:SS", field=name)
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        raise invalid_input(f"Invalid {name} format. Use YYYY-MM-DD HH:MM:SS", field=name) from None
    return clock.to_local_naive(parsed)


def require_duration(value) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise invalid_input("Duration must be a positive integer (minutes)", field="duration_minutes")
    return value

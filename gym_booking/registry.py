"""
Resource registry: point lookups of class schedules and their validity window.

The unlocked lookup serves browsing; the write workflows re-fetch the same
row through ``lock_schedule`` so every later check runs under the row lock.
"""

from dataclasses import dataclass
from datetime import date
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from gym_booking.errors import BookingError, ErrorKind, not_found
from gym_booking.models import DAY_TAGS, Class, ClassSchedule


@dataclass(frozen=True)
class ResourceWindow:
    schedule_id: int
    capacity: int
    valid_from: Optional[date]
    valid_until: Optional[date]
    is_active: bool


def day_of_week(d: date) -> str:
    """Weekday tag for a calendar day. Uses the date's own components, no clock or zone."""
    return DAY_TAGS[d.weekday()]


def _window_query(schedule_id: int):
    return (
        select(
            ClassSchedule.id,
            ClassSchedule.capacity,
            ClassSchedule.valid_from,
            ClassSchedule.valid_until,
            Class.is_active,
        )
        .join(Class, Class.id == ClassSchedule.class_id)
        .where(ClassSchedule.id == schedule_id)
    )


def _to_window(row) -> ResourceWindow:
    return ResourceWindow(
        schedule_id=row.id,
        capacity=row.capacity,
        valid_from=row.valid_from,
        valid_until=row.valid_until,
        is_active=bool(row.is_active),
    )


def resolve_schedule(db: Session, schedule_id: int) -> ResourceWindow:
    row = db.execute(_window_query(schedule_id)).first()
    if row is None:
        raise not_found("Class schedule not found", schedule_id=schedule_id)
    return _to_window(row)


def lock_schedule(db: Session, schedule_id: int) -> ResourceWindow:
    """Fetch the schedule row with an exclusive lock held until the transaction ends."""
    stmt = _window_query(schedule_id).with_for_update(of=ClassSchedule)
    row = db.execute(stmt).first()
    if row is None:
        raise not_found("Class schedule not found", schedule_id=schedule_id)
    return _to_window(row)


def check_window(window: ResourceWindow, on_date: date) -> None:
    if not window.is_active:
        raise BookingError(ErrorKind.INACTIVE, "This class is no longer active")
    if window.valid_from is not None and on_date < window.valid_from:
        raise BookingError(
            ErrorKind.NOT_YET_AVAILABLE,
            f"This class schedule is not yet available. Available from {window.valid_from.isoformat()}",
            {"valid_from": window.valid_from.isoformat()},
        )
    if window.valid_until is not None and on_date > window.valid_until:
        raise BookingError(
            ErrorKind.ENDED,
            f"This class schedule is no longer available. Ended on {window.valid_until.isoformat()}",
            {"valid_until": window.valid_until.isoformat()},
        )


def get_active_resource(db: Session, schedule_id: int, on_date: date) -> ResourceWindow:
    window = resolve_schedule(db, schedule_id)
    check_window(window, on_date)
    return window

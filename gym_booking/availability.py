"""
Availability calculator.

Read-only arithmetic shared by browsing and by the booking workflows. Results
computed here without a lock are informational; a workflow that acts on them
recomputes them under its lock.

Every interval comparison goes through the half-open overlap rule
``[s1, e1)`` vs ``[s2, e2)`` overlap iff ``s1 < e2 and s2 < e1``, either as
``overlaps`` in Python or ``overlap_clause`` in SQL. Spans that only touch at an
endpoint do not overlap.
"""

from datetime import date, datetime
from typing import List

from sqlalchemy import and_, func, or_, select
from sqlalchemy.orm import Session

from gym_booking.models import (
    CLASS_COUNTING_STATUSES,
    TRAINER_COUNTING_STATUSES,
    Class,
    ClassBooking,
    ClassSchedule,
    TrainerAvailability,
    TrainerBooking,
)
from gym_booking.registry import day_of_week
from gym_booking.schemas import AvailableClass, TrainerSlot


def overlaps(s1, e1, s2, e2) -> bool:
    return s1 < e2 and s2 < e1


def overlap_clause(start_col, end_col, start, end):
    """SQL form of ``overlaps(start_col, end_col, start, end)``."""
    return and_(start_col < end, end_col > start)


def remaining_capacity(capacity: int, taken: int) -> int:
    return max(capacity - taken, 0)


def is_available(remaining: int) -> bool:
    return remaining > 0


def covers_date_clause(on_date: date):
    # a class booking covers its start day through its end day; NULL end is open
    return and_(
        ClassBooking.starts_on <= on_date,
        or_(ClassBooking.ends_on.is_(None), ClassBooking.ends_on >= on_date),
    )


def count_trainer_overlaps(db: Session, trainer_id: int, start: datetime, end: datetime) -> int:
    stmt = select(func.count(TrainerBooking.id)).where(
        TrainerBooking.trainer_id == trainer_id,
        TrainerBooking.status.in_(TRAINER_COUNTING_STATUSES),
        overlap_clause(TrainerBooking.starts_at, TrainerBooking.ends_at, start, end),
    )
    return db.execute(stmt).scalar_one()


def count_member_overlaps(db: Session, member_id: int, start: datetime, end: datetime) -> int:
    """Member's counting trainer bookings overlapping the span, across every trainer."""
    stmt = select(func.count(TrainerBooking.id)).where(
        TrainerBooking.member_id == member_id,
        TrainerBooking.status.in_(TRAINER_COUNTING_STATUSES),
        overlap_clause(TrainerBooking.starts_at, TrainerBooking.ends_at, start, end),
    )
    return db.execute(stmt).scalar_one()


def matching_availabilities(trainer_id: int, on_date: date):
    """Select of a trainer's active declarations that apply to a calendar day."""
    return (
        select(TrainerAvailability)
        .where(
            TrainerAvailability.trainer_id == trainer_id,
            TrainerAvailability.status == "Active",
            or_(
                and_(
                    TrainerAvailability.is_recurring.is_(False),
                    TrainerAvailability.specific_date == on_date,
                ),
                and_(
                    TrainerAvailability.is_recurring.is_(True),
                    TrainerAvailability.day_of_week == day_of_week(on_date),
                ),
            ),
        )
        .order_by(TrainerAvailability.start_time.asc(), TrainerAvailability.id.asc())
    )


def trainer_slots(db: Session, trainer_id: int, on_date: date) -> List[TrainerSlot]:
    """Every declaration matching the day with its remaining concurrent spots."""
    results = []
    for slot in db.execute(matching_availabilities(trainer_id, on_date)).scalars():
        window_start = datetime.combine(on_date, slot.start_time)
        window_end = datetime.combine(on_date, slot.end_time)
        taken = count_trainer_overlaps(db, trainer_id, window_start, window_end)
        remaining = remaining_capacity(slot.max_concurrent_bookings, taken)
        results.append(
            TrainerSlot(
                availability_id=slot.id,
                trainer_id=slot.trainer_id,
                date=on_date,
                start_time=slot.start_time,
                end_time=slot.end_time,
                max_concurrent_bookings=slot.max_concurrent_bookings,
                current_bookings=taken,
                remaining_spots=remaining,
                is_available=is_available(remaining),
                is_recurring=slot.is_recurring,
                type="recurring" if slot.is_recurring else "one-off",
            )
        )
    return results


def available_classes(db: Session, on_date: date) -> List[AvailableClass]:
    """
    List the class schedules bookable on a date with their remaining seats.

    A schedule is listed when its class is active, its weekday matches the date
    and the date falls inside its validity window. Seats taken are the Active
    bookings whose span covers the date. Full schedules are listed too, with
    ``is_full`` set.
    """
    booked = (
        select(ClassBooking.schedule_id, func.count(ClassBooking.id).label("booked_count"))
        .where(ClassBooking.status.in_(CLASS_COUNTING_STATUSES), covers_date_clause(on_date))
        .group_by(ClassBooking.schedule_id)
        .subquery()
    )
    stmt = (
        select(
            ClassSchedule.id,
            Class.name,
            ClassSchedule.start_time,
            ClassSchedule.end_time,
            ClassSchedule.capacity,
            ClassSchedule.trainer_id,
            func.coalesce(booked.c.booked_count, 0).label("booked_count"),
        )
        .join(Class, Class.id == ClassSchedule.class_id)
        .outerjoin(booked, booked.c.schedule_id == ClassSchedule.id)
        .where(
            Class.is_active.is_(True),
            ClassSchedule.day_of_week == day_of_week(on_date),
            or_(ClassSchedule.valid_from.is_(None), ClassSchedule.valid_from <= on_date),
            or_(ClassSchedule.valid_until.is_(None), ClassSchedule.valid_until >= on_date),
        )
        .order_by(ClassSchedule.start_time.asc(), ClassSchedule.id.asc())
    )

    results = []
    for row in db.execute(stmt):
        booked_count = int(row.booked_count or 0)
        remaining = remaining_capacity(row.capacity, booked_count)
        results.append(
            AvailableClass(
                schedule_id=row.id,
                class_name=row.name,
                date=on_date,
                start_time=row.start_time,
                end_time=row.end_time,
                capacity=row.capacity,
                trainer_id=row.trainer_id,
                booked_count=booked_count,
                available_slots=remaining,
                is_full=not is_available(remaining),
            )
        )
    return results

"""
Reservation ledger: storage access for class and trainer booking rows.

Only the workflows call into this module, and only inside ``db.transaction``;
the locking reads here keep their rows locked until that transaction ends.
"""

from datetime import date, datetime
from typing import List, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from gym_booking.availability import matching_availabilities
from gym_booking.models import (
    CLASS_COUNTING_STATUSES,
    ClassBooking,
    ClassBookingStatus,
    TrainerAvailability,
    TrainerBooking,
    TrainerBookingStatus,
)


def _stamp():
    return datetime.utcnow()


# —— Class bookings ——


def lock_class_booking(db: Session, booking_id: int) -> Optional[ClassBooking]:
    stmt = select(ClassBooking).where(ClassBooking.id == booking_id).with_for_update()
    return db.execute(stmt).scalar_one_or_none()


def find_active_class_booking(
    db: Session, schedule_id: int, member_id: int, today: date
) -> Optional[ClassBooking]:
    """The member's Active booking on the schedule whose end has not passed."""
    stmt = (
        select(ClassBooking)
        .where(
            ClassBooking.schedule_id == schedule_id,
            ClassBooking.member_id == member_id,
            ClassBooking.status == ClassBookingStatus.ACTIVE.value,
            or_(ClassBooking.ends_on.is_(None), ClassBooking.ends_on > today),
        )
        .limit(1)
    )
    return db.execute(stmt).scalar_one_or_none()


def count_active_class_bookings(db: Session, schedule_id: int) -> int:
    stmt = select(func.count(ClassBooking.id)).where(
        ClassBooking.schedule_id == schedule_id,
        ClassBooking.status.in_(CLASS_COUNTING_STATUSES),
    )
    return db.execute(stmt).scalar_one()


def insert_class_booking(db: Session, schedule_id: int, member_id: int, starts_on: date) -> ClassBooking:
    now = _stamp()
    booking = ClassBooking(
        schedule_id=schedule_id,
        member_id=member_id,
        starts_on=starts_on,
        ends_on=None,
        status=ClassBookingStatus.ACTIVE.value,
        created_at=now,
        updated_at=now,
    )
    db.add(booking)
    db.flush()
    return booking


def cancel_class_booking(db: Session, booking: ClassBooking, ends_on: date) -> ClassBooking:
    booking.status = ClassBookingStatus.CANCELED.value
    booking.ends_on = ends_on
    booking.updated_at = _stamp()
    db.flush()
    return booking


# —— Trainer bookings ——


def lock_containing_availabilities(
    db: Session, trainer_id: int, start: datetime, end: datetime
) -> List[TrainerAvailability]:
    """
    Lock the trainer's declarations for the day whose window contains [start, end).

    The span has to fit inside a single window on the start's calendar day.
    """
    if end.date() != start.date():
        return []
    stmt = (
        matching_availabilities(trainer_id, start.date())
        .where(
            TrainerAvailability.start_time <= start.time(),
            TrainerAvailability.end_time >= end.time(),
        )
        .with_for_update()
    )
    return list(db.execute(stmt).scalars())


def lock_trainer_booking(db: Session, booking_id: int) -> Optional[TrainerBooking]:
    stmt = select(TrainerBooking).where(TrainerBooking.id == booking_id).with_for_update()
    return db.execute(stmt).scalar_one_or_none()


def insert_trainer_booking(
    db: Session,
    trainer_id: int,
    member_id: int,
    start: datetime,
    end: datetime,
    duration_minutes: int,
    note: Optional[str] = None,
) -> TrainerBooking:
    now = _stamp()
    booking = TrainerBooking(
        trainer_id=trainer_id,
        member_id=member_id,
        starts_at=start,
        ends_at=end,
        duration_minutes=duration_minutes,
        status=TrainerBookingStatus.PENDING.value,
        note=note,
        created_at=now,
        updated_at=now,
    )
    db.add(booking)
    db.flush()
    return booking


def set_trainer_status(
    db: Session,
    booking: TrainerBooking,
    status: TrainerBookingStatus,
    rejection_reason: Optional[str] = None,
) -> TrainerBooking:
    booking.status = status.value
    if rejection_reason is not None:
        booking.rejection_reason = rejection_reason
    booking.updated_at = _stamp()
    db.flush()
    return booking

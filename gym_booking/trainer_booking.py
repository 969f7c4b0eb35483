"""
Trainer booking workflow: (none) -> Pending -> Confirmed | Rejected.

A request has to fit inside one declared availability window. Capacity is the
number of Pending or Confirmed sessions overlapping the requested span, and a
member may not hold two overlapping sessions with any trainers.
"""

import logging
from datetime import timedelta
from typing import List, Optional

from sqlalchemy.orm import Session

from gym_booking import availability, clock, ledger
from gym_booking.db import reading, transaction
from gym_booking.errors import BookingError, ErrorKind, invalid_input, not_found
from gym_booking.models import TrainerBooking, TrainerBookingStatus
from gym_booking.schemas import TrainerBookingResult, TrainerSlot
from gym_booking.validation import parse_date, parse_timestamp, require_duration, require_id

logger = logging.getLogger(__name__)


def _result(booking: TrainerBooking) -> TrainerBookingResult:
    return TrainerBookingResult(
        booking_id=booking.id,
        trainer_id=booking.trainer_id,
        member_id=booking.member_id,
        start_time=booking.starts_at,
        end_time=booking.ends_at,
        duration_minutes=booking.duration_minutes,
        status=booking.status,
        note=booking.note,
        rejection_reason=booking.rejection_reason,
    )


def browse(db: Session, trainer_id: int, on_date) -> List[TrainerSlot]:
    """Open slots for a trainer on a day. Takes no locks; results may be stale."""
    require_id(trainer_id, "trainer_id")
    day = parse_date(on_date)
    with reading(db, "trainer availability browse"):
        slots = availability.trainer_slots(db, trainer_id, day)
    return [s for s in slots if s.is_available]


def request_booking(
    db: Session,
    member_id: int,
    trainer_id: int,
    start_time,
    duration_minutes: int,
    note: Optional[str] = None,
) -> TrainerBookingResult:
    require_id(member_id, "member_id")
    require_id(trainer_id, "trainer_id")
    start = parse_timestamp(start_time)
    duration = require_duration(duration_minutes)
    if start < clock.now():
        raise invalid_input("Cannot book a slot in the past", field="start_time")
    end = start + timedelta(minutes=duration)

    try:
        with transaction(db, "trainer booking request"):
            slots = ledger.lock_containing_availabilities(db, trainer_id, start, end)
            if not slots:
                raise BookingError(
                    ErrorKind.NO_AVAILABILITY_SLOT,
                    "No available slot for trainer at this time on this date",
                )
            slot = slots[0]

            taken = availability.count_trainer_overlaps(db, trainer_id, start, end)
            if taken + 1 > slot.max_concurrent_bookings:
                raise BookingError(
                    ErrorKind.SLOT_FULL,
                    "Trainer slot is at full capacity",
                    {"availability_id": slot.id},
                )

            if availability.count_member_overlaps(db, member_id, start, end) > 0:
                raise BookingError(
                    ErrorKind.MEMBER_TIME_CONFLICT,
                    "Member already has another booking at this time",
                )

            booking = ledger.insert_trainer_booking(
                db, trainer_id, member_id, start, end, duration, note
            )
            result = _result(booking)
    except BookingError as exc:
        logger.info(
            "Trainer booking refused: member=%s trainer=%s start=%s kind=%s",
            member_id, trainer_id, start.isoformat(), exc.kind.value,
        )
        raise

    logger.info(
        "Trainer booking %s requested: member=%s trainer=%s %s-%s",
        result.booking_id, member_id, trainer_id, start.isoformat(), end.isoformat(),
    )
    return result


def _decide(
    db: Session,
    booking_id: int,
    trainer_id: int,
    new_status: TrainerBookingStatus,
    reason: Optional[str] = None,
) -> TrainerBookingResult:
    require_id(booking_id, "booking_id")
    require_id(trainer_id, "trainer_id")
    verb = "confirm" if new_status is TrainerBookingStatus.CONFIRMED else "reject"

    try:
        with transaction(db, f"trainer booking {verb}"):
            booking = ledger.lock_trainer_booking(db, booking_id)
            if booking is None:
                raise not_found("Booking not found", booking_id=booking_id)
            if booking.trainer_id != trainer_id:
                raise BookingError(
                    ErrorKind.UNAUTHORIZED,
                    f"Unauthorized: Cannot {verb} another trainer's booking",
                )
            if booking.status != TrainerBookingStatus.PENDING.value:
                raise BookingError(
                    ErrorKind.INVALID_STATUS_TRANSITION,
                    f"Cannot {verb} booking. Current status: {booking.status}",
                    {"status": booking.status},
                )
            ledger.set_trainer_status(db, booking, new_status, rejection_reason=reason)
            result = _result(booking)
    except BookingError as exc:
        logger.info(
            "Trainer booking %s refused: booking=%s trainer=%s kind=%s",
            verb, booking_id, trainer_id, exc.kind.value,
        )
        raise

    logger.info("Trainer %s set booking %s to %s", trainer_id, booking_id, new_status.value)
    return result


def confirm(db: Session, booking_id: int, trainer_id: int) -> TrainerBookingResult:
    return _decide(db, booking_id, trainer_id, TrainerBookingStatus.CONFIRMED)


def reject(
    db: Session, booking_id: int, trainer_id: int, reason: Optional[str] = None
) -> TrainerBookingResult:
    return _decide(db, booking_id, trainer_id, TrainerBookingStatus.REJECTED, reason=reason)

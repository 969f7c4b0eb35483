"""
Class booking workflow: (none) -> Active -> Canceled.

Registration locks the schedule row before looking at anything else, so two
members racing for the last seat serialize on that lock and the second one
counts the first one's booking.
"""

import logging
from typing import List

from sqlalchemy.orm import Session

from gym_booking import availability, clock, ledger, registry
from gym_booking.availability import remaining_capacity
from gym_booking.db import reading, transaction
from gym_booking.errors import BookingError, ErrorKind, not_found
from gym_booking.models import ClassBookingStatus
from gym_booking.schemas import AvailableClass, ClassBookingResult, ClassCancelResult
from gym_booking.validation import parse_date, require_id

logger = logging.getLogger(__name__)


def register(db: Session, member_id: int, schedule_id: int) -> ClassBookingResult:
    require_id(member_id, "member_id")
    require_id(schedule_id, "class_schedule_id")

    try:
        with transaction(db, "class registration"):
            window = registry.lock_schedule(db, schedule_id)
            today = clock.today()
            registry.check_window(window, today)

            if ledger.find_active_class_booking(db, schedule_id, member_id, today) is not None:
                raise BookingError(
                    ErrorKind.ALREADY_REGISTERED,
                    "Member already has an active booking for this class",
                )

            active_count = ledger.count_active_class_bookings(db, schedule_id)
            if active_count >= window.capacity:
                raise BookingError(
                    ErrorKind.CAPACITY_EXCEEDED,
                    "Class is at full capacity",
                    {"capacity": window.capacity},
                )

            booking = ledger.insert_class_booking(db, schedule_id, member_id, today)
            result = ClassBookingResult(
                booking_id=booking.id,
                member_id=member_id,
                class_schedule_id=schedule_id,
                booking_start_date=today,
                booking_end_date=None,
                status=ClassBookingStatus.ACTIVE.value,
                remaining_capacity=remaining_capacity(window.capacity, active_count + 1),
            )
    except BookingError as exc:
        logger.info(
            "Class registration refused: member=%s schedule=%s kind=%s",
            member_id, schedule_id, exc.kind.value,
        )
        raise

    logger.info(
        "Registered member %s for schedule %s (booking %s)",
        member_id, schedule_id, result.booking_id,
    )
    return result


def cancel(db: Session, booking_id: int, member_id: int) -> ClassCancelResult:
    require_id(booking_id, "booking_id")
    require_id(member_id, "member_id")

    try:
        with transaction(db, "class cancellation"):
            booking = ledger.lock_class_booking(db, booking_id)
            if booking is None:
                raise not_found("Booking not found", booking_id=booking_id)
            if booking.member_id != member_id:
                raise BookingError(
                    ErrorKind.UNAUTHORIZED,
                    "Unauthorized: Cannot cancel another member's booking",
                )
            if booking.status == ClassBookingStatus.CANCELED.value:
                raise BookingError(ErrorKind.ALREADY_CANCELED, "Booking is already canceled")

            today = clock.today()
            ledger.cancel_class_booking(db, booking, today)
    except BookingError as exc:
        logger.info(
            "Class cancellation refused: booking=%s member=%s kind=%s",
            booking_id, member_id, exc.kind.value,
        )
        raise

    logger.info("Canceled class booking %s for member %s", booking_id, member_id)
    return ClassCancelResult(
        booking_id=booking_id,
        member_id=member_id,
        status=ClassBookingStatus.CANCELED.value,
        booking_end_date=today,
    )


def list_available(db: Session, on_date) -> List[AvailableClass]:
    """Classes running on a date with their seat counts. Takes no locks."""
    day = parse_date(on_date)
    with reading(db, "available classes listing"):
        return availability.available_classes(db, day)

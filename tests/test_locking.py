"""
Workflows running while another session holds the SQLite write lock.
"""

from datetime import datetime, time, timedelta

import pytest
from sqlalchemy import func, select

from gym_booking import class_booking, clock, trainer_booking
from gym_booking.db import begin_write, make_engine, make_session_factory
from gym_booking.errors import BookingError, ErrorKind
from gym_booking.models import ClassBooking, TrainerBooking

DAY = clock.today() + timedelta(days=7)


@pytest.fixture
def impatient_factory(db_url, session_factory):
    # second engine on the same file that gives up on the write lock quickly
    engine = make_engine(db_url, lock_wait_seconds=0.2)
    try:
        yield make_session_factory(engine)
    finally:
        engine.dispose()


def _hold_write_lock(session_factory, *rows):
    """Open a write transaction, flush rows into it and leave it uncommitted."""
    db = session_factory()
    begin_write(db)
    db.add_all(rows)
    db.flush()
    return db


def _release(db):
    db.rollback()
    db.close()


def test_browse_does_not_wait_for_open_writer(
    session_factory, impatient_factory, make_availability
):
    make_availability(trainer_id=1, on_date=DAY)
    starts_at = datetime.combine(DAY, time(9, 0))
    writer = _hold_write_lock(
        session_factory,
        TrainerBooking(
            trainer_id=1,
            member_id=50,
            starts_at=starts_at,
            ends_at=starts_at + timedelta(minutes=30),
            duration_minutes=30,
            status="Pending",
        ),
    )

    reader = impatient_factory()
    try:
        slots = trainer_booking.browse(reader, 1, DAY)
    finally:
        reader.close()
        _release(writer)

    # the writer's pending row is not visible until it commits
    assert len(slots) == 1
    assert slots[0].current_bookings == 0


def test_class_listing_does_not_wait_for_open_writer(
    session_factory, impatient_factory, make_schedule
):
    schedule_id = make_schedule(on_date=DAY)
    writer = _hold_write_lock(
        session_factory,
        ClassBooking(schedule_id=schedule_id, member_id=7, starts_on=DAY, status="Active"),
    )

    reader = impatient_factory()
    try:
        rows = class_booking.list_available(reader, DAY)
    finally:
        reader.close()
        _release(writer)

    assert [r.schedule_id for r in rows] == [schedule_id]
    assert rows[0].booked_count == 0


def test_register_gives_up_when_lock_wait_runs_out(
    session_factory, impatient_factory, make_schedule
):
    schedule_id = make_schedule()
    writer = _hold_write_lock(session_factory)

    impatient = impatient_factory()
    try:
        with pytest.raises(BookingError) as exc:
            class_booking.register(impatient, 5, schedule_id)
    finally:
        impatient.close()
        _release(writer)

    assert exc.value.kind is ErrorKind.STORAGE_FAILURE

    db = session_factory()
    try:
        assert db.execute(select(func.count(ClassBooking.id))).scalar_one() == 0
    finally:
        db.close()

    # the lock is free again once the writer is gone
    db = impatient_factory()
    try:
        assert class_booking.register(db, 5, schedule_id).status == "Active"
    finally:
        db.close()

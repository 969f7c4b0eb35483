# tests/conftest.py
import os
import tempfile
from datetime import time, timedelta

import pytest
from fastapi.testclient import TestClient

os.environ["SKIP_DB_INIT"] = "1"

from gym_booking.db import Base, get_db, make_engine, make_session_factory  # noqa: E402
from gym_booking.main import app  # noqa: E402
from gym_booking.models import (  # noqa: E402
    Class,
    ClassBooking,
    ClassSchedule,
    TrainerAvailability,
    TrainerBooking,
)
from gym_booking.registry import day_of_week  # noqa: E402


@pytest.fixture(scope="function")
def db_url():
    # temp DB
    tmp = tempfile.NamedTemporaryFile(suffix=".db", delete=False)
    tmp.close()
    try:
        yield f"sqlite:///{tmp.name}"
    finally:
        os.unlink(tmp.name)


@pytest.fixture(scope="function")
def session_factory(db_url):
    # test engine / Session
    engine = make_engine(db_url)
    Base.metadata.create_all(bind=engine)
    try:
        yield make_session_factory(engine)
    finally:
        engine.dispose()


@pytest.fixture
def run(session_factory):
    """Call a workflow operation with its own short-lived session."""
    def _run(operation, *args, **kwargs):
        db = session_factory()
        try:
            return operation(db, *args, **kwargs)
        finally:
            db.close()
    return _run


@pytest.fixture
def fetch(session_factory):
    """Load one row in a throwaway session so no transaction stays open."""
    def _fetch(model, row_id):
        db = session_factory()
        try:
            return db.get(model, row_id)
        finally:
            db.close()
    return _fetch


@pytest.fixture
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


def _add(session_factory, obj):
    db = session_factory()
    try:
        db.add(obj)
        db.commit()
        return obj.id
    finally:
        db.close()


# —— Factories ——
@pytest.fixture
def make_schedule(session_factory):
    def _make_schedule(
        on_date=None,
        capacity=3,
        valid_from=None,
        valid_until=None,
        class_active=True,
        day="MON",
        name="Spin",
    ):
        class_id = _add(session_factory, Class(name=name, is_active=class_active))
        if on_date is not None:
            day = day_of_week(on_date)
        return _add(
            session_factory,
            ClassSchedule(
                class_id=class_id,
                day_of_week=day,
                start_time=time(18, 0),
                end_time=time(19, 0),
                capacity=capacity,
                valid_from=valid_from,
                valid_until=valid_until,
            ),
        )
    return _make_schedule


@pytest.fixture
def make_class_booking(session_factory):
    def _make_class_booking(schedule_id, member_id, starts_on, ends_on=None, status="Active"):
        return _add(
            session_factory,
            ClassBooking(
                schedule_id=schedule_id,
                member_id=member_id,
                starts_on=starts_on,
                ends_on=ends_on,
                status=status,
            ),
        )
    return _make_class_booking


@pytest.fixture
def make_availability(session_factory):
    def _make_availability(
        trainer_id=1,
        on_date=None,
        day=None,
        start=time(9, 0),
        end=time(10, 0),
        max_concurrent=1,
        status="Active",
    ):
        recurring = on_date is None
        return _add(
            session_factory,
            TrainerAvailability(
                trainer_id=trainer_id,
                is_recurring=recurring,
                day_of_week=day if recurring else None,
                specific_date=None if recurring else on_date,
                start_time=start,
                end_time=end,
                max_concurrent_bookings=max_concurrent,
                status=status,
            ),
        )
    return _make_availability


@pytest.fixture
def make_trainer_booking(session_factory):
    def _make_trainer_booking(trainer_id, member_id, starts_at, minutes=30, status="Pending"):
        return _add(
            session_factory,
            TrainerBooking(
                trainer_id=trainer_id,
                member_id=member_id,
                starts_at=starts_at,
                ends_at=starts_at + timedelta(minutes=minutes),
                duration_minutes=minutes,
                status=status,
            ),
        )
    return _make_trainer_booking

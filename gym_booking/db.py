import logging
from contextlib import contextmanager
from datetime import time, timedelta

from sqlalchemy import create_engine, event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from gym_booking import clock
from gym_booking.config import DATABASE_URL, LOCK_WAIT_SECONDS
from gym_booking.errors import BookingError, ErrorKind

logger = logging.getLogger(__name__)

Base = declarative_base()

# execution option marking a connection that will write
WRITE_OPTION = "gym_booking_write"


def make_engine(url: str, lock_wait_seconds: float = LOCK_WAIT_SECONDS):
    """
    Build an engine whose write transactions can hold exclusive locks.

    SQLite has no row locks and ignores FOR UPDATE, so a write transaction
    (one started through ``begin_write``) is opened with BEGIN IMMEDIATE:
    writers serialize on the database lock and a waiter blocks for
    ``lock_wait_seconds`` before the store gives up. Every other transaction
    gets a plain deferred BEGIN and does not queue behind open writers.
    """
    if not url.startswith("sqlite"):
        return create_engine(url, pool_pre_ping=True)

    engine = create_engine(
        url, connect_args={"check_same_thread": False, "timeout": lock_wait_seconds}
    )

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin(conn):
        if conn.get_execution_options().get(WRITE_OPTION):
            conn.exec_driver_sql("BEGIN IMMEDIATE")
        else:
            conn.exec_driver_sql("BEGIN")

    return engine


def make_session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


engine = make_engine(DATABASE_URL)
SessionLocal = make_session_factory(engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def begin_write(db: Session):
    """Start the session's transaction as a writer (BEGIN IMMEDIATE on SQLite)."""
    return db.connection(execution_options={WRITE_OPTION: True})


def _storage_failure(exc: SQLAlchemyError, operation: str) -> BookingError:
    return BookingError(
        ErrorKind.STORAGE_FAILURE,
        f"Storage error during {operation}",
        {"cause": type(exc).__name__},
    )


@contextmanager
def transaction(db: Session, operation: str):
    """
    Scope one workflow's transaction: commit on success, roll back on any error.

    Locks taken inside the block (FOR UPDATE reads) are released by the
    commit or the rollback, on every exit path. A failing rollback is logged
    and swallowed so the caller sees the original error. Store errors,
    lock-wait timeouts included, surface as StorageFailure.
    The session must not have begun a transaction yet.
    """
    try:
        begin_write(db)
        yield db
        db.commit()
    except BookingError:
        _rollback_quietly(db, operation)
        raise
    except SQLAlchemyError as exc:
        _rollback_quietly(db, operation)
        raise _storage_failure(exc, operation) from exc
    except Exception:
        _rollback_quietly(db, operation)
        raise


@contextmanager
def reading(db: Session, operation: str):
    """Scope a lock-free read; the read transaction is ended on exit."""
    try:
        yield db
    except SQLAlchemyError as exc:
        raise _storage_failure(exc, operation) from exc
    finally:
        _rollback_quietly(db, operation)


def _rollback_quietly(db: Session, operation: str) -> None:
    try:
        db.rollback()
    except Exception:
        logger.exception("Rollback failed during %s", operation)


def init_db(bind=None):
    # Import models here to create tables
    from gym_booking.models import Class, ClassSchedule, TrainerAvailability

    bind = bind or engine
    Base.metadata.create_all(bind=bind)

    # Seed a demo class and trainer if the schedule is empty
    db: Session = Session(bind=bind)
    try:
        if not db.query(ClassSchedule).first():
            today = clock.today()
            yoga = Class(name="Morning Yoga", is_active=True)
            db.add(yoga)
            db.flush()
            db.add_all(
                ClassSchedule(
                    class_id=yoga.id,
                    day_of_week=day,
                    start_time=time(7, 0),
                    end_time=time(8, 0),
                    capacity=12,
                    valid_from=today - timedelta(days=30),
                )
                for day in ("MON", "WED", "FRI")
            )
        if not db.query(TrainerAvailability).first():
            db.add(
                TrainerAvailability(
                    trainer_id=1,
                    is_recurring=True,
                    day_of_week="TUE",
                    start_time=time(9, 0),
                    end_time=time(12, 0),
                    max_concurrent_bookings=2,
                )
            )
        db.commit()
    finally:
        db.close()

from datetime import date, datetime

from gym_booking.config import LOCAL_TZ


def now() -> datetime:
    """Current wall-clock time in the service timezone, without tzinfo (as stored)."""
    return datetime.now(LOCAL_TZ).replace(tzinfo=None)


def today() -> date:
    return datetime.now(LOCAL_TZ).date()


def to_local_naive(dt: datetime) -> datetime:
    # naive input is already local wall-clock time
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(LOCAL_TZ).replace(tzinfo=None)

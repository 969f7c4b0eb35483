import os
from zoneinfo import ZoneInfo

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./gym_booking.db")

# How long a locking read may wait for a row held by another transaction.
LOCK_WAIT_SECONDS = float(os.getenv("LOCK_WAIT_SECONDS", "5"))

# "today" and "now" are taken in this zone; availability windows are wall-clock times in it.
LOCAL_TZ = ZoneInfo(os.getenv("LOCAL_TZ", "UTC"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

import logging
import os

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from gym_booking.config import LOG_LEVEL
from gym_booking.db import init_db
from gym_booking.errors import BookingError, ErrorKind
from gym_booking.routers import classes, trainers

logging.basicConfig(
    level=LOG_LEVEL, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

STATUS_BY_KIND = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.NO_AVAILABILITY_SLOT: 404,
    ErrorKind.INACTIVE: 410,
    ErrorKind.ENDED: 410,
    ErrorKind.NOT_YET_AVAILABLE: 403,
    ErrorKind.UNAUTHORIZED: 403,
    ErrorKind.ALREADY_REGISTERED: 409,
    ErrorKind.ALREADY_CANCELED: 409,
    ErrorKind.INVALID_STATUS_TRANSITION: 409,
    ErrorKind.CAPACITY_EXCEEDED: 409,
    ErrorKind.SLOT_FULL: 409,
    ErrorKind.MEMBER_TIME_CONFLICT: 409,
    ErrorKind.INVALID_INPUT: 400,
    ErrorKind.STORAGE_FAILURE: 500,
}

app = FastAPI(title="Gym Booking API", version="0.1.0")

app.include_router(classes.router, prefix="/classes", tags=["classes"])
app.include_router(trainers.router, prefix="/trainers", tags=["trainers"])


@app.exception_handler(BookingError)
async def booking_error_handler(request: Request, exc: BookingError):
    status_code = STATUS_BY_KIND.get(exc.kind, 500)
    if status_code >= 500:
        logger.error("%s %s failed: %r", request.method, request.url.path, exc, exc_info=exc)
    return JSONResponse(status_code=status_code, content=exc.to_dict())


@app.on_event("startup")
def on_startup():
    if os.getenv("SKIP_DB_INIT") == "1":
        return
    init_db()


@app.get("/")
def root():
    return {"ok": True, "service": "gym-booking-api"}


@app.get("/health")
def health():
    return {"status": "running"}

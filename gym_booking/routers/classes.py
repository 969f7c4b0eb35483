from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from gym_booking import class_booking
from gym_booking.db import get_db
from gym_booking.schemas import CancelBody, RegisterBody

router = APIRouter()


@router.get("/available")
def list_available_classes(date: str = Query(...), db: Session = Depends(get_db)):
    """
    Class schedules running on a date with their seat counts.

    Informational only: a seat shown here is re-checked under lock on register.
    """
    classes = class_booking.list_available(db, date)
    return {"date": date, "classes": classes, "count": len(classes)}


@router.post("", status_code=201)
def register_for_class(body: RegisterBody, db: Session = Depends(get_db)):
    return class_booking.register(db, body.member_id, body.class_schedule_id)


@router.post("/cancel")
def cancel_booking(body: CancelBody, db: Session = Depends(get_db)):
    # Only the owning member can cancel an active booking
    return class_booking.cancel(db, body.booking_id, body.member_id)

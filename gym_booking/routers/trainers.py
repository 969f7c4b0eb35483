from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from gym_booking import trainer_booking
from gym_booking.db import get_db
from gym_booking.schemas import ConfirmBody, RejectBody, TrainerRequestBody

router = APIRouter()


@router.get("/{trainer_id}/availability")
def trainer_availability(trainer_id: int, date: str = Query(...), db: Session = Depends(get_db)):
    slots = trainer_booking.browse(db, trainer_id, date)
    return {
        "trainer_id": trainer_id,
        "date": date,
        "available_slots": slots,
        "slot_count": len(slots),
    }


@router.post("", status_code=201)
def request_trainer_booking(body: TrainerRequestBody, db: Session = Depends(get_db)):
    """Create a Pending session request; the trainer confirms or rejects it later."""
    return trainer_booking.request_booking(
        db, body.member_id, body.trainer_id, body.start_time, body.duration_minutes, body.note
    )


@router.post("/confirm")
def confirm_trainer_booking(body: ConfirmBody, db: Session = Depends(get_db)):
    return trainer_booking.confirm(db, body.booking_id, body.trainer_id)


@router.post("/reject")
def reject_trainer_booking(body: RejectBody, db: Session = Depends(get_db)):
    return trainer_booking.reject(db, body.booking_id, body.trainer_id, body.reason)

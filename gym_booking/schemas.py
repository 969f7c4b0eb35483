from datetime import date, datetime, time
from typing import Optional

from pydantic import BaseModel, Field, StrictInt

# —— Request bodies ——


class RegisterBody(BaseModel):
    member_id: int = Field(gt=0)
    class_schedule_id: int = Field(gt=0)


class CancelBody(BaseModel):
    booking_id: int = Field(gt=0)
    member_id: int = Field(gt=0)


class TrainerRequestBody(BaseModel):
    member_id: int = Field(gt=0)
    trainer_id: int = Field(gt=0)
    start_time: str  # "YYYY-MM-DD HH:MM:SS" or ISO 8601
    duration_minutes: StrictInt
    note: Optional[str] = None


class ConfirmBody(BaseModel):
    booking_id: int = Field(gt=0)
    trainer_id: int = Field(gt=0)


class RejectBody(BaseModel):
    booking_id: int = Field(gt=0)
    trainer_id: int = Field(gt=0)
    reason: Optional[str] = None


# —— Result records ——


class ClassBookingResult(BaseModel):
    booking_id: int
    member_id: int
    class_schedule_id: int
    booking_start_date: date
    booking_end_date: Optional[date] = None
    status: str
    remaining_capacity: int


class ClassCancelResult(BaseModel):
    booking_id: int
    member_id: int
    status: str
    booking_end_date: date


class TrainerBookingResult(BaseModel):
    booking_id: int
    trainer_id: int
    member_id: int
    start_time: datetime
    end_time: datetime
    duration_minutes: int
    status: str
    note: Optional[str] = None
    rejection_reason: Optional[str] = None


class AvailableClass(BaseModel):
    schedule_id: int
    class_name: str
    date: date
    start_time: time
    end_time: time
    capacity: int
    trainer_id: Optional[int] = None
    booked_count: int
    available_slots: int
    is_full: bool


class TrainerSlot(BaseModel):
    availability_id: int
    trainer_id: int
    date: date
    start_time: time
    end_time: time
    max_concurrent_bookings: int
    current_bookings: int
    remaining_spots: int
    is_available: bool
    is_recurring: bool
    type: str

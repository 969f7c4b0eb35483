from datetime import datetime
from enum import Enum

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Time,
)
from sqlalchemy.orm import relationship

from gym_booking.db import Base

DAY_TAGS = ("MON", "TUE", "WED", "THU", "FRI", "SAT", "SUN")


class ClassBookingStatus(str, Enum):
    ACTIVE = "Active"
    CANCELED = "Canceled"


class TrainerBookingStatus(str, Enum):
    PENDING = "Pending"
    CONFIRMED = "Confirmed"
    REJECTED = "Rejected"


# statuses that occupy a capacity slot
CLASS_COUNTING_STATUSES = (ClassBookingStatus.ACTIVE.value,)
TRAINER_COUNTING_STATUSES = (
    TrainerBookingStatus.PENDING.value,
    TrainerBookingStatus.CONFIRMED.value,
)

_day_list = ",".join(f"'{d}'" for d in DAY_TAGS)


def _utcnow():
    return datetime.utcnow()


class Class(Base):
    __tablename__ = "classes"
    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)

    schedules = relationship("ClassSchedule", back_populates="klass")


class ClassSchedule(Base):
    __tablename__ = "class_schedules"
    id = Column(Integer, primary_key=True)
    class_id = Column(Integer, ForeignKey("classes.id", ondelete="CASCADE"), nullable=False)
    trainer_id = Column(Integer, nullable=True)
    day_of_week = Column(String(3), nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    capacity = Column(Integer, nullable=False)
    valid_from = Column(Date, nullable=True)  # NULL = no lower bound
    valid_until = Column(Date, nullable=True)  # NULL = no upper bound

    klass = relationship("Class", back_populates="schedules")

    __table_args__ = (
        CheckConstraint("capacity > 0", name="schedule_capacity_positive"),
        CheckConstraint(f"day_of_week in ({_day_list})", name="schedule_day_valid"),
    )


class ClassBooking(Base):
    __tablename__ = "class_bookings"
    id = Column(Integer, primary_key=True)
    schedule_id = Column(
        Integer, ForeignKey("class_schedules.id", ondelete="CASCADE"), nullable=False
    )
    member_id = Column(Integer, nullable=False)
    starts_on = Column(Date, nullable=False)
    ends_on = Column(Date, nullable=True)  # NULL = open-ended
    status = Column(String, nullable=False, default=ClassBookingStatus.ACTIVE.value)
    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow)

    __table_args__ = (
        CheckConstraint("status in ('Active','Canceled')", name="class_booking_status_valid"),
        Index("ix_class_bookings_schedule_status", "schedule_id", "status"),
        Index("ix_class_bookings_member", "member_id", "schedule_id"),
    )


class TrainerAvailability(Base):
    """A trainer's declared window: one-off (specific_date) or weekly (day_of_week)."""

    __tablename__ = "trainer_availabilities"
    id = Column(Integer, primary_key=True)
    trainer_id = Column(Integer, nullable=False, index=True)
    is_recurring = Column(Boolean, nullable=False, default=True)
    day_of_week = Column(String(3), nullable=True)
    specific_date = Column(Date, nullable=True)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    max_concurrent_bookings = Column(Integer, nullable=False, default=1)
    status = Column(String, nullable=False, default="Active")

    __table_args__ = (
        CheckConstraint("max_concurrent_bookings > 0", name="availability_capacity_positive"),
        CheckConstraint("status in ('Active','Inactive')", name="availability_status_valid"),
        CheckConstraint(
            "(is_recurring AND day_of_week IS NOT NULL)"
            " OR (NOT is_recurring AND specific_date IS NOT NULL)",
            name="availability_kind_valid",
        ),
    )


class TrainerBooking(Base):
    __tablename__ = "trainer_bookings"
    id = Column(Integer, primary_key=True)
    trainer_id = Column(Integer, nullable=False)
    member_id = Column(Integer, nullable=False)
    starts_at = Column(DateTime, nullable=False)
    ends_at = Column(DateTime, nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    status = Column(String, nullable=False, default=TrainerBookingStatus.PENDING.value)
    note = Column(String, nullable=True)
    rejection_reason = Column(String, nullable=True)
    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow)

    __table_args__ = (
        CheckConstraint(
            "status in ('Pending','Confirmed','Rejected')", name="trainer_booking_status_valid"
        ),
        CheckConstraint("duration_minutes > 0", name="trainer_booking_duration_positive"),
        Index("ix_trainer_bookings_trainer_span", "trainer_id", "status", "starts_at", "ends_at"),
        Index("ix_trainer_bookings_member_span", "member_id", "status", "starts_at", "ends_at"),
    )

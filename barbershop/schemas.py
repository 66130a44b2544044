# barbershop/schemas.py

from pydantic import BaseModel, Field
from enum import Enum
from datetime import datetime, date
from typing import List, Optional
from uuid import UUID

from barbershop.domain.entities import Appointment, Barber, TimeSlot, User


class SlotStatus(str, Enum):
    free = "free"
    taken = "taken"


class AppointmentStatus(str, Enum):
    active = "active"
    cancelled = "cancelled"


class BarberCreate(BaseModel):
    first_name: str = Field(min_length=2)
    last_name: str = Field(min_length=2)


class BarberPublic(BaseModel):
    id: UUID
    first_name: str
    last_name: str

    @classmethod
    def from_domain(cls, barber: Barber) -> "BarberPublic":
        return cls(
            id=barber.id,
            first_name=barber.full_name.first_name,
            last_name=barber.full_name.last_name,
        )


class UserCreate(BaseModel):
    first_name: str = Field(min_length=2)
    last_name: str = Field(min_length=2)
    # E.164-ish: optional +, 7 to 15 digits
    phone_number: str = Field(pattern=r"^\+?[1-9]\d{6,14}$")


class UserPublic(BaseModel):
    id: UUID
    first_name: str
    last_name: str
    phone_number: str

    @classmethod
    def from_domain(cls, user: User) -> "UserPublic":
        return cls(
            id=user.id,
            first_name=user.full_name.first_name,
            last_name=user.full_name.last_name,
            phone_number=user.phone_number,
        )


class TimeSlotCreate(BaseModel):
    start_date_time: datetime
    duration: int = Field(gt=0)  # minutes


class DailySchedule(BaseModel):
    day_of_week: int = Field(ge=0, le=6)  # 0=Sun, 1=Mon ... 6=Sat
    start_time: str  # "HH:MM"
    end_time: str  # "HH:MM"
    duration: int = Field(gt=0)
    interval: Optional[int] = Field(default=None, gt=0)  # defaults to duration


class WeeklyScheduleCreate(BaseModel):
    start_date: date
    end_date: date
    daily_slots: List[DailySchedule] = Field(min_length=1)


class WeeklyScheduleResult(BaseModel):
    count: int
    message: str


class TimeSlotPublic(BaseModel):
    id: UUID
    barber_id: UUID
    start_date_time: datetime
    end_date_time: datetime
    duration: int
    is_booked: bool

    @classmethod
    def from_domain(cls, slot: TimeSlot) -> "TimeSlotPublic":
        return cls(
            id=slot.id,
            barber_id=slot.barber_id,
            start_date_time=slot.start,
            end_date_time=slot.end,
            duration=slot.window.duration,
            is_booked=slot.is_booked,
        )


class TimeSlotList(BaseModel):
    count: int
    time_slots: List[TimeSlotPublic]


class AppointmentCreate(BaseModel):
    user_id: UUID
    time_slot_id: UUID
    note: Optional[str] = Field(default=None, max_length=500)


class AppointmentPublic(BaseModel):
    id: UUID
    user_id: UUID
    barber_id: UUID
    time_slot: TimeSlotPublic
    is_cancelled: bool
    note: Optional[str] = None

    @classmethod
    def from_domain(cls, appointment: Appointment) -> "AppointmentPublic":
        return cls(
            id=appointment.id,
            user_id=appointment.user_id,
            barber_id=appointment.barber_id,
            time_slot=TimeSlotPublic.from_domain(appointment.time_slot),
            is_cancelled=appointment.is_cancelled,
            note=appointment.note,
        )


class AppointmentList(BaseModel):
    count: int
    appointments: List[AppointmentPublic]

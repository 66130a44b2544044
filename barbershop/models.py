# barbershop/models.py

from typing import Optional
from uuid import UUID

from pydantic import NaiveDatetime
from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field


class BarberRecord(SQLModel, table=True):
    __tablename__ = "barbers"

    id: UUID = Field(primary_key=True)
    first_name: str = Field(index=True)
    last_name: str = Field(index=True)


class UserRecord(SQLModel, table=True):
    __tablename__ = "users"

    id: UUID = Field(primary_key=True)
    first_name: str
    last_name: str
    phone_number: str


class TimeSlotRecord(SQLModel, table=True):
    __tablename__ = "time_slots"
    __table_args__ = (
        # backstop for two racing requests creating the same slot
        UniqueConstraint("barber_id", "start_time", name="uq_barber_slot_start"),
    )

    id: UUID = Field(primary_key=True)
    barber_id: UUID = Field(foreign_key="barbers.id", index=True)

    start_time: NaiveDatetime = Field(index=True)
    duration: int
    # shop-local, naive; end_time is start_time + duration for plain range queries
    end_time: NaiveDatetime = Field(index=True)
    is_booked: bool = False


class AppointmentRecord(SQLModel, table=True):
    __tablename__ = "appointments"

    id: UUID = Field(primary_key=True)
    user_id: UUID = Field(foreign_key="users.id", index=True)
    barber_id: UUID = Field(foreign_key="barbers.id", index=True)
    time_slot_id: UUID = Field(foreign_key="time_slots.id", index=True)
    is_cancelled: bool = False
    note: Optional[str] = None

# barbershop/domain/entities.py

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from barbershop.domain.time_window import TimeWindow
from barbershop.errors import BusinessRuleError, ValidationError

# Entities are frozen; every state change returns a new version with the same id.


@dataclass(frozen=True)
class FullName:
    first_name: str
    last_name: str

    def __post_init__(self):
        errors = []
        if len(self.first_name.strip()) < 2:
            errors.append(("first_name", "First name is required"))
        if len(self.last_name.strip()) < 2:
            errors.append(("last_name", "Last name is required"))
        if errors:
            raise ValidationError(errors)

    def __str__(self) -> str:
        return f"{self.first_name} {self.last_name}"


@dataclass(frozen=True)
class Barber:
    full_name: FullName
    id: UUID = field(default_factory=uuid4)


@dataclass(frozen=True)
class User:
    full_name: FullName
    phone_number: str
    id: UUID = field(default_factory=uuid4)


@dataclass(frozen=True)
class TimeSlot:
    barber_id: UUID
    window: TimeWindow
    is_booked: bool = False
    id: UUID = field(default_factory=uuid4)

    @property
    def start(self) -> datetime:
        return self.window.start

    @property
    def end(self) -> datetime:
        return self.window.end

    def book(self) -> "TimeSlot":
        if self.is_booked:
            raise BusinessRuleError("TimeSlot is already booked")
        return replace(self, is_booked=True)

    def unbook(self) -> "TimeSlot":
        if not self.is_booked:
            raise BusinessRuleError("TimeSlot is not booked")
        return replace(self, is_booked=False)

    def check_not_in_past(self, now: datetime) -> "TimeSlot":
        if self.window.in_the_past(now):
            raise BusinessRuleError(
                "This time slot date is in the past and cannot be booked"
            )
        return self


@dataclass(frozen=True)
class Appointment:
    user_id: UUID
    barber_id: UUID
    time_slot: TimeSlot
    is_cancelled: bool = False
    note: Optional[str] = None
    id: UUID = field(default_factory=uuid4)

    @property
    def time_slot_id(self) -> UUID:
        return self.time_slot.id

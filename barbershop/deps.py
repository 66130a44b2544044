# barbershop/deps.py

from datetime import datetime
from functools import lru_cache
from typing import Callable, Optional
from zoneinfo import ZoneInfo

from fastapi import Depends
from sqlalchemy.engine import Engine

from barbershop.config import Settings, get_settings
from barbershop.db import make_engine
from barbershop.domain.overlap import OverlapDetector
from barbershop.domain.policies import BusinessHoursPolicy
from barbershop.domain.scheduler import AppointmentScheduler
from barbershop.domain.weekly import WeeklyScheduleGenerator
from barbershop.services import (
    AppointmentService,
    BarberLocks,
    BarberService,
    TimeSlotService,
    UserService,
    WeeklyScheduleService,
)


class Container:
    """Composition root: everything is built once and shared across requests."""

    def __init__(
        self,
        settings: Settings,
        engine: Optional[Engine] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.settings = settings
        self.engine = engine or make_engine(settings.DATABASE_URL)
        self.tz = ZoneInfo(settings.TIMEZONE)

        self.policy = BusinessHoursPolicy(
            hours_start=settings.HOURS_START,
            hours_end=settings.HOURS_END,
            cancellation_window_hours=settings.CANCELLATION_WINDOW_HOURS,
            clock=clock or self.shop_now,
        )
        self.detector = OverlapDetector()
        self.generator = WeeklyScheduleGenerator()
        self.scheduler = AppointmentScheduler(self.policy)
        self.locks = BarberLocks()

        common = {
            "batch_size": settings.WEEKLY_BATCH_SIZE,
            "production": settings.is_production,
        }
        self.barbers = BarberService(self.engine, **common)
        self.users = UserService(self.engine, **common)
        self.time_slots = TimeSlotService(
            self.engine, self.policy, self.detector, self.locks, self.tz, **common
        )
        self.weekly_schedules = WeeklyScheduleService(
            self.engine, self.generator, self.detector, self.locks, **common
        )
        self.appointments = AppointmentService(
            self.engine, self.scheduler, self.locks, **common
        )

    def shop_now(self) -> datetime:
        # naive shop-local time, same representation as stored slots
        return datetime.now(self.tz).replace(tzinfo=None)


@lru_cache
def get_container() -> Container:
    return Container(get_settings())


def get_barber_service(container: Container = Depends(get_container)) -> BarberService:
    return container.barbers


def get_user_service(container: Container = Depends(get_container)) -> UserService:
    return container.users


def get_time_slot_service(container: Container = Depends(get_container)) -> TimeSlotService:
    return container.time_slots


def get_weekly_schedule_service(
    container: Container = Depends(get_container),
) -> WeeklyScheduleService:
    return container.weekly_schedules


def get_appointment_service(
    container: Container = Depends(get_container),
) -> AppointmentService:
    return container.appointments

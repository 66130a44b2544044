# barbershop/services.py

import logging
import threading
from contextlib import contextmanager
from datetime import date, datetime
from typing import Dict, Iterator, List, Optional, Sequence
from uuid import UUID
from zoneinfo import ZoneInfo

from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from barbershop.domain.entities import Appointment, Barber, FullName, TimeSlot, User
from barbershop.domain.overlap import OverlapDetector
from barbershop.domain.policies import BusinessHoursPolicy
from barbershop.domain.scheduler import AppointmentScheduler
from barbershop.domain.time_window import TimeWindow
from barbershop.domain.weekly import DailyPattern, WeeklyScheduleGenerator
from barbershop.errors import (
    BusinessRuleError,
    DomainError,
    NotFoundError,
    UnexpectedError,
    ValidationError,
)
from barbershop.repositories import UnitOfWork, unit_of_work

logger = logging.getLogger(__name__)

SLOT_STATUS = {"free": False, "taken": True}
APPOINTMENT_STATUS = {"active": False, "cancelled": True}


def to_shop_time(value: datetime, tz: ZoneInfo) -> datetime:
    """Aware datetimes become naive shop-local time; naive ones already are."""
    if value.tzinfo is None:
        return value
    return value.astimezone(tz).replace(tzinfo=None)


class BarberLocks:
    """One lock per barber; slot check-then-write runs under it."""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[UUID, threading.Lock] = {}

    def __call__(self, barber_id: UUID) -> threading.Lock:
        with self._guard:
            return self._locks.setdefault(barber_id, threading.Lock())


class BaseService:
    def __init__(self, engine: Engine, batch_size: int = 200, production: bool = False):
        self.engine = engine
        self.batch_size = batch_size
        self.production = production

    @contextmanager
    def _transaction(
        self, conflict_message: str = "The change conflicts with an existing record"
    ) -> Iterator[UnitOfWork]:
        with unit_of_work(self.engine, batch_size=self.batch_size) as uow:
            try:
                yield uow
            except DomainError:
                raise
            except IntegrityError as exc:
                logger.warning(f"Integrity error, rolled back: {exc.orig}")
                raise BusinessRuleError(conflict_message) from exc
            except SQLAlchemyError as exc:
                logger.exception("Storage failure, rolled back")
                raise UnexpectedError(exc, production=self.production) from exc


class BarberService(BaseService):
    def create_barber(self, first_name: str, last_name: str) -> Barber:
        barber = Barber(full_name=FullName(first_name, last_name))
        with self._transaction() as uow:
            uow.barbers.save(barber)
            uow.commit()
        logger.info(f"Created barber {barber.id} ({barber.full_name})")
        return barber

    def get_barber(self, barber_id: UUID) -> Barber:
        with self._transaction() as uow:
            barber = uow.barbers.find_by_id(barber_id)
        if barber is None:
            raise NotFoundError("Barber", barber_id)
        return barber

    def list_barbers(self) -> List[Barber]:
        with self._transaction() as uow:
            return uow.barbers.find_all()

    def find_by_name(self, first_name: str, last_name: str) -> Barber:
        full_name = FullName(first_name, last_name)
        with self._transaction() as uow:
            barber = uow.barbers.find_by_name(full_name)
        if barber is None:
            raise NotFoundError("Barber")
        return barber


class UserService(BaseService):
    def create_user(self, first_name: str, last_name: str, phone_number: str) -> User:
        user = User(full_name=FullName(first_name, last_name), phone_number=phone_number)
        with self._transaction() as uow:
            uow.users.save(user)
            uow.commit()
        logger.info(f"Created user {user.id}")
        return user

    def get_user(self, user_id: UUID) -> User:
        with self._transaction() as uow:
            user = uow.users.find_by_id(user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        return user

    def list_users(self) -> List[User]:
        with self._transaction() as uow:
            return uow.users.find_all()


class TimeSlotService(BaseService):
    def __init__(
        self,
        engine: Engine,
        policy: BusinessHoursPolicy,
        detector: OverlapDetector,
        locks: BarberLocks,
        tz: ZoneInfo,
        **kwargs,
    ):
        super().__init__(engine, **kwargs)
        self.policy = policy
        self.detector = detector
        self.locks = locks
        self.tz = tz

    def get_time_slot(self, slot_id: UUID) -> TimeSlot:
        with self._transaction() as uow:
            slot = uow.slots.find_by_id(slot_id)
        if slot is None:
            raise NotFoundError("TimeSlot", slot_id)
        return slot

    def list_for_barber(self, barber_id: UUID, status: Optional[str] = None) -> List[TimeSlot]:
        if status is not None and status not in SLOT_STATUS:
            raise ValidationError([("status", "status must be 'free' or 'taken'")])
        with self._transaction() as uow:
            if uow.barbers.find_by_id(barber_id) is None:
                raise NotFoundError("Barber", barber_id)
            return uow.slots.find_by_barber(barber_id, SLOT_STATUS.get(status))

    def create_time_slot(self, barber_id: UUID, start: datetime, duration: int) -> TimeSlot:
        # 1) Validate the window, then shop hours (new slots only)
        window = TimeWindow(to_shop_time(start, self.tz), duration)
        self.policy.check_business_hours(window.start)

        with self.locks(barber_id), self._transaction(
            "Cannot create a timeslot that overlaps with an existing one"
        ) as uow:
            # 2) Barber must exist; lock its row for the check-then-write
            if uow.barbers.lock(barber_id) is None:
                raise NotFoundError("Barber", barber_id)

            # 3) Reject overlaps with this barber's slots
            self.detector.check_single(uow.slots, barber_id, window)

            # 4) Persist
            slot = TimeSlot(barber_id=barber_id, window=window)
            uow.slots.save(slot)
            uow.commit()

        logger.info(f"Created time slot {slot.id} for barber {barber_id} at {window}")
        return slot

    def delete_time_slot(self, slot_id: UUID, barber_id: UUID) -> None:
        with self.locks(barber_id), self._transaction() as uow:
            slot = uow.slots.find_by_id(slot_id)
            if slot is None or slot.barber_id != barber_id:
                raise NotFoundError("TimeSlot", slot_id)
            if slot.is_booked:
                logger.warning(f"Refused to delete booked time slot {slot_id}")
                raise BusinessRuleError("Cannot delete a timeslot that is currently booked")
            # cancelled appointments keep their link to the slot
            if uow.appointments.exists_for_slot(slot_id):
                logger.warning(f"Refused to delete time slot {slot_id} with appointment history")
                raise BusinessRuleError("Cannot delete a timeslot that has appointment history")
            uow.slots.delete(slot_id)
            uow.commit()
        logger.info(f"Deleted time slot {slot_id} of barber {barber_id}")


class WeeklyScheduleService(BaseService):
    def __init__(
        self,
        engine: Engine,
        generator: WeeklyScheduleGenerator,
        detector: OverlapDetector,
        locks: BarberLocks,
        **kwargs,
    ):
        super().__init__(engine, **kwargs)
        self.generator = generator
        self.detector = detector
        self.locks = locks

    def create_weekly_schedule(
        self,
        barber_id: UUID,
        start_date: date,
        end_date: date,
        patterns: Sequence[DailyPattern],
    ) -> List[TimeSlot]:
        with self.locks(barber_id), self._transaction(
            "Cannot create a timeslot that overlaps with an existing one"
        ) as uow:
            if uow.barbers.lock(barber_id) is None:
                raise NotFoundError("Barber", barber_id)

            windows = self.generator.generate(barber_id, start_date, end_date, patterns)
            candidates = [TimeSlot(barber_id=barber_id, window=w) for w in windows]

            # all or nothing: any conflict rejects the whole batch
            self.detector.check_batch(uow.slots, barber_id, candidates)
            saved = uow.slots.save_batch(candidates)
            uow.commit()

        logger.info(
            f"Created {len(saved)} time slots for barber {barber_id} from {start_date} to {end_date}"
        )
        return saved


class AppointmentService(BaseService):
    def __init__(
        self,
        engine: Engine,
        scheduler: AppointmentScheduler,
        locks: BarberLocks,
        **kwargs,
    ):
        super().__init__(engine, **kwargs)
        self.scheduler = scheduler
        self.locks = locks

    def get_appointment(self, appointment_id: UUID) -> Appointment:
        with self._transaction() as uow:
            appointment = uow.appointments.find_by_id(appointment_id)
        if appointment is None:
            raise NotFoundError("Appointment", appointment_id)
        return appointment

    def list_appointments(self, status: Optional[str] = None) -> List[Appointment]:
        if status is not None and status not in APPOINTMENT_STATUS:
            raise ValidationError([("status", "status must be 'active' or 'cancelled'")])
        with self._transaction() as uow:
            return uow.appointments.find_all(APPOINTMENT_STATUS.get(status))

    def list_for_user(self, user_id: UUID) -> List[Appointment]:
        with self._transaction() as uow:
            if uow.users.find_by_id(user_id) is None:
                raise NotFoundError("User", user_id)
            return uow.appointments.find_by_user(user_id)

    def list_for_barber(self, barber_id: UUID) -> List[Appointment]:
        with self._transaction() as uow:
            if uow.barbers.find_by_id(barber_id) is None:
                raise NotFoundError("Barber", barber_id)
            return uow.appointments.find_by_barber(barber_id)

    def schedule_appointment(
        self, user_id: UUID, time_slot_id: UUID, note: Optional[str] = None
    ) -> Appointment:
        # 1) Resolve the slot's barber so we can take its lock
        barber_id = self._slot_barber(user_id, time_slot_id)

        with self.locks(barber_id), self._transaction() as uow:
            # 2) Re-read current state under the lock
            user = uow.users.find_by_id(user_id)
            slot = uow.slots.find_by_id(time_slot_id)
            if user is None:
                raise NotFoundError("User", user_id)
            if slot is None:
                raise NotFoundError("TimeSlot", time_slot_id)

            # 3) Domain transition: not in the past, book, create
            try:
                appointment = self.scheduler.schedule_appointment(user, slot, note)
            except BusinessRuleError as exc:
                logger.warning(f"Could not book slot {time_slot_id}: {exc.message}")
                raise

            # 4) Persist slot and appointment together
            uow.slots.save(appointment.time_slot, expect_booked=slot.is_booked)
            uow.appointments.save(appointment)
            uow.commit()

        logger.info(
            f"Scheduled appointment {appointment.id} for user {user_id} on slot {time_slot_id}"
        )
        return appointment

    def cancel_appointment(self, appointment_id: UUID) -> Appointment:
        barber_id = self.get_appointment(appointment_id).barber_id

        with self.locks(barber_id), self._transaction() as uow:
            appointment = uow.appointments.find_by_id(appointment_id)
            if appointment is None:
                raise NotFoundError("Appointment", appointment_id)

            try:
                cancelled = self.scheduler.cancel_appointment(appointment)
            except BusinessRuleError as exc:
                logger.warning(f"Could not cancel appointment {appointment_id}: {exc.message}")
                raise

            uow.slots.save(cancelled.time_slot, expect_booked=appointment.time_slot.is_booked)
            uow.appointments.save(cancelled)
            uow.commit()

        logger.info(f"Cancelled appointment {appointment_id}, slot {cancelled.time_slot_id} is free")
        return cancelled

    def _slot_barber(self, user_id: UUID, time_slot_id: UUID) -> UUID:
        with self._transaction() as uow:
            if uow.users.find_by_id(user_id) is None:
                raise NotFoundError("User", user_id)
            slot = uow.slots.find_by_id(time_slot_id)
        if slot is None:
            raise NotFoundError("TimeSlot", time_slot_id)
        return slot.barber_id

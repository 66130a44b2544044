# barbershop/repositories.py

from contextlib import contextmanager
from datetime import datetime
from typing import Iterator, List, Optional, Sequence
from uuid import UUID

from sqlalchemy.engine import Engine
from sqlmodel import Session, select

from barbershop.domain.entities import Appointment, Barber, FullName, TimeSlot, User
from barbershop.domain.time_window import TimeWindow
from barbershop.errors import BusinessRuleError, NotFoundError
from barbershop.models import AppointmentRecord, BarberRecord, TimeSlotRecord, UserRecord


# ---- mapping ----

def barber_to_domain(record: BarberRecord) -> Barber:
    return Barber(id=record.id, full_name=FullName(record.first_name, record.last_name))


def user_to_domain(record: UserRecord) -> User:
    return User(
        id=record.id,
        full_name=FullName(record.first_name, record.last_name),
        phone_number=record.phone_number,
    )


def slot_to_domain(record: TimeSlotRecord) -> TimeSlot:
    return TimeSlot(
        id=record.id,
        barber_id=record.barber_id,
        window=TimeWindow(record.start_time, record.duration),
        is_booked=record.is_booked,
    )


def slot_to_record(slot: TimeSlot) -> TimeSlotRecord:
    return TimeSlotRecord(
        id=slot.id,
        barber_id=slot.barber_id,
        start_time=slot.start,
        duration=slot.window.duration,
        end_time=slot.end,
        is_booked=slot.is_booked,
    )


def appointment_to_domain(record: AppointmentRecord, slot: TimeSlotRecord) -> Appointment:
    return Appointment(
        id=record.id,
        user_id=record.user_id,
        barber_id=record.barber_id,
        time_slot=slot_to_domain(slot),
        is_cancelled=record.is_cancelled,
        note=record.note,
    )


# ---- repositories ----

class BarberRepository:
    def __init__(self, session: Session):
        self.session = session

    def find_by_id(self, barber_id: UUID) -> Optional[Barber]:
        record = self.session.get(BarberRecord, barber_id)
        return barber_to_domain(record) if record else None

    def lock(self, barber_id: UUID) -> Optional[Barber]:
        """Row-lock the barber for the rest of the transaction (no-op on SQLite)."""
        record = self.session.exec(
            select(BarberRecord).where(BarberRecord.id == barber_id).with_for_update()
        ).first()
        return barber_to_domain(record) if record else None

    def find_all(self) -> List[Barber]:
        records = self.session.exec(
            select(BarberRecord).order_by(BarberRecord.last_name, BarberRecord.first_name)
        ).all()
        return [barber_to_domain(r) for r in records]

    def find_by_name(self, full_name: FullName) -> Optional[Barber]:
        record = self.session.exec(
            select(BarberRecord)
            .where(BarberRecord.first_name == full_name.first_name)
            .where(BarberRecord.last_name == full_name.last_name)
        ).first()
        return barber_to_domain(record) if record else None

    def save(self, barber: Barber) -> Barber:
        record = BarberRecord(
            id=barber.id,
            first_name=barber.full_name.first_name,
            last_name=barber.full_name.last_name,
        )
        self.session.merge(record)
        self.session.flush()
        return barber


class UserRepository:
    def __init__(self, session: Session):
        self.session = session

    def find_by_id(self, user_id: UUID) -> Optional[User]:
        record = self.session.get(UserRecord, user_id)
        return user_to_domain(record) if record else None

    def find_all(self) -> List[User]:
        records = self.session.exec(
            select(UserRecord).order_by(UserRecord.last_name, UserRecord.first_name)
        ).all()
        return [user_to_domain(r) for r in records]

    def save(self, user: User) -> User:
        record = UserRecord(
            id=user.id,
            first_name=user.full_name.first_name,
            last_name=user.full_name.last_name,
            phone_number=user.phone_number,
        )
        self.session.merge(record)
        self.session.flush()
        return user


class SlotRepository:
    def __init__(self, session: Session, batch_size: int = 200):
        self.session = session
        self.batch_size = batch_size

    def find_by_id(self, slot_id: UUID) -> Optional[TimeSlot]:
        record = self.session.get(TimeSlotRecord, slot_id)
        return slot_to_domain(record) if record else None

    def find_by_barber(self, barber_id: UUID, is_booked: Optional[bool] = None) -> List[TimeSlot]:
        stmt = select(TimeSlotRecord).where(TimeSlotRecord.barber_id == barber_id)
        if is_booked is not None:
            stmt = stmt.where(TimeSlotRecord.is_booked == is_booked)
        stmt = stmt.order_by(TimeSlotRecord.start_time)
        return [slot_to_domain(r) for r in self.session.exec(stmt).all()]

    def find_by_barber_and_range(
        self, barber_id: UUID, start: datetime, end: datetime
    ) -> List[TimeSlot]:
        """Slots of one barber intersecting [start, end)."""
        records = self.session.exec(
            select(TimeSlotRecord)
            .where(TimeSlotRecord.barber_id == barber_id)
            .where(TimeSlotRecord.start_time < end)
            .where(TimeSlotRecord.end_time > start)
            .order_by(TimeSlotRecord.start_time)
        ).all()
        return [slot_to_domain(r) for r in records]

    def save(self, slot: TimeSlot, expect_booked: Optional[bool] = None) -> TimeSlot:
        """Insert or update a slot.

        With ``expect_booked`` the stored row is re-read under a row lock and must
        still be in that state, otherwise another request got there first.
        """
        locking = expect_booked is not None
        record = self.session.get(
            TimeSlotRecord,
            slot.id,
            with_for_update=True if locking else None,
            populate_existing=locking,
        )
        if record is None:
            if locking:
                raise NotFoundError("TimeSlot", slot.id)
            self.session.add(slot_to_record(slot))
        else:
            if locking and record.is_booked != expect_booked:
                raise BusinessRuleError("TimeSlot was changed by another request")
            record.start_time = slot.start
            record.duration = slot.window.duration
            record.end_time = slot.end
            record.is_booked = slot.is_booked
            self.session.add(record)
        self.session.flush()
        return slot

    def save_batch(self, slots: Sequence[TimeSlot]) -> List[TimeSlot]:
        """Insert many new slots; the caller owns the transaction."""
        for i in range(0, len(slots), self.batch_size):
            batch = slots[i:i + self.batch_size]
            self.session.add_all([slot_to_record(s) for s in batch])
            self.session.flush()
        return list(slots)

    def delete(self, slot_id: UUID) -> None:
        record = self.session.get(TimeSlotRecord, slot_id)
        if record is not None:
            self.session.delete(record)
            self.session.flush()


class AppointmentRepository:
    def __init__(self, session: Session):
        self.session = session

    def _joined(self):
        return select(AppointmentRecord, TimeSlotRecord).join(
            TimeSlotRecord, AppointmentRecord.time_slot_id == TimeSlotRecord.id
        )

    def find_by_id(self, appointment_id: UUID) -> Optional[Appointment]:
        row = self.session.exec(
            self._joined().where(AppointmentRecord.id == appointment_id)
        ).first()
        return appointment_to_domain(*row) if row else None

    def find_all(self, is_cancelled: Optional[bool] = None) -> List[Appointment]:
        stmt = self._joined()
        if is_cancelled is not None:
            stmt = stmt.where(AppointmentRecord.is_cancelled == is_cancelled)
        stmt = stmt.order_by(TimeSlotRecord.start_time)
        return [appointment_to_domain(a, s) for a, s in self.session.exec(stmt).all()]

    def find_by_user(self, user_id: UUID) -> List[Appointment]:
        stmt = (
            self._joined()
            .where(AppointmentRecord.user_id == user_id)
            .order_by(TimeSlotRecord.start_time)
        )
        return [appointment_to_domain(a, s) for a, s in self.session.exec(stmt).all()]

    def find_by_barber(self, barber_id: UUID) -> List[Appointment]:
        stmt = (
            self._joined()
            .where(AppointmentRecord.barber_id == barber_id)
            .order_by(TimeSlotRecord.start_time)
        )
        return [appointment_to_domain(a, s) for a, s in self.session.exec(stmt).all()]

    def exists_for_slot(self, slot_id: UUID) -> bool:
        record = self.session.exec(
            select(AppointmentRecord.id).where(AppointmentRecord.time_slot_id == slot_id)
        ).first()
        return record is not None

    def save(self, appointment: Appointment) -> Appointment:
        record = AppointmentRecord(
            id=appointment.id,
            user_id=appointment.user_id,
            barber_id=appointment.barber_id,
            time_slot_id=appointment.time_slot_id,
            is_cancelled=appointment.is_cancelled,
            note=appointment.note,
        )
        self.session.merge(record)
        self.session.flush()
        return appointment


# ---- unit of work ----

class UnitOfWork:
    """One session, one transaction, all repositories."""

    def __init__(self, session: Session, batch_size: int = 200):
        self.session = session
        self.barbers = BarberRepository(session)
        self.users = UserRepository(session)
        self.slots = SlotRepository(session, batch_size=batch_size)
        self.appointments = AppointmentRepository(session)

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()


@contextmanager
def unit_of_work(engine: Engine, batch_size: int = 200) -> Iterator[UnitOfWork]:
    with Session(engine) as session:
        uow = UnitOfWork(session, batch_size=batch_size)
        try:
            yield uow
        except BaseException:
            uow.rollback()
            raise

# tests/test_services.py

from datetime import date, datetime, timezone
from uuid import uuid4

import pytest
from sqlalchemy.exc import OperationalError

from barbershop.deps import Container
from barbershop.domain.weekly import DailyPattern
from barbershop.errors import BusinessRuleError, NotFoundError, UnexpectedError, ValidationError
from barbershop.repositories import SlotRepository, unit_of_work

# NOW in conftest is Monday 2030-06-03 08:00
TUESDAY = datetime(2030, 6, 4)


def at(hour, minute=0, day=TUESDAY):
    return day.replace(hour=hour, minute=minute)


# ---- single slots ----

def test_create_time_slot_persists(container, barber):
    slot = container.time_slots.create_time_slot(barber.id, at(11), 30)
    assert container.time_slots.get_time_slot(slot.id) == slot
    assert container.time_slots.list_for_barber(barber.id) == [slot]


def test_overlapping_slot_for_same_barber_is_rejected(container, barber):
    container.time_slots.create_time_slot(barber.id, at(11), 30)
    with pytest.raises(BusinessRuleError, match="overlaps"):
        container.time_slots.create_time_slot(barber.id, at(11, 15), 30)
    assert len(container.time_slots.list_for_barber(barber.id)) == 1


def test_same_window_for_other_barber_is_accepted(container, barber, other_barber):
    container.time_slots.create_time_slot(barber.id, at(11), 30)
    slot = container.time_slots.create_time_slot(other_barber.id, at(11, 15), 30)
    assert slot.barber_id == other_barber.id


def test_adjacent_slot_is_accepted(container, barber):
    container.time_slots.create_time_slot(barber.id, at(11), 30)
    container.time_slots.create_time_slot(barber.id, at(11, 30), 30)
    assert len(container.time_slots.list_for_barber(barber.id)) == 2


def test_slot_outside_business_hours_is_rejected(container, barber):
    with pytest.raises(BusinessRuleError, match="between 9:00 and 23:00"):
        container.time_slots.create_time_slot(barber.id, at(7), 30)


def test_non_positive_duration_is_a_validation_error(container, barber):
    with pytest.raises(ValidationError):
        container.time_slots.create_time_slot(barber.id, at(11), 0)


def test_aware_start_is_converted_to_shop_time(container, barber):
    # 15:00 UTC is 11:00 in New York during DST
    slot = container.time_slots.create_time_slot(
        barber.id, datetime(2030, 6, 4, 15, 0, tzinfo=timezone.utc), 30
    )
    assert slot.start == at(11)


def test_unknown_barber(container):
    with pytest.raises(NotFoundError, match="Barber"):
        container.time_slots.create_time_slot(uuid4(), at(11), 30)


def test_list_by_status(container, barber, user):
    free = container.time_slots.create_time_slot(barber.id, at(11), 30)
    taken = container.time_slots.create_time_slot(barber.id, at(12), 30)
    container.appointments.schedule_appointment(user.id, taken.id)
    assert [s.id for s in container.time_slots.list_for_barber(barber.id, "free")] == [free.id]
    assert [s.id for s in container.time_slots.list_for_barber(barber.id, "taken")] == [taken.id]
    with pytest.raises(ValidationError):
        container.time_slots.list_for_barber(barber.id, "maybe")


# ---- deletion ----

def test_delete_free_slot(container, barber):
    slot = container.time_slots.create_time_slot(barber.id, at(11), 30)
    container.time_slots.delete_time_slot(slot.id, barber.id)
    with pytest.raises(NotFoundError):
        container.time_slots.get_time_slot(slot.id)


def test_delete_booked_slot_is_rejected(container, barber, user):
    slot = container.time_slots.create_time_slot(barber.id, at(11), 30)
    container.appointments.schedule_appointment(user.id, slot.id)
    with pytest.raises(BusinessRuleError, match="currently booked"):
        container.time_slots.delete_time_slot(slot.id, barber.id)


def test_delete_requires_owner(container, barber, other_barber):
    slot = container.time_slots.create_time_slot(barber.id, at(11), 30)
    with pytest.raises(NotFoundError):
        container.time_slots.delete_time_slot(slot.id, other_barber.id)
    assert container.time_slots.get_time_slot(slot.id) == slot


def test_delete_slot_with_cancelled_appointment_is_rejected(container, barber, user):
    slot = container.time_slots.create_time_slot(barber.id, at(11), 30)
    appointment = container.appointments.schedule_appointment(user.id, slot.id)
    container.appointments.cancel_appointment(appointment.id)

    with pytest.raises(BusinessRuleError, match="appointment history"):
        container.time_slots.delete_time_slot(slot.id, barber.id)

    assert container.appointments.get_appointment(appointment.id).is_cancelled
    assert [a.id for a in container.appointments.list_for_user(user.id)] == [appointment.id]


# ---- weekly schedule ----

def monday_morning():
    return [DailyPattern.parse(1, "09:00", "12:00", duration=60, interval=60)]


def test_weekly_schedule_persists_all_slots(container, barber):
    created = container.weekly_schedules.create_weekly_schedule(
        barber.id, date(2030, 6, 3), date(2030, 6, 30), monday_morning()
    )
    assert len(created) == 12
    assert len(container.time_slots.list_for_barber(barber.id)) == 12


def test_weekly_schedule_conflict_persists_nothing(container, barber):
    existing = container.time_slots.create_time_slot(barber.id, at(10, 30, day=datetime(2030, 6, 17)), 60)
    with pytest.raises(BusinessRuleError, match="overlaps with an existing one"):
        container.weekly_schedules.create_weekly_schedule(
            barber.id, date(2030, 6, 3), date(2030, 6, 30), monday_morning()
        )
    assert container.time_slots.list_for_barber(barber.id) == [existing]


def test_weekly_schedule_ignores_other_barbers(container, barber, other_barber):
    container.time_slots.create_time_slot(other_barber.id, at(9, day=datetime(2030, 6, 3)), 60)
    created = container.weekly_schedules.create_weekly_schedule(
        barber.id, date(2030, 6, 3), date(2030, 6, 9), monday_morning()
    )
    assert len(created) == 3


def test_weekly_schedule_overlapping_pattern_is_rejected(container, barber):
    patterns = [DailyPattern.parse(1, "09:00", "12:00", duration=60, interval=30)]
    with pytest.raises(BusinessRuleError, match="another new one"):
        container.weekly_schedules.create_weekly_schedule(
            barber.id, date(2030, 6, 3), date(2030, 6, 9), patterns
        )
    assert container.time_slots.list_for_barber(barber.id) == []


def test_weekly_schedule_unknown_barber(container):
    with pytest.raises(NotFoundError):
        container.weekly_schedules.create_weekly_schedule(
            uuid4(), date(2030, 6, 3), date(2030, 6, 9), monday_morning()
        )


# ---- appointments ----

def test_schedule_appointment_books_slot(container, barber, user):
    slot = container.time_slots.create_time_slot(barber.id, at(11), 30)
    appointment = container.appointments.schedule_appointment(user.id, slot.id, "beard trim")

    stored = container.appointments.get_appointment(appointment.id)
    assert stored == appointment
    assert container.time_slots.get_time_slot(slot.id).is_booked
    assert container.appointments.list_for_user(user.id) == [appointment]
    assert container.appointments.list_for_barber(barber.id) == [appointment]


def test_slot_backs_one_active_appointment(container, barber, user):
    slot = container.time_slots.create_time_slot(barber.id, at(11), 30)
    container.appointments.schedule_appointment(user.id, slot.id)
    with pytest.raises(BusinessRuleError, match="already booked"):
        container.appointments.schedule_appointment(user.id, slot.id)
    assert len(container.appointments.list_appointments()) == 1


def test_schedule_unknown_user_or_slot(container, barber, user):
    slot = container.time_slots.create_time_slot(barber.id, at(11), 30)
    with pytest.raises(NotFoundError, match="User"):
        container.appointments.schedule_appointment(uuid4(), slot.id)
    with pytest.raises(NotFoundError, match="TimeSlot"):
        container.appointments.schedule_appointment(user.id, uuid4())


def test_cancel_frees_slot_and_keeps_appointment(container, barber, user):
    # 13:00 today is five hours from NOW
    slot = container.time_slots.create_time_slot(barber.id, at(13, day=datetime(2030, 6, 3)), 30)
    appointment = container.appointments.schedule_appointment(user.id, slot.id)

    cancelled = container.appointments.cancel_appointment(appointment.id)

    assert cancelled.is_cancelled
    assert not container.time_slots.get_time_slot(slot.id).is_booked
    assert container.appointments.get_appointment(appointment.id).is_cancelled
    assert container.appointments.list_appointments("cancelled") == [cancelled]
    assert container.appointments.list_appointments("active") == []


def test_cancel_inside_window_changes_nothing(container, barber, user):
    # 09:00 today is one hour from NOW
    slot = container.time_slots.create_time_slot(barber.id, at(9, day=datetime(2030, 6, 3)), 30)
    appointment = container.appointments.schedule_appointment(user.id, slot.id)

    with pytest.raises(BusinessRuleError, match="Cannot cancel appointment"):
        container.appointments.cancel_appointment(appointment.id)

    assert container.time_slots.get_time_slot(slot.id).is_booked
    assert not container.appointments.get_appointment(appointment.id).is_cancelled


def test_cancelled_slot_can_be_booked_again(container, barber, user):
    slot = container.time_slots.create_time_slot(barber.id, at(11), 30)
    first = container.appointments.schedule_appointment(user.id, slot.id)
    container.appointments.cancel_appointment(first.id)

    second = container.appointments.schedule_appointment(user.id, slot.id)

    assert second.id != first.id
    assert len(container.appointments.list_appointments("active")) == 1


def test_unknown_appointment(container):
    with pytest.raises(NotFoundError, match="Appointment"):
        container.appointments.cancel_appointment(uuid4())


# ---- barbers and users ----

def test_find_barber_by_name(container, barber):
    assert container.barbers.find_by_name("Sweeney", "Todd") == barber
    with pytest.raises(NotFoundError):
        container.barbers.find_by_name("Benjamin", "Barker")


def test_list_barbers_and_users(container, barber, other_barber, user):
    assert {b.id for b in container.barbers.list_barbers()} == {barber.id, other_barber.id}
    assert container.users.list_users() == [user]


# ---- storage conflicts and faults ----

def failing_save_batch(monkeypatch):
    save_batch = SlotRepository.save_batch

    def save_first_then_fail(self, slots):
        save_batch(self, slots[:1])
        raise OperationalError("INSERT INTO time_slots", {}, Exception("disk I/O error"))

    monkeypatch.setattr(SlotRepository, "save_batch", save_first_then_fail)


def test_duplicate_start_is_a_business_rule_error(container, barber, monkeypatch):
    container.time_slots.create_time_slot(barber.id, at(11), 30)
    # let the row reach the unique constraint
    monkeypatch.setattr(
        container.time_slots.detector,
        "check_single",
        lambda slots, barber_id, window, exclude_id=None: window,
    )
    with pytest.raises(BusinessRuleError, match="overlaps with an existing one"):
        container.time_slots.create_time_slot(barber.id, at(11), 60)
    assert len(container.time_slots.list_for_barber(barber.id)) == 1


def test_stale_slot_write_is_rejected(container, engine, barber, user):
    slot = container.time_slots.create_time_slot(barber.id, at(11), 30)
    stale = container.time_slots.get_time_slot(slot.id)
    container.appointments.schedule_appointment(user.id, slot.id)

    with pytest.raises(BusinessRuleError, match="changed by another request"):
        with unit_of_work(engine) as uow:
            uow.slots.save(stale.book(), expect_booked=stale.is_booked)

    assert len(container.appointments.list_appointments()) == 1


def test_stale_write_to_deleted_slot_is_not_found(container, engine, barber):
    slot = container.time_slots.create_time_slot(barber.id, at(11), 30)
    container.time_slots.delete_time_slot(slot.id, barber.id)

    with pytest.raises(NotFoundError):
        with unit_of_work(engine) as uow:
            uow.slots.save(slot.book(), expect_booked=False)


def test_storage_failure_in_batch_persists_nothing(container, barber, monkeypatch):
    failing_save_batch(monkeypatch)

    with pytest.raises(UnexpectedError) as exc_info:
        container.weekly_schedules.create_weekly_schedule(
            barber.id, date(2030, 6, 3), date(2030, 6, 30), monday_morning()
        )

    assert "disk I/O error" in exc_info.value.message
    assert isinstance(exc_info.value.cause, OperationalError)
    assert container.time_slots.list_for_barber(barber.id) == []


def test_storage_failure_message_is_generic_in_production(settings, engine, barber, monkeypatch):
    production = Container(
        settings.model_copy(update={"ENVIRONMENT": "production"}),
        engine=engine,
        clock=lambda: datetime(2030, 6, 3, 8, 0),
    )
    failing_save_batch(monkeypatch)

    with pytest.raises(UnexpectedError) as exc_info:
        production.weekly_schedules.create_weekly_schedule(
            barber.id, date(2030, 6, 3), date(2030, 6, 9), monday_morning()
        )

    assert exc_info.value.message == "An unexpected error occurred"
    assert production.time_slots.list_for_barber(barber.id) == []

# barbershop/domain/scheduler.py

from dataclasses import replace
from typing import Optional

from barbershop.domain.entities import Appointment, TimeSlot, User
from barbershop.domain.policies import BusinessHoursPolicy
from barbershop.errors import BusinessRuleError


class AppointmentScheduler:
    """Scheduled -> Cancelled. Cancelled is terminal."""

    def __init__(self, policy: BusinessHoursPolicy):
        self.policy = policy

    def schedule_appointment(
        self, user: User, time_slot: TimeSlot, note: Optional[str] = None
    ) -> Appointment:
        booked = time_slot.check_not_in_past(self.policy.now()).book()
        return Appointment(
            user_id=user.id,
            barber_id=booked.barber_id,
            time_slot=booked,
            note=note,
        )

    def cancel_appointment(self, appointment: Appointment) -> Appointment:
        if appointment.is_cancelled:
            raise BusinessRuleError("Appointment is already cancelled")
        if not self.policy.is_cancellable(appointment.time_slot.start):
            raise BusinessRuleError("Cannot cancel appointment")

        freed = appointment.time_slot.unbook()
        return replace(appointment, time_slot=freed, is_cancelled=True)

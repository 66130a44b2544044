# barbershop/domain/policies.py

from datetime import datetime, timedelta
from typing import Callable, Optional

from barbershop.errors import BusinessRuleError


class BusinessHoursPolicy:
    """Shop opening hours and the cancellation deadline.

    The last valid start is exactly ``hours_end:00``.
    """

    def __init__(
        self,
        hours_start: int = 9,
        hours_end: int = 23,
        cancellation_window_hours: int = 4,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.hours_start = hours_start
        self.hours_end = hours_end
        self.cancellation_window_hours = cancellation_window_hours
        self.clock = clock or datetime.now

    def now(self) -> datetime:
        return self.clock()

    def check_business_hours(self, instant: datetime) -> datetime:
        if instant.hour < self.hours_start or instant.hour > self.hours_end:
            raise BusinessRuleError(
                f"Time must be between {self.hours_start}:00 and {self.hours_end}:00"
            )
        if instant.hour == self.hours_end and instant.minute > 0:
            raise BusinessRuleError(f"Time cannot be after {self.hours_end}:00")
        return instant

    def cancellation_deadline(self) -> datetime:
        return self.now() + timedelta(hours=self.cancellation_window_hours)

    def is_cancellable(self, appointment_start: datetime) -> bool:
        return appointment_start > self.cancellation_deadline()

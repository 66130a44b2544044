# barbershop/domain/weekly.py

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import List, Optional, Sequence, Union
from uuid import UUID

from barbershop.domain.time_window import TimeWindow
from barbershop.errors import BusinessRuleError, ValidationError

logger = logging.getLogger(__name__)


def parse_clock(value: Union[str, time], field_name: str) -> time:
    """'HH:MM' -> time."""
    if isinstance(value, time):
        return value
    try:
        hours, minutes = str(value).split(":")
        return time(int(hours), int(minutes))
    except ValueError:
        raise ValidationError([(field_name, f"Invalid time '{value}', expected HH:MM")]) from None


def day_of_week(day: date) -> int:
    # 0=Sun, 1=Mon ... 6=Sat
    return (day.weekday() + 1) % 7


@dataclass(frozen=True)
class DailyPattern:
    day_of_week: int
    start_time: time
    end_time: time
    duration: int
    interval: Optional[int] = None

    def __post_init__(self):
        errors = []
        if not 0 <= self.day_of_week <= 6:
            errors.append(("day_of_week", "Day of week must be between 0 and 6"))
        if self.duration <= 0:
            errors.append(("duration", "Duration must be positive"))
        if self.interval is not None and self.interval <= 0:
            errors.append(("interval", "Interval must be positive"))
        if errors:
            raise ValidationError(errors)

    @classmethod
    def parse(cls, day_of_week, start_time, end_time, duration, interval=None) -> "DailyPattern":
        return cls(
            day_of_week=day_of_week,
            start_time=parse_clock(start_time, "start_time"),
            end_time=parse_clock(end_time, "end_time"),
            duration=duration,
            interval=interval,
        )

    @property
    def step(self) -> int:
        return self.interval or self.duration


class WeeklyScheduleGenerator:
    """Expands daily patterns over an inclusive date range into windows."""

    def generate(
        self,
        barber_id: UUID,
        start_date: date,
        end_date: date,
        patterns: Sequence[DailyPattern],
    ) -> List[TimeWindow]:
        if end_date <= start_date:
            raise BusinessRuleError("End date must be after start date")

        windows = []
        current = start_date
        while current <= end_date:
            # only the first pattern for a weekday applies
            pattern = next(
                (p for p in patterns if p.day_of_week == day_of_week(current)), None
            )
            if pattern is not None:
                windows.extend(self._windows_for_day(current, pattern))
            current += timedelta(days=1)

        logger.debug(
            f"Generated {len(windows)} windows for barber {barber_id} between {start_date} and {end_date}"
        )
        if not windows:
            raise BusinessRuleError(
                "No valid timeslots could be created with the provided schedule"
            )
        return windows

    @staticmethod
    def _windows_for_day(day: date, pattern: DailyPattern) -> List[TimeWindow]:
        duration = timedelta(minutes=pattern.duration)
        step = timedelta(minutes=pattern.step)
        cursor = datetime.combine(day, pattern.start_time)
        day_end = datetime.combine(day, pattern.end_time)

        windows = []
        while cursor + duration <= day_end:
            windows.append(TimeWindow(cursor, pattern.duration))
            cursor += step
        return windows

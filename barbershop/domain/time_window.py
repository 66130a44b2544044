# barbershop/domain/time_window.py

from dataclasses import dataclass
from datetime import datetime, timedelta

from barbershop.errors import ValidationError


@dataclass(frozen=True)
class TimeWindow:
    """Half-open interval [start, start + duration minutes)."""

    start: datetime
    duration: int

    def __post_init__(self):
        errors = []
        if not isinstance(self.start, datetime):
            errors.append(("start", "Start must be a datetime"))
        # bool is an int subclass
        if isinstance(self.duration, bool) or not isinstance(self.duration, int):
            errors.append(("duration", "Duration must be an integer number of minutes"))
        elif self.duration <= 0:
            errors.append(("duration", "Duration must be positive"))
        if errors:
            raise ValidationError(errors)

    @property
    def end(self) -> datetime:
        return self.start + timedelta(minutes=self.duration)

    def overlaps(self, other: "TimeWindow") -> bool:
        return overlaps(self, other)

    def in_the_past(self, now: datetime) -> bool:
        return self.start < now

    def __str__(self) -> str:
        return f"{self.start:%Y-%m-%d %H:%M}-{self.end:%H:%M}"


def overlaps(a: TimeWindow, b: TimeWindow) -> bool:
    # touching endpoints are adjacent, not overlapping
    return a.start < b.end and b.start < a.end

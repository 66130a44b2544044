# barbershop/domain/overlap.py

import logging
from datetime import datetime
from typing import Iterable, List, NamedTuple, Optional, Protocol, Sequence
from uuid import UUID

from barbershop.domain.entities import TimeSlot
from barbershop.domain.time_window import TimeWindow
from barbershop.errors import BusinessRuleError, ValidationError

logger = logging.getLogger(__name__)

TIME_FORMAT = "%Y-%m-%d %H:%M"

# end events sort before start events at the same instant (adjacency is allowed)
_END = 0
_START = 1


class SlotLookup(Protocol):
    def find_by_barber_and_range(
        self, barber_id: UUID, start: datetime, end: datetime
    ) -> List[TimeSlot]: ...


class Conflict(NamedTuple):
    candidate: TimeSlot
    other: TimeSlot
    other_is_existing: bool

    def describe(self) -> str:
        what = "an existing one" if self.other_is_existing else "another new one"
        return (
            f"Cannot create a timeslot at {self.candidate.start:{TIME_FORMAT}} "
            f"that overlaps with {what} at {self.other.start:{TIME_FORMAT}}"
        )


def find_conflict(
    window: TimeWindow,
    existing: Iterable[TimeSlot],
    exclude_id: Optional[UUID] = None,
) -> Optional[TimeSlot]:
    """First existing slot overlapping ``window``, ignoring ``exclude_id``."""
    for slot in existing:
        if exclude_id is not None and slot.id == exclude_id:
            continue
        if slot.window.overlaps(window):
            return slot
    return None


def sweep_conflicts(
    existing: Sequence[TimeSlot], candidates: Sequence[TimeSlot]
) -> Optional[Conflict]:
    """Sweep-line over existing and candidate slots, O(n log n).

    Reports the first overlap that involves at least one candidate.
    Overlaps between two existing slots are not ours to report.
    """
    events = []
    seq = 0
    for is_candidate, slots in ((False, existing), (True, candidates)):
        for slot in slots:
            events.append((slot.start, _START, seq, slot, is_candidate))
            events.append((slot.end, _END, seq, slot, is_candidate))
            seq += 1
    events.sort(key=lambda event: (event[0], event[1], event[2]))

    active_existing = {}
    active_candidates = {}

    for _, kind, _, slot, is_candidate in events:
        active = active_candidates if is_candidate else active_existing
        if kind == _END:
            active.pop(slot.id, None)
            continue

        if is_candidate and (active_existing or active_candidates):
            if active_existing:
                other = min(active_existing.values(), key=lambda s: s.start)
                return Conflict(slot, other, True)
            other = min(active_candidates.values(), key=lambda s: s.start)
            return Conflict(slot, other, False)

        # an existing slot that begins inside a candidate
        if not is_candidate and active_candidates:
            candidate = min(active_candidates.values(), key=lambda s: s.start)
            return Conflict(candidate, slot, True)

        active[slot.id] = slot

    return None


class OverlapDetector:
    """Per-barber overlap checks against persisted slots."""

    def check_single(
        self,
        slots: SlotLookup,
        barber_id: UUID,
        window: TimeWindow,
        exclude_id: Optional[UUID] = None,
    ) -> TimeWindow:
        existing = [
            s
            for s in slots.find_by_barber_and_range(barber_id, window.start, window.end)
            if s.barber_id == barber_id
        ]
        conflict = find_conflict(window, existing, exclude_id)
        if conflict is not None:
            logger.warning(
                f"Overlap for barber {barber_id}: {window} collides with slot {conflict.id} ({conflict.window})"
            )
            raise BusinessRuleError(
                "Cannot create a timeslot that overlaps with an existing one "
                f"at {conflict.start:{TIME_FORMAT}}"
            )
        return window

    def check_batch(
        self,
        slots: SlotLookup,
        barber_id: UUID,
        candidates: Sequence[TimeSlot],
    ) -> Sequence[TimeSlot]:
        if not candidates:
            return candidates
        if any(c.barber_id != barber_id for c in candidates):
            raise ValidationError(
                [("barber_id", "All candidates must belong to the barber being checked")]
            )

        range_start = min(c.start for c in candidates)
        range_end = max(c.end for c in candidates)
        existing = [
            s
            for s in slots.find_by_barber_and_range(barber_id, range_start, range_end)
            if s.barber_id == barber_id
        ]

        conflict = sweep_conflicts(existing, candidates)
        if conflict is not None:
            logger.warning(f"Batch overlap for barber {barber_id}: {conflict.describe()}")
            raise BusinessRuleError(conflict.describe())
        return candidates

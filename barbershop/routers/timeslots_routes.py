# barbershop/routers/timeslots_routes.py

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Response

from barbershop.deps import get_time_slot_service, get_weekly_schedule_service
from barbershop.domain.weekly import DailyPattern
from barbershop.schemas import (
    SlotStatus,
    TimeSlotCreate,
    TimeSlotList,
    TimeSlotPublic,
    WeeklyScheduleCreate,
    WeeklyScheduleResult,
)
from barbershop.services import TimeSlotService, WeeklyScheduleService

router = APIRouter(
    prefix="/timeslots",
    tags=["timeslots"],
)


@router.get("/barber/{barber_id}", response_model=TimeSlotList)
def list_barber_time_slots(
    barber_id: UUID,
    status: Optional[SlotStatus] = None,
    service: TimeSlotService = Depends(get_time_slot_service),
):
    slots = service.list_for_barber(barber_id, status.value if status else None)
    return {"count": len(slots), "time_slots": [TimeSlotPublic.from_domain(s) for s in slots]}


@router.post("/barber/{barber_id}", response_model=TimeSlotPublic, status_code=201)
def create_time_slot(
    barber_id: UUID,
    slot: TimeSlotCreate,
    service: TimeSlotService = Depends(get_time_slot_service),
):
    created = service.create_time_slot(barber_id, slot.start_date_time, slot.duration)
    return TimeSlotPublic.from_domain(created)


@router.post("/barber/{barber_id}/weekly", response_model=WeeklyScheduleResult, status_code=201)
def create_weekly_schedule(
    barber_id: UUID,
    schedule: WeeklyScheduleCreate,
    service: WeeklyScheduleService = Depends(get_weekly_schedule_service),
):
    # "HH:MM" strings are parsed (and rejected) by the domain pattern
    patterns = [
        DailyPattern.parse(
            day_of_week=d.day_of_week,
            start_time=d.start_time,
            end_time=d.end_time,
            duration=d.duration,
            interval=d.interval,
        )
        for d in schedule.daily_slots
    ]
    created = service.create_weekly_schedule(
        barber_id, schedule.start_date, schedule.end_date, patterns
    )
    return {
        "count": len(created),
        "message": f"Created {len(created)} time slots for barber",
    }


@router.delete("/barber/{barber_id}/{timeslot_id}", status_code=204)
def delete_time_slot(
    barber_id: UUID,
    timeslot_id: UUID,
    service: TimeSlotService = Depends(get_time_slot_service),
):
    service.delete_time_slot(timeslot_id, barber_id)
    return Response(status_code=204)


@router.get("/{timeslot_id}", response_model=TimeSlotPublic)
def get_time_slot(
    timeslot_id: UUID,
    service: TimeSlotService = Depends(get_time_slot_service),
):
    return TimeSlotPublic.from_domain(service.get_time_slot(timeslot_id))

# barbershop/routers/appointments_routes.py

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends

from barbershop.deps import get_appointment_service
from barbershop.schemas import (
    AppointmentCreate,
    AppointmentList,
    AppointmentPublic,
    AppointmentStatus,
)
from barbershop.services import AppointmentService

router = APIRouter(
    prefix="/appointments",
    tags=["appointments"],
)


def _as_list(appointments) -> dict:
    return {
        "count": len(appointments),
        "appointments": [AppointmentPublic.from_domain(a) for a in appointments],
    }


@router.get("", response_model=AppointmentList)
def list_appointments(
    status: Optional[AppointmentStatus] = None,
    service: AppointmentService = Depends(get_appointment_service),
):
    return _as_list(service.list_appointments(status.value if status else None))


@router.post("", response_model=AppointmentPublic, status_code=201)
def create_appointment(
    appt: AppointmentCreate,
    service: AppointmentService = Depends(get_appointment_service),
):
    appointment = service.schedule_appointment(appt.user_id, appt.time_slot_id, appt.note)
    return AppointmentPublic.from_domain(appointment)


@router.get("/user/{user_id}", response_model=AppointmentList)
def list_user_appointments(
    user_id: UUID,
    service: AppointmentService = Depends(get_appointment_service),
):
    return _as_list(service.list_for_user(user_id))


@router.get("/barber/{barber_id}", response_model=AppointmentList)
def list_barber_appointments(
    barber_id: UUID,
    service: AppointmentService = Depends(get_appointment_service),
):
    return _as_list(service.list_for_barber(barber_id))


@router.get("/{appointment_id}", response_model=AppointmentPublic)
def get_appointment(
    appointment_id: UUID,
    service: AppointmentService = Depends(get_appointment_service),
):
    return AppointmentPublic.from_domain(service.get_appointment(appointment_id))


@router.post("/{appointment_id}/cancel", response_model=AppointmentPublic)
def cancel_appointment(
    appointment_id: UUID,
    service: AppointmentService = Depends(get_appointment_service),
):
    return AppointmentPublic.from_domain(service.cancel_appointment(appointment_id))
